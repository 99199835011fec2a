"""Normalize bank alert notifications into canonical transaction records."""

__version__ = "0.1.0"
