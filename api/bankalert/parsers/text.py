# api/bankalert/parsers/text.py
import re
from typing import Any

_WS = re.compile(r"\s+")


def normalize_whitespace(text: Any) -> str:
    """Collapse an alert body/subject onto a single trimmed line."""
    if text is None:
        return ""
    s = str(text)
    s = s.replace("\r", " ").replace("\n", " ")
    s = _WS.sub(" ", s)
    return s.strip()
