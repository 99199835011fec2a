from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

import yaml

from .alert_rules import DEFAULT_RULE_PLAN, FIELDS, RULES_MAP

logger = logging.getLogger(__name__)

GENERIC_BANK_LABEL = "Bank"


@dataclass(frozen=True)
class AlertProfile:
    name: str
    bank_label: str
    rules: Mapping[str, Tuple[str, ...]]


_POLICY_CACHE: Dict[str, Dict] = {}
_REPORTED: Set[Tuple[str, ...]] = set()


def _warn_once(key: Tuple[str, ...], message: str, *args: Any) -> None:
    # profiles are rebuilt for every alert
    if key in _REPORTED:
        return
    _REPORTED.add(key)
    logger.warning(message, *args)


def _as_mapping(value: Any, owner: str, what: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return value
    _warn_once((owner, what, "shape"), "Policy entry %s.%s is not a mapping, ignoring it", owner, what)
    return {}


def _as_list(value: Any, owner: str, what: str) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return list(value)
    _warn_once((owner, what, "shape"), "Policy entry %s.%s is not a list, ignoring it", owner, what)
    return []


def _default_policy_path() -> Path:
    """
    policy.yaml ships inside the bankalert package (one level above parsers/).
    """
    return Path(__file__).resolve().parents[1] / "policy.yaml"


def sanitize_policy(data: Any) -> Dict[str, Any]:
    """
    Reduce a raw policy document to `{"defaults": {...}, "profiles": {...}}`.

    Profiles that are not mappings are dropped with a warning; finer problems
    (bad regexes, unknown rules) are handled when a profile is built.
    """
    doc = _as_mapping(data, "policy", "<root>")
    profiles: Dict[str, Mapping[str, Any]] = {}
    for name, cfg in _as_mapping(doc.get("profiles"), "policy", "profiles").items():
        if cfg is None:
            cfg = {}
        if not isinstance(cfg, Mapping):
            _warn_once(("profiles", str(name), "shape"), "Profile %s is not a mapping, skipping it", name)
            continue
        profiles[str(name)] = cfg
    return {
        "defaults": _as_mapping(doc.get("defaults"), "policy", "defaults"),
        "profiles": profiles,
    }


def load_policy(path: str | Path | None = None) -> Dict:
    """
    Load, sanitize and cache the YAML policy.

    A missing or unparsable file yields an empty policy, which makes the
    picker fall back to the generic profile.
    """
    target = Path(path) if path else _default_policy_path()
    cache_key = str(target)
    if cache_key not in _POLICY_CACHE:
        _POLICY_CACHE[cache_key] = _read_policy(target)
    return _POLICY_CACHE[cache_key]


def _read_policy(target: Path) -> Dict:
    if not target.exists():
        logger.warning("Policy file %s not found, using built-in rule order", target)
        return {}
    try:
        with target.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp)
    except yaml.YAMLError as e:
        logger.warning("Policy file %s is not valid YAML, ignoring it: %s", target, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        logger.warning("Policy file %s is not a mapping, ignoring it", target)
        return {}
    return sanitize_policy(data)


def _rule_names(profile_name: str, field_name: str, names: Any) -> Tuple[str, ...]:
    kept = []
    for name in _as_list(names, profile_name, f"rules.{field_name}"):
        rule = RULES_MAP.get(str(name))
        if rule is None or rule.field != field_name:
            _warn_once(
                (profile_name, field_name, str(name)),
                "Profile %s lists unknown %s rule %r, skipping it",
                profile_name,
                field_name,
                name,
            )
            continue
        kept.append(rule.name)
    return tuple(kept)


def _build_profile(name: str, cfg: Mapping[str, Any], defaults: Mapping[str, Any]) -> AlertProfile:
    default_rules = _as_mapping(defaults.get("rules"), "defaults", "rules")
    own_rules = _as_mapping(cfg.get("rules"), name, "rules")
    plan: Dict[str, Tuple[str, ...]] = {}
    for field_name in FIELDS:
        if field_name in own_rules:
            names = own_rules[field_name]
        else:
            names = default_rules.get(field_name, DEFAULT_RULE_PLAN[field_name])
        plan[field_name] = _rule_names(name, field_name, names)
    return AlertProfile(
        name=name,
        bank_label=str(cfg.get("bank_label") or name),
        rules=plan,
    )


def _detect_hits(name: str, cfg: Mapping[str, Any], alert_text: str) -> int:
    hits = 0
    for pattern in _as_list(cfg.get("detect"), name, "detect"):
        if not isinstance(pattern, str):
            _warn_once((name, "detect", repr(pattern)), "Profile %s has non-string detect entry %r", name, pattern)
            continue
        try:
            if re.search(pattern, alert_text, re.IGNORECASE):
                hits += 1
        except re.error:
            _warn_once((name, "detect", pattern), "Profile %s has invalid detect regex %r", name, pattern)
    return hits


def pick_alert_profile(alert_text: str, policy: Dict) -> AlertProfile:
    """
    Score every profile's `detect` patterns against the alert and return the
    best one; ties keep the profile listed first. Without hits the
    `defaults.profile` entry is used, and without that a generic profile that
    runs every built-in rule.
    """
    policy = sanitize_policy(policy)
    defaults = policy["defaults"]
    profiles = policy["profiles"]

    best_name: Optional[str] = None
    best_hits = 0
    for name, cfg in profiles.items():
        hits = _detect_hits(name, cfg, alert_text or "")
        if hits > best_hits:
            best_name = name
            best_hits = hits

    if best_name is None:
        fallback = defaults.get("profile")
        if fallback is not None and str(fallback) in profiles:
            best_name = str(fallback)

    if best_name is not None:
        return _build_profile(best_name, profiles[best_name], defaults)

    return _build_profile("generic", {"bank_label": defaults.get("bank_label") or GENERIC_BANK_LABEL}, defaults)
