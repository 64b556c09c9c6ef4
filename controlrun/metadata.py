"""
Metadata Injection

Every compiled group, and every example and nested group beneath it,
carries the identity of the rule it came from. Formatters rely on these
keys to attribute results to controls, whatever depth a result sits at.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from controlrun.ir.model import METADATA_KEYS
from controlrun.rule import location_dict
from controlrun.rule import profile_id as default_profile_id
from controlrun.rule import rule_id as default_rule_id


def rule_metadata(
    rule: Any,
    rule_id: Callable[[Any], Any] = default_rule_id,
    profile_id: Callable[[Any], Any] = default_profile_id,
) -> Dict[str, Any]:
    """The identifying metadata record for a rule."""
    return {
        "id": rule_id(rule),
        "profile_id": profile_id(rule),
        "impact": rule.impact,
        "title": rule.title,
        "desc": rule.desc,
        "code": getattr(rule, "code", None),
        "source_location": location_dict(getattr(rule, "source_location", None)),
    }


def _stamp(metadata: Dict[str, Any], record: Dict[str, Any]) -> None:
    for key in METADATA_KEYS:
        value = record[key]
        metadata[key] = dict(value) if isinstance(value, dict) else value


def inject(
    group: Any,
    rule: Any,
    rule_id: Callable[[Any], Any] = default_rule_id,
    profile_id: Callable[[Any], Any] = default_profile_id,
    record: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Stamp a rule's identity onto a group and everything beneath it.

    The group, each of its examples, and every nested group (to any depth)
    receive the same id, profile_id, impact, title, desc, code and
    source_location. Labels such as description and file_path are left
    alone.
    """
    if record is None:
        record = rule_metadata(rule, rule_id, profile_id)

    stack = [group]
    while stack:
        current = stack.pop()
        _stamp(current.metadata, record)
        for example in current.filtered_examples:
            _stamp(example.metadata, record)
        stack.extend(current.children)
