"""
Serialization

Compiled groups and reports must be inspectable: this module turns them
into JSON-friendly dictionaries. Groups are walked structurally (anything
with description, metadata, filtered_examples and children), so the
serializer does not depend on the execution framework.
"""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List


class ControlRunEncoder(json.JSONEncoder):
    """JSON encoder for enums, dataclasses, tuples and exceptions."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Enum):
            return obj.value
        if is_dataclass(obj) and not isinstance(obj, type):
            return asdict(obj)
        if isinstance(obj, tuple):
            return list(obj)
        if isinstance(obj, BaseException):
            return {"class": type(obj).__name__, "message": str(obj)}
        return repr(obj)


def to_json(value: Any, indent: int = 2) -> str:
    """Serialize a report or a structural dump to JSON."""
    return json.dumps(value, cls=ControlRunEncoder, indent=indent)


def to_dict(value: Any) -> Any:
    """Round-trip through the encoder to get plain JSON types."""
    return json.loads(to_json(value, indent=None))


def _example_to_dict(example: Any) -> Dict[str, Any]:
    status = getattr(example, "status", None)
    return {
        "description": example.description,
        "status": status.value if isinstance(status, Enum) else status,
        "pending_message": getattr(example, "pending_message", None),
        "metadata": dict(example.metadata),
    }


def group_to_dict(group: Any) -> Dict[str, Any]:
    """
    Structural dump of a compiled group and everything beneath it.

    Returns:
        Dict with 'description', 'metadata', 'examples' and 'children'.
    """
    return {
        "description": group.description,
        "metadata": dict(group.metadata),
        "examples": [_example_to_dict(e) for e in group.filtered_examples],
        "children": [group_to_dict(child) for child in group.children],
    }


def groups_to_dict(groups: Iterable[Any]) -> List[Dict[str, Any]]:
    """Structural dump of a sequence of compiled groups, in order."""
    return [to_dict(group_to_dict(group)) for group in groups]
