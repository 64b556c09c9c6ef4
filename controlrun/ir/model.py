"""
Check Representation Model

A rule carries an ordered list of raw checks. A raw check is the declared,
uncompiled form of a single check:

    (kind, arguments, body)

- kind:      the directive that declared it (closed set, see CheckKind)
- arguments: values used to label the compiled unit
- body:      the block that declares the unit's assertions

Everything downstream (compiler, metadata injection, reporting) works off
this shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Sequence


# ---------- Enums (closed-world) ----------


class CheckKind(str, Enum):
    """
    The directive a raw check was declared with.

    DESCRIBE:     a plain group of assertions about a subject
    EXPECT:       a bare assertion that already knows its own group
    DESCRIBE_ONE: an OR-group; any passing sub-check satisfies it
    """

    DESCRIBE = "describe"
    EXPECT = "expect"
    DESCRIBE_ONE = "describe.one"

    @classmethod
    def parse(cls, value: Any) -> Optional["CheckKind"]:
        """Return the matching kind, or None for an unrecognized directive."""
        if isinstance(value, cls):
            return value
        for kind in cls:
            if kind.value == value:
                return kind
        return None


class ExampleStatus(str, Enum):
    """Outcome of a single executed assertion."""

    PASSED = "passed"
    FAILED = "failed"
    PENDING = "pending"


# ---------- Metadata ----------

# Identifying keys stamped onto every unit derived from a rule.
METADATA_KEYS = (
    "id",
    "profile_id",
    "impact",
    "title",
    "desc",
    "code",
    "source_location",
)


@dataclass(frozen=True)
class SourceLocation:
    """Where a control or a check body was declared."""

    ref: Optional[str] = None
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"ref": self.ref, "line": self.line}


# ---------- Core structs ----------


class RawCheck(NamedTuple):
    """
    A declared, uncompiled check.

    Unpacks like a plain 3-tuple, so providers are free to hand the
    compiler bare tuples instead.
    """

    kind: Any
    arguments: Sequence[Any]
    body: Any = None
