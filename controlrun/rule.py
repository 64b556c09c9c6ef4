"""
Controls and Profiles

A small Python DSL for declaring compliance controls. A Rule records its
checks as raw (kind, arguments, body) triples; nothing is compiled or run
here. Rules are grouped into a Profile.

Usage:
    profile = Profile("base-linux", title="Base Linux hardening")

    rule = profile.control(
        "sshd-01",
        impact=0.7,
        title="SSH protocol version",
    )
    rule.describe(sshd_config, body=lambda g: g.its(
        "protocol", lambda v: v == 2, "should eq 2"
    ))
    rule.expect(kernel_version).to(lambda v: v >= (5, 4), "should be >= 5.4")

    @rule.describe_one
    def any_logger(one):
        one.describe(rsyslog, body=lambda g: g.it("is running", lambda s: s.running))
        one.describe(journald, body=lambda g: g.it("is running", lambda s: s.running))

The module-level functions prepare_checks, rule_id and profile_id are the
accessors the runner uses for every rule in a run.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from controlrun.framework.group import ExampleGroup
from controlrun.ir.model import CheckKind, RawCheck, SourceLocation


class Expectation:
    """
    A bare assertion about a value.

    The expectation builds its own example group, so the compiler can use
    it as-is.
    """

    def __init__(self, value: Any) -> None:
        self.value = value
        self._matchers: List[tuple] = []

    def to(self, matcher: Callable[[Any], Any], description: Optional[str] = None) -> "Expectation":
        """Add a matcher; the value must satisfy it."""
        label = description or f"should satisfy {getattr(matcher, '__name__', 'matcher')}"
        self._matchers.append((label, matcher))
        return self

    def not_to(self, matcher: Callable[[Any], Any], description: Optional[str] = None) -> "Expectation":
        """Add a negated matcher; the value must not satisfy it."""
        label = description or f"should not satisfy {getattr(matcher, '__name__', 'matcher')}"
        self._matchers.append((label, lambda value: not matcher(value)))
        return self

    @property
    def example_group(self) -> ExampleGroup:
        """A fresh example group with one example per matcher."""
        group = ExampleGroup(self.value)
        for label, matcher in self._matchers:
            group.it(label, matcher)
        return group


class _Alternatives:
    """Collects the sub-checks of an OR-group."""

    def __init__(self) -> None:
        self.checks: List[RawCheck] = []

    def describe(self, *args: Any, body: Optional[Callable[[ExampleGroup], Any]] = None) -> None:
        self.checks.append(RawCheck(CheckKind.DESCRIBE.value, args, body))


def _caller_location(depth: int = 2) -> SourceLocation:
    frame = inspect.stack(0)[depth]
    return SourceLocation(ref=frame.filename, line=frame.lineno)


class Rule:
    """
    A named compliance control.

    Identity (id, profile_id), reporting fields (impact, title, desc), the
    control's source code and location, and the ordered list of raw checks.
    """

    def __init__(
        self,
        rule_id: str,
        profile_id: Optional[str] = None,
        impact: Optional[float] = None,
        title: Optional[str] = None,
        desc: Optional[str] = None,
        code: Optional[str] = None,
        source_location: Optional[Union[SourceLocation, Dict[str, Any]]] = None,
    ) -> None:
        if not rule_id:
            raise ValueError("Rule id must be non-empty")
        self.id = rule_id
        self.profile_id = profile_id
        self.impact = impact
        self.title = title
        self.desc = desc
        self.code = code
        if isinstance(source_location, dict):
            source_location = SourceLocation(**source_location)
        self.source_location = source_location or _caller_location()
        self.checks: List[RawCheck] = []

    def __repr__(self) -> str:
        return f"<Rule {self.profile_id}/{self.id} checks={len(self.checks)}>"

    # ========== Check declaration ==========

    def add_check(self, kind: str, arguments: Any, body: Any = None) -> "Rule":
        """Append a raw check as-is."""
        self.checks.append(RawCheck(kind, tuple(arguments), body))
        return self

    def describe(self, *args: Any, body: Optional[Callable[[ExampleGroup], Any]] = None) -> "Rule":
        """Declare a group of assertions about a subject."""
        return self.add_check(CheckKind.DESCRIBE.value, args, body)

    def expect(self, value: Any) -> Expectation:
        """Declare a bare assertion; chain .to() to add matchers."""
        expectation = Expectation(value)
        self.add_check(CheckKind.EXPECT.value, (value,), expectation)
        return expectation

    def describe_one(self, body: Callable[[_Alternatives], Any]) -> Callable[[_Alternatives], Any]:
        """
        Declare an OR-group: the body declares alternatives with describe(),
        and the group is satisfied if any alternative passes.

        Usable as a decorator.
        """
        alternatives = _Alternatives()
        body(alternatives)
        self.add_check(CheckKind.DESCRIBE_ONE.value, alternatives.checks, body)
        return body


@dataclass
class Profile:
    """A named, versioned bundle of rules."""

    name: str
    title: Optional[str] = None
    version: Optional[str] = None
    summary: Optional[str] = None
    rules: List[Rule] = field(default_factory=list)

    def add_rule(self, rule: Rule) -> Rule:
        """Add a rule, claiming it for this profile if it has no profile yet."""
        if rule.profile_id is None:
            rule.profile_id = self.name
        self.rules.append(rule)
        return rule

    def control(self, rule_id: str, **kwargs: Any) -> Rule:
        """Create a rule in this profile."""
        kwargs.setdefault("source_location", _caller_location())
        return self.add_rule(Rule(rule_id, profile_id=self.name, **kwargs))

    def info(self) -> Dict[str, Any]:
        """Profile header plus control metadata, for reporting."""
        return {
            "name": self.name,
            "title": self.title,
            "version": self.version,
            "summary": self.summary,
            "controls": {
                rule.id: {
                    "title": rule.title,
                    "desc": rule.desc,
                    "impact": rule.impact,
                    "code": rule.code,
                    "source_location": location_dict(rule.source_location),
                }
                for rule in self.rules
            },
        }


def location_dict(location: Any) -> Optional[Dict[str, Any]]:
    if location is None:
        return None
    if isinstance(location, SourceLocation):
        return location.to_dict()
    return dict(location)


# ========== Rule provider accessors ==========


def prepare_checks(rule: Rule) -> List[RawCheck]:
    """The rule's raw checks, in declaration order."""
    return list(rule.checks)


def rule_id(rule: Rule) -> str:
    return rule.id


def profile_id(rule: Rule) -> Optional[str]:
    return rule.profile_id
