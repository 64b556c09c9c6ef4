"""
Test Registry

The world of compiled groups for one run. Groups are kept in the order
they were added; adding the same group twice keeps both entries. Adding a
group stamps the owning rule's identity onto it first, so everything in
the world can be attributed to a control.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, List, Optional

from controlrun.framework.group import ExampleGroup
from controlrun.metadata import inject
from controlrun.rule import profile_id as default_profile_id
from controlrun.rule import rule_id as default_rule_id

logger = logging.getLogger(__name__)

Ordering = Callable[[List[ExampleGroup]], List[ExampleGroup]]


class World:
    """
    Ordered collection of top-level example groups.

    Usage:
        world = World()
        world.add(group, rule)
        for group in world.ordered_example_groups():
            ...

    An ordering strategy may be supplied to reorder groups for execution;
    without one, groups run in declaration order.
    """

    def __init__(
        self,
        ordering: Optional[Ordering] = None,
        rule_id: Callable[[Any], Any] = default_rule_id,
        profile_id: Callable[[Any], Any] = default_profile_id,
    ) -> None:
        self.example_groups: List[ExampleGroup] = []
        self._ordering = ordering
        self._rule_id = rule_id
        self._profile_id = profile_id

    def add(self, group: ExampleGroup, rule: Any) -> None:
        """Stamp the rule's identity onto the group and register it."""
        inject(group, rule, rule_id=self._rule_id, profile_id=self._profile_id)
        self.example_groups.append(group)
        logger.debug("Registered %r for rule %s", group, group.metadata.get("id"))

    def ordered_example_groups(self) -> List[ExampleGroup]:
        """Registered groups in execution order; a new list on every call."""
        groups = list(self.example_groups)
        if self._ordering is None:
            return groups
        return list(self._ordering(groups))

    def __len__(self) -> int:
        return len(self.example_groups)

    def __iter__(self) -> Iterator[ExampleGroup]:
        return iter(self.example_groups)
