"""
Control Runner

Ties the pieces together for one run:

    rule -> compiler -> example groups -> world (metadata stamped)
         -> runner -> formatters -> report

Usage:
    runner = ControlRunner({"format": "json-min"})
    runner.add_profile(profile)
    for rule in profile.rules:
        runner.add_rule(rule)
    status = runner.run()
    report = runner.report()

Registering a rule compiles it immediately, which executes the alternatives
of any OR-group it declares. Compilation errors propagate to the caller of
add_rule.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional, Union

from controlrun.compiler import CheckCompiler
from controlrun.config import RunnerConfig
from controlrun.executor.runner import SequentialRunner
from controlrun.formatters import StructuredReporter, resolve_formatter
from controlrun.framework.context import RunContext
from controlrun.framework.group import ExampleGroup
from controlrun.registry.world import Ordering, World
from controlrun.rule import prepare_checks
from controlrun.rule import profile_id as default_profile_id
from controlrun.rule import rule_id as default_rule_id

logger = logging.getLogger(__name__)


class ControlRunner:
    """
    Compiles, registers, runs and reports controls.

    State for a run (registered groups, output stream, formatters) lives in
    a World and a RunContext owned by this runner; reset() replaces both.
    """

    def __init__(
        self,
        conf: Optional[Union[RunnerConfig, Mapping[str, Any]]] = None,
        ordering: Optional[Ordering] = None,
        prepare: Callable[[Any], Any] = prepare_checks,
        rule_id: Callable[[Any], Any] = default_rule_id,
        profile_id: Callable[[Any], Any] = default_profile_id,
    ) -> None:
        if isinstance(conf, RunnerConfig):
            self.config = conf
        else:
            self.config = RunnerConfig.from_mapping(conf)

        self.compiler = CheckCompiler(prepare)
        self._ordering = ordering
        self._rule_id = rule_id
        self._profile_id = profile_id

        self._context: Optional[RunContext] = None
        self._world: Optional[World] = None
        self._formatter: Any = None
        self._reporter: Any = None
        self._backend: Any = None
        self.reset()

    @property
    def context(self) -> RunContext:
        return self._context

    @property
    def world(self) -> World:
        return self._world

    def example_group(self, *args: Any, **kwargs: Any) -> ExampleGroup:
        """Create a new example group from arguments and body."""
        return self.compiler.example_group(*args, **kwargs)

    # ========== Formatter context ==========

    def add_profile(self, profile: Any) -> None:
        """Announce a profile to every formatter able to receive one."""
        for formatter in self._context.formatters_supporting("add_profile"):
            formatter.add_profile(profile)

    @property
    def backend(self) -> Any:
        return self._backend

    @backend.setter
    def backend(self, backend: Any) -> None:
        """Hand the target backend to every formatter able to receive it."""
        self._backend = backend
        for formatter in self._context.formatters_supporting("set_backend"):
            formatter.set_backend(backend)

    # ========== Registration ==========

    def add_test(self, group: ExampleGroup, rule: Any) -> None:
        """Register a compiled group under the rule it came from."""
        self._world.add(group, rule)

    def add_rule(self, rule: Any) -> None:
        """
        Compile a rule's checks and register the resulting groups.

        Raises:
            CompilationError: If any check cannot be compiled.
        """
        groups = self.compiler.compile_rule(rule)
        logger.debug("Rule %s compiled into %d groups", self._rule_id(rule), len(groups))
        for group in groups:
            self.add_test(group, rule)

    def tests(self) -> List[ExampleGroup]:
        """Registered groups in execution order."""
        return self._world.ordered_example_groups()

    # ========== Execution ==========

    def run(self, with_runner: Any = None) -> int:
        """
        Run every registered group.

        Args:
            with_runner: any object with run_specs(groups) -> int; defaults
                         to a SequentialRunner on this runner's context.

        Returns:
            0 if every example passed or is pending; nonzero otherwise.
        """
        if with_runner is None:
            with_runner = SequentialRunner(self._context)
        return with_runner.run_specs(self.tests())

    def report(self) -> Optional[dict]:
        """
        The structured output of the active reporter, or None.

        The active reporter is the structured reporter when one was
        requested, else the formatter selected by the configured format.
        """
        reporter = self._reporter or self._formatter
        if reporter is None or not callable(getattr(reporter, "output_hash", None)):
            return None
        return reporter.output_hash()

    def reset(self) -> None:
        """Forget all registered groups and start from a fresh context."""
        if self._context is not None:
            self._context.close()
        self._backend = None

        self._world = World(
            ordering=self._ordering,
            rule_id=self._rule_id,
            profile_id=self._profile_id,
        )
        self._context = RunContext(output=self.config.output, color=self.config.color)
        self._configure_output()

    def _configure_output(self) -> None:
        formatter_class = resolve_formatter(self.config.format)
        self._formatter = self._context.add_formatter(formatter_class)

        self._reporter = None
        if self.config.report:
            self._reporter = self._context.add_formatter(StructuredReporter)
