"""
Check Compiler

Turns a rule's raw checks into example groups.

Decision order for a single check:

1. Skip: the first argument reports a skipped resource. The check becomes
   one group holding a single pending example whose message is the reason.
   The directive and the body are ignored.
2. describe: one group labelled from the arguments; the body declares its
   examples.
3. expect: the body already knows its group; it is returned unwrapped.
4. describe.one: every alternative becomes its own group and is executed
   right here, during compilation. If any alternative passes, only the
   passing ones are kept. If none pass, all of them are kept so the report
   shows the full failure. No alternatives, no group.
5. Anything else is an upstream programming error and raises.

Alternatives of an OR-group therefore run once while compiling and the
kept ones run again with the rest of the registry.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

from controlrun.framework.group import ExampleGroup, source_info
from controlrun.ir.model import CheckKind
from controlrun.ir.validation import (
    CompilationError,
    validate_alternatives,
    validate_body,
    validate_check,
)
from controlrun.rule import prepare_checks

logger = logging.getLogger(__name__)


class UnknownDirectiveError(CompilationError):
    """Raised when a rule registered a check with a directive nobody understands."""

    def __init__(self, kind: Any, check: Optional[Any] = None):
        self.kind = kind
        super().__init__(
            f"A rule was registered with {kind!r}, "
            "which isn't understood and cannot be processed.",
            check,
        )


def extract_checks(rule: Any, provider: Callable[[Any], Sequence[Any]] = prepare_checks) -> List[Any]:
    """
    The rule's raw checks, exactly as declared.

    Order is preserved; it decides report order. Errors from a malformed
    rule propagate unchanged.
    """
    return list(provider(rule))


def skip_reason(arguments: Sequence[Any]) -> Optional[str]:
    """The skip reason exposed by the first argument, if any."""
    if not arguments:
        return None
    return getattr(arguments[0], "resource_skipped", None)


class CheckCompiler:
    """
    Compiles raw checks into example groups.

    Usage:
        compiler = CheckCompiler()
        groups = compiler.compile_rule(rule)
    """

    def __init__(self, provider: Callable[[Any], Sequence[Any]] = prepare_checks) -> None:
        self._provider = provider

    def example_group(self, *args: Any, metadata: Optional[dict] = None, body: Any = None) -> ExampleGroup:
        """Create a new example group from arguments and body."""
        return ExampleGroup(*args, metadata=metadata, body=body)

    def compile_rule(self, rule: Any) -> List[ExampleGroup]:
        """Compile every check of a rule, flattened, in declaration order."""
        groups: List[ExampleGroup] = []
        for kind, arguments, body in extract_checks(rule, self._provider):
            compiled = self.compile(kind, arguments, body)
            if compiled:
                groups.extend(compiled)
        return groups

    def compile(self, kind: Any, arguments: Sequence[Any], body: Any = None) -> Optional[List[ExampleGroup]]:
        """
        Compile one raw check.

        Returns:
            The compiled groups, or None when an OR-group has no alternatives.

        Raises:
            CheckValidationError: If the check is malformed.
            UnknownDirectiveError: If the directive is not understood.
        """
        validate_check((kind, arguments, body))

        reason = skip_reason(arguments)
        if reason is not None:
            logger.debug("Skipping check %r: %s", kind, reason)
            return [self._skipped(arguments, body, reason)]

        directive = CheckKind.parse(kind)
        if directive is None:
            raise UnknownDirectiveError(kind, (kind, arguments, body))
        validate_body(directive, body)

        if directive == CheckKind.DESCRIBE:
            return [self.example_group(*arguments, metadata=source_info(body), body=body)]
        elif directive == CheckKind.EXPECT:
            return [body.example_group]
        elif directive == CheckKind.DESCRIBE_ONE:
            return self._compile_alternatives(arguments)
        raise UnknownDirectiveError(kind, (kind, arguments, body))

    def _skipped(self, arguments: Sequence[Any], body: Any, reason: str) -> ExampleGroup:
        def pending(group: ExampleGroup) -> None:
            group.it(reason)

        return self.example_group(*arguments, metadata=source_info(body), body=pending)

    def _compile_alternatives(self, alternatives: Sequence[Any]) -> Optional[List[ExampleGroup]]:
        validate_alternatives(alternatives)

        groups = [
            self.example_group(arguments[0], metadata=source_info(body), body=body)
            for _, arguments, body in alternatives
        ]
        if not groups:
            return None

        passing = [group for group in groups if group.succeeds()]
        logger.debug(
            "OR-group resolved: %d of %d alternatives passed",
            len(passing), len(groups),
        )

        # none passed: report every alternative
        if not passing:
            return groups
        return passing
