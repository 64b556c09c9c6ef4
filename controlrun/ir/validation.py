"""
Raw Check Validation

Checks arrive from rule providers as plain tuples. Before the compiler
dispatches on a check's kind it makes sure the check has the shape every
directive relies on. A malformed check is a programming error upstream,
so validation collects every problem and refuses the check as a whole.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from .model import CheckKind


class CompilationError(Exception):
    """Raised when a raw check cannot be compiled into an example group."""

    def __init__(self, message: str, check: Optional[Any] = None):
        self.check = check
        super().__init__(message)


class CheckValidationError(CompilationError):
    """Raised when a raw check does not have the (kind, arguments, body) shape."""

    def __init__(self, errors: List[str], check: Optional[Any] = None):
        self.errors = errors
        msg = "Raw check failed validation:\n- " + "\n- ".join(errors)
        super().__init__(msg, check)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def validate_check(check: Any) -> None:
    """
    Ensure a raw check is a (kind, arguments, body) triple.

    Neither the kind nor the body is judged here: a skipped check is
    compiled no matter what declared it, so directive-specific checks
    happen in validate_body once the skip rule has had its say.

    Raises:
        CheckValidationError: If the check is malformed.
    """
    if not _is_sequence(check) or len(check) != 3:
        raise CheckValidationError(
            ["check must be a (kind, arguments, body) triple."], check
        )

    _, arguments, _ = check
    if not _is_sequence(arguments):
        raise CheckValidationError(["arguments must be a sequence."], check)


def validate_body(kind: CheckKind, body: Any) -> None:
    """
    Ensure the body fits the directive that declared it.

    Raises:
        CheckValidationError: If the body cannot be compiled for this kind.
    """
    errors: List[str] = []

    if kind == CheckKind.DESCRIBE and body is not None and not callable(body):
        errors.append("describe body must be callable.")
    if kind == CheckKind.EXPECT and not hasattr(body, "example_group"):
        errors.append("expect body must expose example_group.")

    if errors:
        raise CheckValidationError(errors, (kind.value, None, body))


def validate_alternatives(alternatives: Sequence[Any]) -> None:
    """
    Ensure every alternative of an OR-group is itself a raw check with a label.

    Raises:
        CheckValidationError: If any alternative is malformed.
    """
    errors: List[str] = []

    for index, alternative in enumerate(alternatives):
        if not _is_sequence(alternative) or len(alternative) != 3:
            errors.append(f"alternative {index} must be a (kind, arguments, body) triple.")
            continue
        _, arguments, body = alternative
        if not _is_sequence(arguments) or len(arguments) == 0:
            errors.append(f"alternative {index} needs at least one argument to label it.")
        if body is not None and not callable(body):
            errors.append(f"alternative {index} body must be callable.")

    if errors:
        raise CheckValidationError(errors, alternatives)
