"""
Formatters for run output.

A format is selected by name from FORMATTERS, by passing a formatter class
directly, or by an import path of the form "package.module:ClassName".
"""

from __future__ import annotations

import importlib
from typing import Any

from .base import BaseFormatter
from .cli import CliFormatter
from .structured import (
    JsonFormatter,
    MiniJsonFormatter,
    StructuredReporter,
    VanillaJsonFormatter,
)

FORMATTERS = {
    "json-min": MiniJsonFormatter,
    "json": JsonFormatter,
    "json-rspec": VanillaJsonFormatter,
    "cli": CliFormatter,
}

DEFAULT_FORMAT = "cli"


class UnknownFormatterError(ValueError):
    """Raised when a format name resolves to no formatter."""

    def __init__(self, format: Any):
        self.format = format
        known = ", ".join(sorted(FORMATTERS))
        super().__init__(f"Formatter {format!r} unknown; choose one of: {known}")


def resolve_formatter(format: Any = None) -> type:
    """
    Resolve a format selector to a formatter class.

    Args:
        format: A name from FORMATTERS, a class, "module:Class", or None
                for the default CLI formatter.

    Raises:
        UnknownFormatterError: If the selector matches nothing.
    """
    if format is None or format == "":
        return FORMATTERS[DEFAULT_FORMAT]
    if isinstance(format, type):
        return format
    if format in FORMATTERS:
        return FORMATTERS[format]

    if isinstance(format, str) and ":" in format:
        module_name, _, class_name = format.partition(":")
        try:
            module = importlib.import_module(module_name)
            return getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise UnknownFormatterError(format) from e

    raise UnknownFormatterError(format)


__all__ = [
    "BaseFormatter",
    "CliFormatter",
    "DEFAULT_FORMAT",
    "FORMATTERS",
    "JsonFormatter",
    "MiniJsonFormatter",
    "StructuredReporter",
    "UnknownFormatterError",
    "VanillaJsonFormatter",
    "resolve_formatter",
]
