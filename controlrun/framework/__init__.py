"""Execution framework: example groups, examples and the run context."""

from .context import RunContext
from .group import Example, ExampleGroup, describe_args, source_info

__all__ = [
    "Example",
    "ExampleGroup",
    "RunContext",
    "describe_args",
    "source_info",
]
