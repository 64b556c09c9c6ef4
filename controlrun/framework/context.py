"""
Run Context

Everything a run shares across example groups: where output goes, which
formatters listen, and whether output is colored. A context belongs to one
runner; starting over means building a new context, never mutating a
shared one.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Any, List, Optional

logger = logging.getLogger(__name__)


class RunContext:
    """
    Output stream, formatter list and color flag for a single run.

    The output may be a writable stream, a file path, or None / "-" for
    standard output. Paths are opened by the context and closed by close().
    """

    def __init__(self, output: Any = None, color: bool = False) -> None:
        self.color = bool(color)
        self.formatters: List[Any] = []
        self._owned_stream: Optional[IO[str]] = None
        self.output_stream = self._resolve_output(output)

    def _resolve_output(self, output: Any) -> IO[str]:
        if output is None or output == "-":
            return sys.stdout
        if hasattr(output, "write"):
            return output

        logger.debug("Writing run output to %s", output)
        self._owned_stream = open(output, "w", encoding="utf-8")
        return self._owned_stream

    def add_formatter(self, formatter_class: Any, output: Optional[IO[str]] = None) -> Any:
        """Instantiate a formatter on this context's stream and register it."""
        formatter = formatter_class(
            output if output is not None else self.output_stream,
            color=self.color,
        )
        self.formatters.append(formatter)
        return formatter

    def formatters_supporting(self, capability: str) -> List[Any]:
        """Formatters that expose a callable attribute with the given name."""
        return [
            formatter
            for formatter in self.formatters
            if callable(getattr(formatter, capability, None))
        ]

    def close(self) -> None:
        """Close the output file if this context opened one."""
        if self._owned_stream is not None:
            self._owned_stream.close()
            self._owned_stream = None
