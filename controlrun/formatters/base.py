"""
Formatter Base

Formatters collect example notifications during a run and render them
when the run closes. The base class records every example in notification
order together with the statistics most formats need.
"""

from __future__ import annotations

from typing import IO, Any, Dict, List, Optional

from controlrun.ir.model import ExampleStatus


class BaseFormatter:
    """Records outcomes; subclasses decide how to render them."""

    def __init__(self, output: IO[str], color: bool = False) -> None:
        self.output = output
        self.color = color
        self.examples: List[Any] = []
        self.example_count = 0
        self.duration = 0.0

    # ---- notifications ----

    def start(self, example_count: int) -> None:
        self.example_count = example_count

    def example_passed(self, example: Any) -> None:
        self.examples.append(example)

    def example_failed(self, example: Any, exception: Optional[BaseException]) -> None:
        self.examples.append(example)

    def example_pending(self, example: Any, message: str) -> None:
        self.examples.append(example)

    def stop(self, duration: float) -> None:
        self.duration = duration

    def close(self) -> None:
        pass

    # ---- statistics ----

    def count(self, status: ExampleStatus) -> int:
        return sum(1 for example in self.examples if example.status == status)

    @property
    def failure_count(self) -> int:
        return self.count(ExampleStatus.FAILED)

    @property
    def pending_count(self) -> int:
        return self.count(ExampleStatus.PENDING)

    @property
    def passed_count(self) -> int:
        return self.count(ExampleStatus.PASSED)

    def summary(self) -> Dict[str, Any]:
        return {
            "duration": self.duration,
            "example_count": len(self.examples),
            "failure_count": self.failure_count,
            "pending_count": self.pending_count,
        }

    def summary_line(self) -> str:
        line = f"{len(self.examples)} examples, {self.failure_count} failures"
        if self.pending_count:
            line += f", {self.pending_count} pending"
        return line
