"""
CLI Formatter

Minimal human-readable output: one line per example, grouped under the
control it belongs to, followed by a summary.

    Profile: Base Linux hardening (base-linux)

      [PASS]  sshd-01: SSH protocol version
         [PASS]  sshd_config protocol should eq 2
      [SKIP]  sshd-02: Root login
         [SKIP]  sshd_config resource not supported on this host

    Summary: 1 successful, 0 failures, 1 skipped
"""

from __future__ import annotations

from typing import IO, Any, Dict, List, Optional

from controlrun.ir.model import ExampleStatus

from .base import BaseFormatter

COLORS = {
    ExampleStatus.PASSED: "\033[32m",
    ExampleStatus.FAILED: "\033[31m",
    ExampleStatus.PENDING: "\033[33m",
}
RESET = "\033[0m"

LABELS = {
    ExampleStatus.PASSED: "PASS",
    ExampleStatus.FAILED: "FAIL",
    ExampleStatus.PENDING: "SKIP",
}


class CliFormatter(BaseFormatter):
    """Writes a per-control text report when the run closes."""

    def __init__(self, output: IO[str], color: bool = False) -> None:
        super().__init__(output, color=color)
        self.profiles: List[Any] = []

    def add_profile(self, profile: Any) -> None:
        self.profiles.append(profile)

    def _label(self, status: Optional[ExampleStatus]) -> str:
        label = f"[{LABELS.get(status, '????')}]"
        if self.color and status in COLORS:
            return f"{COLORS[status]}{label}{RESET}"
        return label

    @staticmethod
    def _control_status(examples: List[Any]) -> ExampleStatus:
        statuses = {example.status for example in examples}
        if ExampleStatus.FAILED in statuses:
            return ExampleStatus.FAILED
        if statuses == {ExampleStatus.PENDING}:
            return ExampleStatus.PENDING
        return ExampleStatus.PASSED

    def _by_control(self) -> Dict[Any, List[Any]]:
        controls: Dict[Any, List[Any]] = {}
        for example in self.examples:
            key = (example.metadata.get("profile_id"), example.metadata.get("id"))
            controls.setdefault(key, []).append(example)
        return controls

    def render(self) -> str:
        lines: List[str] = []

        for profile in self.profiles:
            title = profile.title or profile.name
            lines.append(f"Profile: {title} ({profile.name})")
        if self.profiles:
            lines.append("")

        controls = self._by_control()
        summary = {status: 0 for status in ExampleStatus}

        for (_, control_id), examples in controls.items():
            status = self._control_status(examples)
            summary[status] += 1
            if control_id is None:
                heading = "Other checks"
            else:
                title = examples[0].metadata.get("title")
                heading = f"{control_id}: {title}" if title else str(control_id)
            lines.append(f"  {self._label(status)}  {heading}")

            for example in examples:
                detail = example.full_description
                if example.status == ExampleStatus.FAILED and example.exception is not None:
                    detail += f"\n             {example.exception}"
                lines.append(f"     {self._label(example.status)}  {detail}")

        lines.append("")
        lines.append(
            f"Summary: {summary[ExampleStatus.PASSED]} successful, "
            f"{summary[ExampleStatus.FAILED]} failures, "
            f"{summary[ExampleStatus.PENDING]} skipped"
        )
        return "\n".join(lines)

    def close(self) -> None:
        self.output.write(self.render())
        self.output.write("\n")
        self.output.flush()
