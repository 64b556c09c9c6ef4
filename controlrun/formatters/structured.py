"""
JSON Formatters

- VanillaJsonFormatter ("json-rspec"): flat list of examples plus summary
- JsonFormatter ("json"): results grouped by profile and control
- MiniJsonFormatter ("json-min"): one flat entry per example with its control
- StructuredReporter: a JsonFormatter writing into memory, attached when a
  structured report is requested alongside another format

All of them expose output_hash(), which the runner's report accessor uses.
"""

from __future__ import annotations

import io
import json
from typing import IO, Any, Dict, List, Optional

from controlrun import __version__
from controlrun.ir.model import ExampleStatus
from controlrun.ir.serialize import ControlRunEncoder

from .base import BaseFormatter


def _exception_dict(exception: Optional[BaseException]) -> Optional[Dict[str, str]]:
    if exception is None:
        return None
    return {"class": type(exception).__name__, "message": str(exception)}


def _status(example: Any) -> Optional[str]:
    return example.status.value if example.status is not None else None


class VanillaJsonFormatter(BaseFormatter):
    """Flat example list, written as JSON when the run closes."""

    def format_example(self, example: Any) -> Dict[str, Any]:
        metadata = example.metadata
        return {
            "id": example.id(),
            "description": example.description,
            "full_description": example.full_description,
            "status": _status(example),
            "file_path": metadata.get("file_path"),
            "line_number": metadata.get("line_number"),
            "run_time": example.run_time,
            "pending_message": example.pending_message,
            "exception": _exception_dict(example.exception),
        }

    def output_hash(self) -> Dict[str, Any]:
        return {
            "version": __version__,
            "examples": [self.format_example(e) for e in self.examples],
            "summary": self.summary(),
            "summary_line": self.summary_line(),
        }

    def close(self) -> None:
        self.output.write(json.dumps(self.output_hash(), cls=ControlRunEncoder))
        self.output.write("\n")
        self.output.flush()


class JsonFormatter(VanillaJsonFormatter):
    """
    Results grouped by profile and control.

    Profiles announced with add_profile() list all their controls, even
    those that produced no results. Results for controls of unannounced
    profiles get a bare profile entry; results carrying no control id are
    reported under other_checks.
    """

    def __init__(self, output: IO[str], color: bool = False) -> None:
        super().__init__(output, color=color)
        self.profiles: List[Any] = []
        self.backend: Any = None

    def add_profile(self, profile: Any) -> None:
        self.profiles.append(profile)

    def set_backend(self, backend: Any) -> None:
        self.backend = backend

    def format_example(self, example: Any) -> Dict[str, Any]:
        data = super().format_example(example)
        data["code_desc"] = example.full_description
        data["profile_id"] = example.metadata.get("profile_id")
        data["control_id"] = example.metadata.get("id")
        return data

    def _result(self, example: Any) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "status": _status(example),
            "code_desc": example.full_description,
            "run_time": example.run_time,
        }
        if example.status == ExampleStatus.PENDING:
            result["skip_message"] = example.pending_message
        if example.exception is not None:
            result["message"] = str(example.exception)
            result["exception"] = type(example.exception).__name__
        return result

    def _control_entry(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "title": metadata.get("title"),
            "desc": metadata.get("desc"),
            "impact": metadata.get("impact"),
            "code": metadata.get("code"),
            "source_location": metadata.get("source_location"),
            "results": [],
        }

    def _platform(self) -> Optional[Dict[str, Any]]:
        platform = getattr(self.backend, "platform", None)
        if platform is None:
            return None
        return {
            "name": getattr(platform, "name", None),
            "release": getattr(platform, "release", None),
        }

    def output_hash(self) -> Dict[str, Any]:
        profiles: Dict[str, Dict[str, Any]] = {}
        for profile in self.profiles:
            info = profile.info()
            for control in info["controls"].values():
                control["results"] = []
            profiles[profile.name] = info

        other_checks: List[Dict[str, Any]] = []
        for example in self.examples:
            metadata = example.metadata
            control_id = metadata.get("id")
            if control_id is None:
                other_checks.append(self.format_example(example))
                continue

            profile_key = metadata.get("profile_id")
            profile = profiles.setdefault(
                profile_key, {"name": profile_key, "controls": {}}
            )
            control = profile["controls"].get(control_id)
            if control is None:
                control = profile["controls"][control_id] = self._control_entry(metadata)
            control["results"].append(self._result(example))

        data: Dict[str, Any] = {
            "version": __version__,
            "profiles": profiles,
            "other_checks": other_checks,
            "summary": self.summary(),
        }
        platform = self._platform()
        if platform is not None:
            data["platform"] = platform
        return data


class MiniJsonFormatter(VanillaJsonFormatter):
    """One entry per example with the control it belongs to."""

    def format_example(self, example: Any) -> Dict[str, Any]:
        metadata = example.metadata
        data: Dict[str, Any] = {
            "id": metadata.get("id"),
            "profile_id": metadata.get("profile_id"),
            "status": _status(example),
            "code_desc": example.full_description,
        }
        if example.status == ExampleStatus.PENDING:
            data["skip_message"] = example.pending_message
        if example.exception is not None:
            data["message"] = str(example.exception)
        return data

    def output_hash(self) -> Dict[str, Any]:
        return {
            "version": __version__,
            "controls": [self.format_example(e) for e in self.examples],
            "statistics": {"duration": self.duration},
        }


class StructuredReporter(JsonFormatter):
    """Grouped JSON kept in memory; never writes to the run's output."""

    def __init__(self, output: Optional[IO[str]] = None, color: bool = False) -> None:
        super().__init__(io.StringIO(), color=color)
