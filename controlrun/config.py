"""
Runner Configuration

The options the runner understands. Anything else in a configuration
mapping belongs to other parts of a larger tool and is ignored here.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from controlrun.formatters import DEFAULT_FORMAT


@dataclass
class RunnerConfig:
    """
    output: stream, file path, or None / "-" for standard output
    format: formatter name, class, or "module:Class"
    color:  colorize text output
    report: also attach the in-memory structured reporter
    """

    output: Any = None
    format: Any = DEFAULT_FORMAT
    color: bool = False
    report: bool = False

    @classmethod
    def from_mapping(cls, conf: Optional[Mapping[str, Any]] = None) -> "RunnerConfig":
        """Build a config from a mapping; missing or None values keep defaults."""
        conf = conf or {}
        known = {f.name for f in fields(cls)}
        values = {
            key: value
            for key, value in conf.items()
            if key in known and value is not None
        }
        config = cls(**values)
        config.color = bool(config.color)
        config.report = bool(config.report)
        return config
