"""Execution of registered example groups."""

from .runner import ReportingResult, SequentialRunner

__all__ = ["ReportingResult", "SequentialRunner"]
