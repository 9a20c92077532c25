"""Validation reports and message sanitizing."""

from .report import ValidationReport, Violation, sanitize

__all__ = [
    "ValidationReport",
    "Violation",
    "sanitize",
]
