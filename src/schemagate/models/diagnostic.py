"""Diagnostics emitted by compiled validators."""

from dataclasses import dataclass
from enum import Enum


class Severity(str, Enum):
    """Violation severity."""
    ERROR = "error"
    WARNING = "warning"


class DiagnosticKind(str, Enum):
    """SVRL record type a diagnostic was read from."""
    ASSERT = "assert"
    REPORT = "report"


# Flavor tags (Schematron role/flag values) and the severity they imply
WARNING_FLAVORS = frozenset({"warning", "warn", "info", "information"})
ERROR_FLAVORS = frozenset({"error", "fatal"})


@dataclass(frozen=True)
class Diagnostic:
    """A raw message produced by running a validator."""
    message: str
    severity: Severity
    kind: DiagnosticKind = DiagnosticKind.ASSERT
    location: str | None = None
    test: str | None = None

    @staticmethod
    def classify(kind: DiagnosticKind, *flavors: str | None) -> Severity:
        """Derive severity from the first recognised flavor tag.

        Without a recognised tag a failed assert is an error and a successful
        report is a warning.
        """
        for flavor in flavors:
            if not flavor:
                continue
            normalized = flavor.strip().lower()
            if normalized in WARNING_FLAVORS:
                return Severity.WARNING
            if normalized in ERROR_FLAVORS:
                return Severity.ERROR

        return Severity.ERROR if kind == DiagnosticKind.ASSERT else Severity.WARNING
