"""Violation reports produced by evaluating a document.

Reports are built once per evaluation and never modified afterwards.
"""

import re
from dataclasses import dataclass, field

from ..models import Severity

_WHITESPACE_RUN = re.compile(r"[\t \r\n]+")


def sanitize(message: str) -> str:
    """Replace runs of tabs, spaces, carriage returns and newlines with one space and trim."""
    return _WHITESPACE_RUN.sub(" ", message).strip()


@dataclass(frozen=True)
class Violation:
    """A sanitized diagnostic tagged with the document attributes it concerns."""
    attributes: frozenset[str]
    message: str
    severity: Severity

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.message}"

    def to_dict(self) -> dict:
        return {
            "attributes": sorted(self.attributes),
            "message": self.message,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class ValidationReport:
    """Ordered violations gathered across all validators for one document."""
    violations: tuple[Violation, ...] = field(default_factory=tuple)
    generation: int | None = None

    def __len__(self) -> int:
        return len(self.violations)

    def __iter__(self):
        return iter(self.violations)

    @property
    def errors(self) -> list[str]:
        """Messages of ERROR violations, in report order."""
        return [v.message for v in self.violations if v.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[str]:
        """Messages of WARNING violations, in report order."""
        return [v.message for v in self.violations if v.severity == Severity.WARNING]

    @property
    def has_errors(self) -> bool:
        return any(v.severity == Severity.ERROR for v in self.violations)

    @property
    def has_warnings(self) -> bool:
        return any(v.severity == Severity.WARNING for v in self.violations)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "generation": self.generation,
            "counters": {
                "errors": len(self.errors),
                "warnings": len(self.warnings),
            },
            "violations": [v.to_dict() for v in self.violations],
        }
