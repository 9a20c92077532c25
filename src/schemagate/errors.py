"""Exception taxonomy for schemagate.

Compilation problems stay local to one rule set; evaluation problems abort the
whole report. ``ValidationFailedError`` is the normal outcome of a document
that breaks its rules, not a system fault.
"""

from pathlib import Path


class SchemaGateError(Exception):
    """Base class for all schemagate errors."""
    pass


class CompilationError(SchemaGateError):
    """Raised when a rule set is missing or one of its stages fails."""

    def __init__(self, message: str, source: Path | str | None = None, stage: str | None = None):
        self.source = str(source) if source is not None else None
        self.stage = stage
        super().__init__(message)


class CompilationTimeoutError(SchemaGateError, TimeoutError):
    """Raised when a compiled validator is not available within the wait bound."""

    def __init__(self, source: Path | str, timeout: float | None):
        self.source = str(source)
        self.timeout = timeout
        super().__init__(f"Compilation of {self.source} did not finish within {timeout} seconds")


class CompilationCancelledError(SchemaGateError):
    """Raised when waiting on a compilation that was cancelled."""

    def __init__(self, source: Path | str, message: str | None = None):
        self.source = str(source)
        super().__init__(message or f"Compilation of {self.source} was cancelled")


class SupersededError(CompilationCancelledError):
    """Raised when a compilation belongs to a generation replaced by reconfiguration.

    Callers should retry against the current generation.
    """

    def __init__(self, source: Path | str, generation: int):
        self.generation = generation
        super().__init__(
            source,
            f"Compilation of {source} belongs to superseded generation {generation}",
        )


class ExecutionError(SchemaGateError):
    """Raised when a compiled validator cannot be run against a document."""
    pass


class PoolNotRunningError(SchemaGateError, RuntimeError):
    """Raised when submitting work to a pool that has not been started or was shut down."""
    pass


class ValidationFailedError(SchemaGateError):
    """Raised when a document fails structural validation."""

    def __init__(self, message: str, errors: list[str] | None = None, warnings: list[str] | None = None):
        self.errors = list(errors or [])
        self.warnings = list(warnings or [])
        super().__init__(message)

    def __str__(self) -> str:
        lines = [self.args[0]]
        lines.extend(f"  error: {error}" for error in self.errors)
        lines.extend(f"  warning: {warning}" for warning in self.warnings)
        return "\n".join(lines)
