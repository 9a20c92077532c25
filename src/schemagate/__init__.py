"""schemagate - Schematron validation engine for XML documents.

schemagate compiles ISO Schematron rule sets into validators in a worker
pool, runs them against XML documents and reports violations classified as
errors or warnings.
"""

__version__ = "0.1.0"
__description__ = "Schematron validation engine for XML documents"

from schemagate.config import EngineConfig, load_config
from schemagate.errors import (
    CompilationCancelledError,
    CompilationError,
    CompilationTimeoutError,
    ExecutionError,
    SchemaGateError,
    SupersededError,
    ValidationFailedError,
)
from schemagate.models import Document, Severity
from schemagate.service import ValidationService
from schemagate.validation import ValidationReport, Violation, sanitize

__all__ = [
    "__version__",
    "__description__",
    "EngineConfig",
    "load_config",
    "CompilationCancelledError",
    "CompilationError",
    "CompilationTimeoutError",
    "ExecutionError",
    "SchemaGateError",
    "SupersededError",
    "ValidationFailedError",
    "Document",
    "Severity",
    "ValidationService",
    "ValidationReport",
    "Violation",
    "sanitize",
]
