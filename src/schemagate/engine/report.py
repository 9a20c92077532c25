"""Report generation: run every compiled validator against a document."""

import logging

from ..config import DEFAULT_COMPILE_TIMEOUT_SECONDS
from ..errors import ExecutionError, SchemaGateError
from ..models import Document
from ..validation import ValidationReport, Violation, sanitize
from .registry import ValidatorRegistry

logger = logging.getLogger(__name__)


class ReportEngine:
    """Builds violation reports from the registry's current generation.

    Evaluation fails fast: a validator that times out, failed to compile or
    cannot run aborts the whole report instead of returning one with a rule
    set silently missing.
    """

    def __init__(self, registry: ValidatorRegistry, namespace: str | None = None,
                 timeout: float | None = DEFAULT_COMPILE_TIMEOUT_SECONDS):
        self.registry = registry
        self.namespace = namespace
        self.timeout = timeout

    def is_applicable(self, document: Document) -> bool:
        """Documents without content, or outside the namespace filter, are not validated."""
        if document.is_empty:
            return False
        if self.namespace is not None and self.namespace != document.root_namespace:
            return False
        return True

    def evaluate(self, document: Document) -> ValidationReport:
        """Validate a document against every rule set of the current generation.

        Raises:
            CompilationTimeoutError: If a validator is not compiled within the timeout
            CompilationError: If a rule set failed to compile
            SupersededError: If the rule sets were reconfigured while waiting
            ExecutionError: If a validator could not be run
        """
        if not self.is_applicable(document):
            logger.debug(f"Skipping document {document.id}: not applicable")
            return ValidationReport()

        generation = self.registry.snapshot()
        attributes = frozenset({document.content_attribute})
        violations: list[Violation] = []

        for handle in generation.handles:
            validator = handle.result(self.timeout)
            try:
                diagnostics = validator.run(document)
            except SchemaGateError:
                raise
            except Exception as e:
                raise ExecutionError(f"Validator {handle.source} failed: {e}") from e

            violations.extend(
                Violation(attributes, sanitize(diagnostic.message), diagnostic.severity)
                for diagnostic in diagnostics
            )

        logger.debug(f"Document {document.id} produced {len(violations)} violations "
                     f"across {len(generation)} rule sets (generation {generation.number})")
        return ValidationReport(tuple(violations), generation.number)
