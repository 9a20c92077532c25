"""Schematron validation service.

Ties the pieces together for a host: a stage pipeline compiling rule sets in
a worker pool, a registry of the configured rule sets, and a report engine
running them against documents. Two query modes are offered:

- ``validate`` enforces: it raises ``ValidationFailedError`` with every error
  and warning message when the document does not pass.
- ``validate_report_only`` advises: it never raises for engine failures and
  returns None when no report can be produced.
"""

import logging
from pathlib import Path
from typing import Iterable

from . import __version__
from .compiler import StagePipeline
from .config import EngineConfig, create_default_config
from .engine import CompilationPool, ReportEngine, ValidatorRegistry
from .errors import SchemaGateError, ValidationFailedError
from .models import Document
from .validation import ValidationReport

logger = logging.getLogger(__name__)


class ValidationService:
    """Validates XML documents against a configured list of Schematron rule sets.

    The compilation pool may be injected; an injected pool is started and shut
    down by its owner. Without one the service builds, starts and shuts down
    its own pool sized from the configuration.
    """

    def __init__(self, config: EngineConfig | None = None, pool: CompilationPool | None = None,
                 pipeline: StagePipeline | None = None):
        self.config = config or create_default_config()
        self._owns_pool = pool is None
        if pool is None:
            pool = CompilationPool.from_config(
                pipeline or StagePipeline.from_config(self.config), self.config
            )
        self.pool = pool
        self.registry = ValidatorRegistry(pool, base_dir=self.config.rule_sets.base_dir)
        self.engine = ReportEngine(
            self.registry,
            namespace=self.config.validation.namespace,
            timeout=self.config.pool.compile_timeout_seconds,
        )
        self.id = self.config.id
        self.suppress_warnings = self.config.validation.suppress_warnings
        self.priority = self.config.validation.priority

    @property
    def namespace(self) -> str | None:
        return self.engine.namespace

    @namespace.setter
    def namespace(self, namespace: str | None) -> None:
        self.engine.namespace = namespace or None

    @property
    def priority(self) -> int:
        return self._priority

    @priority.setter
    def priority(self, priority: int) -> None:
        # 1 is the highest priority, 100 the lowest
        self._priority = max(1, min(100, priority))

    @property
    def version(self) -> str:
        return __version__

    @property
    def description(self) -> str:
        return (f"Validates XML documents against {len(self.registry.sources)} "
                f"Schematron rule sets")

    def start(self) -> "ValidationService":
        """Start the owned pool and compile the configured rule sets."""
        if self._owns_pool:
            self.pool.start()
        try:
            self.configure(self.config.rule_sets.files)
        except Exception:
            if self._owns_pool:
                self.pool.shutdown()
            raise
        return self

    def shutdown(self) -> None:
        """Cancel outstanding compilations and stop the owned pool."""
        self.registry.close()
        if self._owns_pool:
            self.pool.shutdown()

    def configure(self, rule_set_files: Iterable[str | Path]) -> int:
        """Replace the rule sets; compilations of the previous list are superseded."""
        return self.registry.configure(rule_set_files)

    def generate_report(self, document: Document) -> ValidationReport:
        """Evaluate a document, propagating any engine failure."""
        return self.engine.evaluate(document)

    def validate(self, document: Document) -> None:
        """Raise ValidationFailedError unless the document passes.

        A document fails on any error, and on any warning unless warnings
        are suppressed.
        """
        report = self.generate_report(document)

        errors = report.errors
        warnings = report.warnings

        if errors or (warnings and not self.suppress_warnings):
            raise ValidationFailedError("Schematron validation failed", errors, warnings)

    def validate_report_only(self, document: Document) -> ValidationReport | None:
        """Return the document's report, or None if it could not be produced."""
        try:
            return self.generate_report(document)
        except SchemaGateError as e:
            logger.warning(f"Exception validating document ID {document.id}: {e}", exc_info=True)
            return None

    def __enter__(self) -> "ValidationService":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
