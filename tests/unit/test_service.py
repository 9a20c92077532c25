"""Tests for the validation service against real Schematron rule sets."""

import logging

import pytest

from schemagate import ValidationService
from schemagate.compiler import StagePipeline
from schemagate.config import EngineConfig
from schemagate.engine import CompilationPool
from schemagate.errors import CompilationError, ValidationFailedError
from schemagate.models import Document


def make_config(schema_dir, *files, **validation):
    return EngineConfig(**{
        "id": "books",
        "ruleSets": {"files": list(files), "baseDir": str(schema_dir)},
        "validation": validation,
        "pool": {"threadPoolSize": 4, "compileTimeoutSeconds": 30},
    })


@pytest.fixture
def service(schema_dir):
    with ValidationService(make_config(schema_dir, "books.sch", "authors.sch")) as service:
        yield service


class TestValidate:
    """Test enforcing validation."""

    def test_valid_document_passes(self, service, samples):
        service.validate(Document(samples.complete))

    def test_warning_fails_unless_suppressed(self, service, samples):
        with pytest.raises(ValidationFailedError) as exc_info:
            service.validate(Document(samples.without_isbn))

        assert exc_info.value.errors == []
        assert exc_info.value.warnings == ["Book has no ISBN."]

        service.suppress_warnings = True
        service.validate(Document(samples.without_isbn))

    def test_errors_and_warnings_are_reported(self, service, samples):
        with pytest.raises(ValidationFailedError, match="Schematron validation failed") as exc_info:
            service.validate(Document(samples.empty))

        assert exc_info.value.errors == ["A book must have a title.", "A book must name an author."]
        assert exc_info.value.warnings == ["Book has no ISBN."]
        assert "  error: A book must name an author." in str(exc_info.value)

    def test_errors_fail_even_when_warnings_suppressed(self, schema_dir, samples):
        config = make_config(schema_dir, "books.sch", "authors.sch", suppressWarnings=True)
        with ValidationService(config) as service:
            with pytest.raises(ValidationFailedError) as exc_info:
                service.validate(Document(samples.empty))

        assert len(exc_info.value.errors) == 2

    def test_missing_rule_set_fails_only_that_compilation(self, schema_dir, samples):
        config = make_config(schema_dir, "books.sch", "missing.sch")
        with ValidationService(config) as service:
            with pytest.raises(CompilationError, match="missing.sch"):
                service.validate(Document(samples.complete))

            books = service.registry.snapshot().handles[0]
            assert books.result(30).origin == (schema_dir / "books.sch").as_uri()

    def test_namespace_filter_skips_other_documents(self, schema_dir, samples):
        config = make_config(schema_dir, "books.sch", namespace=samples.namespace)
        with ValidationService(config) as service:
            service.validate(Document(samples.magazine))
            with pytest.raises(ValidationFailedError):
                service.validate(Document(samples.empty))

    def test_empty_document_passes(self, service):
        service.validate(Document(""))


class TestValidateReportOnly:
    """Test advisory validation."""

    def test_returns_report(self, service, samples):
        report = service.validate_report_only(Document(samples.empty, id="empty.xml"))

        assert report.errors == ["A book must have a title.", "A book must name an author."]
        assert report.warnings == ["Book has no ISBN."]
        assert all(v.attributes == frozenset({"metadata"}) for v in report)

    def test_returns_none_on_engine_failure(self, schema_dir, samples, caplog):
        config = make_config(schema_dir, "missing.sch")
        with ValidationService(config) as service:
            with caplog.at_level(logging.WARNING, logger="schemagate.service"):
                report = service.validate_report_only(Document(samples.complete, id="book-1"))

        assert report is None
        assert "Exception validating document ID book-1" in caplog.text

    def test_malformed_document_returns_none(self, service):
        assert service.validate_report_only(Document("<b:book", id="broken")) is None

    def test_unencodable_text_returns_none(self, service):
        assert service.validate_report_only(Document("<b:book>\ud800</b:book>", id="surrogate")) is None

    def test_unencodable_text_with_namespace_filter(self, schema_dir, samples):
        config = make_config(schema_dir, "books.sch", namespace=samples.namespace)
        with ValidationService(config) as service:
            report = service.validate_report_only(Document("<book>\ud800</book>"))

        assert report is not None
        assert len(report) == 0


class TestServiceLifecycle:
    """Test configuration, attributes and pool ownership."""

    def test_attributes_from_config(self, schema_dir):
        service = ValidationService(make_config(schema_dir, "books.sch", priority=250))

        assert service.id == "books"
        assert service.priority == 100
        assert service.version
        assert service.namespace is None

    def test_priority_is_clamped(self, schema_dir):
        service = ValidationService(make_config(schema_dir))

        service.priority = 0
        assert service.priority == 1
        service.priority = 42
        assert service.priority == 42

    def test_namespace_setter(self, schema_dir, samples):
        service = ValidationService(make_config(schema_dir))

        service.namespace = samples.namespace
        assert service.engine.namespace == samples.namespace
        service.namespace = ""
        assert service.namespace is None

    def test_reconfigure(self, service, samples):
        generation = service.configure(["authors.sch"])

        assert generation == 2
        assert "1 Schematron rule sets" in service.description
        service.validate(Document(samples.without_isbn))

    def test_injected_pool_is_not_owned(self, schema_dir, samples):
        config = make_config(schema_dir, "books.sch")
        with CompilationPool(StagePipeline(), max_workers=2) as pool:
            with ValidationService(config, pool=pool) as service:
                service.suppress_warnings = True
                service.validate(Document(samples.without_isbn))

            assert pool.running

    def test_shutdown_stops_owned_pool(self, schema_dir):
        service = ValidationService(make_config(schema_dir, "books.sch")).start()

        service.shutdown()

        assert not service.pool.running

    def test_failed_start_stops_owned_pool(self, schema_dir, monkeypatch):
        service = ValidationService(make_config(schema_dir, "books.sch"))

        def refuse(locations):
            raise RuntimeError("rule sets unavailable")

        monkeypatch.setattr(service.registry, "configure", refuse)

        with pytest.raises(RuntimeError, match="rule sets unavailable"):
            service.start()

        assert not service.pool.running
