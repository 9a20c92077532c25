"""Shared fixtures for schemagate tests."""

import threading
from collections import defaultdict
from pathlib import Path
from types import SimpleNamespace

import pytest

from schemagate.engine import CompilationPool
from schemagate.errors import CompilationCancelledError
from schemagate.models import Diagnostic, DiagnosticKind, RuleSetSource, Severity

BOOKS_NS = "urn:example:books"

BOOKS_SCHEMA = """<?xml version="1.0" encoding="UTF-8"?>
<sch:schema xmlns:sch="http://purl.oclc.org/dsdl/schematron">
  <sch:title>Books</sch:title>
  <sch:ns prefix="b" uri="urn:example:books"/>
  <sch:pattern id="book-rules">
    <sch:rule context="b:book">
      <sch:assert test="b:title">A book must have
        a title.</sch:assert>
      <sch:report test="not(b:isbn)" role="warning">Book\thas no   ISBN.</sch:report>
    </sch:rule>
  </sch:pattern>
</sch:schema>
"""

AUTHOR_SCHEMA = """<?xml version="1.0" encoding="UTF-8"?>
<sch:schema xmlns:sch="http://purl.oclc.org/dsdl/schematron">
  <sch:title>Authors</sch:title>
  <sch:ns prefix="b" uri="urn:example:books"/>
  <sch:pattern id="author-rules">
    <sch:rule context="b:book">
      <sch:assert test="b:author">A book must name an author.</sch:assert>
    </sch:rule>
  </sch:pattern>
</sch:schema>
"""

COMPLETE_BOOK = (
    '<b:book xmlns:b="urn:example:books">'
    "<b:title>Dune</b:title><b:author>Frank Herbert</b:author><b:isbn>0441013597</b:isbn>"
    "</b:book>"
)

BOOK_WITHOUT_ISBN = (
    '<b:book xmlns:b="urn:example:books">'
    "<b:title>Dune</b:title><b:author>Frank Herbert</b:author>"
    "</b:book>"
)

EMPTY_BOOK = '<b:book xmlns:b="urn:example:books"/>'

MAGAZINE = '<m:magazine xmlns:m="urn:example:magazines"/>'


@pytest.fixture
def schema_dir(tmp_path):
    """Directory holding the books and authors rule sets."""
    directory = tmp_path / "schematron"
    directory.mkdir()
    (directory / "books.sch").write_text(BOOKS_SCHEMA, encoding="utf-8")
    (directory / "authors.sch").write_text(AUTHOR_SCHEMA, encoding="utf-8")
    return directory


@pytest.fixture
def books_schema(schema_dir) -> Path:
    return schema_dir / "books.sch"


@pytest.fixture
def authors_schema(schema_dir) -> Path:
    return schema_dir / "authors.sch"


class FakeValidator:
    """Validator returning canned diagnostics."""

    def __init__(self, origin: str, diagnostics=(), error: Exception | None = None, on_run=None):
        self.origin = origin
        self.diagnostics = list(diagnostics)
        self.error = error
        self.on_run = on_run
        self.runs = 0

    def run(self, document):
        self.runs += 1
        if self.on_run is not None:
            self.on_run()
        if self.error is not None:
            raise self.error
        return list(self.diagnostics)


class FakeCompiler:
    """Compiler whose jobs can be held back and made to fail, keyed by file name."""

    def __init__(self):
        self.validators: dict[str, FakeValidator] = {}
        self.gates: dict[str, threading.Event] = {}
        self.failures: dict[str, Exception] = {}
        self.started: defaultdict[str, threading.Event] = defaultdict(threading.Event)
        self.compiled: list[str] = []
        self._lock = threading.Lock()

    def hold(self, name: str) -> threading.Event:
        gate = threading.Event()
        self.gates[name] = gate
        return gate

    def release_all(self) -> None:
        for gate in self.gates.values():
            gate.set()

    def compile(self, source: RuleSetSource, cancelled=None):
        self.started[source.name].set()
        gate = self.gates.get(source.name)
        if gate is not None:
            gate.wait(10)
        if cancelled is not None and cancelled():
            raise CompilationCancelledError(source)
        if source.name in self.failures:
            raise self.failures[source.name]
        with self._lock:
            self.compiled.append(source.name)
        return self.validators.setdefault(source.name, FakeValidator(source.uri))


@pytest.fixture
def fake_compiler():
    compiler = FakeCompiler()
    yield compiler
    compiler.release_all()


@pytest.fixture
def fake_validator():
    """Factory for FakeValidator instances."""
    return FakeValidator


def error(message: str) -> Diagnostic:
    return Diagnostic(message, Severity.ERROR, DiagnosticKind.ASSERT)


def warning(message: str) -> Diagnostic:
    return Diagnostic(message, Severity.WARNING, DiagnosticKind.REPORT)


@pytest.fixture
def diagnostics():
    """Helpers building error and warning diagnostics."""
    return SimpleNamespace(error=error, warning=warning)


@pytest.fixture
def samples():
    """Sample book documents and their namespace."""
    return SimpleNamespace(
        namespace=BOOKS_NS,
        complete=COMPLETE_BOOK,
        without_isbn=BOOK_WITHOUT_ISBN,
        empty=EMPTY_BOOK,
        magazine=MAGAZINE,
    )


@pytest.fixture
def fake_pool(fake_compiler):
    """Started pool backed by the fake compiler."""
    pool = CompilationPool(fake_compiler, max_workers=4).start()
    yield pool
    fake_compiler.release_all()
    pool.shutdown()
