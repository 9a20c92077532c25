"""Compiled validators and SVRL report parsing.

A compiled validator is anything that, given a document, yields diagnostics.
``SchematronValidator`` is the XSLT-backed implementation produced by the
stage pipeline; its output is an SVRL document whose ``failed-assert`` and
``successful-report`` records become diagnostics.
"""

import logging
import threading
from typing import Protocol, Sequence, runtime_checkable

from lxml import etree
from lxml.isoschematron import SVRL_NS

from ..diagnostics import StageMessage
from ..errors import ExecutionError
from ..models import Diagnostic, DiagnosticKind, Document

logger = logging.getLogger(__name__)

FAILED_ASSERT = f"{{{SVRL_NS}}}failed-assert"
SUCCESSFUL_REPORT = f"{{{SVRL_NS}}}successful-report"
SVRL_TEXT = f"{{{SVRL_NS}}}text"

# Rule sets and documents are read-only inputs; never touch the network or write files
ACCESS_CONTROL = etree.XSLTAccessControl(
    read_network=False,
    write_file=False,
    create_dir=False,
    write_network=False,
)


@runtime_checkable
class CompiledValidator(Protocol):
    """Executable artifact produced from one rule set."""

    origin: str

    def run(self, document: Document) -> list[Diagnostic]:
        ...


def secure_parser(encoding: str | None = None) -> etree.XMLParser:
    """Create a parser with entity resolution and network access disabled.

    Parsers are not shared between threads, so callers get a fresh one.
    A given encoding overrides the one declared by the document.
    """
    return etree.XMLParser(resolve_entities=False, no_network=True, encoding=encoding)


def parse_document(document: Document) -> etree._Element:
    """Parse document content for validation, raising ExecutionError on bad XML."""
    name = f"Document {document.id}" if document.id else "Document"
    # Content is already text; its encoding declaration no longer applies
    try:
        data = document.content.encode("utf-8")
    except UnicodeError as e:
        raise ExecutionError(f"{name} is not valid text: {e}") from e

    try:
        return etree.fromstring(data, secure_parser(encoding="utf-8"))
    except etree.XMLSyntaxError as e:
        raise ExecutionError(f"{name} is not well-formed XML: {e}") from e


def parse_svrl(svrl: etree._ElementTree) -> list[Diagnostic]:
    """Read diagnostics from an SVRL report in emission order."""
    root = svrl.getroot()
    if root is None:
        return []

    diagnostics = []
    for element in root.iter(FAILED_ASSERT, SUCCESSFUL_REPORT):
        kind = DiagnosticKind.ASSERT if element.tag == FAILED_ASSERT else DiagnosticKind.REPORT
        text = element.find(SVRL_TEXT)
        message = "".join(text.itertext()) if text is not None else ""
        diagnostics.append(Diagnostic(
            message=message,
            severity=Diagnostic.classify(kind, element.get("role"), element.get("flag")),
            kind=kind,
            location=element.get("location"),
            test=element.get("test"),
        ))

    return diagnostics


class SchematronValidator:
    """XSLT-backed validator compiled from a Schematron rule set.

    The stage-3 stylesheet tree is never modified after compilation. Each
    thread builds its own ``XSLT`` object from it, so concurrent runs never
    share a transform or its error log.
    """

    def __init__(self, stylesheet: etree._ElementTree, origin: str,
                 compile_messages: Sequence[StageMessage] = ()):
        self.origin = origin
        self.compile_messages = tuple(compile_messages)
        self._stylesheet = stylesheet
        self._local = threading.local()
        # Fails here, at compile time, if the generated stylesheet is invalid
        self._transform()

    def _transform(self) -> etree.XSLT:
        transform = getattr(self._local, "transform", None)
        if transform is None:
            transform = etree.XSLT(self._stylesheet, access_control=ACCESS_CONTROL)
            self._local.transform = transform
        return transform

    def run(self, document: Document) -> list[Diagnostic]:
        """Validate a document and return its diagnostics in emission order."""
        tree = parse_document(document)
        transform = self._transform()
        try:
            result = transform(tree)
        except etree.XSLTApplyError as e:
            raise ExecutionError(f"Could not run validator {self.origin}: {e}") from e

        diagnostics = parse_svrl(result)
        logger.debug(f"Validator {self.origin} produced {len(diagnostics)} diagnostics")
        return diagnostics

    def __repr__(self) -> str:
        return f"SchematronValidator(origin={self.origin!r})"
