"""Data models for rule sets, documents and diagnostics."""

from schemagate.models.diagnostic import Diagnostic, DiagnosticKind, Severity
from schemagate.models.document import Document
from schemagate.models.rule_set import RuleSetSource, Stage

__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "Severity",
    "Document",
    "RuleSetSource",
    "Stage",
]
