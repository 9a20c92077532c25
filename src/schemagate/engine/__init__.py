"""Concurrent compilation, generation registry and report generation."""

from .pool import CompilationHandle, CompilationPool, HandleState
from .registry import Generation, ValidatorRegistry
from .report import ReportEngine

__all__ = [
    "CompilationHandle",
    "CompilationPool",
    "HandleState",
    "Generation",
    "ValidatorRegistry",
    "ReportEngine",
]
