"""Rule-set compilation: stage pipeline and compiled validators."""

from .pipeline import DEFAULT_STYLESHEETS, StagePipeline
from .validator import CompiledValidator, SchematronValidator, parse_svrl

__all__ = [
    "DEFAULT_STYLESHEETS",
    "StagePipeline",
    "CompiledValidator",
    "SchematronValidator",
    "parse_svrl",
]
