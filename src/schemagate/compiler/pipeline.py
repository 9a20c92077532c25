"""Three-stage compilation of Schematron rule sets.

Every rule set goes through the stages required by ISO Schematron:

1. ``iso_dsdl_include.xsl`` assembles the schema from its parts.
2. ``iso_abstract_expand.xsl`` turns abstract patterns into real patterns.
3. ``iso_svrl_for_xslt1.xsl`` compiles the expanded schema into an XSLT
   stylesheet whose output is an SVRL report.

The stylesheets come from ``lxml.isoschematron`` unless overridden per stage.
"""

import logging
from pathlib import Path
from typing import Callable, Mapping

from lxml import etree, isoschematron

from ..config import EngineConfig
from ..diagnostics import StageCollector
from ..errors import CompilationCancelledError, CompilationError
from ..models import RuleSetSource, Stage
from .validator import ACCESS_CONTROL, SchematronValidator, secure_parser

logger = logging.getLogger(__name__)

ISO_SCHEMATRON_XSLT1_DIR = (
    Path(isoschematron.__file__).parent / "resources" / "xsl" / "iso-schematron-xslt1"
)

DEFAULT_STYLESHEETS = {
    Stage.INCLUDE: ISO_SCHEMATRON_XSLT1_DIR / "iso_dsdl_include.xsl",
    Stage.EXPAND: ISO_SCHEMATRON_XSLT1_DIR / "iso_abstract_expand.xsl",
    Stage.COMPILE: ISO_SCHEMATRON_XSLT1_DIR / "iso_svrl_for_xslt1.xsl",
}


class StagePipeline:
    """Compiles rule-set sources into Schematron validators.

    The parsed stage stylesheets are shared read-only; every ``compile`` call
    builds its own ``XSLT`` objects and its own ``StageCollector``, so
    compilations running concurrently never see each other's messages.
    """

    def __init__(self, stylesheets: Mapping[Stage | str, str | Path] | None = None,
                 phase: str | None = None):
        self.stylesheet_paths: dict[Stage, Path] = dict(DEFAULT_STYLESHEETS)
        for stage, path in (stylesheets or {}).items():
            self.stylesheet_paths[Stage(stage)] = Path(path)
        self.phase = phase
        self._stylesheets = {
            stage: self._load_stylesheet(stage, path)
            for stage, path in self.stylesheet_paths.items()
        }

    @classmethod
    def from_config(cls, config: EngineConfig) -> "StagePipeline":
        return cls(stylesheets=config.rule_sets.stylesheets, phase=config.rule_sets.phase)

    @staticmethod
    def _load_stylesheet(stage: Stage, path: Path) -> etree._ElementTree:
        try:
            stylesheet = etree.parse(str(path))
            # Reject broken stylesheets up front rather than on every compile
            etree.XSLT(stylesheet, access_control=ACCESS_CONTROL)
        except (OSError, etree.XMLSyntaxError, etree.XSLTParseError) as e:
            raise CompilationError(f"Could not load {stage.value} stylesheet {path}: {e}",
                                   stage=stage.value) from e
        return stylesheet

    def compile(self, source: RuleSetSource,
                cancelled: Callable[[], bool] | None = None) -> SchematronValidator:
        """Compile one rule set.

        Args:
            source: Rule set to compile
            cancelled: Polled between stages; compilation stops once it returns True

        Returns:
            Validator carrying the messages captured during this compilation

        Raises:
            CompilationError: If the rule set is missing, unparseable, or a stage fails
            CompilationCancelledError: If cancelled between stages
        """
        if not source.exists():
            raise CompilationError(f"Could not locate schematron file {source}", source)

        collector = StageCollector(str(source))
        logger.debug(f"Compiling schematron file {source}")

        try:
            tree = etree.parse(str(source.path), secure_parser())
        except (OSError, etree.XMLSyntaxError) as e:
            raise CompilationError(f"Could not parse schematron file {source}: {e}", source) from e

        for stage in Stage:
            if cancelled is not None and cancelled():
                raise CompilationCancelledError(source)
            tree = self._perform_stage(stage, tree, source, collector)

        # Base URL lets the compiled rules resolve relative references
        tree.docinfo.URL = source.uri

        try:
            validator = SchematronValidator(tree, source.uri, collector.messages)
        except etree.XSLTParseError as e:
            collector.collect_log(Stage.COMPILE.value, e.error_log)
            raise CompilationError(
                f"Error trying to create validator using sch file {source}: {e}",
                source, Stage.COMPILE.value,
            ) from e

        logger.info(f"Compiled schematron file {source} "
                    f"({len(collector.warnings)} warnings, {len(collector.errors)} errors)")
        return validator

    def _perform_stage(self, stage: Stage, tree: etree._ElementTree, source: RuleSetSource,
                       collector: StageCollector) -> etree._ElementTree:
        """Run one stage, capturing its messages into the call's collector."""
        transform = etree.XSLT(self._stylesheets[stage], access_control=ACCESS_CONTROL)

        params = {}
        if stage is Stage.COMPILE and self.phase:
            params["phase"] = etree.XSLT.strparam(self.phase)

        try:
            result = transform(tree, **params)
        except etree.XSLTApplyError as e:
            collector.collect_log(stage.value, transform.error_log)
            raise CompilationError(
                f"Stage {stage.value} failed for schematron file {source}: {e}",
                source, stage.value,
            ) from e

        collector.collect_log(stage.value, transform.error_log)

        if result.getroot() is None:
            raise CompilationError(
                f"Stage {stage.value} produced no output for schematron file {source}",
                source, stage.value,
            )
        return result
