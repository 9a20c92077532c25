"""Rule-set sources and compilation stages."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from schemagate.utils.paths import resolve_location


class Stage(str, Enum):
    """Rule-set compilation stages, in execution order."""
    INCLUDE = "include"
    EXPAND = "expand"
    COMPILE = "compile"


@dataclass(frozen=True)
class RuleSetSource:
    """A resolved Schematron rule-set location."""
    path: Path

    @classmethod
    def resolve(cls, location: str | Path, base_dir: str | Path | None = None) -> "RuleSetSource":
        """Create a source from an absolute location or one relative to base_dir."""
        return cls(resolve_location(location, base_dir))

    @property
    def uri(self) -> str:
        """File URI, used as base URL when resolving references inside the rule set."""
        return self.path.as_uri()

    @property
    def name(self) -> str:
        return self.path.name

    def exists(self) -> bool:
        return self.path.is_file()

    def __str__(self) -> str:
        return str(self.path)
