"""Stage-scoped message collection for rule-set compilation.

A ``StageCollector`` belongs to exactly one compile call. Messages raised by
the XSLT stages of that call (``xsl:message`` output, libxslt warnings and
errors) are copied into it and logged, never written to the console.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

logger = logging.getLogger(__name__)


class MessageLevel(str, Enum):
    """Stage message levels."""
    FATAL = "fatal"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


_LEVELS_BY_NAME = {
    "FATAL": MessageLevel.FATAL,
    "ERROR": MessageLevel.ERROR,
    "WARNING": MessageLevel.WARNING,
}


@dataclass(frozen=True)
class StageMessage:
    """A single message raised while running one compilation stage."""
    stage: str
    level: MessageLevel
    message: str
    line: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "level": self.level.value,
            "message": self.message,
            "line": self.line,
        }

    def __str__(self) -> str:
        location = f" (line {self.line})" if self.line else ""
        return f"[{self.level.value.upper()}] {self.stage}: {self.message}{location}"


@dataclass
class StageCollector:
    """Collects stage messages for a single rule-set compilation."""
    source: str
    messages: list[StageMessage] = field(default_factory=list)

    def add(self, stage: str, level: MessageLevel, message: str, line: int | None = None) -> StageMessage:
        """Record a message and log it at a level matching its severity."""
        entry = StageMessage(stage, level, message.strip(), line)
        self.messages.append(entry)

        if level in (MessageLevel.FATAL, MessageLevel.ERROR):
            logger.info(f"Stage {stage} error on {self.source}: {entry.message}")
        else:
            logger.debug(f"Stage {stage} warning on {self.source}: {entry.message}")
        return entry

    def collect_log(self, stage: str, error_log: Iterable) -> int:
        """Copy entries from an lxml error log into this collector.

        Args:
            stage: Stage the log belongs to
            error_log: ``error_log`` of the XSLT object that ran the stage

        Returns:
            Number of entries collected
        """
        count = 0
        for entry in error_log:
            level = _LEVELS_BY_NAME.get(getattr(entry, "level_name", ""), MessageLevel.INFO)
            line = getattr(entry, "line", None) or None
            self.add(stage, level, entry.message, line)
            count += 1
        return count

    @property
    def warnings(self) -> list[str]:
        return [m.message for m in self.messages if m.level in (MessageLevel.WARNING, MessageLevel.INFO)]

    @property
    def errors(self) -> list[str]:
        return [m.message for m in self.messages if m.level in (MessageLevel.ERROR, MessageLevel.FATAL)]

    def for_stage(self, stage: str) -> list[StageMessage]:
        return [m for m in self.messages if m.stage == stage]

    def get_counts(self) -> dict[str, int]:
        """Get message counts by level."""
        counts = {level.value: 0 for level in MessageLevel}
        for message in self.messages:
            counts[message.level.value] += 1
        return counts

    def summary(self) -> str:
        """Format the collected messages as one line per message."""
        return "\n".join(str(m) for m in self.messages)
