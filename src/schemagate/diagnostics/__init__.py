"""Stage-scoped diagnostics captured while compiling rule sets."""

from .collector import MessageLevel, StageCollector, StageMessage

__all__ = [
    "MessageLevel",
    "StageCollector",
    "StageMessage",
]
