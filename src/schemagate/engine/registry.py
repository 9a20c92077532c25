"""Generation-numbered registry of rule sets and their compilation handles."""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from ..models import RuleSetSource
from .pool import CompilationHandle, CompilationPool, HandleState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Generation:
    """One configured set of rule sets and the handles compiling them."""
    number: int
    sources: tuple[RuleSetSource, ...] = ()
    handles: tuple[CompilationHandle, ...] = ()

    def __len__(self) -> int:
        return len(self.handles)


class ValidatorRegistry:
    """Holds the current generation of rule-set compilations.

    Reconfiguring swaps in a new generation atomically and then supersedes
    every handle of the previous one, so waiters on old handles fail fast and
    queued work for them is dropped.
    """

    def __init__(self, pool: CompilationPool, base_dir: str | Path | None = None):
        self.pool = pool
        self.base_dir = base_dir
        self._lock = threading.Lock()
        self._current = Generation(0)

    @property
    def generation(self) -> int:
        return self.snapshot().number

    @property
    def sources(self) -> tuple[RuleSetSource, ...]:
        return self.snapshot().sources

    def snapshot(self) -> Generation:
        """Return the current generation as one consistent view."""
        with self._lock:
            return self._current

    def configure(self, locations: Iterable[str | Path | RuleSetSource]) -> int:
        """Replace the active rule sets and submit one compilation per entry.

        Args:
            locations: Ordered rule-set locations, absolute or relative to base_dir

        Returns:
            The new generation number
        """
        sources = tuple(
            location if isinstance(location, RuleSetSource)
            else RuleSetSource.resolve(location, self.base_dir)
            for location in locations
        )

        with self._lock:
            number = self._current.number + 1
            handles: list[CompilationHandle] = []
            try:
                for source in sources:
                    handles.append(self.pool.submit(source, number))
            except Exception:
                for handle in handles:
                    handle.cancel()
                raise
            superseded, self._current = self._current, Generation(number, sources, tuple(handles))

        for handle in handles:
            handle.add_done_callback(self._log_outcome)

        cancelled = sum(1 for handle in superseded.handles if handle.cancel(superseded=True))
        logger.info(f"Configured generation {number} with {len(sources)} rule sets"
                    + (f", superseded {cancelled} pending compilations" if cancelled else ""))
        return number

    def clear(self) -> int:
        return self.configure(())

    def close(self) -> None:
        """Cancel every handle of the current generation."""
        with self._lock:
            current = self._current
        for handle in current.handles:
            handle.cancel()

    @staticmethod
    def _log_outcome(handle: CompilationHandle) -> None:
        if handle.state is HandleState.FAILED:
            logger.warning(f"Rule set {handle.source} failed to compile: {handle.error}")
        elif handle.state is HandleState.SUCCEEDED:
            logger.debug(f"Rule set {handle.source} compiled for generation {handle.generation}")
