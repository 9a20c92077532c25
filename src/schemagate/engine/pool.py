"""Fixed-size worker pool for rule-set compilation.

Each submitted rule set gets a ``CompilationHandle``. Waiting on a handle is
bounded by a timeout and wakes immediately when the handle is cancelled or
superseded, so nobody waits on work that will never be delivered.
"""

import logging
import threading
import weakref
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Callable, Protocol

from ..compiler import CompiledValidator
from ..config import DEFAULT_THREAD_POOL_SIZE, EngineConfig
from ..errors import (
    CompilationCancelledError,
    CompilationError,
    CompilationTimeoutError,
    PoolNotRunningError,
    SupersededError,
)
from ..models import RuleSetSource

logger = logging.getLogger(__name__)


class Compiler(Protocol):
    """Anything that turns a rule-set source into a validator."""

    def compile(self, source: RuleSetSource,
                cancelled: Callable[[], bool] | None = None) -> CompiledValidator:
        ...


class HandleState(str, Enum):
    """Lifecycle of a compilation handle."""
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    SUPERSEDED = "superseded"


TERMINAL_STATES = frozenset({
    HandleState.SUCCEEDED,
    HandleState.FAILED,
    HandleState.CANCELLED,
    HandleState.SUPERSEDED,
})


class CompilationHandle:
    """In-flight or completed compilation of one rule-set source."""

    def __init__(self, source: RuleSetSource, generation: int = 0):
        self.source = source
        self.generation = generation
        self._condition = threading.Condition()
        self._state = HandleState.PENDING
        self._validator: CompiledValidator | None = None
        self._error: CompilationError | None = None
        self._callbacks: list[Callable[["CompilationHandle"], None]] = []
        self._task: Future | None = None

    @property
    def state(self) -> HandleState:
        with self._condition:
            return self._state

    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    def is_cancelled(self) -> bool:
        return self.state in (HandleState.CANCELLED, HandleState.SUPERSEDED)

    @property
    def error(self) -> CompilationError | None:
        with self._condition:
            return self._error

    def result(self, timeout: float | None = None) -> CompiledValidator:
        """Wait for the compiled validator.

        Args:
            timeout: Seconds to wait; None waits until the handle resolves

        Raises:
            CompilationTimeoutError: If not resolved within timeout
            CompilationError: If compilation failed
            SupersededError: If the handle's generation was replaced
            CompilationCancelledError: If the handle was cancelled
        """
        with self._condition:
            resolved = self._condition.wait_for(lambda: self._state in TERMINAL_STATES, timeout)
            if not resolved:
                raise CompilationTimeoutError(self.source, timeout)

            if self._state is HandleState.SUCCEEDED:
                return self._validator
            if self._state is HandleState.FAILED:
                raise self._error
            if self._state is HandleState.SUPERSEDED:
                raise SupersededError(self.source, self.generation)
            raise CompilationCancelledError(self.source)

    def cancel(self, superseded: bool = False) -> bool:
        """Cancel the handle, waking every waiter.

        A queued job is removed from the pool queue; a running job stops at
        its next stage boundary and its result is discarded.

        Returns:
            False if the handle had already resolved
        """
        state = HandleState.SUPERSEDED if superseded else HandleState.CANCELLED
        if not self._resolve(state):
            return False
        if self._task is not None:
            self._task.cancel()
        return True

    def add_done_callback(self, fn: Callable[["CompilationHandle"], None]) -> None:
        """Call fn with this handle once it resolves (immediately if it already has)."""
        with self._condition:
            if self._state not in TERMINAL_STATES:
                self._callbacks.append(fn)
                return
        fn(self)

    def _start(self) -> bool:
        with self._condition:
            if self._state is not HandleState.PENDING:
                return False
            self._state = HandleState.RUNNING
            return True

    def _resolve(self, state: HandleState, validator: CompiledValidator | None = None,
                 error: CompilationError | None = None) -> bool:
        with self._condition:
            if self._state in TERMINAL_STATES:
                return False
            self._state = state
            self._validator = validator
            self._error = error
            callbacks, self._callbacks = self._callbacks, []
            self._condition.notify_all()

        for callback in callbacks:
            try:
                callback(self)
            except Exception:
                logger.exception(f"Callback for compilation of {self.source} raised")
        return True

    def __repr__(self) -> str:
        return (f"CompilationHandle(source={str(self.source)!r}, "
                f"generation={self.generation}, state={self.state.value})")


class CompilationPool:
    """Long-lived worker threads compiling rule sets.

    The pool is owned by whoever creates it and has an explicit lifecycle:
    ``start`` before submitting, ``shutdown`` when done. Submission order has
    no bearing on completion order.
    """

    def __init__(self, compiler: Compiler, max_workers: int = DEFAULT_THREAD_POOL_SIZE):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.compiler = compiler
        self.max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()
        self._handles: "weakref.WeakSet[CompilationHandle]" = weakref.WeakSet()

    @classmethod
    def from_config(cls, compiler: Compiler, config: EngineConfig) -> "CompilationPool":
        return cls(compiler, max_workers=config.pool.thread_pool_size)

    @property
    def running(self) -> bool:
        return self._executor is not None

    def start(self) -> "CompilationPool":
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="schemagate-compile",
                )
                logger.debug(f"Started compilation pool with {self.max_workers} workers")
        return self

    def shutdown(self, wait: bool = True) -> None:
        """Cancel outstanding handles and stop the workers."""
        with self._lock:
            executor, self._executor = self._executor, None
            outstanding = [handle for handle in self._handles if not handle.done()]

        for handle in outstanding:
            handle.cancel()

        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=True)
            logger.debug(f"Shut down compilation pool ({len(outstanding)} handles cancelled)")

    def submit(self, source: RuleSetSource, generation: int = 0) -> CompilationHandle:
        """Queue a rule set for compilation.

        Raises:
            PoolNotRunningError: If the pool was not started or has been shut down
        """
        handle = CompilationHandle(source, generation)
        with self._lock:
            if self._executor is None:
                raise PoolNotRunningError("Compilation pool is not running")
            self._handles.add(handle)
            handle._task = self._executor.submit(self._compile, handle)
        return handle

    def _compile(self, handle: CompilationHandle) -> None:
        if not handle._start():
            logger.debug(f"Skipping compilation of {handle.source}: {handle.state.value}")
            return

        try:
            validator = self.compiler.compile(handle.source, cancelled=handle.is_cancelled)
        except CompilationCancelledError:
            logger.debug(f"Compilation of {handle.source} stopped after cancellation")
            handle._resolve(HandleState.CANCELLED)
        except CompilationError as e:
            handle._resolve(HandleState.FAILED, error=e)
        except Exception as e:
            error = CompilationError(f"Error compiling schematron file {handle.source}: {e}",
                                     handle.source)
            error.__cause__ = e
            handle._resolve(HandleState.FAILED, error=error)
        else:
            if not handle._resolve(HandleState.SUCCEEDED, validator=validator):
                logger.debug(f"Discarding compiled {handle.source}: {handle.state.value}")

    def __enter__(self) -> "CompilationPool":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
