"""
Scoped runtime handle.

Acquired once at process (or test) start and released on every exit path.
It owns the process-wide resources of the sampling core: a pool of worker
threads an external scheduler can spread independent subsets over, and the
destination of diagnostic text.

Example:
    >>> with Runtime(num_threads=4, verbose=True) as runtime:
    ...     subsets = list(runtime.map(process_point, points))
"""

from __future__ import annotations

import logging
import sys
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, Iterable, Iterator, Optional, TextIO, TypeVar

from .core.parameters import SamplingParameters

PACKAGE_LOGGER = "dice_core"

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


class Runtime:
    """
    Context manager owning the worker pool and the output sink.

    Work submitted to the pool must respect the subset threading rule:
    one thread per Subset at a time, any number of threads per Image.

    Args:
        num_threads: Worker threads in the pool (None = ThreadPoolExecutor default)
        verbose: Send diagnostic text to ``stream`` instead of discarding it
        stream: Destination for verbose output (default: sys.stdout)
        level: Logging level of the package logger while active
    """

    def __init__(
        self,
        num_threads: Optional[int] = None,
        verbose: bool = False,
        stream: Optional[TextIO] = None,
        level: int = logging.INFO,
    ):
        if num_threads is not None and num_threads < 1:
            raise ValueError(f"num_threads must be >= 1, got {num_threads}")

        self.num_threads = num_threads
        self.verbose = verbose
        self.stream = stream
        self.level = level
        self._active = False
        self._executor: Optional[ThreadPoolExecutor] = None
        self._handler: Optional[logging.Handler] = None
        self._previous_level = logging.NOTSET
        self._previous_propagate = True

    @classmethod
    def from_parameters(cls, params: SamplingParameters, **kwargs) -> "Runtime":
        """Create a runtime from sampling parameters."""
        params.validate()
        return cls(num_threads=params.num_threads, verbose=params.verbose, **kwargs)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def executor(self) -> Executor:
        """
        Worker pool of the active runtime.

        Raises:
            RuntimeError: If the runtime is not active
        """
        if self._executor is None:
            raise RuntimeError("Runtime is not active")
        return self._executor

    def map(self, fn: Callable[[T], R], items: Iterable[T]) -> Iterator[R]:
        """Apply ``fn`` to every item on the worker pool, preserving order."""
        return self.executor.map(fn, items)

    def __enter__(self) -> "Runtime":
        if self._active:
            raise RuntimeError("Runtime is already active")

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        if self.verbose:
            self._handler = logging.StreamHandler(self.stream or sys.stdout)
            self._handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
        else:
            self._handler = logging.NullHandler()

        self._previous_level = package_logger.level
        self._previous_propagate = package_logger.propagate
        package_logger.addHandler(self._handler)
        package_logger.setLevel(self.level)
        # The handle owns the sink while active; root handlers never see the records
        package_logger.propagate = False

        self._executor = ThreadPoolExecutor(
            max_workers=self.num_threads, thread_name_prefix="dice_core"
        )
        self._active = True
        logger.debug(
            "Runtime started (threads=%s, verbose=%s)", self.num_threads, self.verbose
        )
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Shut the pool down and restore the output sink; no-op when inactive."""
        if not self._active:
            return

        logger.debug("Runtime finished")
        try:
            self._executor.shutdown(wait=True)
        finally:
            self._executor = None
            package_logger = logging.getLogger(PACKAGE_LOGGER)
            package_logger.removeHandler(self._handler)
            self._handler.flush()
            self._handler = None
            package_logger.setLevel(self._previous_level)
            package_logger.propagate = self._previous_propagate
            self._active = False
