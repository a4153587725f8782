"""Fail-fast admission control for sandbox operations."""

import logging
import threading

from fileguard.exceptions import ResourceExhaustedError

logger = logging.getLogger(__name__)


class AdmissionSlot:
    """Scoped handle for one admitted operation.

    Releases its slot exactly once, either when the ``with`` block exits
    (normally or by exception) or on the first explicit ``release()`` call.
    """

    def __init__(self, gate: "AdmissionGate"):
        self._gate = gate
        self._released = False

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._gate._release()

    def __enter__(self) -> "AdmissionSlot":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class AdmissionGate:
    """Bound the number of concurrently in-flight operations.

    This is an admission policy, not a scheduler: when every slot is taken,
    ``acquire()`` raises ResourceExhaustedError immediately instead of waiting.
    The counter is guarded by a lock so ``0 <= active <= limit`` holds under
    threads.

    Example:
        >>> gate = AdmissionGate(limit=1)
        >>> with gate.acquire():
        ...     gate.acquire()
        Traceback (most recent call last):
        ...
        ResourceExhaustedError: Too many concurrent operations. Please try again later.
        >>> gate.active
        0
    """

    def __init__(self, limit: int):
        """Initialize AdmissionGate.

        Args:
            limit: Maximum number of operations admitted at once (must be positive)

        Raises:
            ValueError: If limit is not positive
        """
        if limit < 1:
            raise ValueError(f"Admission limit must be positive, got {limit}")
        self._limit = limit
        self._active = 0
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def active(self) -> int:
        with self._lock:
            return self._active

    def acquire(self) -> AdmissionSlot:
        """Admit one operation or fail immediately.

        Returns:
            AdmissionSlot to be released when the operation finishes

        Raises:
            ResourceExhaustedError: If ``limit`` operations are already in flight
        """
        with self._lock:
            if self._active >= self._limit:
                logger.warning(f"Admission refused: {self._active}/{self._limit} operations active")
                raise ResourceExhaustedError(
                    "Too many concurrent operations. Please try again later."
                )
            self._active += 1
            logger.debug(f"Admitted operation ({self._active}/{self._limit} active)")
        return AdmissionSlot(self)

    def _release(self) -> None:
        with self._lock:
            self._active -= 1
            logger.debug(f"Released operation ({self._active}/{self._limit} active)")
