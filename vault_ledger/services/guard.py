"""Reentrancy guard held for the whole of a mutating operation."""
from __future__ import annotations

from types import TracebackType

from ..errors import ReentrantCall


class ReentrancyGuard:
    """Explicit mutual-exclusion token.

    Acquired at operation entry and released on every exit path; a nested
    acquisition (e.g. from a collaborator callback) raises ReentrantCall.
    """

    def __init__(self) -> None:
        self._holder: str | None = None

    @property
    def locked(self) -> bool:
        return self._holder is not None

    def acquire(self, operation: str) -> None:
        if self._holder is not None:
            raise ReentrantCall(
                f"{operation} entered while {self._holder} is in progress"
            )
        self._holder = operation

    def release(self) -> None:
        self._holder = None

    def hold(self, operation: str) -> _Held:
        return _Held(self, operation)


class _Held:
    def __init__(self, guard: ReentrancyGuard, operation: str) -> None:
        self._guard = guard
        self._operation = operation

    def __enter__(self) -> ReentrancyGuard:
        self._guard.acquire(self._operation)
        return self._guard

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._guard.release()
