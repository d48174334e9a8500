"""Kernel time – nanosecond clock protocol + implementations."""
from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Port: monotonic nanosecond source used to time operations."""

    def nanos(self) -> int: ...


class SystemClock:
    """Production clock that delegates to :func:`time.monotonic_ns`."""

    def nanos(self) -> int:
        return time.monotonic_ns()


class FrozenClock:
    """Test clock pinned to a fixed nanosecond reading."""

    def __init__(self, fixed: int = 0) -> None:
        self._fixed = fixed

    def nanos(self) -> int:
        return self._fixed

    def advance(self, *, seconds: float = 0.0, nanos: int = 0) -> None:
        """Move the frozen reading forward."""
        self._fixed += int(seconds * 1_000_000_000) + nanos


def monotonic_nanos() -> int:
    """Shorthand for ``time.monotonic_ns()``."""
    return time.monotonic_ns()


__all__ = ["Clock", "FrozenClock", "SystemClock", "monotonic_nanos"]
