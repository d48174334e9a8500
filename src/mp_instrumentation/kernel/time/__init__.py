"""Kernel time – clocks."""
from mp_instrumentation.kernel.time.clock import Clock, FrozenClock, SystemClock, monotonic_nanos

__all__ = ["Clock", "FrozenClock", "SystemClock", "monotonic_nanos"]
