"""Instrumenter – ending operations whose result is asynchronous."""
from mp_instrumentation.instrumenter.async_support.coroutines import CoroutineEndStrategy
from mp_instrumentation.instrumenter.async_support.futures import (
    AsyncioFutureEndStrategy,
    ConcurrentFutureEndStrategy,
)
from mp_instrumentation.instrumenter.async_support.kinds import AsyncKind
from mp_instrumentation.instrumenter.async_support.registry import AsyncOperationEndStrategies
from mp_instrumentation.instrumenter.async_support.strategy import (
    CANCELED_ATTRIBUTE,
    AsyncOperationEndStrategy,
    try_to_get_response,
)
from mp_instrumentation.instrumenter.async_support.support import AsyncOperationEndSupport

__all__ = [
    "CANCELED_ATTRIBUTE",
    "AsyncKind",
    "AsyncOperationEndStrategies",
    "AsyncOperationEndStrategy",
    "AsyncOperationEndSupport",
    "AsyncioFutureEndStrategy",
    "ConcurrentFutureEndStrategy",
    "CoroutineEndStrategy",
    "try_to_get_response",
]
