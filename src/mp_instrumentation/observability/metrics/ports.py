"""Observability – Counter, Histogram, Metrics ports."""
from __future__ import annotations

import abc
from typing import Mapping, Union

MetricAttributeValue = Union[str, bool, int, float]
MetricAttributes = Mapping[str, MetricAttributeValue]


class Counter(abc.ABC):
    """Monotonically increasing counter."""

    @abc.abstractmethod
    def add(self, value: float = 1.0, attributes: MetricAttributes | None = None) -> None: ...


class Histogram(abc.ABC):
    """Distribution / latency histogram."""

    @abc.abstractmethod
    def record(self, value: float, attributes: MetricAttributes | None = None) -> None: ...


class Metrics(abc.ABC):
    """Port: factory for metric instruments used by operation listeners."""

    @abc.abstractmethod
    def counter(self, name: str, description: str = "", unit: str = "") -> Counter: ...

    @abc.abstractmethod
    def histogram(self, name: str, description: str = "", unit: str = "s") -> Histogram: ...


__all__ = ["Counter", "Histogram", "MetricAttributeValue", "MetricAttributes", "Metrics"]
