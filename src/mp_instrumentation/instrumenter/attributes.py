"""Instrumenter – AttributesBuilder.

An ordered, mutable map accumulating span attributes for one lifecycle
phase (``on_start`` or ``on_end``) of one operation.
"""
from __future__ import annotations

from typing import Any, Iterator, Mapping, Sequence, Union

AttributeScalar = Union[str, bool, int, float]
AttributeValue = Union[AttributeScalar, Sequence[AttributeScalar]]

_SCALAR_TYPES = (str, bool, int, float)


def _scalar_type(value: Any) -> type | None:
    # bool is checked first: it is a subclass of int
    for tp in (bool, str, int, float):
        if isinstance(value, tp):
            return tp
    return None


def _normalise(key: str, value: Any) -> AttributeValue:
    if isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, (list, tuple)):
        types = {_scalar_type(v) for v in value}
        if None in types or len(types) > 1:
            raise TypeError(
                f"Attribute {key!r} must be a homogeneous sequence of str, bool, int or float"
            )
        return tuple(value)
    raise TypeError(
        f"Attribute {key!r} has unsupported type {type(value).__name__}"
    )


class AttributesBuilder:
    """Ordered attribute accumulator with last-writer-wins semantics.

    ``None`` values are ignored so extractors can write optional fields
    unconditionally.  Anything other than ``str``/``bool``/``int``/``float``
    or a homogeneous sequence of those raises :class:`TypeError`.
    """

    __slots__ = ("_data",)

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, AttributeValue] = {}
        if initial:
            self.put_all(initial)

    def put(self, key: str, value: Any) -> "AttributesBuilder":
        if value is None:
            return self
        self._data[key] = _normalise(key, value)
        return self

    def put_all(self, attributes: Mapping[str, Any]) -> "AttributesBuilder":
        for key, value in attributes.items():
            self.put(key, value)
        return self

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def remove(self, key: str) -> "AttributesBuilder":
        self._data.pop(key, None)
        return self

    def as_dict(self) -> dict[str, AttributeValue]:
        """Return a snapshot; later writes do not affect it."""
        return dict(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __getitem__(self, key: str) -> AttributeValue:
        return self._data[key]

    def __repr__(self) -> str:
        return f"AttributesBuilder({self._data!r})"


def set_attribute(attributes: AttributesBuilder, key: str, value: Any) -> None:
    """Write *value* under *key* unless it is ``None``."""
    if value is not None:
        attributes.put(key, value)


__all__ = ["AttributeScalar", "AttributeValue", "AttributesBuilder", "set_attribute"]
