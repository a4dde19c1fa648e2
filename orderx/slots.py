"""
Containers for fields whose cardinality depends on the profile.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Iterator

from orderx.exceptions import MissingCapabilityError


class Shape(Enum):
    ABSENT = "absent"
    SINGLE = "single"
    LIST = "list"


class Slot:
    """A profile-shaped field holding zero, one or many values.

    ``set`` replaces the value of a single-valued slot but appends to a
    list-valued one, so repeated ``set`` calls accumulate in list shape.
    """

    __slots__ = ("name", "shape", "profile", "_items")

    def __init__(self, name: str, shape: Shape = Shape.SINGLE, profile: str | None = None):
        self.name = name
        self.shape = shape
        self.profile = profile
        self._items: list[Any] = []

    def __repr__(self) -> str:
        return f"Slot({self.name!r}, {self.shape.value}, {self._items!r})"

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def supported(self) -> bool:
        return self.shape is not Shape.ABSENT

    @property
    def supports_append(self) -> bool:
        return self.shape is Shape.LIST

    def _require(self, operation: str, shape: Shape | None = None) -> None:
        if not self.supported or (shape is not None and self.shape is not shape):
            raise MissingCapabilityError(self.name, operation, self.profile)

    def set(self, value: Any) -> None:
        self._require("set")
        if self.supports_append:
            self._items.append(value)
        else:
            self._items = [value]

    def set_first(self, value: Any) -> None:
        """Replace the first value, keeping any further list entries."""
        self._require("set")
        if self._items:
            self._items[0] = value
        else:
            self._items.append(value)

    def add(self, value: Any) -> None:
        self._require("add", Shape.LIST)
        self._items.append(value)

    def first(self) -> Any:
        return self._items[0] if self._items else None

    def values(self) -> list[Any]:
        return list(self._items)
