"""!
@brief Insertion-ordered set used wherever detection accumulates unique values.
@details Several detection passes append values only when they are not yet
present and later rely on both membership checks and the original discovery
order. :class:`OrderedSet` makes that contract explicit. When created with
``casefold=True`` membership ignores case while the first spelling seen is the
one that is kept.
"""
from __future__ import annotations

from typing import Dict, Generic, Hashable, Iterable, Iterator, TypeVar

T = TypeVar("T", bound=Hashable)


class OrderedSet(Generic[T]):
    """!
    @brief Unique collection that remembers insertion order.
    """

    def __init__(self, items: Iterable[T] = (), *, casefold: bool = False) -> None:
        self._casefold = casefold
        self._items: Dict[Hashable, T] = {}
        self.update(items)

    def _key(self, item: T) -> Hashable:
        if self._casefold and isinstance(item, str):
            return item.casefold()
        return item

    def add(self, item: T) -> bool:
        """!
        @brief Add ``item`` unless an equal value is already present.
        @returns ``True`` when the item was newly added.
        """

        key = self._key(item)
        if key in self._items:
            return False
        self._items[key] = item
        return True

    def update(self, items: Iterable[T]) -> None:
        for item in items:
            self.add(item)

    def discard(self, item: T) -> None:
        self._items.pop(self._key(item), None)

    def __contains__(self, item: object) -> bool:
        try:
            return self._key(item) in self._items  # type: ignore[arg-type]
        except TypeError:
            return False

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OrderedSet):
            return list(self) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"OrderedSet({list(self)!r})"

    def to_tuple(self) -> tuple[T, ...]:
        return tuple(self._items.values())


__all__ = ["OrderedSet"]
