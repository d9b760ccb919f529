"""Name-keyed, insertion-ordered registries for scene objects.

Registering a name that already exists replaces the value (last write
wins) but keeps the name's original position in iteration order, which is
how dict assignment behaves.

Example:
    >>> from raykernel.scene.registry import Registry
    >>> reg = Registry("material")
    >>> reg.add("a", 1); reg.add("b", 2); reg.add("a", 3)
    1
    2
    3
    >>> list(reg.items())
    [('a', 3), ('b', 2)]
"""

import logging
from collections.abc import Iterator, Mapping
from typing import Generic, TypeVar

from raykernel.errors import ConstructionError, LookupMiss

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Registry(Generic[T]):
    """An insertion-ordered mapping from names to scene objects.

    Attributes:
        kind: Human-readable object kind used in messages ("camera", ...).
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._items: dict[str, T] = {}
        self._frozen = False

    def add(self, name: str, value: T) -> T:
        """Register or replace a value under name.

        Returns:
            The value, so registration can be used inline.

        Raises:
            ConstructionError: If name is not a non-empty string or the
                registry is frozen.
        """
        if self._frozen:
            raise ConstructionError(f"Cannot add {self.kind} {name!r}: the scene is frozen")
        if not isinstance(name, str) or not name:
            raise ConstructionError(f"{self.kind.capitalize()} name must be a non-empty string")
        if name in self._items:
            logger.debug("Replacing %s %r", self.kind, name)
        self._items[name] = value
        return value

    def get(self, name: str) -> T | None:
        """Return the value registered under name, or None."""
        return self._items.get(name)

    def __getitem__(self, name: str) -> T:
        try:
            return self._items[name]
        except KeyError:
            raise LookupMiss(self.kind, name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def items(self) -> Iterator[tuple[str, T]]:
        return iter(self._items.items())

    def values(self) -> Iterator[T]:
        return iter(self._items.values())

    def first(self) -> T | None:
        """Return the earliest registered value, or None when empty."""
        return next(iter(self._items.values()), None)

    def name_of(self, value: T) -> str | None:
        """Return the name a value is registered under (by identity)."""
        for name, item in self._items.items():
            if item is value:
                return name
        return None

    def view(self) -> "RegistryView[T]":
        """Return a read-only live view of the registry."""
        return RegistryView(self)

    def freeze(self) -> None:
        self._frozen = True


class RegistryView(Mapping[str, T]):
    """Read-only, live mapping over a Registry.

    Indexing an unknown name raises LookupMiss; get() returns None.
    """

    def __init__(self, registry: Registry[T]) -> None:
        self._registry = registry

    def __getitem__(self, name: str) -> T:
        return self._registry[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._registry)

    def __len__(self) -> int:
        return len(self._registry)

    def __repr__(self) -> str:
        return f"RegistryView({self._registry.kind!r}, {list(self._registry)!r})"
