"""Key vocabularies for keyboard actions.

A KeySet is an immutable, deduplicated set of key names. Its sorted order
is the canonical index assignment for every parameter and sample vector:
the key at ``sorted_list()[i]`` owns slot ``i``.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List


class KeySet:
    """Immutable set of key names with a deterministic sorted order.

    Parameters
    ----------
    names : Iterable[str]
        Key names (e.g. ``"ArrowUp"``, ``"space"``). Duplicates collapse.

    Examples
    --------
    >>> keys = KeySet.of("ArrowUp", "ArrowLeft", "space")
    >>> keys.sorted_list()
    ['ArrowLeft', 'ArrowUp', 'space']
    >>> keys.index("ArrowUp")
    1
    """

    __slots__ = ("_names", "_sorted")

    def __init__(self, names: Iterable[str] = ()) -> None:
        if isinstance(names, str):
            raise TypeError("KeySet expects an iterable of key names, not a single string")
        names = frozenset(names)
        for name in names:
            if not isinstance(name, str):
                raise TypeError(f"Key names must be strings, got {type(name).__name__}")
        self._names = names
        self._sorted = tuple(sorted(names))

    @classmethod
    def of(cls, *names: str) -> KeySet:
        return cls(names)

    @classmethod
    def union(cls, *sets: KeySet) -> KeySet:
        """Return a set holding every key of every input set."""
        names: set = set()
        for s in sets:
            names.update(s._names)
        return cls(names)

    def contains(self, key: str) -> bool:
        return key in self._names

    def sorted_list(self) -> List[str]:
        """Keys in lexicographic order (the vector layout order)."""
        return list(self._sorted)

    def index(self, key: str) -> int:
        """Layout index of a key.

        Raises
        ------
        ValueError
            If the key is not in the set
        """
        if key not in self._names:
            raise ValueError(f"Unknown key {key!r}; known keys: {list(self._sorted)}")
        return self._sorted.index(key)

    def issubset(self, other: KeySet) -> bool:
        return self._names <= other._names

    def __contains__(self, key: object) -> bool:
        return key in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._sorted)

    def __len__(self) -> int:
        return len(self._names)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeySet):
            return NotImplemented
        return self._names == other._names

    def __hash__(self) -> int:
        return hash(self._names)

    def __repr__(self) -> str:
        return f"KeySet({list(self._sorted)!r})"
