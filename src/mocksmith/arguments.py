from collections.abc import Iterable, Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Self

from mocksmith.errors import UndefinedArgument


class Arguments(Sequence[object]):
    """
    The arguments received by a call.

    Positional values keep the shape they were received with; individual values
    may be replaced with :meth:`set`. Negative indices count from the end, and
    ``None`` addresses the first argument.

    Keyword arguments are exposed read-only through :attr:`keywords`.
    """

    __slots__ = ("_values", "_keywords")

    def __init__(
        self,
        values: Iterable[object] = (),
        keywords: Mapping[str, object] | None = None,
    ) -> None:
        self._values = list(values)
        self._keywords = MappingProxyType(dict(keywords or {}))

    @classmethod
    def adapt(cls, arguments: "Arguments | Iterable[object] | None") -> Self:
        if isinstance(arguments, cls):
            return arguments
        if arguments is None:
            return cls()
        return cls(arguments)

    @property
    def keywords(self) -> Mapping[str, object]:
        return self._keywords

    def all(self) -> tuple[object, ...]:
        return tuple(self._values)

    def has(self, index: int | None = None) -> bool:
        return self._normalize_index(index) is not None

    def get(self, index: int | None = None) -> object:
        normalized = self._normalize_index(index)
        if normalized is None:
            raise UndefinedArgument(index)
        return self._values[normalized]

    def set(self, value: object, index: int | None = None) -> None:
        normalized = self._normalize_index(index)
        if normalized is None:
            raise UndefinedArgument(index)
        self._values[normalized] = value

    def __getitem__(self, index):  # type: ignore[override]
        if isinstance(index, slice):
            return tuple(self._values[index])
        return self.get(index)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[object]:
        return iter(tuple(self._values))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Arguments):
            return NotImplemented
        return self._values == other._values and self._keywords == other._keywords

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self._keywords:
            return f"Arguments({self._values!r}, {dict(self._keywords)!r})"
        return f"Arguments({self._values!r})"

    def _normalize_index(self, index: int | None) -> int | None:
        count = len(self._values)
        if count < 1:
            return None
        if index is None:
            return 0
        if index < 0:
            index = count + index
            if index < 0:
                return None
        if index >= count:
            return None
        return index
