"""Contract classes used by the mocksmith tests."""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Protocol, final

from mocksmith import ContractKind, mixin


class Widget(Protocol):
    def render(self, width: int, height: int) -> str: ...

    def resize(self, factor: float) -> None: ...


class Repository(ABC):
    @abstractmethod
    def find(self, identifier: int) -> object: ...

    @abstractmethod
    def save(self, entity: object) -> None: ...


class User:
    def __init__(self, name: str = "anonymous") -> None:
        self.name = name

    def greet(self, greeting: str) -> str:
        return f"{greeting}, {self.name}"

    def rename(self, name: str) -> None:
        self.name = name

    @staticmethod
    def normalize(name: str) -> str:
        return name.strip().title()

    @classmethod
    def create(cls, name: str) -> "User":
        return cls(name)

    def _audit(self, event: str) -> str:
        return f"{self.name}: {event}"

    def __secret(self) -> str:
        return "secret"

    @final
    def identifier(self) -> str:
        return self.name.casefold()

    def __iter__(self) -> Iterator[str]:
        return iter(self.name)


class Account:
    def greet(self, greeting: str, punctuation: str = "!") -> str:
        return f"{greeting}{punctuation}"


class TimestampMixin:
    def touch(self) -> float:
        return 0.0

    def greet(self) -> str:
        return "hi"


@mixin
class Serializable:
    def to_dict(self) -> dict[str, object]:
        return dict(vars(self))


class Shouting(Protocol):
    def greet(self, greeting: str, *, loudly: bool = False) -> str: ...


class Named(Protocol):
    def greet(self, name: str) -> str: ...


class Countdown:
    def count(self, start: int) -> Iterator[int]:
        yield from range(start, 0, -1)


class PartlyAbstract(ABC):
    @abstractmethod
    def load(self) -> object: ...

    def reload(self) -> object:
        return self.load()


class ExplicitInterface:
    __mocksmith_contract_kind__ = ContractKind.INTERFACE

    def ping(self) -> str:
        return "pong"


@final
class Sealed:
    def value(self) -> int:
        return 1


def create_user(name: str) -> User:
    return User(name)
