"""
Argument matchers.

Expected arguments are adapted to :class:`Matcher` instances before they are
compared with recorded arguments. Matchers of other libraries are recognised
by the qualified name of their class, so those libraries are never imported
here.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Final, Protocol, final, override, runtime_checkable

from mocksmith.contracts import qualified_name

ValueRenderer = Callable[[object], str]


class Matcher(ABC):
    __slots__ = ()

    @abstractmethod
    def matches(self, value: object) -> bool: ...

    @abstractmethod
    def describe(self, render_value: ValueRenderer = repr) -> str: ...


@final
@dataclass(frozen=True, slots=True, weakref_slot=True)
class EqualToMatcher(Matcher):
    expected: object

    @override
    def matches(self, value: object) -> bool:
        return bool(self.expected == value)

    @override
    def describe(self, render_value: ValueRenderer = repr) -> str:
        return render_value(self.expected)


@final
@dataclass(frozen=True, slots=True, weakref_slot=True)
class AnyMatcher(Matcher):
    @override
    def matches(self, value: object) -> bool:
        return True

    @override
    def describe(self, render_value: ValueRenderer = repr) -> str:
        return "<any>"


@final
@dataclass(frozen=True, slots=True, weakref_slot=True)
class ForeignMatcher(Matcher):
    """A matcher of another library that compares itself through ``==``."""

    matcher: object

    @override
    def matches(self, value: object) -> bool:
        return bool(self.matcher == value)

    @override
    def describe(self, render_value: ValueRenderer = repr) -> str:
        return repr(self.matcher)


@runtime_checkable
class MatcherDriver(Protocol):
    def adapt(self, value: object) -> Matcher | None:
        """
        :return: A matcher equivalent to ``value``, or ``None`` when ``value``
            is not a matcher this driver knows.
        """
        ...


def _is_instance_of(value: object, class_names: frozenset[str]) -> bool:
    return any(qualified_name(cls) in class_names for cls in type(value).__mro__)


@final
@dataclass(frozen=True, slots=True, weakref_slot=True)
class PytestApproxMatcherDriver:
    """Adapts ``pytest.approx`` objects."""

    class_names: frozenset[str] = frozenset({"_pytest.python_api.ApproxBase"})

    def adapt(self, value: object) -> Matcher | None:
        if _is_instance_of(value, self.class_names):
            return ForeignMatcher(value)
        return None


@final
@dataclass(frozen=True, slots=True, weakref_slot=True)
class UnittestMockMatcherDriver:
    """Adapts ``unittest.mock.ANY``."""

    class_names: frozenset[str] = frozenset({"unittest.mock._ANY"})

    def adapt(self, value: object) -> Matcher | None:
        if _is_instance_of(value, self.class_names):
            return AnyMatcher()
        return None


DEFAULT_DRIVERS: Final[tuple[MatcherDriver, ...]] = (
    PytestApproxMatcherDriver(),
    UnittestMockMatcherDriver(),
)


@final
@dataclass(frozen=True, slots=True, weakref_slot=True)
class MatcherFactory:
    drivers: tuple[MatcherDriver, ...] = field(default=DEFAULT_DRIVERS)

    def adapt(self, value: object) -> Matcher:
        """
        Turn ``value`` into a matcher.

        Matchers are returned as they are; values recognised by a driver are
        adapted by it; anything else must compare equal.
        """
        if isinstance(value, Matcher):
            return value
        for driver in self.drivers:
            matcher = driver.adapt(value)
            if matcher is not None:
                return matcher
        return EqualToMatcher(value)

    def adapt_all(self, values: Iterable[object]) -> tuple[Matcher, ...]:
        return tuple(self.adapt(value) for value in values)


def equal_to(value: object) -> EqualToMatcher:
    return EqualToMatcher(value)


ANY: Final = AnyMatcher()
