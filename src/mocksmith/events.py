"""
Events recorded along the timeline of a single call.

A call always starts with a :class:`CalledEvent`. It then responds with a
:class:`ResponseEvent` (a value was returned or an exception was thrown). When
the returned value is an iterator, the call keeps recording
:class:`IterationEvent` instances until a terminal event is set, which is
either a :class:`ConsumedEvent` or another :class:`ResponseEvent`.
"""

from __future__ import annotations

from abc import ABC
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, final

from mocksmith.arguments import Arguments

if TYPE_CHECKING:
    from mocksmith.call import Call


@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True, eq=False)
class CallEvent(ABC):
    sequence_number: Final[int]
    """
    Globally unique, strictly increasing position of this event in the test run.
    """

    time: Final[float]
    """
    Seconds since the Unix epoch at which the event occurred.
    """

    call: Call | None = field(default=None, init=False, repr=False)
    """
    The call this event belongs to, set once when the event is attached via ``attach``.
    """

    def attach(self, call: Call) -> None:
        object.__setattr__(self, "call", call)


def _no_op(*args: object, **kwargs: object) -> None:
    return None


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True, eq=False)
class CalledEvent(CallEvent):
    callback: Final[Callable[..., object]] = _no_op
    arguments: Final[Arguments] = field(default_factory=Arguments)


@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True, eq=False)
class ResponseEvent(CallEvent, ABC):
    """A direct response: either a returned value or a thrown exception."""


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True, eq=False)
class ReturnedEvent(ResponseEvent):
    value: Final[object] = None


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True, eq=False)
class ThrewEvent(ResponseEvent):
    exception: Final[BaseException]


@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True, eq=False)
class IterationEvent(CallEvent, ABC):
    """An intermediate event of a sequence call."""


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True, eq=False)
class ProducedEvent(IterationEvent):
    key: Final[int]
    """
    Zero-based position of the value in the produced sequence.
    """

    value: Final[object]


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True, eq=False)
class ReceivedEvent(IterationEvent):
    """A value was sent into a generator."""

    value: Final[object]


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True, eq=False)
class ReceivedExceptionEvent(IterationEvent):
    """An exception was thrown into a generator."""

    exception: Final[BaseException]


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True, eq=False)
class ConsumedEvent(CallEvent):
    """The produced sequence was exhausted."""

    value: Final[object] = None
    """
    The value carried by ``StopIteration``, which is a generator's return value.
    """


EndEvent = ResponseEvent | ConsumedEvent
