from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Final, final

from mocksmith.arguments import Arguments
from mocksmith.errors import AlreadyCompleted, AlreadyResponded, NotSequenceCall
from mocksmith.events import (
    CalledEvent,
    CallEvent,
    ConsumedEvent,
    EndEvent,
    IterationEvent,
    ProducedEvent,
    ReceivedEvent,
    ReceivedExceptionEvent,
    ResponseEvent,
    ReturnedEvent,
    ThrewEvent,
)

Clock = Callable[[], float]


@final
class SequenceCounter:
    """
    Source of globally unique, strictly increasing sequence numbers.

    One counter is shared by every call factory of a test run; :meth:`reset`
    starts a new run.
    """

    __slots__ = ("_lock", "_next")

    def __init__(self, start: int = 0) -> None:
        self._lock = threading.Lock()
        self._next = start

    def next(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def reset(self, start: int = 0) -> None:
        with self._lock:
            self._next = start


@final
@dataclass(kw_only=True, slots=True, weakref_slot=True, eq=False)
class Call:
    """
    A single invocation of a stand-in member.

    The call is mutable only along the code path executing the invocation, and
    only in the order enforced below:

    - a direct response is also the terminal event;
    - a response whose value is an iterator is a *sequence call*, which accepts
      iteration events until a separate terminal event is set.
    """

    called_event: Final[CalledEvent]
    _response_event: ResponseEvent | None = field(default=None, init=False)
    _iteration_events: list[IterationEvent] = field(default_factory=list, init=False)
    _end_event: EndEvent | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.called_event.attach(self)

    @classmethod
    def from_events(
        cls,
        called_event: CalledEvent,
        response_event: ResponseEvent | None = None,
        iteration_events: Iterable[IterationEvent] = (),
        end_event: EndEvent | None = None,
    ) -> Call:
        call = cls(called_event=called_event)
        if response_event is not None:
            call.set_response_event(response_event)
        for iteration_event in iteration_events:
            call.add_iteration_event(iteration_event)
        if end_event is not None:
            call.set_end_event(end_event)
        return call

    @property
    def sequence_number(self) -> int:
        return self.called_event.sequence_number

    @property
    def time(self) -> float:
        return self.called_event.time

    @property
    def callback(self) -> Callable[..., object]:
        return self.called_event.callback

    @property
    def arguments(self) -> Arguments:
        return self.called_event.arguments

    @property
    def response_event(self) -> ResponseEvent | None:
        return self._response_event

    @property
    def iteration_events(self) -> tuple[IterationEvent, ...]:
        return tuple(self._iteration_events)

    @property
    def end_event(self) -> EndEvent | None:
        return self._end_event

    def set_response_event(self, response_event: ResponseEvent) -> None:
        if self._response_event is not None:
            raise AlreadyResponded()
        response_event.attach(self)
        self._response_event = response_event
        if not self.is_sequence_call:
            self._end_event = response_event

    def add_iteration_event(self, iteration_event: IterationEvent) -> None:
        if not self.is_sequence_call:
            raise NotSequenceCall()
        if self._end_event is not None:
            raise AlreadyCompleted()
        iteration_event.attach(self)
        self._iteration_events.append(iteration_event)

    def set_end_event(self, end_event: EndEvent) -> None:
        if self._end_event is not None:
            raise AlreadyCompleted()
        if self._response_event is None:
            if isinstance(end_event, ConsumedEvent):
                raise NotSequenceCall()
            self._response_event = end_event
        end_event.attach(self)
        self._end_event = end_event

    @property
    def events(self) -> tuple[CallEvent, ...]:
        events: list[CallEvent] = [self.called_event]
        if self._response_event is not None:
            events.append(self._response_event)
            events.extend(self._iteration_events)
            if self._end_event is not None and self._end_event is not self._response_event:
                events.append(self._end_event)
        return tuple(events)

    @property
    def first_event(self) -> CallEvent:
        return self.called_event

    @property
    def last_event(self) -> CallEvent:
        if self._end_event is not None:
            return self._end_event
        if self._iteration_events:
            return self._iteration_events[-1]
        if self._response_event is not None:
            return self._response_event
        return self.called_event

    @property
    def has_responded(self) -> bool:
        return self._response_event is not None

    @property
    def has_completed(self) -> bool:
        return self._end_event is not None

    @property
    def is_sequence_call(self) -> bool:
        return isinstance(self._response_event, ReturnedEvent) and isinstance(
            self._response_event.value, Iterator
        )

    @property
    def returned_value(self) -> object:
        """The value of a returned response, otherwise ``None``.

        For a sequence call this is the iterator that was returned.
        """
        if isinstance(self._response_event, ReturnedEvent):
            return self._response_event.value
        return None

    @property
    def failure(self) -> BaseException | None:
        if isinstance(self._end_event, ThrewEvent):
            return self._end_event.exception
        return None

    @property
    def response_time(self) -> float | None:
        if self._response_event is None:
            return None
        return self._response_event.time

    @property
    def completion_time(self) -> float | None:
        if self._end_event is None:
            return None
        return self._end_event.time


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True)
class CallFactory:
    """Creates calls and events, stamping each with a sequence number and a time."""

    sequencer: SequenceCounter = field(default_factory=SequenceCounter)
    clock: Clock = time.time

    def record(
        self,
        callback: Callable[..., object],
        arguments: Arguments | Iterable[object] | None = None,
    ) -> Call:
        return Call(called_event=self.called_event(callback, arguments))

    def called_event(
        self,
        callback: Callable[..., object],
        arguments: Arguments | Iterable[object] | None = None,
    ) -> CalledEvent:
        return CalledEvent(
            sequence_number=self.sequencer.next(),
            time=self.clock(),
            callback=callback,
            arguments=Arguments.adapt(arguments),
        )

    def returned_event(self, value: object = None) -> ReturnedEvent:
        return ReturnedEvent(
            sequence_number=self.sequencer.next(), time=self.clock(), value=value
        )

    def threw_event(self, exception: BaseException) -> ThrewEvent:
        return ThrewEvent(
            sequence_number=self.sequencer.next(), time=self.clock(), exception=exception
        )

    def produced_event(self, key: int, value: object) -> ProducedEvent:
        return ProducedEvent(
            sequence_number=self.sequencer.next(), time=self.clock(), key=key, value=value
        )

    def received_event(self, value: object) -> ReceivedEvent:
        return ReceivedEvent(
            sequence_number=self.sequencer.next(), time=self.clock(), value=value
        )

    def received_exception_event(
        self, exception: BaseException
    ) -> ReceivedExceptionEvent:
        return ReceivedExceptionEvent(
            sequence_number=self.sequencer.next(), time=self.clock(), exception=exception
        )

    def consumed_event(self, value: object = None) -> ConsumedEvent:
        return ConsumedEvent(
            sequence_number=self.sequencer.next(), time=self.clock(), value=value
        )
