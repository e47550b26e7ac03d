"""Tests for the call state machine."""

import threading

import pytest

from mocksmith import (
    AlreadyCompleted,
    AlreadyResponded,
    Arguments,
    Call,
    CallFactory,
    NotSequenceCall,
    SequenceCounter,
)
from mocksmith.events import ConsumedEvent, ProducedEvent, ReturnedEvent, ThrewEvent


def callback(*args: object) -> None:
    pass


class TestDirectResponse:
    """A direct response completes the call in one step."""

    def test_return_completes_the_call(self, call_factory: CallFactory) -> None:
        call = call_factory.record(callback, ["a"])
        assert not call.has_responded
        assert not call.has_completed

        call.set_response_event(call_factory.returned_event("result"))

        assert call.has_responded
        assert call.has_completed
        assert not call.is_sequence_call
        assert call.response_time == call.completion_time
        assert call.returned_value == "result"
        assert call.failure is None
        assert call.response_event is call.end_event

    def test_exception_completes_the_call(self, call_factory: CallFactory) -> None:
        error = RuntimeError("boom")
        call = call_factory.record(callback)
        call.set_response_event(call_factory.threw_event(error))

        assert call.has_completed
        assert call.failure is error
        assert call.returned_value is None

    def test_responding_twice_fails(self, call_factory: CallFactory) -> None:
        call = call_factory.record(callback)
        call.set_response_event(call_factory.returned_event())
        with pytest.raises(AlreadyResponded):
            call.set_response_event(call_factory.returned_event())

    def test_iteration_event_on_direct_call_fails(
        self, call_factory: CallFactory
    ) -> None:
        call = call_factory.record(callback)
        call.set_response_event(call_factory.returned_event([1, 2]))
        with pytest.raises(NotSequenceCall):
            call.add_iteration_event(call_factory.produced_event(0, 1))

    def test_ending_a_completed_call_fails(self, call_factory: CallFactory) -> None:
        call = call_factory.record(callback)
        call.set_response_event(call_factory.returned_event())
        with pytest.raises(AlreadyCompleted):
            call.set_end_event(call_factory.returned_event())

    def test_end_event_without_response_becomes_the_response(
        self, call_factory: CallFactory
    ) -> None:
        call = call_factory.record(callback)
        end_event = call_factory.returned_event(5)
        call.set_end_event(end_event)
        assert call.response_event is end_event
        assert call.has_completed

    def test_consumed_event_without_response_fails(
        self, call_factory: CallFactory
    ) -> None:
        call = call_factory.record(callback)
        with pytest.raises(NotSequenceCall):
            call.set_end_event(call_factory.consumed_event())

    def test_unanswered_call_accessors(self, call_factory: CallFactory) -> None:
        call = call_factory.record(callback)
        assert call.response_time is None
        assert call.completion_time is None
        assert call.returned_value is None
        assert call.failure is None
        assert call.last_event is call.first_event is call.called_event
        assert call.events == (call.called_event,)


class TestSequenceResponse:
    """An iterator response stays open until a separate terminal event."""

    def test_produced_values_are_recorded_in_order(
        self, call_factory: CallFactory
    ) -> None:
        call = call_factory.record(callback)
        call.set_response_event(call_factory.returned_event(iter("abc")))
        assert call.is_sequence_call
        assert call.has_responded

        for key, value in enumerate("abc"):
            call.add_iteration_event(call_factory.produced_event(key, value))
            assert not call.has_completed

        assert len(call.iteration_events) == 3
        assert [event.value for event in call.iteration_events] == ["a", "b", "c"]
        assert all(isinstance(e, ProducedEvent) for e in call.iteration_events)
        assert not call.has_completed

        call.set_end_event(call_factory.consumed_event())
        assert call.has_completed
        assert call.completion_time is not None
        assert call.response_time is not None
        assert call.completion_time > call.response_time

    def test_events_are_rebuilt_in_order(self, call_factory: CallFactory) -> None:
        call = call_factory.record(callback)
        call.set_response_event(call_factory.returned_event(iter([1])))
        call.add_iteration_event(call_factory.produced_event(0, 1))
        call.set_end_event(call_factory.consumed_event())

        kinds = [type(event) for event in call.events]
        assert kinds[1:] == [ReturnedEvent, ProducedEvent, ConsumedEvent]
        numbers = [event.sequence_number for event in call.events]
        assert numbers == sorted(numbers)
        assert all(event.call is call for event in call.events)
        assert call.last_event is call.end_event

    def test_iteration_after_completion_fails(self, call_factory: CallFactory) -> None:
        call = call_factory.record(callback)
        call.set_response_event(call_factory.returned_event(iter([])))
        call.set_end_event(call_factory.threw_event(ValueError()))
        with pytest.raises(AlreadyCompleted):
            call.add_iteration_event(call_factory.produced_event(0, 1))

    def test_failure_while_producing(self, call_factory: CallFactory) -> None:
        error = ValueError("broken")
        call = call_factory.record(callback)
        call.set_response_event(call_factory.returned_event(iter([])))
        call.set_end_event(call_factory.threw_event(error))
        assert call.failure is error
        assert isinstance(call.end_event, ThrewEvent)

    def test_from_events(self, call_factory: CallFactory) -> None:
        called = call_factory.called_event(callback, [1])
        returned = call_factory.returned_event(iter([2]))
        produced = call_factory.produced_event(0, 2)
        consumed = call_factory.consumed_event()
        call = Call.from_events(called, returned, [produced], consumed)
        assert call.events == (called, returned, produced, consumed)
        assert call.arguments == Arguments([1])


class TestSequenceCounter:
    def test_numbers_increase(self, call_factory: CallFactory) -> None:
        first = call_factory.record(callback)
        second = call_factory.record(callback)
        assert first.sequence_number == 0
        assert second.sequence_number == 1

    def test_reset(self) -> None:
        counter = SequenceCounter()
        counter.next()
        counter.reset(10)
        assert counter.next() == 10

    def test_numbers_are_unique_across_threads(self) -> None:
        counter = SequenceCounter()
        numbers: list[int] = []
        lock = threading.Lock()

        def draw() -> None:
            drawn = [counter.next() for _ in range(500)]
            with lock:
                numbers.extend(drawn)

        threads = [threading.Thread(target=draw) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert sorted(numbers) == list(range(2000))
