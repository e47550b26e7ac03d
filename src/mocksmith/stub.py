"""
Stubs: the programmable stand-ins behind every member of a mock.

A stub answers each invocation with the next configured answer, repeating the
last one once they run out, and records a :class:`~mocksmith.call.Call` per
invocation. Iterators returned by an answer are wrapped in a spy so that the
values they produce are recorded on the same call.
"""

from collections.abc import Callable, Generator, Iterator
from typing import Any, Self, final, override

from mocksmith.arguments import Arguments
from mocksmith.call import Call, CallFactory
from mocksmith.matchers import Matcher, MatcherFactory
from mocksmith.rendering import AssertionRenderer


Answer = Callable[[Arguments], object]


def _return_none(arguments: Arguments) -> None:
    return None


class IteratorSpy(Iterator[object]):
    """Records the values produced by an iterator on the call that returned it."""

    __slots__ = ("_iterator", "_call", "_factory", "_key")

    def __init__(self, iterator: Iterator[object], call: Call, factory: CallFactory) -> None:
        self._iterator = iterator
        self._call = call
        self._factory = factory
        self._key = 0

    @property
    def call(self) -> Call:
        return self._call

    def _advance(self, step: Callable[[], object]) -> object:
        if self._call.has_completed:
            raise StopIteration
        try:
            value = step()
        except StopIteration as e:
            self._call.set_end_event(self._factory.consumed_event(e.value))
            raise
        except BaseException as e:
            self._call.set_end_event(self._factory.threw_event(e))
            raise
        self._call.add_iteration_event(self._factory.produced_event(self._key, value))
        self._key += 1
        return value

    @override
    def __next__(self) -> object:
        return self._advance(lambda: next(self._iterator))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} of {self._iterator!r}>"


@final
class GeneratorSpy(IteratorSpy, Generator[object, object, object]):
    """An :class:`IteratorSpy` that also records values and exceptions sent in."""

    __slots__ = ()

    _iterator: Generator[object, object, object]

    @override
    def send(self, value: object) -> object:
        if not self._call.has_completed:
            self._call.add_iteration_event(self._factory.received_event(value))
        return self._advance(lambda: self._iterator.send(value))

    @override
    def throw(self, typ: Any, val: Any = None, tb: Any = None) -> object:  # type: ignore[override]
        if isinstance(typ, BaseException):
            exception = typ
        elif val is None:
            exception = typ()
        elif isinstance(val, BaseException):
            exception = val
        else:
            exception = typ(val)
        if tb is not None:
            exception = exception.with_traceback(tb)
        if not self._call.has_completed:
            self._call.add_iteration_event(
                self._factory.received_exception_event(exception)
            )
        return self._advance(lambda: self._iterator.throw(exception))

    @override
    def close(self) -> None:
        self._iterator.close()


def spy_on(value: object, call: Call, factory: CallFactory) -> object:
    if isinstance(value, Generator):
        return GeneratorSpy(value, call, factory)
    if isinstance(value, Iterator):
        return IteratorSpy(value, call, factory)
    return value


@final
class Stub:
    """
    A stand-in for one member of a mock.

    :param label: The name calls are reported under, such as ``"Widget.render"``.
    :param forward_by_default: Whether to call ``implementation`` until another
        answer is configured. Otherwise the stub answers ``None``.
    :param implementation: The real implementation used by :meth:`forwards`.
    :param receiver: The object passed as first argument to ``implementation``
        and to callbacks of instance members, or ``None`` for static members.
    """

    __slots__ = (
        "label",
        "forward_by_default",
        "_implementation",
        "_receiver",
        "_factory",
        "_matchers",
        "_renderer",
        "_answers",
        "_next_answer",
        "_calls",
    )

    def __init__(
        self,
        *,
        label: str,
        forward_by_default: bool = False,
        implementation: Callable[..., Any] | None = None,
        receiver: object = None,
        factory: CallFactory,
        matchers: MatcherFactory = MatcherFactory(),
        renderer: AssertionRenderer = AssertionRenderer(),
    ) -> None:
        self.label = label
        self.forward_by_default = forward_by_default
        self._implementation = implementation
        self._receiver = receiver
        self._factory = factory
        self._matchers = matchers
        self._renderer = renderer
        self._answers: list[Answer] = []
        self._next_answer = 0
        self._calls: list[Call] = []

    def __repr__(self) -> str:
        return f"<Stub {self.label}>"

    def __call__(self, *args: object, **kwargs: object) -> object:
        arguments = Arguments(args, kwargs)
        call = self._factory.record(self, arguments)
        self._calls.append(call)
        try:
            value = self._answer()(arguments)
        except BaseException as e:
            call.set_response_event(self._factory.threw_event(e))
            raise
        value = spy_on(value, call, self._factory)
        call.set_response_event(self._factory.returned_event(value))
        return value

    def _answer(self) -> Answer:
        if not self._answers:
            if self.forward_by_default:
                return self.invoke_implementation
            return _return_none
        answer = self._answers[min(self._next_answer, len(self._answers) - 1)]
        self._next_answer += 1
        return answer

    def invoke_implementation(self, arguments: Arguments) -> object:
        """Call the real implementation with the receiver, if any, first."""
        if self._implementation is None:
            return None
        if self._receiver is None:
            return self._implementation(*arguments, **arguments.keywords)
        return self._implementation(self._receiver, *arguments, **arguments.keywords)

    def returns(self, *values: object) -> Self:
        """Answer with each value in turn. Without values, answer ``None``."""
        if not values:
            values = (None,)
        self._answers.extend(lambda arguments, value=value: value for value in values)
        return self

    def returns_argument(self, index: int | None = None) -> Self:
        self._answers.append(lambda arguments: arguments.get(index))
        return self

    def returns_self(self) -> Self:
        self._answers.append(lambda arguments: self._receiver)
        return self

    def throws(self, *exceptions: BaseException | type[BaseException]) -> Self:
        """Raise each exception in turn. Without exceptions, raise :class:`Exception`."""
        if not exceptions:
            exceptions = (Exception,)

        def raising(exception: BaseException | type[BaseException]) -> Answer:
            def answer(arguments: Arguments) -> object:
                raise exception

            return answer

        self._answers.extend(raising(exception) for exception in exceptions)
        return self

    def does(self, *callbacks: Callable[..., object]) -> Self:
        """Answer with the result of each callback in turn, given the call arguments."""

        def calling(callback: Callable[..., object]) -> Answer:
            return lambda arguments: callback(*arguments, **arguments.keywords)

        self._answers.extend(calling(callback) for callback in callbacks)
        return self

    def forwards(self) -> Self:
        """Answer by calling the real implementation."""
        self._answers.append(self.invoke_implementation)
        return self

    def reset(self) -> Self:
        """Forget the configured answers and the recorded calls."""
        self._answers.clear()
        self._next_answer = 0
        self._calls.clear()
        return self

    @property
    def calls(self) -> tuple[Call, ...]:
        return tuple(self._calls)

    @property
    def call_count(self) -> int:
        return len(self._calls)

    def _call_matches(
        self,
        call: Call,
        positional: tuple[Matcher, ...],
        keywords: dict[str, Matcher],
    ) -> bool:
        arguments = call.arguments
        if len(arguments) != len(positional):
            return False
        if arguments.keywords.keys() != keywords.keys():
            return False
        return all(
            matcher.matches(value) for matcher, value in zip(positional, arguments)
        ) and all(
            matcher.matches(arguments.keywords[name])
            for name, matcher in keywords.items()
        )

    def called_with(self, *expected: object, **expected_keywords: object) -> bool:
        """Whether any recorded call received arguments matching the expected ones."""
        positional = self._matchers.adapt_all(expected)
        keywords = {
            name: self._matchers.adapt(value)
            for name, value in expected_keywords.items()
        }
        return any(self._call_matches(call, positional, keywords) for call in self._calls)

    def assert_called_with(self, *expected: object, **expected_keywords: object) -> None:
        """
        :raises AssertionError: If no recorded call matches, with every call
            listed in the message.
        """
        if self.called_with(*expected, **expected_keywords):
            return
        matchers = [
            *self._matchers.adapt_all(expected),
            *(
                _KeywordMatcher(name, self._matchers.adapt(value))
                for name, value in expected_keywords.items()
            ),
        ]
        if not self._calls:
            raise AssertionError(
                f"Expected call on {self.label} with arguments like:\n"
                f"{self._renderer.config.bullet}{self._renderer.render_matchers(matchers)}\n"
                "Never called."
            )
        raise AssertionError(
            f"Expected call on {self.label} with arguments like:\n"
            f"{self._renderer.config.bullet}{self._renderer.render_matchers(matchers)}\n"
            f"Calls:\n{self._renderer.render_calls_arguments(self._calls)}"
        )


@final
class _KeywordMatcher(Matcher):
    __slots__ = ("name", "matcher")

    def __init__(self, name: str, matcher: Matcher) -> None:
        self.name = name
        self.matcher = matcher

    @override
    def matches(self, value: object) -> bool:
        return self.matcher.matches(value)

    @override
    def describe(self, render_value: Callable[[object], str] = repr) -> str:
        return f"{self.name}={self.matcher.describe(render_value)}"
