import reprlib
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import final

from mocksmith.arguments import Arguments
from mocksmith.call import Call
from mocksmith.config import DEFAULT_CONFIG, RenderingConfig
from mocksmith.matchers import Matcher


def _repr_for(config: RenderingConfig) -> reprlib.Repr:
    return reprlib.Repr(maxstring=config.max_string, maxother=config.max_other)


def callback_label(callback: object) -> str:
    """The name a call is reported under: a stub's label, or a function's qualified name."""
    label = getattr(callback, "label", None)
    if isinstance(label, str):
        return label
    name = getattr(callback, "__qualname__", None)
    if isinstance(name, str):
        return name
    return repr(callback)


@final
@dataclass(frozen=True, slots=True, weakref_slot=True)
class AssertionRenderer:
    """
    Renders values, matchers and calls for assertion failure messages.

    Multi-line renderings put one item per line, each starting with the
    configured bullet.
    """

    config: RenderingConfig = DEFAULT_CONFIG.rendering
    _repr: reprlib.Repr = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_repr", _repr_for(self.config))

    def render_value(self, value: object) -> str:
        """Render a value. Top-level strings are never shortened."""
        if isinstance(value, str):
            return repr(value)
        if isinstance(value, BaseException):
            return self.render_exception(value)
        return self._repr.repr(value)

    def render_matchers(self, matchers: Iterable[Matcher]) -> str:
        rendered = [matcher.describe(self.render_value) for matcher in matchers]
        if not rendered:
            return self.config.empty
        return ", ".join(rendered)

    def render_arguments(self, arguments: Arguments | Iterable[object]) -> str:
        arguments = Arguments.adapt(arguments)
        rendered = [self._repr.repr(argument) for argument in arguments]
        rendered.extend(
            f"{name}={self._repr.repr(value)}"
            for name, value in arguments.keywords.items()
        )
        if not rendered:
            return self.config.empty
        return ", ".join(rendered)

    def render_call(self, call: Call) -> str:
        arguments = self.render_arguments(call.arguments)
        if arguments == self.config.empty:
            arguments = ""
        return f"{callback_label(call.callback)}({arguments})"

    def render_calls(self, calls: Iterable[Call]) -> str:
        return self._bulleted(self.render_call(call) for call in calls)

    def render_calls_arguments(self, calls: Iterable[Call]) -> str:
        return self._bulleted(self.render_arguments(call.arguments) for call in calls)

    def render_responses(self, calls: Iterable[Call]) -> str:
        return self._bulleted(self._render_response(call) for call in calls)

    def _render_response(self, call: Call) -> str:
        if not call.has_responded:
            return self.config.empty
        failure = call.failure
        if failure is not None:
            return f"threw {self.render_exception(failure)}"
        if call.is_sequence_call:
            return "returned a sequence"
        return f"returned {self._repr.repr(call.returned_value)}"

    def render_exception(self, exception: BaseException | None) -> str:
        if exception is None:
            return self.config.empty
        message = str(exception)
        rendered = "" if message == "" else self._repr.repr(message)
        return f"{type(exception).__name__}({rendered})"

    def _bulleted(self, lines: Iterable[str]) -> str:
        rendered = [f"{self.config.bullet}{line}" for line in lines]
        if not rendered:
            return f"{self.config.bullet}{self.config.empty}"
        return "\n".join(rendered)
