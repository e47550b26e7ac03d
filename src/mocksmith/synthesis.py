"""
Synthesis of mock classes from finalized specifications.

Every member of a specification's member table becomes a routing function on
the synthesized class. A routing function looks its :class:`~mocksmith.stub.Stub`
up by name and calls it: instance members use one stub per mock instance,
static members use one stub per mock class.
"""

import copy
import inspect
import logging
import re
import threading
import types
import weakref
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Final, Protocol, final, runtime_checkable

from mocksmith.call import CallFactory
from mocksmith.config import DEFAULT_CONFIG, MocksmithConfig, StubBehavior
from mocksmith.errors import UnknownStub
from mocksmith.matchers import MatcherFactory
from mocksmith.members import (
    CustomMember,
    InheritedMember,
    MemberDefinition,
    MemberDefinitionTable,
)
from mocksmith.rendering import AssertionRenderer
from mocksmith.specification import MockSpecification
from mocksmith.stub import Stub

_logger: Final[logging.Logger] = logging.getLogger(__name__)

STATE_ATTRIBUTE: Final = "__mocksmith_state__"
STUBS_ATTRIBUTE: Final = "__mocksmith_stubs__"

_NAMESPACE_DELIMITERS: Final = re.compile(r"[.\\]")


class Mock:
    """Marker base class of every synthesized mock class."""

    __slots__ = ()


@runtime_checkable
class Synthesizer(Protocol):
    def synthesize(self, specification: MockSpecification) -> type[Mock]:
        """Build the class described by a finalized specification."""
        ...


@final
class MockClassState:
    """
    What a synthesized class knows about itself: its name, members and custom
    properties, and the stubs of its static members.

    It holds no reference to the specification, so a cached class does not
    keep its specification alive.
    """

    __slots__ = (
        "type_name",
        "members",
        "properties",
        "call_factory",
        "matchers",
        "renderer",
        "stub_behavior",
        "_static_stubs",
        "_lock",
        "__weakref__",
    )

    def __init__(
        self,
        *,
        type_name: str,
        members: MemberDefinitionTable,
        properties: Mapping[str, object],
        call_factory: CallFactory,
        matchers: MatcherFactory,
        renderer: AssertionRenderer,
        stub_behavior: StubBehavior,
    ) -> None:
        self.type_name = type_name
        self.members = members
        self.properties = properties
        self.call_factory = call_factory
        self.matchers = matchers
        self.renderer = renderer
        self.stub_behavior = stub_behavior
        self._static_stubs: dict[str, Stub] = {}
        self._lock = threading.Lock()

    def _member(self, name: str, *, static: bool) -> MemberDefinition:
        member = self.members.get(name)
        if member is None or member.is_static != static:
            raise UnknownStub(self.type_name, name)
        return member

    def new_stub(self, member: MemberDefinition, receiver: object) -> Stub:
        if isinstance(member, CustomMember):
            implementation = member.callback
            forward_by_default = True
        else:
            assert isinstance(member, InheritedMember)
            implementation = member.implementation
            forward_by_default = (
                self.stub_behavior is StubBehavior.FORWARD and not member.is_abstract
            )
        return Stub(
            label=f"{self.type_name}.{member.name}",
            forward_by_default=forward_by_default,
            implementation=implementation,
            receiver=receiver,
            factory=self.call_factory,
            matchers=self.matchers,
            renderer=self.renderer,
        )

    def static_stub(self, mock_class: type, name: str) -> Stub:
        member = self._member(name, static=True)
        key = member.name.casefold()
        with self._lock:
            stub = self._static_stubs.get(key)
            if stub is None:
                receiver = mock_class if member.is_class_member else None
                stub = self._static_stubs[key] = self.new_stub(member, receiver)
            return stub

    def instance_stub(self, instance: object, name: str) -> Stub:
        member = self._member(name, static=False)
        key = member.name.casefold()
        stubs: dict[str, Stub] = instance.__dict__.setdefault(STUBS_ATTRIBUTE, {})
        stub = stubs.get(key)
        if stub is None:
            stub = stubs[key] = self.new_stub(member, instance)
        return stub


def _state_of(mock_class: type) -> MockClassState:
    state = getattr(mock_class, STATE_ATTRIBUTE, None)
    if not isinstance(state, MockClassState):
        raise TypeError(f"{mock_class!r} is not a mock class.")
    return state


def _signature(member: MemberDefinition, bound_name: str | None) -> inspect.Signature:
    parameters = [p.to_parameter() for p in member.parameters]
    if bound_name is not None:
        parameters.insert(
            0, inspect.Parameter(bound_name, inspect.Parameter.POSITIONAL_ONLY)
        )
    return inspect.Signature(parameters)


def _copy_metadata(
    route: Callable[..., Any],
    member: MemberDefinition,
    class_name: str,
    bound_name: str | None,
) -> None:
    route.__name__ = member.name
    route.__qualname__ = f"{class_name}.{member.name}"
    try:
        route.__signature__ = _signature(member, bound_name)  # type: ignore[attr-defined]
    except ValueError:
        _logger.debug("Keeping a variadic signature for %s", route.__qualname__)
    if isinstance(member, InheritedMember) and member.implementation is not None:
        route.__doc__ = member.implementation.__doc__


def _routing_attribute(
    member: MemberDefinition, class_name: str, class_cell: list[type]
) -> object:
    name = member.name
    if not member.is_static:

        def route_instance(self: object, /, *args: object, **kwargs: object) -> object:
            return _state_of(type(self)).instance_stub(self, name)(*args, **kwargs)

        _copy_metadata(route_instance, member, class_name, "self")
        return route_instance
    if member.is_class_member:

        def route_class(cls: type, /, *args: object, **kwargs: object) -> object:
            return _state_of(cls).static_stub(cls, name)(*args, **kwargs)

        _copy_metadata(route_class, member, class_name, "cls")
        return classmethod(route_class)

    def route_static(*args: object, **kwargs: object) -> object:
        (mock_class,) = class_cell
        return _state_of(mock_class).static_stub(mock_class, name)(*args, **kwargs)

    _copy_metadata(route_static, member, class_name, None)
    return staticmethod(route_static)


def _mock_init(self: object, /, *args: object, **kwargs: object) -> None:
    for name, value in _state_of(type(self)).properties.items():
        setattr(self, name, copy.deepcopy(value))


def _distinct_bases(specification: MockSpecification) -> tuple[type, ...]:
    contracts = [
        *([] if specification.base is None else [specification.base]),
        *specification.mixins,
        *specification.interfaces,
    ]
    targets = [contract.target for contract in contracts]
    bases = tuple(
        target
        for target in targets
        if not any(other is not target and issubclass(other, target) for other in targets)
    )
    return (*bases, Mock)


def _split_type_name(type_name: str) -> tuple[str, str | None]:
    *namespace, name = _NAMESPACE_DELIMITERS.split(type_name)
    return name, ".".join(namespace) or None


@final
class ClassSynthesizer:
    """
    Builds mock classes with :func:`types.new_class`.

    A specification is synthesized at most once; later requests return the
    same class.

    :param call_factory: Stamps the calls recorded by every stub.
    :param config: Stub behaviour and rendering settings.
    """

    __slots__ = ("call_factory", "config", "matchers", "renderer", "_classes", "_lock")

    def __init__(
        self,
        *,
        call_factory: CallFactory | None = None,
        config: MocksmithConfig = DEFAULT_CONFIG,
        matchers: MatcherFactory | None = None,
        renderer: AssertionRenderer | None = None,
    ) -> None:
        self.call_factory = CallFactory() if call_factory is None else call_factory
        self.config = config
        self.matchers = MatcherFactory() if matchers is None else matchers
        self.renderer = (
            AssertionRenderer(config.rendering) if renderer is None else renderer
        )
        self._classes: weakref.WeakKeyDictionary[MockSpecification, type[Mock]] = (
            weakref.WeakKeyDictionary()
        )
        self._lock = threading.Lock()

    def synthesize(self, specification: MockSpecification) -> type[Mock]:
        specification.finalize()
        with self._lock:
            mock_class = self._classes.get(specification)
            if mock_class is None:
                mock_class = self._classes[specification] = self._build(specification)
            return mock_class

    def _build(self, specification: MockSpecification) -> type[Mock]:
        type_name = specification.type_name
        class_name, module_name = _split_type_name(type_name)
        custom = specification.custom_definition
        members = specification.member_definitions
        state = MockClassState(
            type_name=type_name,
            members=members,
            properties=custom.properties,
            call_factory=self.call_factory,
            matchers=self.matchers,
            renderer=self.renderer,
            stub_behavior=self.config.stub_behavior,
        )
        class_cell: list[type] = []

        def populate(namespace: dict[str, Any]) -> None:
            namespace.update(custom.static_properties)
            namespace.update(custom.constants)
            for member in members.values():
                namespace[member.name] = _routing_attribute(
                    member, class_name, class_cell
                )
            namespace["__init__"] = _mock_init
            namespace["__module__"] = module_name or __name__
            namespace["__qualname__"] = class_name
            namespace[STATE_ATTRIBUTE] = state

        mock_class = types.new_class(
            class_name, _distinct_bases(specification), exec_body=populate
        )
        class_cell.append(mock_class)
        if getattr(mock_class, "__abstractmethods__", None):
            mock_class.__abstractmethods__ = frozenset()
        _logger.debug(
            "Synthesized %s with %d members from %s",
            type_name,
            len(members),
            [contract.name for contract in specification.contracts],
        )
        return mock_class


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True)
class MockFactory:
    """Creates mocks and looks up their stubs."""

    synthesizer: Synthesizer = field(default_factory=ClassSynthesizer)

    def create_mock_class(self, specification: MockSpecification) -> type[Mock]:
        return self.synthesizer.synthesize(specification)

    def create_mock(self, specification: MockSpecification) -> Any:
        """Instantiate a mock without calling the constructor of its base contract."""
        return self.create_mock_class(specification)()

    def create_partial_mock(
        self, specification: MockSpecification, *args: object, **kwargs: object
    ) -> Any:
        """
        Instantiate a mock and run the constructor of its base contract.

        Inherited members of a partial mock call their real implementation
        until a stub is configured otherwise.
        """
        mock_class = self.create_mock_class(specification)
        mock = mock_class()
        state = _state_of(mock_class)
        for member in specification.member_definitions.instance_members():
            if isinstance(member, InheritedMember) and not member.is_abstract:
                state.instance_stub(mock, member.name).forward_by_default = True
        super(mock_class, mock).__init__(*args, **kwargs)
        return mock

    def stub(self, mock: object, name: str) -> Stub:
        """
        :raises UnknownStub: If ``mock`` has no instance member called ``name``.
        """
        return _state_of(type(mock)).instance_stub(mock, name)

    def static_stub(self, mock_class: type | object, name: str) -> Stub:
        """
        :raises UnknownStub: If the mock class has no static member called ``name``.
        """
        if not isinstance(mock_class, type):
            mock_class = type(mock_class)
        return _state_of(mock_class).static_stub(mock_class, name)
