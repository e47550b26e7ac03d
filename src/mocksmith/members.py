import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Final, final, override

from mocksmith.contracts import Contract, MemberDescriptor, ParameterDescriptor

_logger: Final[logging.Logger] = logging.getLogger(__name__)


class MemberDefinition(ABC):
    """A callable slot of a synthesized type."""

    __slots__ = ()

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def is_static(self) -> bool: ...

    @property
    @abstractmethod
    def is_class_member(self) -> bool: ...

    @property
    @abstractmethod
    def parameters(self) -> tuple[ParameterDescriptor, ...]: ...

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def signature(self) -> inspect.Signature:
        """The signature of the member as seen by callers, without ``self`` or ``cls``."""
        return inspect.Signature([p.to_parameter() for p in self.parameters])


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True)
class InheritedMember(MemberDefinition):
    """Forwards to a real implementation on a base or mixin contract."""

    descriptor: MemberDescriptor

    @property
    @override
    def name(self) -> str:
        return self.descriptor.name

    @property
    @override
    def is_static(self) -> bool:
        return self.descriptor.is_static

    @property
    @override
    def is_class_member(self) -> bool:
        return self.descriptor.is_class_member

    @property
    @override
    def parameters(self) -> tuple[ParameterDescriptor, ...]:
        return self.descriptor.parameters

    @property
    def origin(self) -> str | None:
        return self.descriptor.origin

    @property
    def implementation(self) -> Callable[..., Any] | None:
        return self.descriptor.implementation

    @property
    def is_abstract(self) -> bool:
        return self.descriptor.is_abstract


def _callback_parameters(
    callback: Callable[..., Any] | None, *, bound: bool
) -> tuple[ParameterDescriptor, ...]:
    if callback is None:
        return (
            ParameterDescriptor(name="args", kind=inspect.Parameter.VAR_POSITIONAL),
            ParameterDescriptor(name="kwargs", kind=inspect.Parameter.VAR_KEYWORD),
        )
    try:
        parameters = tuple(inspect.signature(callback).parameters.values())
    except (TypeError, ValueError):
        return _callback_parameters(None, bound=bound)
    if bound and parameters and parameters[0].kind in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    ):
        parameters = parameters[1:]
    return tuple(ParameterDescriptor.from_parameter(p) for p in parameters)


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True)
class CustomMember(MemberDefinition):
    """
    A user-declared member.

    An instance member's callback receives the mock as its first argument, like
    a method; a static member's callback receives only the call arguments.
    Without a callback the member does nothing and returns ``None``.
    """

    member_name: str
    callback: Callable[..., Any] | None = None
    static: bool = False

    @property
    @override
    def name(self) -> str:
        return self.member_name

    @property
    @override
    def is_static(self) -> bool:
        return self.static

    @property
    @override
    def is_class_member(self) -> bool:
        return False

    @property
    @override
    def parameters(self) -> tuple[ParameterDescriptor, ...]:
        return _callback_parameters(self.callback, bound=not self.static)


@final
@dataclass(frozen=True, slots=True, weakref_slot=True)
class MemberDefinitionTable(Mapping[str, MemberDefinition]):
    """
    The resolved members of a mock, one per case-insensitive name, sorted by name.

    Lookups are case-insensitive; iteration yields each member's own name.
    """

    members: tuple[MemberDefinition, ...] = ()
    _index: Mapping[str, MemberDefinition] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_index", {member.name.casefold(): member for member in self.members}
        )

    def __getitem__(self, name: str) -> MemberDefinition:
        return self._index[name.casefold()]

    def __iter__(self) -> Iterator[str]:
        return (member.name for member in self.members)

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._index

    def static_members(self) -> tuple[MemberDefinition, ...]:
        return tuple(member for member in self.members if member.is_static)

    def instance_members(self) -> tuple[MemberDefinition, ...]:
        return tuple(member for member in self.members if not member.is_static)

    def custom_members(self) -> tuple[CustomMember, ...]:
        return tuple(m for m in self.members if isinstance(m, CustomMember))

    def inherited_members(self) -> tuple[InheritedMember, ...]:
        return tuple(m for m in self.members if isinstance(m, InheritedMember))


def _same_shape(left: MemberDescriptor, right: MemberDescriptor) -> bool:
    return [(p.name, p.kind) for p in left.parameters] == [
        (p.name, p.kind) for p in right.parameters
    ]


def resolve_members(
    contracts: Iterable[Contract],
    custom_methods: Mapping[str, Callable[..., Any] | None],
    custom_static_methods: Mapping[str, Callable[..., Any] | None],
) -> MemberDefinitionTable:
    """
    Merge inherited and custom members into one table.

    For each case-insensitive name the inherited member with the most
    parameters wins; on equal arity the first contract wins, so an override is
    never narrower than any definition it replaces. Custom static members then
    replace inherited members of the same name, and custom instance members
    replace both.

    :param contracts: Contracts in the order they were requested.
    :param custom_methods: Custom instance members by name.
    :param custom_static_methods: Custom static members by name.
    :return: The sorted member table.
    """
    members: dict[str, MemberDefinition] = {}
    for contract in contracts:
        for descriptor in contract.members:
            if not descriptor.is_proxyable:
                continue
            key = descriptor.name.casefold()
            existing = members.get(key)
            if existing is None:
                members[key] = InheritedMember(descriptor=descriptor)
                continue
            assert isinstance(existing, InheritedMember)
            if descriptor.arity > existing.arity:
                members[key] = InheritedMember(descriptor=descriptor)
            elif descriptor.arity == existing.arity and not _same_shape(
                descriptor, existing.descriptor
            ):
                _logger.debug(
                    "Member %r from %s has the same arity as the one from %s but a "
                    "different parameter list; keeping the latter",
                    descriptor.name,
                    descriptor.origin,
                    existing.origin,
                )

    for name, callback in custom_static_methods.items():
        members[name.casefold()] = CustomMember(
            member_name=name, callback=callback, static=True
        )
    for name, callback in custom_methods.items():
        members[name.casefold()] = CustomMember(member_name=name, callback=callback)

    table = MemberDefinitionTable(
        tuple(sorted(members.values(), key=lambda member: member.name))
    )
    _logger.debug("Resolved %d member definitions", len(table))
    return table
