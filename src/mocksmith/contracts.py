"""
Contracts: the source types a mock must satisfy.

A contract is introspected once into a :class:`Contract`, which records its
classification, whether it is sealed, and every member it exposes. The
:class:`TypeContractSet` then partitions a list of contracts into at most one
base, any number of interfaces and any number of mixins.
"""

import inspect
import logging
import pkgutil
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Final, Protocol, TypeVar, final, runtime_checkable

from mocksmith.errors import MultipleBaseContracts, SealedContract, UnresolvableContract

_logger: Final[logging.Logger] = logging.getLogger(__name__)

CONTRACT_KIND_ATTRIBUTE: Final = "__mocksmith_contract_kind__"

_Py_TPFLAGS_BASETYPE: Final = 1 << 10

CONSTRUCTOR_NAMES: Final = frozenset({"__init__", "__new__"})

PROXYABLE_SPECIAL_NAMES: Final = frozenset(
    {
        "__call__",
        "__iter__",
        "__next__",
        "__len__",
        "__contains__",
        "__getitem__",
        "__setitem__",
        "__delitem__",
        "__enter__",
        "__exit__",
        "__aenter__",
        "__aexit__",
        "__aiter__",
        "__anext__",
        "__bool__",
        "__str__",
        "__lt__",
        "__le__",
        "__gt__",
        "__ge__",
        "__add__",
        "__sub__",
        "__mul__",
        "__truediv__",
        "__floordiv__",
        "__mod__",
        "__pow__",
        "__and__",
        "__or__",
        "__xor__",
        "__lshift__",
        "__rshift__",
    }
)
"""
Special methods that are routed to stubs like ordinary members.

Other special methods (``__repr__``, ``__eq__``, ``__hash__``, attribute
access hooks and so on) keep their regular implementations so that mocks stay
printable, hashable and inspectable.
"""

_IGNORED_CLASSES: Final = frozenset({object, Protocol})


class ContractKind(Enum):
    BASE = auto()
    """
    An inheritable implementation. A mock extends at most one.
    """

    INTERFACE = auto()
    """
    A structural contract: a ``typing.Protocol`` or a purely abstract class.
    """

    MIXIN = auto()
    """
    A reusable bundle of members.
    """


class Visibility(Enum):
    PUBLIC = auto()
    PROTECTED = auto()
    """
    A single leading underscore.
    """

    PRIVATE = auto()
    """
    A name-mangled ``__name``. Private members are never proxied.
    """


class _NoDefault(Enum):
    NO_DEFAULT = auto()


NO_DEFAULT: Final = _NoDefault.NO_DEFAULT


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True)
class ParameterDescriptor:
    name: str
    kind: inspect._ParameterKind = inspect.Parameter.POSITIONAL_OR_KEYWORD
    annotation: object = None
    """
    The type constraint, or ``None`` when the parameter is not annotated.
    """

    default: object = NO_DEFAULT

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @property
    def is_variadic(self) -> bool:
        return self.kind in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        )

    @classmethod
    def from_parameter(cls, parameter: inspect.Parameter) -> "ParameterDescriptor":
        return cls(
            name=parameter.name,
            kind=parameter.kind,
            annotation=(
                None
                if parameter.annotation is inspect.Parameter.empty
                else parameter.annotation
            ),
            default=(
                NO_DEFAULT
                if parameter.default is inspect.Parameter.empty
                else parameter.default
            ),
        )

    def to_parameter(self) -> inspect.Parameter:
        return inspect.Parameter(
            self.name,
            self.kind,
            default=(
                inspect.Parameter.empty if self.default is NO_DEFAULT else self.default
            ),
            annotation=(
                inspect.Parameter.empty if self.annotation is None else self.annotation
            ),
        )


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True)
class MemberDescriptor:
    name: str
    parameters: tuple[ParameterDescriptor, ...] = ()
    """
    Parameters, excluding the bound ``self`` or ``cls``.
    """

    is_static: bool = False
    """
    ``staticmethod`` and ``classmethod`` members live in the static namespace.
    """

    is_class_member: bool = False
    visibility: Visibility = Visibility.PUBLIC
    is_sealed: bool = False
    is_constructor: bool = False
    is_abstract: bool = False
    origin: str | None = None
    """
    Name of the contract that declares this member.
    """

    implementation: Callable[..., Any] | None = None
    """
    The underlying function, with ``staticmethod``/``classmethod`` unwrapped.
    """

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def is_proxyable(self) -> bool:
        return (
            self.visibility is not Visibility.PRIVATE
            and not self.is_constructor
            and not self.is_sealed
        )


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True)
class Contract:
    name: str
    kind: ContractKind
    target: type
    is_sealed: bool = False
    members: tuple[MemberDescriptor, ...] = ()
    """
    Every callable member exposed by the contract, inherited ones included.
    """

    @property
    def short_name(self) -> str:
        return self.target.__name__


@runtime_checkable
class ContractIntrospector(Protocol):
    def introspect(self, reference: object) -> Contract:
        """
        Describe a contract given as a class, an instance, or a dotted name.

        A :class:`Contract` is returned as it is.

        :raises UnresolvableContract: If a name cannot be resolved.
        """
        ...


TClass = TypeVar("TClass", bound=type)


def mixin(cls: TClass) -> TClass:
    """Class decorator marking a class as a mixin contract."""
    setattr(cls, CONTRACT_KIND_ATTRIBUTE, ContractKind.MIXIN)
    return cls


def qualified_name(cls: type) -> str:
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def _visibility(name: str) -> Visibility:
    if name.startswith("__") and not name.endswith("__"):
        return Visibility.PRIVATE
    if name.startswith("_"):
        return Visibility.PROTECTED
    return Visibility.PUBLIC


def _is_private_mangled(name: str, owner: type) -> bool:
    return name.startswith(f"_{owner.__name__.lstrip('_')}__")


def _is_sealed_type(cls: type) -> bool:
    if getattr(cls, "__final__", False):
        return True
    return not cls.__flags__ & _Py_TPFLAGS_BASETYPE


def _is_interface(cls: type) -> bool:
    if getattr(cls, "_is_protocol", False):
        return True
    if not inspect.isabstract(cls):
        return False
    abstract_names = getattr(cls, "__abstractmethods__", frozenset())
    for name, _ in _iterate_raw_members(cls):
        if _visibility(name) is Visibility.PUBLIC and name not in abstract_names:
            return False
    return True


def _iterate_raw_members(cls: type) -> Iterator[tuple[str, tuple[type, object]]]:
    """Yield each callable attribute once, as declared by its most derived owner."""
    seen: set[str] = set()
    for owner in inspect.getmro(cls):
        if owner in _IGNORED_CLASSES or owner.__module__ in ("abc", "typing"):
            continue
        for name, raw in vars(owner).items():
            if name in seen:
                continue
            seen.add(name)
            if isinstance(raw, (staticmethod, classmethod)) or inspect.isfunction(raw):
                yield name, (owner, raw)


def _describe_member(name: str, owner: type, raw: object) -> MemberDescriptor | None:
    if name.startswith("__") and name.endswith("__"):
        if name not in PROXYABLE_SPECIAL_NAMES and name not in CONSTRUCTOR_NAMES:
            return None
    is_static = isinstance(raw, (staticmethod, classmethod))
    is_class_member = isinstance(raw, classmethod)
    function = raw.__func__ if is_static else raw  # type: ignore[union-attr]
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        _logger.debug("Skipping %s.%s: no signature available", owner.__qualname__, name)
        return None
    parameters = tuple(signature.parameters.values())
    if parameters and (is_class_member or not is_static):
        parameters = parameters[1:]
    return MemberDescriptor(
        name=name,
        parameters=tuple(ParameterDescriptor.from_parameter(p) for p in parameters),
        is_static=is_static,
        is_class_member=is_class_member,
        visibility=(
            Visibility.PRIVATE
            if _is_private_mangled(name, owner)
            else _visibility(name)
        ),
        is_sealed=bool(getattr(function, "__final__", False)),
        is_constructor=name in CONSTRUCTOR_NAMES,
        is_abstract=bool(getattr(function, "__isabstractmethod__", False)),
        origin=qualified_name(owner),
        implementation=function,  # type: ignore[arg-type]
    )


def describe_members(cls: type) -> tuple[MemberDescriptor, ...]:
    members: list[MemberDescriptor] = []
    for name, (owner, raw) in _iterate_raw_members(cls):
        descriptor = _describe_member(name, owner, raw)
        if descriptor is not None:
            members.append(descriptor)
    return tuple(members)


def classify_type(cls: type) -> ContractKind:
    explicit = cls.__dict__.get(CONTRACT_KIND_ATTRIBUTE)
    if isinstance(explicit, ContractKind):
        return explicit
    if _is_interface(cls):
        return ContractKind.INTERFACE
    if cls.__name__.endswith("Mixin"):
        return ContractKind.MIXIN
    return ContractKind.BASE


@final
class ReflectionIntrospector:
    """
    Introspects live Python classes with :mod:`inspect`.

    Names are resolved with :func:`pkgutil.resolve_name`, so both
    ``"package.module.Class"`` and ``"package.module:Class"`` are accepted.
    Descriptions are cached per class.
    """

    __slots__ = ("_cache",)

    def __init__(self) -> None:
        self._cache: dict[type, Contract] = {}

    def introspect(self, reference: object) -> Contract:
        if isinstance(reference, Contract):
            return reference
        cls = self.resolve(reference)
        cached = self._cache.get(cls)
        if cached is not None:
            return cached
        contract = Contract(
            name=qualified_name(cls),
            kind=classify_type(cls),
            target=cls,
            is_sealed=_is_sealed_type(cls),
            members=describe_members(cls),
        )
        self._cache[cls] = contract
        return contract

    @staticmethod
    def resolve(reference: object) -> type:
        if isinstance(reference, str):
            try:
                resolved = pkgutil.resolve_name(reference.replace("\\", "."))
            except (ImportError, AttributeError, ValueError) as e:
                raise UnresolvableContract(reference, e) from e
            if not isinstance(resolved, type):
                raise UnresolvableContract(reference)
            return resolved
        if isinstance(reference, type):
            return reference
        return type(reference)


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True)
class TypeContractSet:
    """Contracts partitioned by kind, each tuple in first-requested order."""

    base: Contract | None = None
    interfaces: tuple[Contract, ...] = ()
    mixins: tuple[Contract, ...] = ()

    @property
    def contracts(self) -> tuple[Contract, ...]:
        """All contracts: the base first, then interfaces, then mixins."""
        base = () if self.base is None else (self.base,)
        return (*base, *self.interfaces, *self.mixins)

    @classmethod
    def classify(
        cls,
        references: Iterable[object],
        introspector: ContractIntrospector,
    ) -> "TypeContractSet":
        """
        Resolve and partition contracts.

        :raises UnresolvableContract: If a reference cannot be resolved.
        :raises SealedContract: If a contract is sealed.
        :raises MultipleBaseContracts: If more than one base is requested.
        """
        contracts = [introspector.introspect(reference) for reference in references]
        for contract in contracts:
            if contract.is_sealed:
                raise SealedContract(contract.name)

        bases = [c for c in contracts if c.kind is ContractKind.BASE]
        if len(bases) > 1:
            raise MultipleBaseContracts([c.name for c in bases])

        result = cls(
            base=bases[0] if bases else None,
            interfaces=tuple(c for c in contracts if c.kind is ContractKind.INTERFACE),
            mixins=tuple(c for c in contracts if c.kind is ContractKind.MIXIN),
        )
        _logger.debug(
            "Classified contracts: base=%s interfaces=%s mixins=%s",
            None if result.base is None else result.base.name,
            [c.name for c in result.interfaces],
            [c.name for c in result.mixins],
        )
        return result

    def names(self) -> Sequence[str]:
        return tuple(contract.name for contract in self.contracts)
