"""
The mock specification builder.

A :class:`MockSpecification` collects contracts and custom members, then is
finalized into an immutable :class:`~mocksmith.members.MemberDefinitionTable`
that a synthesizer turns into a class.

Example::

    specification = (
        MockSpecification(identity=42)
        .add_contracts(Repository, TimestampMixin)
        .add_method("refresh")
        .add_constant("TABLE", "users")
        .finalize()
    )
"""

import logging
import re
import secrets
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final, Self, final

from mocksmith.config import DEFAULT_CONFIG, MocksmithConfig, NamingConfig
from mocksmith.contracts import (
    Contract,
    ContractIntrospector,
    ReflectionIntrospector,
    TypeContractSet,
)
from mocksmith.errors import (
    InvalidContractReference,
    InvalidTypeName,
    SpecificationFinalized,
)
from mocksmith.members import MemberDefinitionTable, resolve_members

_logger: Final[logging.Logger] = logging.getLogger(__name__)

SYMBOL_PATTERN: Final = re.compile(r"[^\W\d]\w*(?:[.\\][^\W\d]\w*)*")
"""
Identifier segments joined by single ``.`` or ``\\`` delimiters.
"""

_SEGMENT_DELIMITERS: Final = re.compile(r"[._\\]")

_SCALAR_TYPES: Final = (bool, int, float, complex, bytes, bytearray)

_STATIC_TOKEN: Final = "static"
_FUNCTION_TOKEN: Final = "function"
_PROPERTY_TOKEN: Final = "var"
_CONSTANT_TOKEN: Final = "const"


@final
@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True)
class CustomDefinition:
    """Custom members, one mapping per kind of slot."""

    methods: Mapping[str, Callable[..., Any] | None] = field(default_factory=dict)
    static_methods: Mapping[str, Callable[..., Any] | None] = field(
        default_factory=dict
    )
    properties: Mapping[str, object] = field(default_factory=dict)
    static_properties: Mapping[str, object] = field(default_factory=dict)
    constants: Mapping[str, object] = field(default_factory=dict)


def validate_type_name(name: str) -> str:
    """
    :raises InvalidTypeName: If ``name`` is not a valid symbol.
    """
    if not isinstance(name, str) or SYMBOL_PATTERN.fullmatch(name) is None:
        raise InvalidTypeName(name)
    return name


def generate_type_name(
    subject: str | None,
    identity: int | None = None,
    naming: NamingConfig = DEFAULT_CONFIG.naming,
) -> str:
    """
    Compose a type name for a mock.

    :param subject: Name of the contract the mock is mostly about. Only its
        last ``.``, ``\\`` or ``_`` delimited segment is used.
    :param identity: Deterministic suffix. A random hexadecimal suffix is used
        when omitted.
    :param naming: The prefix and random suffix length.
    """
    parts = [naming.prefix]
    if subject is not None:
        parts.append(_SEGMENT_DELIMITERS.split(subject)[-1])
    if identity is None:
        length = naming.random_suffix_length
        parts.append(secrets.token_hex((length + 1) // 2)[:length])
    else:
        parts.append(str(identity))
    return "_".join(parts)


def _parse_declarator(declarator: str) -> tuple[frozenset[str], str]:
    *tokens, name = declarator.split()
    return frozenset(token.casefold() for token in tokens), name


def _is_invokable(value: object) -> bool:
    return callable(value) and not isinstance(value, type)


@final
@dataclass(kw_only=True, slots=True, weakref_slot=True, eq=False)
class MockSpecification:
    """
    Mutable description of a mock type.

    Every mutating method returns the specification itself and raises
    :class:`~mocksmith.errors.SpecificationFinalized` once :meth:`finalize`
    has been called.
    """

    identity: int | None = None
    """
    Deterministic suffix of the generated type name.
    """

    introspector: ContractIntrospector = field(default_factory=ReflectionIntrospector)
    config: MocksmithConfig = DEFAULT_CONFIG

    _contracts: list[Contract] = field(default_factory=list, init=False)
    _contract_set: TypeContractSet = field(default_factory=TypeContractSet, init=False)
    _methods: dict[str, Callable[..., Any] | None] = field(
        default_factory=dict, init=False
    )
    _static_methods: dict[str, Callable[..., Any] | None] = field(
        default_factory=dict, init=False
    )
    _properties: dict[str, object] = field(default_factory=dict, init=False)
    _static_properties: dict[str, object] = field(default_factory=dict, init=False)
    _constants: dict[str, object] = field(default_factory=dict, init=False)
    _explicit_name: str | None = field(default=None, init=False)
    _generated_name: str | None = field(default=None, init=False)
    _member_definitions: MemberDefinitionTable | None = field(default=None, init=False)

    def _check_mutable(self) -> None:
        if self._member_definitions is not None:
            raise SpecificationFinalized()

    def _flatten(self, references: Iterable[object]) -> list[object]:
        flattened: list[object] = []
        for reference in references:
            if reference is None or isinstance(reference, _SCALAR_TYPES):
                raise InvalidContractReference(reference)
            if isinstance(reference, MockSpecification):
                flattened.extend(reference._contracts)
            elif isinstance(reference, (list, tuple, set, frozenset)):
                flattened.extend(self._flatten(reference))
            else:
                flattened.append(reference)
        return flattened

    def add_contracts(self, *references: object) -> Self:
        """
        Add contracts the mock must satisfy.

        A reference is a class, an instance (its class is used), a dotted
        name, a :class:`~mocksmith.contracts.Contract`, another specification
        (its contracts are added) or a list of those. Adding a contract twice
        has no effect.

        :raises InvalidContractReference: For ``None``, booleans, numbers and bytes.
        :raises UnresolvableContract: If a name cannot be resolved.
        :raises SealedContract: If a contract is final.
        :raises MultipleBaseContracts: If more than one base contract would result.
        """
        self._check_mutable()
        contracts = list(self._contracts)
        targets = {contract.target for contract in contracts}
        for reference in self._flatten(references):
            contract = self.introspector.introspect(reference)
            if contract.target not in targets:
                targets.add(contract.target)
                contracts.append(contract)
        self._contract_set = TypeContractSet.classify(contracts, self.introspector)
        self._contracts = contracts
        self._generated_name = None
        return self

    def define(self, definition: CustomDefinition | Mapping[str, object]) -> Self:
        """
        Add custom members.

        A mapping is keyed by declarators: the member name, optionally
        preceded by whitespace separated ``static``, ``function``, ``var`` or
        ``const`` tokens. Without ``function``, ``var`` or ``const``, callable
        values become methods and other values become properties.
        """
        self._check_mutable()
        if not isinstance(definition, CustomDefinition):
            definition = self._parse_definition(definition)
        self._methods.update(definition.methods)
        self._static_methods.update(definition.static_methods)
        self._properties.update(definition.properties)
        self._static_properties.update(definition.static_properties)
        self._constants.update(definition.constants)
        return self

    @staticmethod
    def _parse_definition(definition: Mapping[str, object]) -> CustomDefinition:
        methods: dict[str, Callable[..., Any] | None] = {}
        static_methods: dict[str, Callable[..., Any] | None] = {}
        properties: dict[str, object] = {}
        static_properties: dict[str, object] = {}
        constants: dict[str, object] = {}
        for declarator, value in definition.items():
            tokens, name = _parse_declarator(declarator)
            is_static = _STATIC_TOKEN in tokens
            if _CONSTANT_TOKEN in tokens:
                constants[name] = value
            elif _FUNCTION_TOKEN in tokens or (
                _PROPERTY_TOKEN not in tokens and _is_invokable(value)
            ):
                if value is not None and not callable(value):
                    raise TypeError(
                        f"Custom method {name!r} must be callable, got {value!r}."
                    )
                (static_methods if is_static else methods)[name] = value  # type: ignore[assignment]
            elif is_static:
                static_properties[name] = value
            else:
                properties[name] = value
        return CustomDefinition(
            methods=methods,
            static_methods=static_methods,
            properties=properties,
            static_properties=static_properties,
            constants=constants,
        )

    def add_method(self, name: str, callback: Callable[..., Any] | None = None) -> Self:
        self._check_mutable()
        self._methods[name] = callback
        return self

    def add_static_method(
        self, name: str, callback: Callable[..., Any] | None = None
    ) -> Self:
        self._check_mutable()
        self._static_methods[name] = callback
        return self

    def add_property(self, name: str, value: object = None) -> Self:
        self._check_mutable()
        self._properties[name] = value
        return self

    def add_static_property(self, name: str, value: object = None) -> Self:
        self._check_mutable()
        self._static_properties[name] = value
        return self

    def add_constant(self, name: str, value: object) -> Self:
        self._check_mutable()
        self._constants[name] = value
        return self

    def named(self, name: str | None) -> Self:
        """
        Set the type name, or restore the generated one with ``None``.

        :raises InvalidTypeName: If ``name`` is not a valid symbol.
        """
        self._check_mutable()
        self._explicit_name = None if name is None else validate_type_name(name)
        return self

    def finalize(self) -> Self:
        """Freeze the specification and resolve its members. Calling it again does nothing."""
        if self._member_definitions is not None:
            return self
        # Requested order decides same-arity ties.
        self._member_definitions = resolve_members(
            self._contracts, self._methods, self._static_methods
        )
        _logger.debug(
            "Finalized %s with %d contracts and %d members",
            self.type_name,
            len(self._contracts),
            len(self._member_definitions),
        )
        return self

    @property
    def is_finalized(self) -> bool:
        return self._member_definitions is not None

    @property
    def member_definitions(self) -> MemberDefinitionTable:
        """The resolved members. Reading them finalizes the specification."""
        self.finalize()
        assert self._member_definitions is not None
        return self._member_definitions

    @property
    def type_name(self) -> str:
        if self._explicit_name is not None:
            return self._explicit_name
        if self._generated_name is None:
            self._generated_name = generate_type_name(
                self._subject_name(), self.identity, self.config.naming
            )
        return self._generated_name

    @property
    def has_explicit_name(self) -> bool:
        return self._explicit_name is not None

    def _subject_name(self) -> str | None:
        contract_set = self._contract_set
        if contract_set.base is not None:
            return contract_set.base.name
        if contract_set.interfaces:
            return contract_set.interfaces[0].name
        if contract_set.mixins:
            return contract_set.mixins[0].name
        return None

    @property
    def contracts(self) -> tuple[Contract, ...]:
        """Contracts in the order they were added."""
        return tuple(self._contracts)

    @property
    def contract_set(self) -> TypeContractSet:
        return self._contract_set

    @property
    def base(self) -> Contract | None:
        return self._contract_set.base

    @property
    def interfaces(self) -> tuple[Contract, ...]:
        return self._contract_set.interfaces

    @property
    def mixins(self) -> tuple[Contract, ...]:
        return self._contract_set.mixins

    @property
    def custom_definition(self) -> CustomDefinition:
        return CustomDefinition(
            methods=MappingProxyType(dict(self._methods)),
            static_methods=MappingProxyType(dict(self._static_methods)),
            properties=MappingProxyType(dict(self._properties)),
            static_properties=MappingProxyType(dict(self._static_properties)),
            constants=MappingProxyType(dict(self._constants)),
        )
