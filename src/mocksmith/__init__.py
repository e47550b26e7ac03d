"""
Test doubles synthesized from type contracts.

A :class:`MockSpecification` names the contracts a mock must satisfy (at most
one base class, any number of interfaces and mixins) and any custom members.
Finalizing it resolves one member per name, keeping the richest signature seen
across all contracts. A :class:`MockFactory` then synthesizes a class whose
members are routed to programmable :class:`Stub` instances, each recording
every :class:`Call` made against it.

Example::

    from typing import Protocol

    from mocksmith import MockFactory, MockSpecification

    class Greeter(Protocol):
        def greet(self, name: str) -> str: ...

    factory = MockFactory()
    greeter = factory.create_mock(MockSpecification().add_contracts(Greeter))
    factory.stub(greeter, "greet").returns("Hello, World!")

    assert greeter.greet("World") == "Hello, World!"
    factory.stub(greeter, "greet").assert_called_with("World")

Mocks can also be declared in ``*.mock.yaml``, ``*.mock.json`` or
``*.mock.toml`` files, see :mod:`mocksmith.specification_file`.
"""

from mocksmith.arguments import Arguments
from mocksmith.call import Call, CallFactory, SequenceCounter
from mocksmith.config import (
    DEFAULT_CONFIG,
    MocksmithConfig,
    NamingConfig,
    RenderingConfig,
    StubBehavior,
)
from mocksmith.contracts import (
    Contract,
    ContractIntrospector,
    ContractKind,
    ReflectionIntrospector,
    TypeContractSet,
    mixin,
)
from mocksmith.errors import (
    AlreadyCompleted,
    AlreadyResponded,
    CallStateError,
    InvalidContractReference,
    InvalidTypeName,
    MocksmithError,
    MultipleBaseContracts,
    NotSequenceCall,
    SealedContract,
    SpecificationFinalized,
    UndefinedArgument,
    UnknownStub,
    UnresolvableContract,
)
from mocksmith.matchers import ANY, Matcher, MatcherFactory, equal_to
from mocksmith.members import (
    CustomMember,
    InheritedMember,
    MemberDefinitionTable,
    resolve_members,
)
from mocksmith.rendering import AssertionRenderer
from mocksmith.specification import CustomDefinition, MockSpecification
from mocksmith.specification_directory import SpecificationDirectory
from mocksmith.specification_file import parse_specification_file
from mocksmith.stub import Stub
from mocksmith.synthesis import ClassSynthesizer, Mock, MockFactory, Synthesizer

__all__ = [
    "ANY",
    "AlreadyCompleted",
    "AlreadyResponded",
    "Arguments",
    "AssertionRenderer",
    "Call",
    "CallFactory",
    "CallStateError",
    "ClassSynthesizer",
    "Contract",
    "ContractIntrospector",
    "ContractKind",
    "CustomDefinition",
    "CustomMember",
    "DEFAULT_CONFIG",
    "InheritedMember",
    "InvalidContractReference",
    "InvalidTypeName",
    "Matcher",
    "MatcherFactory",
    "MemberDefinitionTable",
    "Mock",
    "MockFactory",
    "MockSpecification",
    "MocksmithConfig",
    "MocksmithError",
    "MultipleBaseContracts",
    "NamingConfig",
    "NotSequenceCall",
    "ReflectionIntrospector",
    "RenderingConfig",
    "SealedContract",
    "SequenceCounter",
    "SpecificationDirectory",
    "SpecificationFinalized",
    "Stub",
    "StubBehavior",
    "Synthesizer",
    "TypeContractSet",
    "UndefinedArgument",
    "UnknownStub",
    "UnresolvableContract",
    "equal_to",
    "mixin",
    "parse_specification_file",
    "resolve_members",
]
