"""Tests for the mock specification builder."""

import re

import pytest

from mocksmith import (
    CustomDefinition,
    CustomMember,
    InvalidContractReference,
    InvalidTypeName,
    MockSpecification,
    MultipleBaseContracts,
    NamingConfig,
    SealedContract,
    SpecificationFinalized,
    UnresolvableContract,
)
from mocksmith.config import MocksmithConfig
from mocksmith.specification import generate_type_name, validate_type_name
from tests.fixtures.contracts import (
    Account,
    Named,
    Repository,
    Sealed,
    Serializable,
    TimestampMixin,
    User,
    Widget,
)


class TestAddContracts:
    """Contracts are resolved, de-duplicated and classified as they are added."""

    def test_accepts_classes_names_and_instances(self) -> None:
        specification = MockSpecification().add_contracts(
            User, "tests.fixtures.contracts.Widget", TimestampMixin()
        )
        assert [c.target for c in specification.contracts] == [
            User,
            Widget,
            TimestampMixin,
        ]
        assert specification.base is not None
        assert specification.base.target is User
        assert [c.target for c in specification.interfaces] == [Widget]
        assert [c.target for c in specification.mixins] == [TimestampMixin]

    def test_adding_twice_has_no_effect(self) -> None:
        specification = MockSpecification().add_contracts(User, Widget)
        specification.add_contracts("tests.fixtures.contracts.User", [Widget])
        assert [c.target for c in specification.contracts] == [User, Widget]

    def test_nested_specifications_are_flattened(self) -> None:
        inner = MockSpecification().add_contracts(Widget, Serializable)
        outer = MockSpecification().add_contracts(User, inner)
        assert [c.target for c in outer.contracts] == [User, Widget, Serializable]

    @pytest.mark.parametrize("reference", [None, True, 1, 1.5, b"User"])
    def test_rejects_scalars(self, reference: object) -> None:
        with pytest.raises(InvalidContractReference):
            MockSpecification().add_contracts(reference)

    def test_unresolvable(self) -> None:
        with pytest.raises(UnresolvableContract):
            MockSpecification().add_contracts("tests.fixtures.contracts.Nope")

    def test_sealed(self) -> None:
        with pytest.raises(SealedContract):
            MockSpecification().add_contracts(Sealed)

    def test_two_bases_fail_and_leave_the_specification_unchanged(self) -> None:
        specification = MockSpecification().add_contracts(User)
        with pytest.raises(MultipleBaseContracts) as excinfo:
            specification.add_contracts(Account)
        assert excinfo.value.names == (
            "tests.fixtures.contracts.User",
            "tests.fixtures.contracts.Account",
        )
        assert [c.target for c in specification.contracts] == [User]


class TestDefine:
    """Custom members are declared by mapping or by explicit structure."""

    def test_declarator_tokens(self) -> None:
        def helper() -> None:
            pass

        specification = MockSpecification().define(
            {
                "refresh": helper,
                "static create": helper,
                "function placeholder": None,
                "static function build": None,
                "cache": {},
                "var handler": helper,
                "static registry": [],
                "const TABLE": "users",
            }
        )
        definition = specification.custom_definition
        assert dict(definition.methods) == {"refresh": helper, "placeholder": None}
        assert dict(definition.static_methods) == {"create": helper, "build": None}
        assert dict(definition.properties) == {"cache": {}, "handler": helper}
        assert dict(definition.static_properties) == {"registry": []}
        assert dict(definition.constants) == {"TABLE": "users"}

    def test_classes_are_properties(self) -> None:
        specification = MockSpecification().define({"model": User})
        assert dict(specification.custom_definition.properties) == {"model": User}

    def test_explicit_structure(self) -> None:
        specification = MockSpecification().define(
            CustomDefinition(methods={"refresh": None}, constants={"LIMIT": 3})
        )
        assert dict(specification.custom_definition.methods) == {"refresh": None}
        assert dict(specification.custom_definition.constants) == {"LIMIT": 3}

    def test_single_entry_forms(self) -> None:
        specification = (
            MockSpecification()
            .add_method("refresh")
            .add_static_method("create")
            .add_property("cache", {})
            .add_static_property("registry", [])
            .add_constant("TABLE", "users")
        )
        definition = specification.custom_definition
        assert list(definition.methods) == ["refresh"]
        assert list(definition.static_methods) == ["create"]
        assert list(definition.properties) == ["cache"]
        assert list(definition.static_properties) == ["registry"]
        assert list(definition.constants) == ["TABLE"]

    def test_function_token_requires_a_callable(self) -> None:
        with pytest.raises(TypeError):
            MockSpecification().define({"function refresh": 3})


class TestNaming:
    def test_explicit_name(self) -> None:
        assert MockSpecification().named("Widget").type_name == "Widget"

    @pytest.mark.parametrize("name", ["App\\Models\\UserMock", "app.mocks.UserMock", "_Mock1"])
    def test_valid_names(self, name: str) -> None:
        assert validate_type_name(name) == name

    @pytest.mark.parametrize(
        "name", ["", "1Mock", "App\\\\Mock", "App.", "Mock Name", ".Mock", "a-b"]
    )
    def test_invalid_names(self, name: str) -> None:
        with pytest.raises(InvalidTypeName):
            MockSpecification().named(name)

    def test_none_restores_the_generated_name(self) -> None:
        specification = MockSpecification(identity=1).add_contracts(User)
        specification.named("Custom").named(None)
        assert specification.type_name == "MocksmithMock_User_1"
        assert not specification.has_explicit_name

    def test_generated_name_uses_the_last_segment_and_identity(self) -> None:
        assert generate_type_name("App\\Models\\User", 42).endswith("_User_42")

    def test_generated_name_prefers_the_base(self) -> None:
        specification = MockSpecification(identity=7).add_contracts(Widget, User)
        assert specification.type_name == "MocksmithMock_User_7"

    def test_generated_name_falls_back_to_interfaces_then_mixins(self) -> None:
        assert (
            MockSpecification(identity=1).add_contracts(TimestampMixin, Repository).type_name
            == "MocksmithMock_Repository_1"
        )
        assert (
            MockSpecification(identity=1).add_contracts(TimestampMixin).type_name
            == "MocksmithMock_TimestampMixin_1"
        )

    def test_generated_name_without_contracts(self) -> None:
        assert MockSpecification(identity=5).type_name == "MocksmithMock_5"

    def test_random_suffix(self) -> None:
        naming = NamingConfig(prefix="Double", random_suffix_length=6)
        specification = MockSpecification(config=MocksmithConfig(naming=naming))
        specification.add_contracts(User)
        assert re.fullmatch(r"Double_User_[0-9a-f]{6}", specification.type_name)
        assert specification.type_name == specification.type_name


class TestFinalize:
    """Finalizing freezes the specification and resolves its members once."""

    def test_finalize_is_idempotent(self) -> None:
        specification = MockSpecification().add_contracts(User)
        first = specification.finalize().member_definitions
        second = specification.finalize().member_definitions
        assert first is second
        assert specification.is_finalized

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda s: s.add_contracts(Widget),
            lambda s: s.define({"x": 1}),
            lambda s: s.add_method("x"),
            lambda s: s.add_static_method("x"),
            lambda s: s.add_property("x"),
            lambda s: s.add_static_property("x"),
            lambda s: s.add_constant("X", 1),
            lambda s: s.named("Other"),
        ],
    )
    def test_mutation_after_finalize_fails(self, mutate) -> None:  # type: ignore[no-untyped-def]
        specification = MockSpecification().finalize()
        with pytest.raises(SpecificationFinalized):
            mutate(specification)

    def test_reading_members_finalizes(self) -> None:
        specification = MockSpecification().add_method("refresh")
        assert isinstance(specification.member_definitions["refresh"], CustomMember)
        assert specification.is_finalized

    def test_interface_only_specification(self) -> None:
        specification = MockSpecification().add_contracts(Widget).named("Widget").finalize()
        assert specification.type_name == "Widget"
        assert list(specification.member_definitions) == ["render", "resize"]

    def test_same_arity_tie_follows_requested_order(self) -> None:
        specification = MockSpecification().add_contracts(Named, User)
        assert specification.interfaces[0].target is Named
        greet = specification.member_definitions["greet"]
        assert greet.origin == "tests.fixtures.contracts.Named"
        assert [p.name for p in greet.parameters] == ["name"]

    def test_base_requested_first_wins_a_tie(self) -> None:
        greet = MockSpecification().add_contracts(User, Named).member_definitions["greet"]
        assert greet.origin == "tests.fixtures.contracts.User"
