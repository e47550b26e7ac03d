"""Tests for the error taxonomy."""

import pytest

from mocksmith import (
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


class TestHierarchy:
    """Every error is both a mocksmith error and the closest built-in error."""

    @pytest.mark.parametrize(
        ("error", "builtin"),
        [
            (SpecificationFinalized(), RuntimeError),
            (InvalidContractReference(None), TypeError),
            (UnresolvableContract("a.B"), LookupError),
            (SealedContract("a.B"), TypeError),
            (MultipleBaseContracts(["a.B", "a.C"]), TypeError),
            (InvalidTypeName("1B"), ValueError),
            (UndefinedArgument(0), IndexError),
            (AlreadyResponded(), CallStateError),
            (AlreadyCompleted(), RuntimeError),
            (NotSequenceCall(), RuntimeError),
            (UnknownStub("Widget", "render"), AttributeError),
        ],
    )
    def test_bases(self, error: MocksmithError, builtin: type[Exception]) -> None:
        assert isinstance(error, MocksmithError)
        assert isinstance(error, builtin)


class TestMessages:
    def test_multiple_base_contracts(self) -> None:
        error = MultipleBaseContracts(["app.User", "app.Account"])
        assert str(error) == (
            "Unable to extend 'app.User', 'app.Account'. Multiple base contracts requested."
        )

    def test_unknown_stub(self) -> None:
        error = UnknownStub("Widget", "render")
        assert str(error) == "No stub defined for method Widget.render()."
        assert error.member_name == "render"

    def test_unresolvable_contract_with_cause(self) -> None:
        error = UnresolvableContract("a.B", ImportError("No module named 'a'"))
        assert str(error) == "Unable to resolve contract 'a.B'. No module named 'a'"

    def test_invalid_contract_reference(self) -> None:
        assert str(InvalidContractReference(3)) == "Unable to add contract 3 of type int."
