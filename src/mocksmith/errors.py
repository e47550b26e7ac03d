"""
Exceptions raised by mocksmith.

Every error derives from :class:`MocksmithError` and from the closest built-in
exception, so callers may catch either.
"""

from collections.abc import Sequence
from typing import Final


class MocksmithError(Exception):
    """Base class for all mocksmith errors."""


class SpecificationFinalized(MocksmithError, RuntimeError):
    """A mock specification was mutated after it was finalized."""

    def __init__(self) -> None:
        super().__init__("The mock specification has already been finalized.")


class InvalidContractReference(MocksmithError, TypeError):
    """A contract reference is neither a name, a class, an instance nor a specification."""

    def __init__(self, reference: object) -> None:
        self.reference: Final = reference
        super().__init__(
            f"Unable to add contract {reference!r} of type {type(reference).__name__}."
        )


class UnresolvableContract(MocksmithError, LookupError):
    """A contract name could not be resolved to a class."""

    def __init__(self, name: str, cause: BaseException | None = None) -> None:
        self.name: Final = name
        message = f"Unable to resolve contract {name!r}."
        if cause is not None:
            message = f"{message} {cause}"
        super().__init__(message)


class SealedContract(MocksmithError, TypeError):
    """A contract marked final cannot be the source of a mock."""

    def __init__(self, name: str) -> None:
        self.name: Final = name
        super().__init__(f"Unable to extend final contract {name!r}.")


class MultipleBaseContracts(MocksmithError, TypeError):
    """More than one base contract was requested."""

    def __init__(self, names: Sequence[str]) -> None:
        self.names: Final = tuple(names)
        rendered = ", ".join(repr(name) for name in self.names)
        super().__init__(f"Unable to extend {rendered}. Multiple base contracts requested.")


class InvalidTypeName(MocksmithError, ValueError):
    """A requested type name does not match the symbol grammar."""

    def __init__(self, name: object) -> None:
        self.name: Final = name
        super().__init__(f"Invalid type name {name!r}.")


class UndefinedArgument(MocksmithError, IndexError):
    """An argument index is out of range."""

    def __init__(self, index: int | None) -> None:
        self.index: Final = index
        if index is None:
            super().__init__("No argument defined for the first position.")
        else:
            super().__init__(f"No argument defined for index {index}.")


class CallStateError(MocksmithError, RuntimeError):
    """A call event was recorded out of order."""


class AlreadyResponded(CallStateError):
    def __init__(self) -> None:
        super().__init__("Call already responded.")


class AlreadyCompleted(CallStateError):
    def __init__(self) -> None:
        super().__init__("Call already completed.")


class NotSequenceCall(CallStateError):
    def __init__(self) -> None:
        super().__init__("Not a sequence call.")


class UnknownStub(MocksmithError, AttributeError):
    """No stub is defined for the requested member name."""

    def __init__(self, type_name: str, name: str) -> None:
        self.type_name: Final = type_name
        self.member_name: Final = name
        super().__init__(f"No stub defined for method {type_name}.{name}().")
