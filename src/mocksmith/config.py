from dataclasses import dataclass, field
from enum import Enum, auto


class StubBehavior(Enum):
    RETURN_NONE = auto()
    """
    Inherited members return ``None`` until a behaviour is configured.
    """

    FORWARD = auto()
    """
    Inherited members call the real implementation until a behaviour is configured.

    Custom members always run their callback, or return ``None`` without one.
    """


@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True)
class NamingConfig:
    prefix: str = "MocksmithMock"
    """
    The first segment of every generated type name.
    """

    random_suffix_length: int = 6
    """
    Number of hexadecimal characters used as the suffix when no identity is given.
    """


@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True)
class RenderingConfig:
    bullet: str = "    - "
    """
    Prefix of every line rendered for a sequence of calls.
    """

    empty: str = "<none>"
    """
    Placeholder rendered for an empty sequence or a missing value.
    """

    max_string: int = 40
    """
    Strings nested inside containers are shortened beyond this length.

    Top-level strings are always rendered in full.
    """

    max_other: int = 40
    """
    Other values are shortened beyond this length.
    """


@dataclass(kw_only=True, frozen=True, slots=True, weakref_slot=True)
class MocksmithConfig:
    naming: NamingConfig = field(default_factory=NamingConfig)
    rendering: RenderingConfig = field(default_factory=RenderingConfig)
    stub_behavior: StubBehavior = StubBehavior.RETURN_NONE


DEFAULT_CONFIG = MocksmithConfig()
