"""
Parser for mock specification files (YAML/JSON/TOML).

A specification file maps specification names to entries such as::

    UserRepositoryMock:
      contracts: [app.repositories.UserRepository, app.mixins.TimestampMixin]
      identity: 7
      methods: [refresh]
      static_methods:
        create: app.factories.create_user
      properties:
        cache: null
      constants:
        TABLE: users

Every entry becomes an unfinalized :class:`~mocksmith.specification.MockSpecification`.
"""

import json
import logging
import pkgutil
import tomllib
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Final, TypeAlias

import yaml

from mocksmith.config import DEFAULT_CONFIG, MocksmithConfig
from mocksmith.contracts import ContractIntrospector, ReflectionIntrospector
from mocksmith.specification import CustomDefinition, MockSpecification

_logger: Final[logging.Logger] = logging.getLogger(__name__)

JsonValue: TypeAlias = (
    None | bool | int | float | str | list["JsonValue"] | dict[str, "JsonValue"]
)

SPECIFICATION_EXTENSIONS: Final = (
    ".mock.yaml",
    ".mock.yml",
    ".mock.json",
    ".mock.toml",
)

_KNOWN_KEYS: Final = frozenset(
    {
        "contracts",
        "name",
        "identity",
        "methods",
        "static_methods",
        "properties",
        "static_properties",
        "constants",
    }
)


def specification_stem(file_path: Path) -> str | None:
    """
    The file name without its specification extension, or ``None`` when the
    file is not a specification file.
    """
    name_lower = file_path.name.lower()
    for extension in SPECIFICATION_EXTENSIONS:
        if name_lower.endswith(extension):
            return file_path.name[: -len(extension)]
    return None


def _load(file_path: Path) -> object:
    content = file_path.read_text(encoding="utf-8")
    name = file_path.name.lower()
    if name.endswith(".mock.yaml") or name.endswith(".mock.yml"):
        return yaml.safe_load(content)
    if name.endswith(".mock.json"):
        return json.loads(content)
    if name.endswith(".mock.toml"):
        return tomllib.loads(content)
    raise ValueError(
        f"Unrecognized mock specification file format: {file_path.name}. "
        f"Expected .mock.yaml, .mock.json, or .mock.toml"
    )


def _resolve_callable(path: str, context: str) -> Callable[..., Any]:
    try:
        resolved = pkgutil.resolve_name(path)
    except (ImportError, AttributeError, ValueError) as e:
        raise ValueError(f"{context}: cannot resolve callable {path!r}: {e}") from e
    if not callable(resolved):
        raise ValueError(f"{context}: {path!r} is not callable")
    return resolved


def parse_methods(
    value: JsonValue, context: str
) -> dict[str, Callable[..., Any] | None]:
    """
    Parse a ``methods`` or ``static_methods`` entry.

    A list declares placeholder methods. A mapping maps method names to the
    dotted path of a callback, or to ``null`` for a placeholder.

    :raises ValueError: If the entry has another shape.
    """
    if value is None:
        return {}
    if isinstance(value, list):
        methods: dict[str, Callable[..., Any] | None] = {}
        for item in value:
            if not isinstance(item, str):
                raise ValueError(
                    f"{context}: method name must be a string, got {type(item).__name__}"
                )
            methods[item] = None
        return methods
    if isinstance(value, dict):
        callbacks: dict[str, Callable[..., Any] | None] = {}
        for name, path in value.items():
            if path is None:
                callbacks[name] = None
            else:
                item_context = f"{context}.{name}"
                callbacks[name] = _resolve_callable(
                    _expect_string(path, item_context), item_context
                )
        return callbacks
    raise ValueError(
        f"{context}: expected a list or a mapping, got {type(value).__name__}"
    )


def _expect_string(value: JsonValue, context: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{context}: expected a string, got {type(value).__name__}")
    return value


def _expect_mapping(value: JsonValue, context: str) -> Mapping[str, JsonValue]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{context}: expected a mapping, got {type(value).__name__}")
    return value


def parse_specification_value(
    value: JsonValue,
    *,
    context: str,
    introspector: ContractIntrospector | None = None,
    config: MocksmithConfig = DEFAULT_CONFIG,
) -> MockSpecification:
    """
    Build a specification from one parsed entry.

    :param value: The entry. ``null`` declares an empty specification.
    :param context: Where the entry came from, used in error messages.
    :raises ValueError: If the entry is malformed.
    """
    entry = _expect_mapping(value, context)
    unknown = sorted(set(entry) - _KNOWN_KEYS)
    if unknown:
        raise ValueError(f"{context}: unknown keys {unknown}")

    identity = entry.get("identity")
    if isinstance(identity, bool) or not isinstance(identity, int | None):
        raise ValueError(
            f"{context}.identity: expected an integer, got {type(identity).__name__}"
        )
    specification = MockSpecification(
        identity=identity,
        introspector=ReflectionIntrospector() if introspector is None else introspector,
        config=config,
    )

    contracts = entry.get("contracts")
    if isinstance(contracts, str):
        contracts = [contracts]
    if contracts is not None:
        if not isinstance(contracts, list):
            raise ValueError(
                f"{context}.contracts: expected a list, got {type(contracts).__name__}"
            )
        specification.add_contracts(
            *(_expect_string(c, f"{context}.contracts") for c in contracts)
        )

    specification.define(
        CustomDefinition(
            methods=parse_methods(entry.get("methods"), f"{context}.methods"),
            static_methods=parse_methods(
                entry.get("static_methods"), f"{context}.static_methods"
            ),
            properties=_expect_mapping(entry.get("properties"), f"{context}.properties"),
            static_properties=_expect_mapping(
                entry.get("static_properties"), f"{context}.static_properties"
            ),
            constants=_expect_mapping(entry.get("constants"), f"{context}.constants"),
        )
    )

    name = entry.get("name")
    if name is not None:
        specification.named(_expect_string(name, f"{context}.name"))
    return specification


def parse_specification_file(
    file_path: Path,
    *,
    introspector: ContractIntrospector | None = None,
    config: MocksmithConfig = DEFAULT_CONFIG,
) -> Mapping[str, MockSpecification]:
    """
    Parse a mock specification file (YAML/JSON/TOML).

    Contract and type name errors raised while building a specification
    propagate unchanged.

    :param file_path: Path to the specification file.
    :return: Mapping of top-level names to their specifications.
    :raises ValueError: If the file format is not recognized or parsing fails.
    """
    data = _load(file_path)
    if not isinstance(data, dict):
        raise ValueError(
            "Mock specification file must contain a mapping at top level, "
            f"got {type(data).__name__}"
        )

    if introspector is None:
        introspector = ReflectionIntrospector()
    result: dict[str, MockSpecification] = {}
    for specification_name, value in data.items():
        if not isinstance(specification_name, str):
            raise ValueError(
                "Specification name must be a string, "
                f"got {type(specification_name).__name__}"
            )
        result[specification_name] = parse_specification_value(
            value,
            context=f"{file_path.name}:{specification_name}",
            introspector=introspector,
            config=config,
        )
    _logger.debug("Loaded %d specifications from %s", len(result), file_path)
    return result
