"""
Directory-based discovery of mock specification files.

Specifications are addressed by ``"<file stem>.<entry name>"``: the entry
``UserRepositoryMock`` of ``repositories.mock.yaml`` is
``"repositories.UserRepositoryMock"``. Subdirectories add further segments.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import final

from mocksmith.config import DEFAULT_CONFIG, MocksmithConfig
from mocksmith.contracts import ContractIntrospector, ReflectionIntrospector
from mocksmith.specification import MockSpecification
from mocksmith.specification_file import parse_specification_file, specification_stem


@final
@dataclass(frozen=True, kw_only=True)
class SpecificationDirectory(Mapping[str, MockSpecification]):
    """
    Lazily loaded specifications of a directory tree.

    Files are parsed on first access, each at most once.
    """

    directory: Path
    introspector: ContractIntrospector = field(default_factory=ReflectionIntrospector)
    config: MocksmithConfig = DEFAULT_CONFIG

    def __post_init__(self) -> None:
        if not self.directory.is_dir():
            raise ValueError(f"Path is not a directory: {self.directory}")

    @cached_property
    def specification_files(self) -> Mapping[str, Path]:
        """Specification files by stem. The first of several files with one stem wins."""
        result: dict[str, Path] = {}
        for file_path in sorted(self.directory.iterdir()):
            if not file_path.is_file():
                continue
            stem = specification_stem(file_path)
            if stem is not None and stem not in result:
                result[stem] = file_path
        return result

    @cached_property
    def subdirectories(self) -> Mapping[str, "SpecificationDirectory"]:
        return {
            entry.name: SpecificationDirectory(
                directory=entry, introspector=self.introspector, config=self.config
            )
            for entry in sorted(self.directory.iterdir())
            if entry.is_dir() and not entry.name.startswith(".")
        }

    @cached_property
    def _specifications(self) -> Mapping[str, MockSpecification]:
        result: dict[str, MockSpecification] = {}
        for stem, file_path in self.specification_files.items():
            parsed = parse_specification_file(
                file_path, introspector=self.introspector, config=self.config
            )
            for name, specification in parsed.items():
                result[f"{stem}.{name}"] = specification
        for directory_name, subdirectory in self.subdirectories.items():
            for name, specification in subdirectory.items():
                result[f"{directory_name}.{name}"] = specification
        return result

    def __getitem__(self, key: str) -> MockSpecification:
        return self._specifications[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._specifications)

    def __len__(self) -> int:
        return len(self._specifications)
