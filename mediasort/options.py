"""
Run configuration for the sort engine.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Flag, auto
from pathlib import Path
from typing import Iterable, List, Optional

from .constants import DEFAULT_RENAME_PATTERN


class SortOption(Flag):
    NONE = 0
    RENAME_FILES = auto()
    CREATE_FOLDERS = auto()
    FIX_METADATA = auto()
    FORCE_UPDATE_DATE = auto()
    DELETE_ORIGINALS = auto()
    SKIP_EXISTING_DATES = auto()

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "SortOption":
        """Combine options given by name, e.g. ``["rename_files"]``."""
        combined = cls.NONE
        for name in names:
            try:
                combined |= cls[name.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown sort option: {name}")
        return combined

    def names(self) -> List[str]:
        """Lower-case names of the individual options in this set."""
        return [member.name.lower() for member in type(self)
                if member.value and member in self]


@dataclass(frozen=True)
class SorterConfig:
    """Immutable settings for one sorting run."""
    source: Path
    destination: Path
    options: SortOption = SortOption.NONE
    fixed_date: Optional[datetime] = None
    rename_pattern: str = DEFAULT_RENAME_PATTERN

    def has_option(self, option: SortOption) -> bool:
        return option in self.options

    def with_options(self, options: SortOption) -> "SorterConfig":
        return replace(self, options=options)

    def adding_options(self, options: SortOption) -> "SorterConfig":
        return replace(self, options=self.options | options)

    def removing_options(self, options: SortOption) -> "SorterConfig":
        return replace(self, options=self.options & ~options)

    @staticmethod
    def builder(source: Path, destination: Path) -> "SorterConfigBuilder":
        return SorterConfigBuilder(source, destination)


class SorterConfigBuilder:
    """Fluent builder for SorterConfig."""

    def __init__(self, source: Path, destination: Path):
        self._source = Path(source)
        self._destination = Path(destination)
        self._options = SortOption.NONE
        self._fixed_date: Optional[datetime] = None
        self._rename_pattern = DEFAULT_RENAME_PATTERN

    def options(self, options: SortOption) -> "SorterConfigBuilder":
        self._options = options
        return self

    def add_options(self, options: SortOption) -> "SorterConfigBuilder":
        self._options |= options
        return self

    def add_option(self, option: SortOption) -> "SorterConfigBuilder":
        return self.add_options(option)

    def fixed_date(self, when: Optional[datetime]) -> "SorterConfigBuilder":
        self._fixed_date = when
        return self

    def rename_pattern(self, pattern: str) -> "SorterConfigBuilder":
        self._rename_pattern = pattern
        return self

    def build(self) -> SorterConfig:
        return SorterConfig(
            source=self._source,
            destination=self._destination,
            options=self._options,
            fixed_date=self._fixed_date,
            rename_pattern=self._rename_pattern,
        )
