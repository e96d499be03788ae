"""
Error types for sorting runs.

Fatal errors stop a run and are raised as SorterError subclasses. Per-file
problems are FileProcessingError values: they are handed to the error sink
and collected in the run result, never raised.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .core import SortResult


class SorterError(Exception):
    """A run-level failure. ``result`` holds whatever was produced before it."""

    def __init__(self, message: str, path: Optional[Path] = None,
                 result: Optional["SortResult"] = None):
        super().__init__(message)
        self.path = path
        self.result = result


class AccessDenied(SorterError):
    def __init__(self, path: Path, result: Optional["SortResult"] = None):
        super().__init__(f"Permission denied to access folder: {path}", path, result)


class FolderNotAccessible(SorterError):
    def __init__(self, path: Path, result: Optional["SortResult"] = None):
        super().__init__(f"Can't open folder at path: {path}", path, result)


class FolderCreationFailed(SorterError):
    def __init__(self, path: Path, result: Optional["SortResult"] = None):
        super().__init__(f"Can't create folder at path: {path}", path, result)


class SortCancelled(SorterError):
    def __init__(self, result: Optional["SortResult"] = None):
        super().__init__("Operation was cancelled", None, result)


@dataclass(frozen=True)
class FileProcessingError:
    """A non-fatal problem with a single file."""
    file_path: Path

    @property
    def description(self) -> str:
        return f"Processing error in file: {self.file_path}"

    def __str__(self) -> str:
        return self.description


@dataclass(frozen=True)
class InvalidDate(FileProcessingError):
    date_string: str

    @property
    def description(self) -> str:
        return f"Invalid date '{self.date_string}' in file: {self.file_path}"


@dataclass(frozen=True)
class MissingDateComponents(FileProcessingError):

    @property
    def description(self) -> str:
        return f"Missing date components in file: {self.file_path}"


@dataclass(frozen=True)
class MoveFailed(FileProcessingError):
    destination: Path
    reason: str

    @property
    def description(self) -> str:
        return f"Failed to move '{self.file_path}' to '{self.destination}': {self.reason}"


@dataclass(frozen=True)
class MetadataUpdateFailed(FileProcessingError):
    folder_path: Path
    reason: str

    @property
    def description(self) -> str:
        return (f"Failed to update metadata for '{self.file_path}' "
                f"in '{self.folder_path}': {self.reason}")


@dataclass(frozen=True)
class DateUpdateFailed(FileProcessingError):
    reason: str

    @property
    def description(self) -> str:
        return f"Failed to update date for '{self.file_path}': {self.reason}"


@dataclass(frozen=True)
class CantFixDate(FileProcessingError):
    reason: str

    @property
    def description(self) -> str:
        return f"Can't fix date for '{self.file_path}': {self.reason}"


@dataclass(frozen=True)
class MetadataError(FileProcessingError):
    error: str

    @property
    def description(self) -> str:
        return f"Metadata error for '{self.file_path}': {self.error}"


@dataclass(frozen=True)
class CreationDateSetFailed(FileProcessingError):
    reason: str

    @property
    def description(self) -> str:
        return f"Failed to set creation date for '{self.file_path}': {self.reason}"
