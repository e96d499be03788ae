"""
Writing dates back to files: filesystem times and the content creation marker.
"""

import os
import subprocess
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .classifier import FileClassifier
from .constants import MACOS_CONTENT_CREATED_ATTR, XDG_CONTENT_CREATED_ATTR, get_logger
from .errors import (CantFixDate, CreationDateSetFailed, DateUpdateFailed, FileProcessingError,
                     FolderNotAccessible, MetadataError, SortCancelled)
from .timestamps import DateResolver


ErrorHandler = Callable[[FileProcessingError], None]


class DateFixError(Exception):
    """Raised when a date cannot be determined or written for a file."""

    def __init__(self, file_path: Path, reason: str):
        super().__init__(f"{file_path}: {reason}")
        self.file_path = file_path
        self.reason = reason


class CommandExecutor:
    """Runs external commands and reports success as a boolean."""

    def execute(self, arguments: Sequence[str]) -> bool:
        try:
            result = subprocess.run(list(arguments), capture_output=True, text=True)
        except (FileNotFoundError, PermissionError) as e:
            get_logger().debug(f"Could not run {arguments[0]}: {e}")
            return False

        if result.returncode != 0:
            get_logger().debug(f"{arguments[0]} exited with {result.returncode}: {result.stderr.strip()}")
        return result.returncode == 0


class DateFixer:
    """Stamps dates on files and repairs dates for whole folders."""

    def __init__(self, resolver: Optional[DateResolver] = None,
                 executor: Optional[CommandExecutor] = None,
                 classifier: Optional[FileClassifier] = None):
        self.resolver = resolver or DateResolver()
        self.executor = executor or CommandExecutor()
        self.classifier = classifier or FileClassifier()
        self.logger = get_logger("mediasort.date_fixing")

    def set_date(self, file_path: Path, when: datetime) -> None:
        """Set access and modification times of a file to the given instant."""
        try:
            timestamp = when.timestamp()
            os.utime(file_path, (timestamp, timestamp))
        except (OSError, ValueError, OverflowError) as e:
            raise DateFixError(file_path, str(e)) from e
        self.logger.debug(f"Set file dates of {file_path} to {when}")

    def set_content_creation_marker(self, file_path: Path, when: datetime) -> bool:
        """Write the content creation date as an extended attribute."""
        try:
            date_string = when.astimezone().isoformat(timespec="milliseconds")
        except (ValueError, OverflowError, OSError) as e:
            self.logger.debug(f"Cannot express {when!r} as a local date: {e}")
            return False

        if sys.platform == "darwin":
            arguments = ["xattr", "-w", MACOS_CONTENT_CREATED_ATTR, date_string, str(file_path)]
        else:
            arguments = ["setfattr", "-n", XDG_CONTENT_CREATED_ATTR, "-v", date_string, str(file_path)]
        return self.executor.execute(arguments)

    def content_creation_date(self, file_path: Path) -> Optional[datetime]:
        """The file's own earliest known date."""
        return self.resolver.resolve(file_path)

    def fix_file(self, file_path: Path) -> datetime:
        """Stamp a file with its own earliest known date and return that date."""
        when = self.content_creation_date(file_path)
        if when is None:
            raise DateFixError(file_path, "No valid date found in metadata")

        self.set_date(file_path, when)
        if not self.set_content_creation_marker(file_path, when):
            raise DateFixError(file_path, "content creation marker command failed")
        return when

    def force_set_date(self, folder: Path, when: datetime,
                       on_error: Optional[ErrorHandler] = None,
                       cancel_event: Optional[threading.Event] = None) -> int:
        """Stamp one instant on every media file in a folder tree.

        Returns the number of media files visited.
        """
        count = 0
        for file_path in self._media_files(folder):
            if cancel_event is not None and cancel_event.is_set():
                raise SortCancelled()
            count += 1

            errors: List[FileProcessingError] = []
            try:
                self.set_date(file_path, when)
            except DateFixError as e:
                errors.append(MetadataError(file_path, e.reason))

            if not self.set_content_creation_marker(file_path, when):
                errors.append(CreationDateSetFailed(file_path, "content creation marker command failed"))

            if errors:
                errors.append(DateUpdateFailed(file_path, "One or more date updates failed"))
            self._report(errors, on_error)

        return count

    def fix_dates_in(self, folder: Path, on_error: Optional[ErrorHandler] = None,
                     cancel_event: Optional[threading.Event] = None) -> int:
        """Stamp every media file in a folder tree with its own earliest date.

        Returns the number of files whose dates were fixed.
        """
        fixed = 0
        for file_path in self._media_files(folder):
            if cancel_event is not None and cancel_event.is_set():
                raise SortCancelled()

            try:
                when = self.fix_file(file_path)
            except DateFixError as e:
                self._report([CantFixDate(file_path, e.reason)], on_error)
                continue

            fixed += 1
            self.logger.info(f"Fixed dates of {file_path} -> {when}")

        return fixed

    def _media_files(self, folder: Path) -> List[Path]:
        if not folder.is_dir():
            raise FolderNotAccessible(folder)
        try:
            candidates = sorted(p for p in folder.rglob("*") if p.is_file())
        except OSError as e:
            self.logger.error(f"Could not enumerate {folder}: {e}")
            raise FolderNotAccessible(folder) from e

        return [p for p in candidates
                if self.classifier.is_media(p.suffix.lower())
                and not self.classifier.should_ignore(str(p), p.suffix.lower())]

    def _report(self, errors: List[FileProcessingError],
                on_error: Optional[ErrorHandler]) -> None:
        for error in errors:
            self.logger.warning(error.description)
            if on_error:
                on_error(error)
