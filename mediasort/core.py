"""
Core sorting engine: turns per-file analyses into moves and renames.
"""

import re
import shutil
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from rich.console import Console
from rich.table import Table

from .analysis import AnalysisResult, FileAnalysisService, FileRecord
from .constants import PHOTOS_FOLDER, VIDEOS_FOLDER, get_console, get_logger
from .date_components import DateComponents
from .date_fixing import DateFixError, DateFixer, ErrorHandler
from .errors import (AccessDenied, CantFixDate, CreationDateSetFailed, FileProcessingError,
                     FolderCreationFailed, FolderNotAccessible, InvalidDate, MetadataError,
                     MetadataUpdateFailed, MissingDateComponents, MoveFailed, SortCancelled,
                     SorterError)
from .file_operations import FileOperations
from .options import SortOption, SorterConfig
from .permissions import AccessGuard, FilesystemAccessGuard
from .progress import FileMoved, FolderCreated, ProgressEvent, ProgressHandler, SortCompleted, SortStarted
from .stats import StatsManager


# Case-sensitive: MM is the month, mm the minute
RENAME_TOKENS = re.compile(r"YYYY|yyyy|MM|DD|dd|HH|hh|mm")


def format_filename(pattern: str, components: Optional[DateComponents],
                    extension: str) -> Optional[str]:
    """Render a rename pattern with date components, or None without components."""
    if components is None:
        return None

    values = {
        "YYYY": components.year,
        "yyyy": components.year,
        "MM": components.month,
        "DD": components.day,
        "dd": components.day,
        "HH": components.hour,
        "hh": components.hour,
        "mm": components.minute,
    }
    formatted = RENAME_TOKENS.sub(lambda match: values[match.group(0)], pattern)
    return f"{formatted}{extension}"


class OutcomeStatus(Enum):
    MOVED = "moved"
    SKIPPED = "skipped"
    ERRORED = "errored"


@dataclass(frozen=True)
class FileOutcome:
    """What happened to one media file."""
    status: OutcomeStatus
    source: Path
    destination: Optional[Path] = None
    reason: Optional[str] = None
    error: Optional[FileProcessingError] = None

    @classmethod
    def moved(cls, source: Path, destination: Path) -> "FileOutcome":
        return cls(OutcomeStatus.MOVED, source, destination=destination)

    @classmethod
    def skipped(cls, source: Path, reason: str) -> "FileOutcome":
        return cls(OutcomeStatus.SKIPPED, source, reason=reason)

    @classmethod
    def errored(cls, source: Path, error: FileProcessingError) -> "FileOutcome":
        return cls(OutcomeStatus.ERRORED, source, error=error)


@dataclass
class SortResult:
    """Processed count, collected non-fatal errors and per-file outcomes."""
    processed_count: int = 0
    errors: List[FileProcessingError] = field(default_factory=list)
    outcomes: List[FileOutcome] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return not self.errors

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def __str__(self) -> str:
        if self.is_success:
            return f"Successfully processed {self.processed_count} files"
        return f"Processed {self.processed_count} files with {len(self.errors)} error(s)"


class SortEngine:
    """Sorts the media files of a source tree into place, one file at a time."""

    def __init__(self, config: SorterConfig,
                 analysis_service: Optional[FileAnalysisService] = None,
                 date_fixer: Optional[DateFixer] = None,
                 file_ops: Optional[FileOperations] = None,
                 access_guard: Optional[AccessGuard] = None,
                 stats_manager: Optional[StatsManager] = None):
        self.config = config
        self.source = Path(config.source).absolute()
        self.destination = Path(config.destination).absolute()
        self.analysis_service = analysis_service or FileAnalysisService()
        self.classifier = self.analysis_service.classifier
        self.date_fixer = date_fixer or DateFixer(resolver=self.analysis_service.resolver,
                                                  classifier=self.classifier)
        self.file_ops = file_ops or FileOperations()
        self.access_guard = access_guard or FilesystemAccessGuard()
        self.stats_manager = stats_manager or StatsManager()
        self.logger = get_logger()

        self._on_progress: Optional[ProgressHandler] = None
        self._on_error: Optional[ErrorHandler] = None
        self._processed = 0
        self._errors: List[FileProcessingError] = []
        self._outcomes: List[FileOutcome] = []

    def run(self, on_progress: Optional[ProgressHandler] = None,
            on_error: Optional[ErrorHandler] = None,
            cancel_event: Optional[threading.Event] = None) -> SortResult:
        """Sort every media file under the source root.

        Non-fatal problems go to ``on_error`` as they happen and are
        collected in the result. Fatal problems raise a SorterError whose
        ``result`` holds the outcomes produced before the failure.
        """
        self._on_progress = on_progress
        self._on_error = on_error
        self._processed = 0
        self._errors = []
        self._outcomes = []

        acquired: List[Path] = []
        try:
            for root in (self.source, self.destination):
                if not self.access_guard.acquire(root):
                    raise AccessDenied(root, self._result())
                acquired.append(root)

            self.logger.info(f"Starting sort: {self.source} -> {self.destination}")
            self.logger.info(f"Options: {', '.join(self.config.options.names()) or 'none'}")
            self._emit(SortStarted(self.source, self.destination))

            for file_path in self._enumerate_source():
                if cancel_event is not None and cancel_event.is_set():
                    self.logger.warning(f"Sort cancelled after {self._processed} files")
                    raise SortCancelled(self._result())
                self._process_path(file_path)
        finally:
            for root in reversed(acquired):
                self.access_guard.release(root)

        result = self._result()
        self.logger.info(str(result))
        self._emit(SortCompleted(result.processed_count))
        return result

    def _result(self) -> SortResult:
        return SortResult(self._processed, list(self._errors), list(self._outcomes))

    def _enumerate_source(self) -> List[Path]:
        if not self.source.is_dir():
            raise FolderNotAccessible(self.source, self._result())
        try:
            return sorted(p for p in self.source.rglob("*") if p.is_file())
        except OSError as e:
            self.logger.error(f"Could not enumerate {self.source}: {e}")
            raise FolderNotAccessible(self.source, self._result()) from e

    def _process_path(self, file_path: Path) -> None:
        """Process one enumerated path, producing at most one outcome."""
        record = FileRecord.from_path(file_path)
        if not self.classifier.is_media(record.extension):
            return

        if self.classifier.should_ignore(str(record.path), record.extension):
            self.logger.debug(f"Ignoring {record.path}")
            return

        self._processed += 1
        file_errors: List[FileProcessingError] = []
        target_folder = record.path.parent
        try:
            analysis = self.analysis_service.analyze(record)
            outcome, target_folder = self._sort_file(analysis, file_errors)
        except SorterError as e:
            self._errors.extend(file_errors)
            e.result = self._result()
            raise
        except Exception as e:
            self.logger.exception(f"Error processing {record.path}: {e}")
            error = MetadataError(record.path, str(e))
            self._record(file_errors, error)
            outcome = FileOutcome.errored(record.path, error)

        if file_errors:
            self._record(file_errors, MetadataUpdateFailed(
                record.path, target_folder, "Date or metadata update failed"))

        self._errors.extend(file_errors)
        self._outcomes.append(outcome)

        if outcome.status is OutcomeStatus.SKIPPED:
            self.stats_manager.increment_skipped()
        elif outcome.status is OutcomeStatus.ERRORED:
            self.stats_manager.increment_failed()

    def _sort_file(self, analysis: AnalysisResult,
                   errors: List[FileProcessingError]) -> Tuple[FileOutcome, Path]:
        record = analysis.record

        if (self.config.has_option(SortOption.SKIP_EXISTING_DATES)
                and analysis.filename_components is not None
                and analysis.filename_date_matches_metadata):
            return FileOutcome.skipped(record.path, "file name already carries its date"), record.path.parent

        self._update_dates(analysis, errors)

        target_folder = self._target_folder(analysis, errors)
        try:
            created = self.file_ops.ensure_directory(target_folder)
        except OSError as e:
            self.logger.error(f"Could not create {target_folder}: {e}")
            raise FolderCreationFailed(target_folder) from e
        if created:
            self.stats_manager.increment_folders_created()
            self._emit(FolderCreated(target_folder))

        target_name = self._target_name(analysis, errors)
        if target_folder / target_name == record.path:
            return FileOutcome.skipped(record.path, "already in place"), target_folder

        target_path = self.file_ops.create_unique_path(target_folder, target_name)
        file_size = record.path.stat().st_size

        try:
            self.file_ops.move_file(record.path, target_path)
        except (OSError, shutil.Error) as e:
            error = MoveFailed(record.path, target_path, str(e))
            self._record(errors, error)
            return FileOutcome.errored(record.path, error), target_folder

        self.stats_manager.record_moved(analysis.is_video, file_size)
        self._emit(FileMoved(record.path, target_path))
        return FileOutcome.moved(record.path, target_path), target_folder

    def _update_dates(self, analysis: AnalysisResult, errors: List[FileProcessingError]) -> None:
        file_path = analysis.record.path

        if self.config.has_option(SortOption.FORCE_UPDATE_DATE) and self.config.fixed_date is not None:
            self._stamp_date(file_path, self.config.fixed_date, errors)
        elif self.config.has_option(SortOption.FIX_METADATA):
            when = self.date_fixer.content_creation_date(file_path)
            if when is None:
                self._record(errors, CantFixDate(file_path, "No valid date found in metadata"))
            else:
                self._stamp_date(file_path, when, errors)

    def _stamp_date(self, file_path: Path, when: datetime,
                    errors: List[FileProcessingError]) -> None:
        # Both writes are attempted; either may fail on its own
        try:
            self.date_fixer.set_date(file_path, when)
        except DateFixError as e:
            self._record(errors, MetadataError(file_path, e.reason))

        if not self.date_fixer.set_content_creation_marker(file_path, when):
            self._record(errors, CreationDateSetFailed(file_path, "content creation marker command failed"))

    def _target_folder(self, analysis: AnalysisResult, errors: List[FileProcessingError]) -> Path:
        original_folder = analysis.record.path.parent
        if not self.config.has_option(SortOption.CREATE_FOLDERS):
            return original_folder

        components = analysis.date_components
        if components is None:
            self._record(errors, MissingDateComponents(analysis.record.path))
            return original_folder

        base_folder = VIDEOS_FOLDER if analysis.is_video else PHOTOS_FOLDER
        return self.destination / base_folder / components.year / components.month

    def _target_name(self, analysis: AnalysisResult, errors: List[FileProcessingError]) -> str:
        record = analysis.record
        if self.config.has_option(SortOption.RENAME_FILES):
            formatted = format_filename(self.config.rename_pattern, analysis.date_components,
                                        record.extension)
            return formatted or record.name

        if not analysis.filename_date_matches_metadata:
            self._record(errors, InvalidDate(record.path, analysis.date_description))
        return record.name

    def _record(self, errors: List[FileProcessingError], error: FileProcessingError) -> None:
        errors.append(error)
        self.stats_manager.increment_errors()
        self.logger.warning(error.description)
        if self._on_error:
            self._on_error(error)

    def _emit(self, event: ProgressEvent) -> None:
        if self._on_progress:
            self._on_progress(event)

    def print_summary(self, result: SortResult, console: Optional[Console] = None) -> None:
        """Print processing summary."""
        console = console or get_console()
        table = Table(title="Processing Summary")
        table.add_column("Category", style="cyan")
        table.add_column("Count", style="green")

        table.add_row("Processed", str(result.processed_count))
        table.add_row("Moved", str(self.stats_manager.get_total_moved()))
        table.add_row("Photos", str(self.stats_manager.get_photos()))
        table.add_row("Videos", str(self.stats_manager.get_videos()))
        table.add_row("Skipped", str(self.stats_manager.get_skipped()))
        table.add_row("Failed Moves", str(self.stats_manager.get_failed()))
        table.add_row("Folders Created", str(self.stats_manager.get_folders_created()))
        table.add_row("Errors", str(len(result.errors)))

        # Format total size
        size_mb = self.stats_manager.get_total_size_mb()
        if size_mb > 1024:
            size_str = f"{size_mb/1024:.1f} GB"
        else:
            size_str = f"{size_mb:.1f} MB"
        table.add_row("Total Size", size_str)

        console.print(table)
