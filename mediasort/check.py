"""
Read-only check that file names agree with the dates found in metadata.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from .analysis import FileAnalysisService, FileRecord
from .constants import get_logger
from .errors import AccessDenied, FolderNotAccessible, SortCancelled
from .permissions import AccessGuard, FilesystemAccessGuard


PROGRESS_INTERVAL = 100


@dataclass(frozen=True)
class FilenameMismatch:
    file_path: Path
    file_date: str


@dataclass
class CheckReport:
    checked_count: int = 0
    mismatches: List[FilenameMismatch] = field(default_factory=list)


class FilenameChecker:
    """Walks a folder and reports media files whose name date contradicts metadata."""

    def __init__(self, analysis_service: Optional[FileAnalysisService] = None,
                 access_guard: Optional[AccessGuard] = None):
        self.analysis_service = analysis_service or FileAnalysisService()
        self.access_guard = access_guard or FilesystemAccessGuard(writable=False)
        self.logger = get_logger("mediasort.check")

    def check(self, folder: Path,
              on_progress: Optional[Callable[[int], None]] = None,
              on_mismatch: Optional[Callable[[FilenameMismatch], None]] = None,
              cancel_event: Optional[threading.Event] = None) -> CheckReport:
        """Check every media file under folder.

        ``on_progress`` receives the running count every PROGRESS_INTERVAL
        files. Cancellation raises SortCancelled.
        """
        folder = Path(folder).absolute()
        if not self.access_guard.acquire(folder):
            raise AccessDenied(folder)

        report = CheckReport()
        try:
            for file_path in self._enumerate(folder):
                if cancel_event is not None and cancel_event.is_set():
                    raise SortCancelled()

                record = FileRecord.from_path(file_path)
                if not self.analysis_service.classifier.is_media(record.extension):
                    continue

                analysis = self.analysis_service.analyze(record)
                if analysis.should_ignore:
                    continue

                report.checked_count += 1
                if on_progress and report.checked_count % PROGRESS_INTERVAL == 0:
                    on_progress(report.checked_count)

                if not analysis.filename_date_matches_metadata:
                    mismatch = FilenameMismatch(record.path, analysis.date_description)
                    report.mismatches.append(mismatch)
                    self.logger.info(f"Name does not match date {mismatch.file_date}: {record.path}")
                    if on_mismatch:
                        on_mismatch(mismatch)
        finally:
            self.access_guard.release(folder)

        return report

    def _enumerate(self, folder: Path) -> List[Path]:
        try:
            return sorted(p for p in folder.rglob("*") if p.is_file())
        except OSError as e:
            raise FolderNotAccessible(folder) from e
