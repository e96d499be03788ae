"""
Run history: per-run log files and the global runs log.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .core import SortResult
    from .stats import StatsManager


class HistoryManager:
    """Manages the per-run log folder and the summary line of each run."""

    def __init__(self, dest_path: Path, root_dir: Path):
        self.dest_path = dest_path
        self.root_dir = root_dir
        self.history_dir = self.root_dir / "history"
        self.runs_log = self.root_dir / "runs.log"
        self._file_handler: Optional[logging.FileHandler] = None

        self._setup_run_folder()

    def _setup_run_folder(self) -> None:
        """Create the dated folder holding this run's log."""
        timestamp = datetime.now().strftime("%Y-%m-%d")
        dest_name = self._sanitize_dest_name(self.dest_path)
        base_name = f"{timestamp}+{dest_name}"

        # Add a counter suffix when a run folder for today already has logs
        folder_name = base_name
        folder = self.history_dir / folder_name
        counter = 1
        while folder.exists() and any(folder.iterdir()):
            folder_name = f"{base_name}-{counter:02d}"
            folder = self.history_dir / folder_name
            counter += 1

        folder.mkdir(parents=True, exist_ok=True)
        self.run_folder = folder
        self.run_folder_name = folder_name
        self.run_log = folder / "sort.log"

    @staticmethod
    def _sanitize_dest_name(dest_path: Path) -> str:
        """Convert destination path to safe folder name."""
        name = dest_path.name
        sanitized = re.sub(r'[^\w\-_]', '-', name)
        sanitized = re.sub(r'-+', '-', sanitized)
        return sanitized.strip('-') or "root"

    def setup_run_logger(self, logger: logging.Logger) -> None:
        """Configure logger to also write to the run's log file."""
        file_handler = logging.FileHandler(self.run_log, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter(
            '%(asctime)s [%(name)s] %(levelname)s: %(message)s'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        # Ensure logger level allows DEBUG messages to reach the file handler
        logger.setLevel(logging.DEBUG)
        self._file_handler = file_handler

    def close(self, logger: logging.Logger) -> None:
        """Detach and close the run's log file handler."""
        if self._file_handler is not None:
            logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    def log_run_summary(self, source: Path, dest: Path, result: "SortResult",
                        stats_manager: "StatsManager", status: str) -> None:
        """Append a one-line summary of the run to runs.log."""
        self.root_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        size_mb = stats_manager.get_total_size_mb()

        summary = (
            f"{timestamp} | {status} | "
            f"Source: {source} | Dest: {dest} | "
            f"Processed: {result.processed_count} ({stats_manager.get_photos()} photos, "
            f"{stats_manager.get_videos()} videos, {stats_manager.get_skipped()} skipped) | "
            f"Size: {size_mb:.1f}MB | Failed: {stats_manager.get_failed()} | "
            f"Errors: {stats_manager.get_errors()} | History: {self.run_folder_name}\n"
        )

        with open(self.runs_log, 'a', encoding='utf-8') as f:
            f.write(summary)
