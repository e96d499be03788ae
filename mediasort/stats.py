"""
Statistics tracking for sorting runs.
"""

from typing import Dict


class StatsManager:
    """Encapsulates statistics tracking for sorting runs."""

    def __init__(self):
        self._stats = {
            'photos': 0,
            'videos': 0,
            'skipped': 0,
            'failed': 0,
            'errors': 0,
            'folders_created': 0,
            'total_size': 0,
        }

    def record_moved(self, is_video: bool, file_size: int) -> None:
        """Record a successfully moved file, updating both count and size."""
        if is_video:
            self._stats['videos'] += 1
        else:
            self._stats['photos'] += 1
        self._stats['total_size'] += file_size

    def increment_skipped(self) -> None:
        """Increment skipped count when a file is left where it is."""
        self._stats['skipped'] += 1

    def increment_failed(self) -> None:
        """Increment failed count when a file could not be moved."""
        self._stats['failed'] += 1

    def increment_errors(self, count: int = 1) -> None:
        """Count non-fatal errors reported for files."""
        self._stats['errors'] += count

    def increment_folders_created(self) -> None:
        self._stats['folders_created'] += 1

    def get_stats(self) -> Dict[str, int]:
        """Get a copy of current statistics."""
        return self._stats.copy()

    def get_total_moved(self) -> int:
        """Get total count of successfully moved files."""
        return self._stats['photos'] + self._stats['videos']

    def get_total_size_mb(self) -> float:
        """Get total size in megabytes."""
        return self._stats['total_size'] / (1024 * 1024)

    def has_errors(self) -> bool:
        """Check if any file reported a problem."""
        return self._stats['errors'] > 0 or self._stats['failed'] > 0

    # Individual stat getters for reporting
    def get_photos(self) -> int:
        return self._stats['photos']

    def get_videos(self) -> int:
        return self._stats['videos']

    def get_skipped(self) -> int:
        return self._stats['skipped']

    def get_failed(self) -> int:
        return self._stats['failed']

    def get_errors(self) -> int:
        return self._stats['errors']

    def get_folders_created(self) -> int:
        return self._stats['folders_created']

    def get_total_size(self) -> int:
        return self._stats['total_size']
