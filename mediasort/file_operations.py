"""
File operations used by the sorter: folder creation, unique naming and moves.
"""

import shutil
from pathlib import Path

from .constants import get_logger


class FileOperations:
    """Utility class for the filesystem side effects of a sorting run."""

    def __init__(self):
        self.logger = get_logger()

    def ensure_directory(self, directory: Path) -> bool:
        """Create directory and parents if needed. Returns True if it was created."""
        if directory.is_dir():
            return False
        directory.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Created folder {directory}")
        return True

    @staticmethod
    def create_unique_path(dest_dir: Path, filename: str) -> Path:
        """Return dest_dir/filename, or the first free name_N variant of it.

        Checked against what is on disk right now, so files placed earlier
        in the same run are taken into account.
        """
        original = Path(filename)
        stem = original.stem
        suffix = original.suffix
        dest_path = dest_dir / filename
        counter = 1
        while dest_path.exists():
            dest_path = dest_dir / f"{stem}_{counter}{suffix}"
            counter += 1
        return dest_path

    def move_file(self, source: Path, dest: Path) -> None:
        """Move a file, across volumes if needed, and verify the result."""
        shutil.move(str(source), str(dest))

        # Verify the operation
        if not dest.exists():
            raise FileNotFoundError(f"File not found after move: {dest}")

        if source.exists():
            raise FileExistsError(f"Source file still exists after move: {source}")

        self.logger.info(f"{source} -> {dest}")
