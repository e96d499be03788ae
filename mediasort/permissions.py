"""
Access checks for the root folders of a run.
"""

import os
from abc import abstractmethod
from pathlib import Path
from typing import Protocol, Set

from .constants import get_logger


class AccessGuard(Protocol):
    """Grants access to a root folder for the duration of a run.

    Every successful ``acquire`` is paired with one ``release``.
    """

    @abstractmethod
    def acquire(self, root: Path) -> bool:
        """Request access to root. Returns False when access is denied."""
        ...

    @abstractmethod
    def release(self, root: Path) -> None:
        """Give back access obtained with acquire."""
        ...


class FilesystemAccessGuard(AccessGuard):
    """Grants access to existing directories the current user may use.

    Write access is required unless the guard is created for read-only work.
    """

    def __init__(self, writable: bool = True):
        self.writable = writable
        self.logger = get_logger()
        self._held: Set[Path] = set()

    def acquire(self, root: Path) -> bool:
        # Sorting in place acquires the same folder as source and destination
        if self.is_held(root):
            return True

        if not root.is_dir():
            self.logger.error(f"Not a directory: {root}")
            return False

        mode = os.R_OK | os.X_OK
        if self.writable:
            mode |= os.W_OK
        if not os.access(root, mode):
            self.logger.error(f"Insufficient permissions on {root}")
            return False

        self._held.add(root)
        return True

    def release(self, root: Path) -> None:
        self._held.discard(root)

    def is_held(self, root: Path) -> bool:
        return root in self._held
