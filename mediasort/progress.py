"""Progress events emitted by a sorting run and a rich progress sink."""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from rich.progress import Progress, TaskID


@dataclass(frozen=True)
class SortStarted:
    source: Path
    destination: Path


@dataclass(frozen=True)
class FolderCreated:
    path: Path


@dataclass(frozen=True)
class FileMoved:
    source: Path
    destination: Path


@dataclass(frozen=True)
class SortCompleted:
    processed_count: int


ProgressEvent = Union[SortStarted, FolderCreated, FileMoved, SortCompleted]
ProgressHandler = Callable[[ProgressEvent], None]


class ProgressContext:
    """Encapsulates progress tracking state and consumes progress events."""

    def __init__(self, progress: Optional[Progress] = None, task: Optional[TaskID] = None):
        self.progress = progress
        self.task = task

    @property
    def is_active(self) -> bool:
        """Check if progress tracking is active."""
        return self.progress is not None and self.task is not None

    def update(self, description: str) -> None:
        """Update progress description if tracking is active."""
        if self.is_active:
            self.progress.update(self.task, description=description)

    def advance(self, steps: int = 1) -> None:
        """Advance progress by given number of steps."""
        if self.is_active:
            self.progress.advance(self.task, steps)

    def __call__(self, event: ProgressEvent) -> None:
        """Progress sink for SortEngine.run()."""
        if isinstance(event, SortStarted):
            self.update(f"Sorting {event.source.name}...")
        elif isinstance(event, FolderCreated):
            self.update(f"Created folder: {event.path.name}")
        elif isinstance(event, FileMoved):
            self.update(f"Moved: {event.destination.name}")
            self.advance()
        elif isinstance(event, SortCompleted):
            self.update(f"Sorted {event.processed_count} files")
