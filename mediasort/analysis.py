"""
Per-file analysis: classification, date resolution and filename validation.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .classifier import FileClassifier
from .constants import get_logger
from .date_components import DateComponents, DateComponentsBuilder
from .timestamps import DateResolver


@dataclass(frozen=True)
class FileRecord:
    """Basic file information for one enumerated path."""
    path: Path
    name: str
    extension: str  # lower-case, with leading dot

    @classmethod
    def from_path(cls, path: Path) -> "FileRecord":
        path = Path(path).absolute()
        return cls(path=path, name=path.name, extension=path.suffix.lower())


@dataclass(frozen=True)
class AnalysisResult:
    """Everything the sorter needs to know about one file."""
    record: FileRecord
    is_video: bool = False
    should_ignore: bool = False
    resolved_date: Optional[datetime] = None
    date_components: Optional[DateComponents] = None
    filename_components: Optional[DateComponents] = None
    filename_date_matches_metadata: bool = True

    @property
    def has_valid_metadata(self) -> bool:
        return self.date_components is not None

    @property
    def date_description(self) -> str:
        return str(self.resolved_date) if self.resolved_date is not None else "-"


class FileAnalysisService:
    """Combines classification, date resolution and filename checks."""

    def __init__(self, classifier: Optional[FileClassifier] = None,
                 resolver: Optional[DateResolver] = None,
                 components_builder: Optional[DateComponentsBuilder] = None):
        self.classifier = classifier or FileClassifier()
        self.resolver = resolver or DateResolver()
        self.components_builder = components_builder or DateComponentsBuilder()
        self.logger = get_logger("mediasort.analysis")

    def analyze(self, record: FileRecord) -> AnalysisResult:
        """Analyze a file. Unreadable values are treated as absent."""
        if self.classifier.should_ignore(str(record.path), record.extension):
            return AnalysisResult(record=record, should_ignore=True)

        is_video = self.classifier.is_video(record.extension)
        resolved_date = self.resolver.resolve(record.path)
        date_components = self._components_for(record, resolved_date)
        if date_components is None:
            resolved_date = None

        filename_components = self.components_builder.from_filename(record.name)

        return AnalysisResult(
            record=record,
            is_video=is_video,
            should_ignore=False,
            resolved_date=resolved_date,
            date_components=date_components,
            filename_components=filename_components,
            filename_date_matches_metadata=self._filename_matches(
                filename_components, date_components),
        )

    def _components_for(self, record: FileRecord,
                        resolved_date: Optional[datetime]) -> Optional[DateComponents]:
        if resolved_date is None:
            return None
        try:
            return self.components_builder.from_instant(resolved_date)
        except (OverflowError, ValueError, OSError) as e:
            self.logger.debug(f"Unusable date {resolved_date!r} for {record.path}: {e}")
            return None

    def _filename_matches(self, filename_components: Optional[DateComponents],
                          metadata_components: Optional[DateComponents]) -> bool:
        # A name without a date makes no claim that could conflict
        if filename_components is None:
            return True
        # A date in the name that metadata cannot corroborate is unvalidated
        if metadata_components is None:
            return False
        return self.components_builder.matches(
            metadata_components, filename_components, include_time=True)
