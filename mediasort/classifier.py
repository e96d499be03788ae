"""
File type classification and ignore rules.
"""

from enum import Enum
from typing import Iterable

from .constants import IGNORE_EXTENSIONS, IGNORE_NAMES, PHOTO_EXTENSIONS, VIDEO_EXTENSIONS


class MediaKind(Enum):
    PHOTO = "photo"
    VIDEO = "video"
    OTHER = "other"


class FileClassifier:
    """Maps extensions to media kinds and decides which files to ignore.

    Extensions are lower-case with a leading dot, as returned by
    ``Path.suffix.lower()``.
    """

    def __init__(self, photo_extensions: Iterable[str] = PHOTO_EXTENSIONS,
                 video_extensions: Iterable[str] = VIDEO_EXTENSIONS,
                 ignore_names: Iterable[str] = IGNORE_NAMES,
                 ignore_extensions: Iterable[str] = IGNORE_EXTENSIONS):
        self.photo_extensions = frozenset(photo_extensions)
        self.video_extensions = frozenset(video_extensions)
        self.ignore_names = tuple(ignore_names)
        self.ignore_extensions = frozenset(ignore_extensions)

    def classify(self, extension: str) -> MediaKind:
        if extension in self.video_extensions:
            return MediaKind.VIDEO
        if extension in self.photo_extensions:
            return MediaKind.PHOTO
        return MediaKind.OTHER

    def is_video(self, extension: str) -> bool:
        return self.classify(extension) is MediaKind.VIDEO

    def is_photo(self, extension: str) -> bool:
        return self.classify(extension) is MediaKind.PHOTO

    def is_media(self, extension: str) -> bool:
        return self.classify(extension) is not MediaKind.OTHER

    def should_ignore(self, path: str, extension: str) -> bool:
        """True if the path contains an ignored name or has an ignored extension."""
        if any(name in path for name in self.ignore_names):
            return True
        return extension in self.ignore_extensions
