"""
File extension constants, shared console and logger for mediasort.
"""

import logging
import subprocess
from functools import lru_cache
from typing import Optional

from rich.console import Console


PROGRAM = "mediasort"

# Media extensions recognized by the sorter (lower-case, with leading dot)
PHOTO_EXTENSIONS = (
    ".webp", ".jpg", ".jpeg", ".png", ".tiff", ".bmp", ".gif", ".heic",
)
VIDEO_EXTENSIONS = (
    ".mpg", ".m4v", ".mp4", ".mov", ".avi", ".mkv", ".flv", ".wmv",
)

# Paths containing any of these substrings are never processed
IGNORE_NAMES = (".ds_store",)
IGNORE_EXTENSIONS = (".aae",)

# Destination sub-folders used when building the dated folder structure
PHOTOS_FOLDER = "Photos"
VIDEOS_FOLDER = "Videos"

DEFAULT_RENAME_PATTERN = "yyyy-MM-dd--HH-mm"

# Content creation marker written next to the filesystem dates
MACOS_CONTENT_CREATED_ATTR = "com.apple.metadata:kMDItemContentCreationDate"
XDG_CONTENT_CREATED_ATTR = "user.xdg.creation.date"

_console: Optional[Console] = None


def get_console() -> Console:
    """Return the shared rich console."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the program logger or one of its children."""
    if name is None or name == PROGRAM:
        return logging.getLogger(PROGRAM)
    if not name.startswith(f"{PROGRAM}."):
        name = f"{PROGRAM}.{name}"
    return logging.getLogger(name)


def check_tool_availability(cmd: str, version_flag: str = "-h") -> bool:
    """Check whether an external command can be executed."""
    try:
        subprocess.run([cmd, version_flag], capture_output=True, check=True)
        return True
    except (subprocess.CalledProcessError, FileNotFoundError, PermissionError):
        return False


@lru_cache(maxsize=None)
def tool_available(cmd: str, version_flag: str = "-h") -> bool:
    """Cached variant of check_tool_availability, probed on first use."""
    available = check_tool_availability(cmd, version_flag)
    if not available:
        get_logger().debug(f"{cmd} unavailable: skipping lookups that need it")
    return available
