"""Date sources and the minimum-date resolver.

Every date source is a plain function taking a path and returning a datetime
or None. Sources never raise on missing or unreadable metadata; the resolver
also guards against the ones that do.
"""

import json
import re
import subprocess
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .constants import get_logger, tool_available


logger = get_logger("mediasort.timestamps")

DateSource = Callable[[Path], Optional[datetime]]

# EXIF tags holding the capture date, in priority order
EXIF_DATE_TAGS = [
    'SubSecCreateDate',
    'CreationDate',
    'CreateDate',
    'CreationTime',
    'CreateTime',
    'ProfileDateTime',
    'DateTimeOriginal',
]

# Container tags holding the recording date, in priority order
VIDEO_DATE_TAGS = ["com.apple.quicktime.creationdate", "creation_time"]


def exif_creation_date(image_path: Path) -> Optional[datetime]:
    """Embedded metadata date read with exiftool."""
    if not tool_available("exiftool", "-ver"):
        return None

    try:
        # Call exiftool to retrieve creation timestamps
        result = subprocess.run([
            "exiftool",
            "-q",
            "-json",
            "-d", "%Y-%m-%dT%H:%M:%S%3f%z",  # ISO 8601 compliant date-string
            *[f"-{tag}" for tag in EXIF_DATE_TAGS],
            str(image_path)],
            capture_output=True, text=True, check=True
        )
        exif_data = json.loads(result.stdout)[0]
    except subprocess.CalledProcessError as e:
        logger.debug(f"exiftool failed for {image_path}: {e}")
        return None
    except (json.JSONDecodeError, IndexError) as e:
        logger.debug(f"Unreadable exiftool output for {image_path}: {e}")
        return None

    return canonical_EXIF_date(exif_data)


def canonical_EXIF_date(dates: Dict[str, str]) -> Optional[datetime]:
    """Parse EXIF image creation date with millisecond precision, if available."""
    for date_field in EXIF_DATE_TAGS:
        value = dates.get(date_field)
        if not isinstance(value, str):
            continue

        try:
            parsed = parse_iso8601_datetime(value)
        except ValueError:
            continue
        if parsed:
            return parsed

    return None


def parse_iso8601_datetime(timestamp_str: str) -> Optional[datetime]:
    """Parse ISO 8601 or EXIF date-time string.

    Handles both ISO 8601 (2025-05-06T19:41:34-0400) and raw EXIF
    (2025:05:06 19:41:34.745-04:00) date formats. Strings with an offset or
    a trailing Z give aware datetimes; strings without one give naive
    wall-clock datetimes.
    """
    # Pattern handles ISO 8601 (dash dates, T separator) and
    # raw EXIF format (colon dates, space separator)
    pattern = r'(\d{4}[-:]\d{2}[-:]\d{2})[T ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?\s?(Z|[+-]\d{2}:?\d{2})?'
    match = re.match(pattern, timestamp_str.strip())

    if not match:
        return None

    # Normalize colon-separated dates (EXIF format) to dash-separated
    date_part = match.group(1).replace(':', '-')
    time_part = match.group(2)
    fractional_part = match.group(3)
    timezone_part = match.group(4)

    # Zeroed EXIF dates are placeholders written by some cameras
    if date_part.startswith("0000"):
        return None

    datetime_str = f"{date_part} {time_part}"
    if fractional_part:
        milliseconds = fractional_part.ljust(3, '0')[:3]
        datetime_str += f".{milliseconds}"
        base_dt = datetime.strptime(datetime_str, "%Y-%m-%d %H:%M:%S.%f")
    else:
        base_dt = datetime.strptime(datetime_str, "%Y-%m-%d %H:%M:%S")

    if not timezone_part:
        return base_dt

    if timezone_part == 'Z':
        return base_dt.replace(tzinfo=timezone.utc)

    # Parse offset like "-0400" or "+05:00"
    tz_str = timezone_part
    if ':' not in tz_str:
        tz_str = f"{tz_str[:-2]}:{tz_str[-2:]}"

    sign = 1 if tz_str[0] == '+' else -1
    hours = int(tz_str[1:3])
    minutes = int(tz_str[4:6])
    offset = timezone(timedelta(minutes=sign * (hours * 60 + minutes)))
    return base_dt.replace(tzinfo=offset)


def video_creation_date(file_path: Path) -> Optional[datetime]:
    """Container metadata date read with ffprobe, Apple QuickTime tag first."""
    if not tool_available("ffprobe", "-version"):
        return None

    try:
        result = subprocess.run([
            "ffprobe", "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            str(file_path)
        ], capture_output=True, text=True, check=True)
        data = json.loads(result.stdout)
    except subprocess.CalledProcessError as e:
        logger.debug(f"ffprobe failed for {file_path}: {e}")
        return None
    except json.JSONDecodeError as e:
        logger.debug(f"Failed to parse ffprobe JSON output for {file_path}: {e}")
        return None

    tags = data.get("format", {}).get("tags", {})
    if not tags:
        logger.debug(f"No format metadata tags found for {file_path}")
        return None

    for date_key in VIDEO_DATE_TAGS:
        date_str = tags.get(date_key)
        if date_str:
            creation_date = parse_iso8601_datetime(date_str)
            if creation_date:
                logger.debug(f"Video creation date: {file_path}[{date_key}] = {creation_date}")
                return creation_date

    logger.debug(f"No creation date tag found for {file_path}")
    return None


def desktop_index_date(file_path: Path) -> Optional[datetime]:
    """Content creation date recorded by the Spotlight index (macOS only)."""
    if sys.platform != "darwin":
        return None

    try:
        result = subprocess.run(
            ["mdls", "-raw", "-name", "kMDItemContentCreationDate", str(file_path)],
            capture_output=True, text=True, check=True
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        logger.debug(f"mdls failed for {file_path}: {e}")
        return None

    value = result.stdout.strip()
    if not value or value == "(null)":
        return None

    try:
        return datetime.strptime(value, "%Y-%m-%d %H:%M:%S %z")
    except ValueError:
        logger.debug(f"Unexpected mdls date for {file_path}: {value}")
        return None


def filesystem_date(file_path: Path) -> Optional[datetime]:
    """Earliest of the filesystem birth and modification times."""
    try:
        stat = file_path.stat()
    except OSError as e:
        logger.debug(f"Could not stat {file_path}: {e}")
        return None

    timestamps = [stat.st_mtime]
    birthtime = getattr(stat, "st_birthtime", None)
    if birthtime:
        timestamps.append(birthtime)

    return datetime.fromtimestamp(min(timestamps), tz=timezone.utc)


def default_date_sources() -> List[DateSource]:
    """Date sources in query order: embedded, container, index, filesystem."""
    return [exif_creation_date, video_creation_date, desktop_index_date, filesystem_date]


class DateResolver:
    """Picks the earliest instant reported by a list of date sources."""

    def __init__(self, sources: Optional[Sequence[DateSource]] = None):
        self.sources = list(sources) if sources is not None else default_date_sources()

    def resolve(self, file_path: Path) -> Optional[datetime]:
        """Return the minimum date across all answering sources, or None."""
        candidates = []
        for source in self.sources:
            found = self._query(source, file_path)
            if found is None:
                continue

            try:
                candidates.append((_comparable(found), found))
            except (ValueError, OverflowError, OSError) as e:
                logger.debug(f"Unusable date {found!r} for {file_path}: {e}")

        if not candidates:
            return None

        return min(candidates, key=lambda pair: pair[0])[1]

    @staticmethod
    def _query(source: DateSource, file_path: Path) -> Optional[datetime]:
        name = getattr(source, "__name__", repr(source))
        try:
            found = source(file_path)
        except Exception as e:
            logger.debug(f"Date source {name} failed for {file_path}: {e}")
            return None

        logger.debug(f"{name}({file_path.name}) = {found}")
        return found


def _comparable(value: datetime) -> datetime:
    """Naive datetimes are wall-clock local time; make them comparable."""
    if value.tzinfo is None:
        return value.astimezone()
    return value
