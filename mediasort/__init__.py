"""
mediasort - Sort photos and videos into dated folders.

Resolves the earliest trustworthy capture date of each photo and video from
embedded metadata, the desktop index and the filesystem, then moves files
into a Photos|Videos/YYYY/MM structure, optionally renaming them after that
date and stamping it back onto the files. MIT License.
"""

__version__ = "1.0.0"
__copyright__ = "Copyright (c) 2025 mediasort contributors"


# Public API
from .analysis import AnalysisResult, FileAnalysisService, FileRecord
from .check import FilenameChecker
from .cli import main
from .config import Config
from .core import SortEngine, SortResult
from .date_components import DateComponents, DateComponentsBuilder
from .date_fixing import DateFixer
from .history import HistoryManager
from .options import SortOption, SorterConfig
from .timestamps import DateResolver

__all__ = [ "main", "Config", "SortEngine", "SortResult", "SorterConfig", "SortOption",
            "FileAnalysisService", "FileRecord", "AnalysisResult", "DateResolver",
            "DateComponents", "DateComponentsBuilder", "DateFixer", "FilenameChecker",
            "HistoryManager" ]
