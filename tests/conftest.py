"""
pytest configuration and fixtures for mediasort tests.
"""

import io
import os
import shutil
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

from mediasort.analysis import FileAnalysisService
from mediasort.core import SortEngine
from mediasort.date_components import DateComponentsBuilder
from mediasort.date_fixing import DateFixer
from mediasort.options import SortOption, SorterConfig
from mediasort.timestamps import DateResolver


@dataclass
class CliResult:
    """Result from running CLI command."""
    exit_code: int
    output: str
    error: str


class FakeDateSource:
    """Date source answering from a name -> datetime table."""

    def __init__(self, dates: Optional[Dict[str, Optional[datetime]]] = None):
        self.dates = dict(dates or {})
        self.calls: List[Path] = []
        self.__name__ = "fake_date_source"

    def __call__(self, file_path: Path) -> Optional[datetime]:
        self.calls.append(file_path)
        return self.dates.get(file_path.name)


class FakeCommandExecutor:
    """Records external commands instead of running them."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.commands: List[List[str]] = []

    def execute(self, arguments: Sequence[str]) -> bool:
        self.commands.append(list(arguments))
        return self.succeed


class RecordingSink:
    """Collects whatever a progress or error handler receives."""

    def __init__(self):
        self.items = []

    def __call__(self, item) -> None:
        self.items.append(item)

    def of_type(self, kind) -> list:
        return [item for item in self.items if isinstance(item, kind)]


@pytest.fixture
def source_dir(tmp_path):
    source = tmp_path / "source"
    source.mkdir()
    return source


@pytest.fixture
def dest_dir(tmp_path):
    dest = tmp_path / "dest"
    dest.mkdir()
    return dest


@pytest.fixture
def create_test_files(source_dir):
    """Helper to create test files with specific properties."""

    def create_files(file_specs: List[dict]) -> Path:
        """Create test files based on specifications.

        Args:
            file_specs: List of dicts with keys:
                - name: relative file path
                - content: file content (optional)
                - mtime: modification time as datetime (optional)

        Returns:
            Path to directory containing created files
        """
        for spec in file_specs:
            file_path = source_dir / spec['name']

            # Ensure parent directory exists
            file_path.parent.mkdir(parents=True, exist_ok=True)

            content = spec.get('content', b'test file content')
            if isinstance(content, str):
                file_path.write_text(content)
            else:
                file_path.write_bytes(content)

            if 'mtime' in spec:
                mtime = spec['mtime'].timestamp()
                os.utime(file_path, (mtime, mtime))

        return source_dir

    return create_files


@pytest.fixture
def fake_dates():
    """A fake date source; tests fill in ``fake_dates.dates``."""
    return FakeDateSource()


@pytest.fixture
def fake_executor():
    return FakeCommandExecutor()


@pytest.fixture
def analysis_service(fake_dates):
    """Analysis service resolving dates only from the fake source."""
    return FileAnalysisService(
        resolver=DateResolver([fake_dates]),
        components_builder=DateComponentsBuilder(),
    )


@pytest.fixture
def make_engine(source_dir, dest_dir, analysis_service, fake_executor):
    """Build a SortEngine over the test folders with fake collaborators."""

    def build(options: SortOption = SortOption.NONE, fixed_date: Optional[datetime] = None,
              rename_pattern: Optional[str] = None, **kwargs) -> SortEngine:
        builder = SorterConfig.builder(source_dir, dest_dir).options(options).fixed_date(fixed_date)
        if rename_pattern:
            builder.rename_pattern(rename_pattern)

        date_fixer = DateFixer(resolver=analysis_service.resolver, executor=fake_executor,
                               classifier=analysis_service.classifier)
        kwargs.setdefault("date_fixer", date_fixer)
        return SortEngine(builder.build(), analysis_service=analysis_service, **kwargs)

    return build


@pytest.fixture(scope="session")
def test_config_base(tmp_path_factory):
    """Shared test config directory for all tests."""
    return tmp_path_factory.mktemp("mediasort_test_config")


@pytest.fixture
def test_config_path(test_config_base):
    """Test-specific config path with clean state guarantee."""
    config_path = test_config_base / "config.yml"

    # Ensure clean state - remove config if it exists
    if config_path.exists():
        config_path.unlink()

    # Also clean any residual history or runs logs
    history_dir = test_config_base / "history"
    runs_log = test_config_base / "runs.log"

    if history_dir.exists():
        shutil.rmtree(history_dir)
    if runs_log.exists():
        runs_log.unlink()

    return config_path


@pytest.fixture
def cli_runner(monkeypatch):
    """Create a CLI runner that captures output and uses test config."""

    def run_cli(*args, config_path=None, answer="n"):
        """Run mediasort CLI with given arguments.

        Args:
            *args: Command line arguments (source, dest, --flags, etc)
            config_path: Optional config path for test isolation
            answer: Reply given to confirmation prompts

        Returns:
            CliResult with exit_code, output, and error
        """
        from mediasort.cli import main
        from mediasort.constants import get_console

        stdout = io.StringIO()
        stderr = io.StringIO()
        monkeypatch.setattr(sys, "stdout", stdout)
        monkeypatch.setattr(sys, "stderr", stderr)
        monkeypatch.setattr(sys, "argv", ['mediasort'] + [str(a) for a in args])

        # Avoid hanging on confirmation prompts
        monkeypatch.setattr(get_console(), "input", lambda prompt="": answer)

        try:
            exit_code = main(config_path=config_path)
        except SystemExit as e:
            exit_code = e.code if e.code is not None else 0

        return CliResult(
            exit_code=exit_code,
            output=stdout.getvalue(),
            error=stderr.getvalue()
        )

    return run_cli


@pytest.fixture
def make_sink():
    """Factory for recording progress and error sinks."""
    return RecordingSink
