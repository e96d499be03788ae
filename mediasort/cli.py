"""
Command-line interface for mediasort.
"""

import argparse
import logging
import signal
import sys
import threading
import zoneinfo
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress
from rich.table import Table

from .analysis import FileAnalysisService
from .check import FilenameChecker
from .config import Config
from .constants import PROGRAM, get_console, get_logger
from .core import SortEngine, SortResult
from .date_components import DateComponentsBuilder
from .date_fixing import DateFixer
from .errors import FileProcessingError, SortCancelled, SorterError
from .history import HistoryManager
from .options import SortOption, SorterConfig
from .progress import ProgressContext


OPTION_FLAGS = {
    "create_folders": SortOption.CREATE_FOLDERS,
    "rename": SortOption.RENAME_FILES,
    "fix_metadata": SortOption.FIX_METADATA,
    "skip_existing_dates": SortOption.SKIP_EXISTING_DATES,
}


def parse_force_date(value: str) -> datetime:
    """Parse the --force-date argument (ISO 8601, e.g. 2021-06-01 12:30)."""
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD[ HH:MM]")


def parse_timezone(name: str) -> zoneinfo.ZoneInfo:
    """Convert a timezone name to a ZoneInfo with validation."""
    try:
        return zoneinfo.ZoneInfo(name)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        raise argparse.ArgumentTypeError(f"Unknown timezone '{name}'")


def create_parser(config: Config) -> argparse.ArgumentParser:
    """Create argument parser with dynamic defaults from config."""
    last_source = config.get_last_source()
    last_dest = config.get_last_dest()
    timezone = config.get_timezone()
    saved_options = config.get_options()

    source_help = "Source directory containing photos and videos to sort"
    dest_help = "Destination directory for sorted files"
    pattern_help = ("File name pattern for --rename using YYYY, MM, DD, HH, mm tokens "
                    f"(default: {config.get_rename_pattern()})")
    timezone_help = "Timezone used to split dates into folders and names"
    version_help = f"Display the version number of {PROGRAM} and exit"

    if last_source:
        source_help += f" (default: {last_source})"
    if last_dest:
        dest_help += f" (default: {last_dest})"
    if timezone:
        timezone_help += f" (default: {timezone})"
    else:
        timezone_help += " (default: system local time)"

    parser = argparse.ArgumentParser(
        description="Sort photos and videos into dated folders using their capture dates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Saved options: {', '.join(saved_options) or 'none'}

Examples:
  {PROGRAM} ~/Downloads/Photos ~/Pictures/Sorted --create-folders --rename
  {PROGRAM} ~/Pictures/Sorted --check
  {PROGRAM} ~/Pictures/Sorted --fix-dates
        """
    )

    parser.add_argument(
        "source", nargs="?",
        help=source_help
    )
    parser.add_argument(
        "dest", nargs="?",
        help=dest_help
    )
    parser.add_argument(
        "--source", "-s", dest="source_override",
        help="Override source directory"
    )
    parser.add_argument(
        "--dest", "-d", dest="dest_override",
        help="Override destination directory"
    )
    parser.add_argument(
        "--create-folders", "-f", action="store_true",
        help="Place files in <dest>/Photos|Videos/YYYY/MM folders"
    )
    parser.add_argument(
        "--rename", "-r", action="store_true",
        help="Rename files after their capture date"
    )
    parser.add_argument(
        "--pattern", "-p", type=str, metavar="PATTERN",
        help=pattern_help
    )
    parser.add_argument(
        "--fix-metadata", action="store_true",
        help="Stamp each file's earliest known date on its file dates"
    )
    parser.add_argument(
        "--force-date", type=parse_force_date, metavar="DATE",
        help="Stamp this date on every file instead of its own"
    )
    parser.add_argument(
        "--skip-existing-dates", action="store_true",
        help="Leave files whose name already carries a matching date"
    )
    parser.add_argument(
        "--timezone", "--tz", type=str, metavar="TIMEZONE",
        help=timezone_help
    )
    parser.add_argument(
        "--check", action="store_true",
        help="Only report files whose name date does not match their metadata"
    )
    parser.add_argument(
        "--fix-dates", action="store_true",
        help="Only fix file dates in the source folder, without moving anything"
    )
    parser.add_argument(
        "--yes", "-y", action="store_true",
        help="Auto-confirm processing for saved source/dest paths"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--version", "-V", action="store_true",
        help=version_help
    )

    return parser


def setup_logging(console: Console, verbose: bool) -> logging.Handler:
    """Attach a rich console handler to the program logger."""
    console_handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logger = get_logger()
    logger.addHandler(console_handler)
    logger.setLevel(logging.DEBUG)
    return console_handler


def show_processing_plan(source: Path, dest: Optional[Path], mode: str, options: SortOption,
                         pattern: str, force_date: Optional[datetime],
                         timezone: Optional[str], console: Console) -> None:
    """Display the processing plan before execution."""
    console.print("\n[bold]Processing Plan:[/bold]")
    console.print(f"  Source:          [blue]{source}[/blue]")
    if dest is not None:
        console.print(f"  Destination:     [blue]{dest}[/blue]")
    console.print(f"  Processing Mode: [cyan]{mode}[/cyan]")
    console.print(f"  Options:         [cyan]{', '.join(options.names()) or 'none'}[/cyan]")
    if SortOption.RENAME_FILES in options:
        console.print(f"  Name Pattern:    [cyan]{pattern}[/cyan]")
    if force_date is not None:
        console.print(f"  Forced Date:     [cyan]{force_date}[/cyan]")
    console.print(f"  Timezone:        [cyan]{timezone or 'system local'}[/cyan]")
    console.print()  # Empty line for readability


def confirm_processing(console: Console) -> bool:
    """Ask for confirmation when using saved configuration."""
    console.print("[yellow]Confirm processing plan with saved configuration.[/yellow]")

    try:
        response = console.input("Continue? [y/N]: ").strip().lower()
        return response in ['y', 'yes']
    except (EOFError, KeyboardInterrupt):
        console.print("\n[red]Operation cancelled[/red]")
        return False


def install_cancel_handler(cancel_event: threading.Event):
    """Turn Ctrl-C into a cooperative cancellation request."""
    def request_cancel(signum, frame):
        cancel_event.set()

    try:
        return signal.signal(signal.SIGINT, request_cancel)
    except ValueError:
        # Not in the main thread; Ctrl-C keeps its default behavior
        return None


def run_check(source: Path, analysis_service: FileAnalysisService, console: Console,
              cancel_event: threading.Event) -> int:
    """Report files whose name date disagrees with their metadata."""
    checker = FilenameChecker(analysis_service=analysis_service)
    with console.status("Checking file names...") as status:
        report = checker.check(
            source,
            on_progress=lambda count: status.update(f"Checked {count} files..."),
            cancel_event=cancel_event,
        )

    if report.mismatches:
        table = Table(title="File Names Not Matching Metadata")
        table.add_column("File", style="cyan")
        table.add_column("Metadata Date", style="yellow")
        for mismatch in report.mismatches:
            table.add_row(str(mismatch.file_path.relative_to(source)), mismatch.file_date)
        console.print(table)

    console.print(f"Checked {report.checked_count} files, "
                  f"{len(report.mismatches)} with mismatched names")
    return 0


def run_fix_dates(source: Path, analysis_service: FileAnalysisService,
                  force_date: Optional[datetime], console: Console,
                  cancel_event: threading.Event) -> int:
    """Fix file dates in place for every media file under source."""
    fixer = DateFixer(resolver=analysis_service.resolver, classifier=analysis_service.classifier)
    problems = []

    with console.status("Fixing file dates..."):
        if force_date is not None:
            count = fixer.force_set_date(source, force_date, on_error=problems.append,
                                         cancel_event=cancel_event)
        else:
            count = fixer.fix_dates_in(source, on_error=problems.append,
                                       cancel_event=cancel_event)

    console.print(f"Updated dates of {count} files")
    if problems:
        console.print(f"[yellow]{len(problems)} problems reported[/yellow]")
    return 0


def run_sort(config: SorterConfig, analysis_service: FileAnalysisService,
             history_manager: HistoryManager, console: Console,
             cancel_event: threading.Event) -> int:
    """Sort the source tree and print the summary."""
    engine = SortEngine(config, analysis_service=analysis_service)
    status = "SUCCESS"
    result: Optional[SortResult] = None
    exit_code = 0

    try:
        with Progress(console=console) as progress:
            task = progress.add_task("Sorting files...", total=None)
            progress_ctx = ProgressContext(progress, task)

            def report_problem(error: FileProcessingError) -> None:
                progress_ctx.update(f"Problem: {error.file_path.name}")

            result = engine.run(on_progress=progress_ctx, on_error=report_problem,
                                cancel_event=cancel_event)
    except SortCancelled as e:
        console.print("\n[red]Operation cancelled by user[/red]")
        result = e.result
        status = "CANCELLED"
        exit_code = 1
    except SorterError as e:
        console.print(f"\n[red]Fatal error: {e}[/red]")
        result = e.result
        status = "FAILED"
        exit_code = 1

    result = result or SortResult()
    engine.print_summary(result, console)
    if status == "SUCCESS" and engine.stats_manager.has_errors():
        status = "PARTIAL"
    history_manager.log_run_summary(config.source, config.destination, result,
                                    engine.stats_manager, status)

    if exit_code == 0:
        if result.has_errors:
            console.print(f"\n[green]✓ Processing completed successfully![/green] "
                          f"[yellow]({len(result.errors)} problems, see {history_manager.run_log})[/yellow]")
        else:
            console.print("\n[green]✓ Processing completed successfully![/green]")
    return exit_code


def main(config_path: Optional[Path] = None) -> int:
    """Main entry point.

    Args:
        config_path: Optional path to config file (for testing)
    """
    config = Config(config_path=config_path)
    parser = create_parser(config)
    args = parser.parse_args()

    # Detect if running with no positional arguments (using saved config)
    using_saved_config = args.source is None and args.dest is None and \
                         args.source_override is None and args.dest_override is None

    # Handle version option
    if args.version:
        from . import __version__, __copyright__
        if args.verbose:
            print(f"{PROGRAM} version {__version__} {__copyright__}")
            print(f"Config:  {config.config_path}")
            return 0
        print(__version__)
        return 0

    console = get_console()

    # Determine source and destination
    source_path = args.source_override or args.source or config.get_last_source()
    dest_path = args.dest_override or args.dest or config.get_last_dest()
    needs_dest = not (args.check or args.fix_dates)

    if not source_path or (needs_dest and not dest_path):
        parser.error("Source and destination directories are required")

    source = Path(source_path).expanduser().resolve()
    if not source.is_dir():
        print(f"Error: Source directory does not exist: {source}")
        return 1

    dest = Path(dest_path).expanduser().resolve() if needs_dest else None

    # Handle timezone setting
    timezone_name = args.timezone or config.get_timezone()
    try:
        timezone = parse_timezone(timezone_name) if timezone_name else None
    except argparse.ArgumentTypeError as e:
        print(f"Error: {e}")
        return 1
    if args.timezone:
        config.update_timezone(args.timezone)

    # Resolve sort options from flags, falling back to saved ones
    options = SortOption.NONE
    for flag, option in OPTION_FLAGS.items():
        if getattr(args, flag):
            options |= option
    if options == SortOption.NONE and using_saved_config:
        options = SortOption.from_names(config.get_options())
    if args.force_date is not None:
        options |= SortOption.FORCE_UPDATE_DATE

    pattern = args.pattern or config.get_rename_pattern()
    if args.pattern:
        config.update_rename_pattern(args.pattern)

    mode = "CHECK" if args.check else "FIX DATES" if args.fix_dates else "SORT"
    show_processing_plan(source, dest, mode, options, pattern, args.force_date,
                         timezone_name, console)

    # Show confirmation when using saved config without --yes flag
    if using_saved_config and not args.yes:
        if not confirm_processing(console):
            return 0  # Exit gracefully

    console_handler = setup_logging(console, args.verbose)
    analysis_service = FileAnalysisService(components_builder=DateComponentsBuilder(timezone))
    cancel_event = threading.Event()
    previous_handler = install_cancel_handler(cancel_event)

    try:
        if args.check:
            return run_check(source, analysis_service, console, cancel_event)
        if args.fix_dates:
            return run_fix_dates(source, analysis_service, args.force_date, console, cancel_event)

        dest.mkdir(parents=True, exist_ok=True)
        config.update_paths(str(source), str(dest))
        config.update_options(options.names())

        sorter_config = (SorterConfig.builder(source, dest)
                         .options(options)
                         .fixed_date(args.force_date)
                         .rename_pattern(pattern)
                         .build())

        history_manager = HistoryManager(dest_path=dest, root_dir=config.program_root)
        history_manager.setup_run_logger(get_logger())
        try:
            return run_sort(sorter_config, analysis_service, history_manager, console, cancel_event)
        finally:
            history_manager.close(get_logger())

    except SortCancelled:
        console.print("\n[red]Operation cancelled by user[/red]")
        return 1
    except SorterError as e:
        console.print(f"\n[red]Fatal error: {e}[/red]")
        return 1
    except OSError as e:
        console.print(f"\n[red]Fatal error: {e}[/red]")
        return 1
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)
        get_logger().removeHandler(console_handler)


if __name__ == "__main__":
    sys.exit(main())
