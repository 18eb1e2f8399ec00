"""
Command line entry point for ContentSync.

This module handles:
- Command line argument parsing
- Settings loading
- Logging configuration
- Ctrl+C cancellation
- Exit codes
"""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, List

from contentsync import __version__
from contentsync.core.errors import ScanError
from contentsync.core.folder.sync import FolderSync, SyncOptions, sync_file
from contentsync.core.models import SyncProgress, SyncReport
from contentsync.core.timing import Timings
from contentsync.services.listing_cache import (
    JsonListingCache,
    ListingCache,
    MemoryListingCache,
)
from contentsync.services.settings import SettingsManager, SyncSettings


# =============================================================================
# Constants
# =============================================================================

APP_NAME = "contentsync"

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CommandLineArgs:
    """Parsed command line arguments."""
    source: str = ""
    destination: str = ""

    # Operations
    copy_new: bool = False
    update_changed: bool = False
    delete_changed: bool = False
    delete_identical: bool = False
    delete_extra: bool = False
    create_empty_folders: bool = False
    delete_extra_folders: bool = False

    what_if: bool = False
    pattern: Optional[str] = None
    non_recursive: bool = False
    ignore_date: bool = False
    case_sensitive: bool = False
    workers: Optional[int] = None

    no_cache: bool = False
    clear_cache: bool = False
    config_file: Optional[str] = None
    log_level: Optional[str] = None
    log_file: Optional[str] = None
    timings: bool = False
    progress: bool = False

    @property
    def any_operation(self) -> bool:
        return (
            self.copy_new
            or self.update_changed
            or self.delete_changed
            or self.delete_identical
            or self.delete_extra
            or self.create_empty_folders
            or self.delete_extra_folders
        )


# =============================================================================
# Logging Setup
# =============================================================================

class LogFormatter(logging.Formatter):
    """Log formatter with colors for console."""

    COLORS = {
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if self.use_colors:
            color = self.COLORS.get(record.levelno, '')
            return f"{color}{formatted}{self.RESET}"

        return formatted


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure logging.

    Args:
        level: Log level string
        log_file: Optional file path for logging

    Returns:
        Root logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(LogFormatter(use_colors=True))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(
            log_file,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(LogFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    return root_logger


# =============================================================================
# Command Line Parsing
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="One-way directory synchronization",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
With no operation flags, the destination is mirrored: new files are copied,
changed files updated, extra files and folders deleted and empty folders
created.

Examples:
  %(prog)s src dst                 Mirror src into dst
  %(prog)s src dst -c              Only copy files missing from dst
  %(prog)s src dst -n              Show what a mirror would do
  %(prog)s src dst -c -u -p "*.txt"  Copy and update .txt files only
        """
    )

    # Positional arguments
    parser.add_argument('source', help='Source file or folder')
    parser.add_argument('destination', help='Destination file or folder')

    # Operations
    ops = parser.add_argument_group('operations')
    ops.add_argument('-c', '--copy-new', action='store_true',
                     help='Copy files that exist only in the source')
    ops.add_argument('-u', '--update-changed', action='store_true',
                     help='Overwrite changed files in the destination')
    ops.add_argument('--delete-changed', action='store_true',
                     help='Delete changed files from the destination (ignored with -u)')
    ops.add_argument('--delete-identical', action='store_true',
                     help='Delete files from the destination that are identical to the source')
    ops.add_argument('-d', '--delete-extra', action='store_true',
                     help='Delete files that exist only in the destination')
    ops.add_argument('-e', '--create-empty-folders', action='store_true',
                     help='Create folders that exist only in the source')
    ops.add_argument('--delete-extra-folders', action='store_true',
                     help='Delete folders that exist only in the destination')

    # Behaviour
    parser.add_argument('-n', '--what-if', '--dry-run', dest='what_if', action='store_true',
                        help='Report what would be done without changing anything')
    parser.add_argument('-p', '--pattern', default=None,
                        help='Only consider files whose name matches this glob (default: *)')
    parser.add_argument('--non-recursive', action='store_true',
                        help='Only consider files directly in the source folder')
    parser.add_argument('--ignore-date', action='store_true',
                        help='Do not let modification times decide whether files differ')
    parser.add_argument('--case-sensitive', action='store_true',
                        help='Compare paths case-sensitively')
    parser.add_argument('--workers', type=int, default=None,
                        help='Number of parallel comparisons (default: 2x CPU count)')

    # Cache
    parser.add_argument('--no-cache', action='store_true',
                        help='Do not read or write the directory listing cache')
    parser.add_argument('--clear-cache', action='store_true',
                        help='Clear the directory listing cache before running')

    # Configuration
    parser.add_argument('--config', dest='config_file',
                        help='Settings file path')

    # Logging
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose output')
    parser.add_argument('--log-level',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None, help='Log level')
    parser.add_argument('--log-file', default=None,
                        help='Also write the log to this file')
    parser.add_argument('--timings', action='store_true',
                        help='Print how long each phase took')
    parser.add_argument('--progress', action='store_true',
                        help='Run the sync on a background thread and print per-item progress')

    parser.add_argument('--version', action='version',
                        version=f'{APP_NAME} {__version__}')

    return parser


def parse_arguments(args: Optional[List[str]] = None) -> CommandLineArgs:
    """
    Parse command line arguments.

    Args:
        args: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parsed = build_parser().parse_args(args)

    if parsed.workers is not None and parsed.workers < 1:
        build_parser().error("--workers must be at least 1")

    result = CommandLineArgs(
        source=parsed.source,
        destination=parsed.destination,
        copy_new=parsed.copy_new,
        update_changed=parsed.update_changed,
        delete_changed=parsed.delete_changed,
        delete_identical=parsed.delete_identical,
        delete_extra=parsed.delete_extra,
        create_empty_folders=parsed.create_empty_folders,
        delete_extra_folders=parsed.delete_extra_folders,
        what_if=parsed.what_if,
        pattern=parsed.pattern,
        non_recursive=parsed.non_recursive,
        ignore_date=parsed.ignore_date,
        case_sensitive=parsed.case_sensitive,
        workers=parsed.workers,
        no_cache=parsed.no_cache,
        clear_cache=parsed.clear_cache,
        config_file=parsed.config_file,
        log_file=parsed.log_file,
        timings=parsed.timings,
        progress=parsed.progress,
    )

    if parsed.verbose:
        result.log_level = 'DEBUG'
    else:
        result.log_level = parsed.log_level

    return result


def build_options(args: CommandLineArgs, settings: SyncSettings) -> SyncOptions:
    """Combine command line flags with loaded settings."""
    common = dict(
        dry_run=args.what_if,
        pattern=args.pattern if args.pattern is not None else settings.pattern,
        recursive=False if args.non_recursive else settings.recursive,
        respect_date=False if args.ignore_date else settings.respect_date,
        case_sensitive=args.case_sensitive or settings.case_sensitive,
        max_workers=args.workers if args.workers is not None else settings.max_workers,
    )

    if not args.any_operation:
        return SyncOptions.mirror(**common)

    return SyncOptions(
        copy_left_only_files=args.copy_new,
        update_changed_files=args.update_changed,
        delete_changed_files=args.delete_changed,
        delete_identical_files=args.delete_identical,
        delete_right_only_files=args.delete_extra,
        create_empty_folders=args.create_empty_folders,
        delete_right_only_folders=args.delete_extra_folders,
        **common,
    )


def build_cache(args: CommandLineArgs, settings: SyncSettings) -> ListingCache:
    if args.no_cache or not settings.use_cache:
        return MemoryListingCache()
    return JsonListingCache(settings.cache_dir or None)


# =============================================================================
# Background Sync
# =============================================================================

# Created on first use and kept for the life of the process
_qt_app = None


def print_progress(progress: SyncProgress) -> None:
    print(f"[{progress.items_completed + 1}/{progress.total_items}] "
          f"{progress.current_action}: {progress.current_item}", file=sys.stderr)


def sync_in_background(
    source: str,
    destination: str,
    options: SyncOptions,
    cache: ListingCache,
    timings: Timings,
    cancel: threading.Event
) -> SyncReport:
    """
    Run a sync on a worker thread, printing progress to stderr.

    Raises whatever the sync raised.
    """
    from PyQt6.QtCore import QCoreApplication
    from contentsync.workers import SyncWorker, start_in_thread

    global _qt_app
    if QCoreApplication.instance() is None:
        _qt_app = QCoreApplication([APP_NAME])
    app = QCoreApplication.instance()

    worker = SyncWorker(source, destination, options, cache=cache,
                        timings=timings, cancel_event=cancel)
    worker.signals.progress.connect(print_progress)
    thread = start_in_thread(worker)

    # Short waits let the Ctrl+C handler run
    while not thread.wait(100):
        app.processEvents()
    app.processEvents()

    if worker.exception is not None:
        raise worker.exception
    return worker.result


# =============================================================================
# Signal Handlers
# =============================================================================

def setup_signal_handlers(cancel: threading.Event) -> None:
    """Turn the first Ctrl+C into a clean cancellation."""
    def _signal_handler(signum, frame) -> None:
        if cancel.is_set():
            raise KeyboardInterrupt
        logging.warning(f"Received signal {signum}, stopping after the current item...")
        cancel.set()

    signal.signal(signal.SIGINT, _signal_handler)
    if sys.platform != 'win32':
        signal.signal(signal.SIGTERM, _signal_handler)


# =============================================================================
# Main Function
# =============================================================================

def run(args: CommandLineArgs, cancel: Optional[threading.Event] = None) -> int:
    """
    Run a sync for parsed arguments.

    Returns:
        Exit code (0 for success)
    """
    cancel = cancel or threading.Event()
    settings = SettingsManager(args.config_file).settings

    log_file = args.log_file or settings.log_file
    setup_logging(args.log_level or settings.log_level, Path(log_file) if log_file else None)

    options = build_options(args, settings)
    source = args.source
    destination = args.destination

    if os.path.isfile(source):
        ok = sync_file(source, destination, options, cancel)
        return EXIT_SUCCESS if ok else EXIT_FAILURE

    if not os.path.isdir(source):
        logging.error(f"Source directory doesn't exist: {source}")
        return EXIT_USAGE

    cache = build_cache(args, settings)
    if args.clear_cache:
        cache.clear()

    timings = Timings()

    try:
        if args.progress:
            report = sync_in_background(source, destination, options, cache, timings, cancel)
        else:
            sync = FolderSync(options, cache=cache, timings=timings)
            report = sync.sync(source, destination, cancel)
    except ScanError as e:
        logging.error(str(e))
        return EXIT_FAILURE

    if args.timings:
        timings.log_report()

    if report.cancelled:
        logging.warning("Cancelled.")

    return report.exit_code


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command line main entry point.

    Returns:
        Exit code (0 for success)
    """
    args = parse_arguments(argv)

    cancel = threading.Event()
    setup_signal_handlers(cancel)

    try:
        return run(args, cancel)
    except KeyboardInterrupt:
        logging.warning("Interrupted.")
        return EXIT_FAILURE


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == '__main__':
    sys.exit(main())
