#!/usr/bin/env python3
"""
ducky CLI: command line interface for duplicate file detection.
Reports duplicate groups by default; --delete/--hardlink only touch the
filesystem when confirmed with --yes.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import logging
import os
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, NoReturn, Optional

LOG_FORMAT = "%(levelname)-8s | %(name)-25s | %(message)s"

# === EARLY DEPENDENCY VALIDATION ===
_MISSING_DEPS = []
try:
    import send2trash  # noqa: F401
except ImportError:
    _MISSING_DEPS.append("send2trash")

try:
    import xxhash  # noqa: F401
except ImportError:
    _MISSING_DEPS.append("xxhash")

try:
    import blake3  # noqa: F401
except ImportError:
    _MISSING_DEPS.append("blake3")

if _MISSING_DEPS:
    print("❌ Missing required dependencies:", file=sys.stderr)
    print(f"   pip install {' '.join(_MISSING_DEPS)}", file=sys.stderr)
    print("\nOr install the package with its dependencies:", file=sys.stderr)
    print("   pip install ducky", file=sys.stderr)
    sys.exit(1)

# === NORMAL IMPORTS (after validation) ===
from ducky.core.models import ActionPolicy, DeduplicationParams, FileRecord
from ducky.commands import DeduplicationCommand, RunResult
from ducky.utils.convert_utils import ConvertUtils
from ducky.services.report_service import ReportService
from ducky.aliases import (
    POLICY_ALIASES, POLICY_CHOICES, MIN_QUICK_BYTES, MAX_QUICK_BYTES,
    QUICK_BYTES_HELP_TEXT, YES_HELP_TEXT, EPILOG_TEXT
)

logger = logging.getLogger(__name__)


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: int = 0
        self.quiet: bool = False
        self._stop_event = threading.Event()
        self._listed: List[FileRecord] = []

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="ducky",
            description="ducky: fast duplicate file finder (size → quick hash → full hash)",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        parser.add_argument(
            "paths",
            nargs="+",
            type=str,
            metavar="PATH",
            help="Directories to scan for duplicates"
        )

        # Filtering options
        parser.add_argument(
            "--min-size", "-m",
            default="1KB",
            type=str,
            metavar='',
            help="Minimum file size (e.g., 500KB, 1MB). Default: 1KB"
        )
        parser.add_argument(
            "--ext",
            default="",
            type=str,
            metavar='',
            help="Comma separated extensions to include (e.g., jpg,png)"
        )
        parser.add_argument(
            "--hidden",
            action="store_true",
            help="Include hidden files and directories"
        )
        parser.add_argument(
            "--follow-symlinks",
            action="store_true",
            dest="follow_symlinks",
            help="Follow symbolic links to files and directories"
        )
        parser.add_argument(
            "--excluded-dirs", '-e',
            nargs="+",
            default=[],
            type=str,
            metavar='',
            dest="excluded_dirs",
            help="Excluded/ignored directories (space separated)"
        )

        # Detection options
        parser.add_argument(
            "--quick-bytes",
            default="64KB",
            type=str,
            metavar='',
            dest="quick_bytes",
            help=QUICK_BYTES_HELP_TEXT
        )
        parser.add_argument(
            "--workers",
            default=None,
            type=int,
            metavar='',
            help="Number of hashing threads. Default: min(8, CPU count)"
        )

        # Actions
        actions = parser.add_mutually_exclusive_group()
        actions.add_argument(
            "--delete",
            action="store_const",
            const="delete",
            dest="action",
            help=ActionPolicy.DELETE.description
        )
        actions.add_argument(
            "--hardlink",
            action="store_const",
            const="hardlink",
            dest="action",
            help=ActionPolicy.HARDLINK.description
        )
        parser.set_defaults(action="none")
        parser.add_argument(
            "--yes", "-y",
            action="store_true",
            help=YES_HELP_TEXT
        )
        parser.add_argument(
            "--trash",
            action="store_true",
            help="With --delete: move files to the system trash instead of removing them"
        )

        # Output options
        parser.add_argument(
            "--list", "-l",
            action="store_true",
            help="List every discovered file before the results"
        )
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print duplicate groups as JSON"
        )
        parser.add_argument(
            "--summary-json",
            action="store_true",
            dest="summary_json",
            help="Print the run summary as JSON"
        )
        parser.add_argument(
            "--timings",
            action="store_true",
            help="Print per-phase timings (ms) to stderr"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Print only the summary line"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="count",
            default=0,
            help="Show progress and statistics (-vv for debug logging)"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        if args.action not in POLICY_CHOICES:
            self.error_exit(
                f"Invalid action: '{args.action}'.\n"
                f"Valid options: {', '.join(POLICY_CHOICES)}"
            )
        if args.trash and args.action != "delete":
            self.error_exit("--trash can only be used with --delete")
        if args.json and args.summary_json:
            self.error_exit("--json and --summary-json cannot be combined")
        if args.workers is not None and args.workers < 1:
            self.error_exit("--workers must be at least 1")

        for size_arg in (args.min_size, args.quick_bytes):
            if not ConvertUtils.is_valid_size_format(size_arg):
                self.error_exit(f"Invalid size format: '{size_arg}'")

        for excl_dir in args.excluded_dirs:
            excl_path = Path(excl_dir).resolve()
            if not excl_path.exists():
                self.warning(f"Excluded directory not found: {excl_dir}")
            elif not excl_path.is_dir():
                self.warning(f"Excluded path is not a directory: {excl_dir}")

    def clamp_quick_bytes(self, quick_bytes: int) -> int:
        """Keep the quick-hash sample within [1KB, 1GB]."""
        clamped = max(MIN_QUICK_BYTES, min(quick_bytes, MAX_QUICK_BYTES))
        if clamped != quick_bytes:
            self.warning(
                f"--quick-bytes {ConvertUtils.bytes_to_human(quick_bytes)} out of range, "
                f"using {ConvertUtils.bytes_to_human(clamped)}"
            )
        return clamped

    def create_params(self, args: argparse.Namespace) -> DeduplicationParams:
        """Create DeduplicationParams from CLI arguments."""
        try:
            # Normalize excluded paths the same way the walker builds its paths
            excluded_dirs = [os.path.abspath(item.strip()) for item in args.excluded_dirs]
            extra = {}
            if args.workers is not None:
                extra["workers"] = args.workers

            params = DeduplicationParams.from_human_readable(
                roots=[os.path.abspath(p) for p in args.paths],
                min_size_str=args.min_size,
                quick_bytes_str=args.quick_bytes,
                extensions_str=args.ext,
                excluded_dirs=excluded_dirs,
                policy=POLICY_ALIASES[args.action],
                confirm=args.yes,
                include_hidden=args.hidden,
                follow_symlinks=args.follow_symlinks,
                use_trash=args.trash,
                **extra
            )
            params.quick_bytes = self.clamp_quick_bytes(params.quick_bytes)
            return params
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.verbose:
            return

        if total and total > 0:
            percent = (current / total) * 100
            sys.stderr.write(
                f"\r  [{stage}] {current}/{total} ({percent:.1f}%)"
            )
            sys.stderr.flush()
        else:
            sys.stderr.write(f"\r  [{stage}] {current} files processed...")
            sys.stderr.flush()

    def stopped_flag(self) -> bool:
        """True once SIGTERM was received; the run then stops before any action."""
        return self._stop_event.is_set()

    def _on_sigterm(self, signum, frame) -> None:
        logger.info(f"Received signal {signum}, stopping")
        self._stop_event.set()

    def install_signal_handlers(self):
        """Returns the previous SIGTERM handler, or None off the main thread."""
        if threading.current_thread() is not threading.main_thread():
            return None
        return signal.signal(signal.SIGTERM, self._on_sigterm)

    @staticmethod
    def restore_signal_handlers(previous) -> None:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)

    def run_deduplication(self, params: DeduplicationParams, list_files: bool = False) -> RunResult:
        """Execute the deduplication workflow."""
        command = DeduplicationCommand()
        if self.verbose:
            print(f"Finding duplicates ({params.policy.display_name.lower()})...", file=sys.stderr)

        try:
            result = command.execute(
                params,
                progress_callback=self.progress_callback if self.verbose else None,
                stopped_flag=self.stopped_flag,
                on_record=self._listed.append if list_files else None,
            )
        except RuntimeError as e:
            self.error_exit(str(e))

        if self.verbose:
            sys.stderr.write("\n")
            print("\nDeduplication Statistics:", file=sys.stderr)
            print(result.stats.print_summary(), file=sys.stderr)
        return result

    def output_listing(self, params: DeduplicationParams) -> None:
        for record in self._listed:
            print(record.path)
        total = sum(record.size for record in self._listed)
        print()
        print(f"Matched {len(self._listed)} files "
              f"(>= {ConvertUtils.bytes_to_human(params.min_size_bytes)}) "
              f"totaling {ConvertUtils.bytes_to_human(total)}")

    def output_results(self, args: argparse.Namespace, result: RunResult) -> None:
        """Write groups or summary to stdout in the requested format."""
        if args.json:
            print(ReportService.render_json(result.groups))
            return
        if args.summary_json:
            timings = result.timings if args.timings else None
            print(ReportService.render_summary_json(result.summary, timings))
            return

        if not result.groups:
            if not self.quiet:
                print("No duplicate groups found.")
            return

        if self.quiet:
            print(ReportService.print_summary_line(result.summary))
        else:
            print(ReportService.render_human(result.groups, result.summary))
            if result.summary.file_errors:
                self.warning(f"{result.summary.file_errors} unreadable file(s) skipped")

    @staticmethod
    def output_actions(params: DeduplicationParams, result: RunResult) -> None:
        """Action report goes to stderr so stdout stays machine-readable."""
        if not params.policy.mutates:
            return
        if not params.confirm:
            print("Refusing to modify files without --yes.", file=sys.stderr)
        if not result.groups:
            print("No duplicate groups to modify.", file=sys.stderr)
            return
        print(ReportService.render_actions(result.action_results, result.summary, params.policy),
              file=sys.stderr)

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    @staticmethod
    def escape_undecodable_output() -> None:
        """
        File names that are not valid in the filesystem encoding arrive as
        surrogate escapes; print them backslash-escaped instead of failing
        after the actions have already run.
        """
        for stream in (sys.stdout, sys.stderr):
            reconfigure = getattr(stream, "reconfigure", None)
            if reconfigure is not None:
                reconfigure(errors="backslashreplace")

    def run(self, argv=None) -> int:
        """Main entry point. Returns the process exit code."""
        self.escape_undecodable_output()
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        if self.verbose:
            logging.getLogger().setLevel(logging.DEBUG if self.verbose > 1 else logging.INFO)

        self.validate_args(args)
        params = self.create_params(args)
        previous_handler = self.install_signal_handlers()
        try:
            result = self.run_deduplication(params, list_files=args.list)
        finally:
            self.restore_signal_handlers(previous_handler)

        if args.list and not (args.json or args.summary_json):
            self.output_listing(params)
        self.output_results(args, result)
        self.output_actions(params, result)

        if args.timings:
            print(ReportService.render_timings(result.timings), file=sys.stderr)

        if result.cancelled:
            self.warning("Run stopped before completion; no files were modified")

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n✅ Completed in {elapsed:.2f} seconds", file=sys.stderr)

        return 1 if result.summary.has_failures else 0


def main() -> None:
    """Application entry point."""
    logging.basicConfig(level=logging.ERROR, format=LOG_FORMAT)
    app = CLIApplication()
    try:
        code = app.run()
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
