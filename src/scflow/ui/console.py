"""Console output formatting utilities for scflow."""

from __future__ import annotations

import sys
from typing import Mapping, Optional


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(
        self,
        project: str,
        config: str,
        sample_count: int,
        group_count: int,
        max_jobs: int,
    ) -> None:
        """
        Print run start information.

        Args:
            project: Project name from the run config
            config: Path of the config file
            sample_count: Number of quantify jobs
            group_count: Number of aggregate jobs
            max_jobs: Concurrency cap for the run
        """
        print("\nRUN STARTED")
        print(f"Project: {project}")
        print(f"Config: {config}")
        print(f"Samples: {sample_count}")
        print(f"Groups: {group_count}")
        print(f"Max concurrent jobs: {max_jobs}")
        print()

    def print_plan_job(self, key: str, argv: list[str], needs: list[str]) -> None:
        """Print one planned job."""
        print(f"  {key}")
        if needs:
            print(f"    needs: {', '.join(needs)}")
        print(f"    cmd: {' '.join(argv)}")

    def print_job_start(self, key: str, running: int, limit: int) -> None:
        """
        Print job start with current concurrency.

        Args:
            key: Job key, e.g. "quantify:a"
            running: Jobs in flight including this one
            limit: Concurrency cap
        """
        print(f"JOB STARTED: {key} [{running}/{limit}]")

    def print_job_finished(self, key: str, status: str) -> None:
        """Print job completion with the runner status."""
        print(f"JOB FINISHED: {key} ({status})")

    def print_job_failed(self, key: str, reason: str) -> None:
        """Print job failure; only the first line unless in debug mode."""
        print(f"JOB FAILED: {key}")
        if self.debug:
            print(f"Error details: {reason}")
        else:
            first = reason.split("\n")[0] if reason else "Unknown error"
            print(f"Error: {first}")

    def print_job_blocked(self, key: str, because: str) -> None:
        """Print a job that will never run because a prerequisite failed."""
        print(f"JOB BLOCKED: {key} (prerequisite {because} failed)")

    def print_results(self, results: Mapping[str, str]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for key, status in results.items():
            print(f"  {key}: {status.upper()}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        print(f"WARNING: {message}", file=sys.stderr)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
