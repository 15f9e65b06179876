"""
Logger utility for the Banker's Allocator.

Provides request-by-request logging with verbosity levels.
"""

from typing import Optional, Sequence
from datetime import datetime

from algorithms.vectors import format_vector
from models.decision import AdjudicationResult, SafetyResult
from models.snapshot import SystemSnapshot
from reporting.events import AlertLevel, alert_level


LOG_LEVELS = {
    AlertLevel.SUCCESS: "info",
    AlertLevel.WARNING: "warning",
    AlertLevel.ERROR: "error",
}


class AllocatorLogger:
    """
    Logger for allocator decisions.

    Format: "P1 requests [1, 0, 2] - GRANTED (message)"
    """

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None, quiet: bool = False):
        """
        Initialize logger.

        Args:
            verbose: Enable debug output
            log_file: Optional file path for logging
            quiet: Suppress console output (file output is unaffected)
        """
        self.verbose = verbose
        self.quiet = quiet
        self.log_file = log_file
        self.file_handle = None

        if self.log_file:
            self.file_handle = open(self.log_file, 'w', encoding='utf-8')
            self._write_header()

    def _write_header(self) -> None:
        """Write log file header."""
        if self.file_handle:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self.file_handle.write(f"Allocator Log - {timestamp}\n")
            self.file_handle.write("=" * 60 + "\n\n")

    def log(self, message: str, level: str = "info") -> None:
        """
        Log a message.

        Args:
            message: Message to log
            level: Log level (info, debug, warning, error)
        """
        if level == "debug" and not self.verbose:
            return

        formatted = self._format_message(message, level)

        if not self.quiet:
            print(formatted)

        if self.file_handle:
            self.file_handle.write(formatted + "\n")
            self.file_handle.flush()

    def _format_message(self, message: str, level: str) -> str:
        """Format message with level prefix."""
        if level == "error":
            return f"[ERROR] {message}"
        elif level == "warning":
            return f"[WARNING] {message}"
        elif level == "debug":
            return f"[DEBUG] {message}"
        else:
            return message

    def log_request(self, result: AdjudicationResult, message: str) -> None:
        """
        Log a resource request decision.

        Args:
            result: Decision returned by the adjudicator
            message: User-facing description of the decision
        """
        status = "GRANTED" if result.granted else "DENIED"
        self.log(
            f"P{result.process_id} requests {format_vector(result.request)} - "
            f"{status} [{result.reason.value}] ({message})",
            LOG_LEVELS[alert_level(result.reason)]
        )
        if result.order:
            self.log(f"  Safe sequence: {list(result.order)}", "debug")

    def log_safety(self, result: SafetyResult, subject: str = "State") -> None:
        """
        Log a safety check.

        Args:
            result: Safety check result
            subject: What was checked, e.g. "Initial state"
        """
        if result.is_safe:
            self.log(f"{subject} is SAFE (sequence: {list(result.order)})")
        else:
            self.log(
                f"{subject} is UNSAFE (finished: {list(result.order)}, blocked: {list(result.blocked)})",
                "error"
            )

    def log_snapshot(self, snapshot: SystemSnapshot, resource_names: Optional[Sequence[str]] = None) -> None:
        """
        Log the full snapshot tables.

        Args:
            snapshot: Snapshot to display
            resource_names: Column labels
        """
        if self.verbose:
            self.log(snapshot.display(resource_names), "debug")
        else:
            self.log(f"Available: {format_vector(snapshot.available)}")

    def log_reset(self, result: SafetyResult) -> None:
        """Log a reset to the initial configuration."""
        state = "safe" if result.is_safe else "unsafe"
        self.log(f"System reset to a {state} initial state.", "info" if result.is_safe else "error")

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __del__(self):
        """Cleanup on destruction."""
        self.close()
