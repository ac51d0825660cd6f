"""RunLogger for writing a human-readable record of one hashkeep run.

The log file has a header, one section per operation with its parameters,
timestamped action lines (every INFO-or-higher record emitted by the
``hashkeep`` loggers while the section is open), and a summary section.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, TextIO


class _ActionHandler(logging.Handler):
    """Forwards log records into the run log as action lines."""

    def __init__(self, run_logger: "RunLogger") -> None:
        super().__init__(level=logging.INFO)
        self._run_logger = run_logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            self.handleError(record)
            return
        prefix = "" if record.levelno < logging.WARNING else f"{record.levelname}: "
        self._run_logger.log_action(f"{prefix}{message}", timestamp=datetime.fromtimestamp(record.created))


class RunLogger:
    """Structured run log for hashkeep commands.

    Usage:
        with RunLogger(Path("run.log"), command="sync") as run_log:
            run_log.log_header()
            with run_log.operation("Sync", {"Roots": "/data"}):
                summary = pipeline.run(roots)
            run_log.log_summary("Sync", summary)

    Attributes:
        SEPARATOR: The 65-character separator line used between sections.
    """

    SEPARATOR = "=" * 65

    def __init__(self, log_file_path: Path, command: str) -> None:
        """Initialize the RunLogger.

        Args:
            log_file_path: File to write; overwritten if it exists.
            command: Name of the command being run, shown in the header.

        Raises:
            OSError: If the parent directory does not exist.
        """
        self._log_file_path = Path(log_file_path)
        self._command = command
        self._start_timestamp = datetime.now()
        self._file_handle: Optional[TextIO] = None

        parent = self._log_file_path.parent
        if not parent.is_dir():
            raise OSError(f"Log directory does not exist: {parent}")

    def __enter__(self) -> "RunLogger":
        try:
            self._file_handle = open(self._log_file_path, "w", encoding="utf-8", errors="backslashreplace")
        except OSError as e:
            raise OSError(f"Cannot open log file for writing: {e}") from e
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None and self._file_handle is not None:
            self._write_line(f"Run ended with error: {exc_type.__name__}: {exc_val}")
        if self._file_handle is not None:
            try:
                self._file_handle.close()
            except OSError as e:
                print(f"Warning: Error closing log file: {e}", file=sys.stderr)
            finally:
                self._file_handle = None

    def get_log_path(self) -> Path:
        return self._log_file_path

    def log_header(self) -> None:
        """Write the title, timestamp and command."""
        self._write_separator()
        self._write_line("hashkeep - Run Log")
        self._write_separator()
        self._write_line(f"Timestamp: {self._format_timestamp(self._start_timestamp)}")
        self._write_line(f"Command: {self._command}")
        self._write_line("")

    def operation(self, title: str, parameters: Dict[str, str]) -> "_OperationSection":
        """Open an operation section; actions are captured until it closes."""
        return _OperationSection(self, title, parameters)

    def log_action(self, text: str, timestamp: Optional[datetime] = None) -> None:
        """Write one timestamped action line."""
        when = timestamp or datetime.now()
        self._write_line(f"[{self._format_timestamp(when)}] {text}", indent=2)

    def log_summary(self, title: str, summary) -> None:
        """Write the summary section for any summary exposing ``as_rows()``."""
        self._write_separator()
        self._write_line(f"SUMMARY - {title}")
        self._write_separator()
        for label, value in summary.as_rows():
            self._write_line(f"{label}: {value}")

        if summary.errors:
            self._write_line(f"Total errors: {len(summary.errors)}")
            self._write_line("Errors:")
            for error in summary.errors:
                self._write_line(f"- {error}", indent=2)

        self._write_line(f"Duration: {self._format_duration(summary.duration_seconds)}")
        self._write_line("")
        self._write_line(f"Log file: {self._log_file_path}")
        self._write_separator()

    def _format_duration(self, seconds: float) -> str:
        """Format duration as "45s", "5m 23s" or "1h 5m 30s"."""
        total_seconds = int(seconds)

        if total_seconds < 60:
            return f"{total_seconds}s"

        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        secs = total_seconds % 60

        if hours > 0:
            return f"{hours}h {minutes}m {secs}s"
        return f"{minutes}m {secs}s"

    def _format_timestamp(self, dt: datetime) -> str:
        return dt.strftime("%Y-%m-%d %H:%M:%S")

    def _write_separator(self) -> None:
        self._write_line(self.SEPARATOR)

    def _write_line(self, text: str, indent: int = 0) -> None:
        if self._file_handle is None:
            print(f"Warning: Attempted to write to closed log file: {text}", file=sys.stderr)
            return

        try:
            self._file_handle.write(" " * indent + text + "\n")
            self._file_handle.flush()
        except OSError as e:
            print(f"Warning: Error writing to log file: {e}", file=sys.stderr)


class _OperationSection:
    """Context manager writing an operation section and capturing its actions."""

    def __init__(self, run_logger: RunLogger, title: str, parameters: Dict[str, str]) -> None:
        self._run_logger = run_logger
        self._title = title
        self._parameters = parameters
        self._handler = _ActionHandler(run_logger)
        self._previous_level = logging.NOTSET

    def __enter__(self) -> RunLogger:
        run_logger = self._run_logger
        run_logger._write_separator()
        run_logger._write_line(self._title.upper())
        run_logger._write_separator()
        for name, value in self._parameters.items():
            run_logger._write_line(f"{name}: {value}")
        run_logger._write_line("")
        run_logger._write_line("Actions:")
        package_logger = logging.getLogger("hashkeep")
        self._previous_level = package_logger.level
        if package_logger.getEffectiveLevel() > logging.INFO:
            package_logger.setLevel(logging.INFO)
        package_logger.addHandler(self._handler)
        return run_logger

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        package_logger = logging.getLogger("hashkeep")
        package_logger.removeHandler(self._handler)
        package_logger.setLevel(self._previous_level)
        self._run_logger._write_line("")
