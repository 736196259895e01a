"""
Structured logging for review verification runs.

Provides centralized logging with console and file outputs, plus
metrics tracking for monitoring feed health and match outcomes.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


OUTCOMES = ("verified", "near_miss", "unmatched", "skipped", "conflict")


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring verification runs.
    """

    def __init__(
        self,
        name: str = "reviewmatch",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()

        self.metrics = {
            "feed_calls": 0,
            "locations_attempted": 0,
            "locations_successful": 0,
            "locations_failed": 0,
            "outcomes": {outcome: 0 for outcome in OUTCOMES},
            "errors_by_type": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"reviewmatch_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def set_level(self, level: str):
        """Change the level of the logger and its console output."""
        self.logger.setLevel(getattr(logging, level.upper()))
        for handler in self.logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(getattr(logging, level.upper()))

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_feed_call(self):
        """Increment feed request counter."""
        self.metrics["feed_calls"] += 1

    def record_location_attempt(self):
        self.metrics["locations_attempted"] += 1

    def record_location_success(self):
        self.metrics["locations_successful"] += 1

    def record_location_failure(self, error_type: str):
        self.metrics["locations_failed"] += 1
        self.record_error(error_type)

    def record_error(self, error_type: str):
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def record_outcome(self, outcome: str, count: int = 1):
        """Count submissions by outcome (verified, near_miss, unmatched, ...)."""
        if outcome not in self.metrics["outcomes"]:
            raise ValueError(f"Unknown outcome: {outcome}")
        self.metrics["outcomes"][outcome] += count

    def get_metrics(self) -> dict:
        """Return current metrics with the location success rate filled in."""
        metrics_copy = self.metrics.copy()
        attempts = metrics_copy["locations_attempted"]
        if attempts > 0:
            metrics_copy["location_success_rate"] = round(
                metrics_copy["locations_successful"] / attempts, 3
            )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        attempts = metrics["locations_attempted"]
        successes = metrics["locations_successful"]
        rate = metrics.get("location_success_rate", 0) * 100

        self.info("=== Verification Run Metrics ===")
        self.info(f"Feed Calls: {metrics['feed_calls']}")
        self.info(f"Locations: {successes}/{attempts} ({rate:.1f}% success)")

        outcomes = metrics["outcomes"]
        self.info(
            "Submissions: "
            + " ".join(f"{name}={count}" for name, count in outcomes.items())
        )

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "reviewmatch",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
