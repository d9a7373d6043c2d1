"""
Structured logging system for the device resolution engine.

Provides centralized logging with console and file outputs, log levels,
and metrics tracking for monitoring tier hit rates and corpus health.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json

from .config import get_settings


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring resolution outcomes.
    """

    def __init__(
        self,
        name: str = "deviceintel",
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
            "resolutions_attempted": 0,
            "resolutions_matched": 0,
            "tier_hits": {},
            "corpus_errors": {},
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

            log_file = log_dir / f"deviceintel_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

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

    def record_resolution(self, tier: str, matched: bool):
        """Record one cascade run and the tier that ended it."""
        self.metrics["resolutions_attempted"] += 1
        if matched:
            self.metrics["resolutions_matched"] += 1
        hits = self.metrics["tier_hits"]
        hits[tier] = hits.get(tier, 0) + 1

    def record_corpus_error(self, error_type: str):
        """Record a failed corpus query."""
        errors = self.metrics["corpus_errors"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return current metrics, including the overall match rate."""
        metrics_copy = dict(self.metrics)
        attempted = metrics_copy["resolutions_attempted"]
        metrics_copy["match_rate"] = (
            round(metrics_copy["resolutions_matched"] / attempted, 3) if attempted else 0.0
        )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Resolution Session Metrics ===")
        self.info(
            f"Resolutions: {metrics['resolutions_matched']}/{metrics['resolutions_attempted']} "
            f"({metrics['match_rate'] * 100:.1f}% matched)"
        )

        if metrics["tier_hits"]:
            self.info("Tier Hits:")
            for tier, count in metrics["tier_hits"].items():
                self.info(f"  {tier}: {count}")

        if metrics["corpus_errors"]:
            self.info("Corpus Errors:")
            for error_type, count in metrics["corpus_errors"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "deviceintel",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level, log directory and file output default to the DEVICEINTEL_LOG_*
    environment settings.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        settings = get_settings()
        kwargs.setdefault("log_dir", settings.log_dir)
        kwargs.setdefault("enable_file", settings.log_to_file)
        _global_logger = StructuredLogger(
            name=name, level=level or settings.log_level, **kwargs
        )

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
