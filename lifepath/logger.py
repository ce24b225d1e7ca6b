"""
Structured logging system for LifePath.

Provides centralized logging with console and file destinations, log levels,
and metrics tracking for monitoring analysis runs and collaborator health.
"""

import logging
import os
import sys
import threading
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for engine runs and external collaborator calls.
    """

    def __init__(
        self,
        name: str = "lifepath",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = False,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to stderr (stdout is reserved for CLI output)
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()  # Remove existing handlers
        self.logger.propagate = False
        self._lock = threading.Lock()

        self.metrics = {
            "paths_scored": 0,
            "simulations_run": 0,
            "roadmaps_built": 0,
            "degraded_results": 0,
            "collaborator_calls": 0,
            "errors_by_type": {},
            "collaborator_success_rate": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
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

            log_file = log_dir / f"lifepath_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

        if not self.logger.handlers:
            self.logger.addHandler(logging.NullHandler())

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
        """Internal logging method with context."""
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str, sort_keys=True)}"
        self.logger.log(level, message)

    # Metric tracking methods. Simulations run on worker threads, so updates hold the lock.

    def record_paths_scored(self, count: int = 1):
        with self._lock:
            self.metrics["paths_scored"] += count

    def record_simulation(self):
        with self._lock:
            self.metrics["simulations_run"] += 1

    def record_roadmap(self):
        with self._lock:
            self.metrics["roadmaps_built"] += 1

    def record_degraded_result(self):
        with self._lock:
            self.metrics["degraded_results"] += 1

    def record_collaborator_attempt(self, collaborator: str):
        """Record a call to an external collaborator."""
        with self._lock:
            self.metrics["collaborator_calls"] += 1
            if collaborator not in self.metrics["collaborator_success_rate"]:
                self.metrics["collaborator_success_rate"][collaborator] = {
                    "attempts": 0,
                    "successes": 0
                }
            self.metrics["collaborator_success_rate"][collaborator]["attempts"] += 1

    def record_collaborator_success(self, collaborator: str):
        with self._lock:
            if collaborator in self.metrics["collaborator_success_rate"]:
                self.metrics["collaborator_success_rate"][collaborator]["successes"] += 1

    def record_collaborator_failure(self, collaborator: str, error_type: str):
        with self._lock:
            if error_type not in self.metrics["errors_by_type"]:
                self.metrics["errors_by_type"][error_type] = 0
            self.metrics["errors_by_type"][error_type] += 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        with self._lock:
            metrics_copy = self.metrics.copy()
            for collaborator, stats in metrics_copy["collaborator_success_rate"].items():
                if stats["attempts"] > 0:
                    stats["success_rate"] = round(
                        stats["successes"] / stats["attempts"], 3
                    )

        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Analysis Session Metrics ===")
        self.info(f"Paths scored: {metrics['paths_scored']}")
        self.info(f"Simulations: {metrics['simulations_run']}")
        self.info(f"Roadmaps: {metrics['roadmaps_built']} (degraded results: {metrics['degraded_results']})")

        if metrics["collaborator_success_rate"]:
            self.info("Collaborator Success Rates:")
            for collaborator, stats in metrics["collaborator_success_rate"].items():
                rate = stats.get("success_rate", 0) * 100
                self.info(f"  {collaborator}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "lifepath",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level and log directory default to LIFEPATH_LOG_LEVEL / LIFEPATH_LOG_DIR;
    file logging is enabled when a log directory is configured.

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        level = level or os.getenv("LIFEPATH_LOG_LEVEL", "WARNING")
        env_log_dir = os.getenv("LIFEPATH_LOG_DIR")
        if env_log_dir and "log_dir" not in kwargs:
            kwargs["log_dir"] = Path(env_log_dir)
            kwargs.setdefault("enable_file", True)
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
