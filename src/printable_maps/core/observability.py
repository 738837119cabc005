"""Observability utilities for logging and metrics."""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .logging_config import setup_logger


class LogLevel(Enum):
    """Log levels for structured logging."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class LogContext:
    """
    Correlation data attached to the log lines of one operation.

    A document generation and every line it logs share one correlation id;
    batch members are tagged with the id of their job.
    """

    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_metadata(self, **kwargs: Any) -> "LogContext":
        """Copy of this context with extra metadata merged in."""
        return LogContext(
            correlation_id=self.correlation_id,
            operation=self.operation,
            component=self.component,
            metadata={**self.metadata, **kwargs},
        )

    @classmethod
    def for_batch(cls, job_id: str, job_name: str) -> "LogContext":
        """Context whose correlation id is the batch job id."""
        return cls(
            correlation_id=job_id,
            operation="run_batch_job",
            component="batch",
            metadata={"job_name": job_name},
        )


class StructuredLogger:
    """Logger rendering a LogContext and keyword fields into each line."""

    def __init__(self, name: str, level: int = logging.INFO):
        self._logger = setup_logger(name, logging.getLevelName(level))

    @property
    def name(self) -> str:
        return self._logger.name

    @staticmethod
    def format_message(
        message: str, context: Optional[LogContext] = None, **kwargs: Any
    ) -> str:
        """Render ``[operation] [correlation] message (key=value, ...)``."""
        fields = dict(kwargs)
        if context is not None:
            message = f"[{context.correlation_id}] {message}"
            if context.operation:
                message = f"[{context.operation}] {message}"
            fields = {**context.metadata, **fields}
        if fields:
            rendered = ", ".join(f"{key}={value}" for key, value in fields.items())
            message = f"{message} ({rendered})"
        return message

    def _log(
        self,
        level: LogLevel,
        message: str,
        context: Optional[LogContext] = None,
        **kwargs: Any,
    ) -> None:
        getattr(self._logger, level.value.lower())(
            self.format_message(message, context, **kwargs)
        )

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs: Any):
        self._log(LogLevel.DEBUG, message, context, **kwargs)

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs: Any):
        self._log(LogLevel.INFO, message, context, **kwargs)

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs: Any):
        self._log(LogLevel.WARNING, message, context, **kwargs)

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs: Any):
        self._log(LogLevel.ERROR, message, context, **kwargs)


@dataclass
class PerformanceMetrics:
    """Timing of one document generation."""

    operation: str
    start_time: float
    end_time: float
    success: bool
    error_message: Optional[str] = None
    pages: int = 0

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def duration_ms(self) -> float:
        return self.duration * 1000


class MetricsCollector:
    """
    Thread-safe collector of PerformanceMetrics.

    Batch members are recorded from the batch worker thread while callers
    read summaries from their own threads.
    """

    def __init__(self) -> None:
        self._metrics: List[PerformanceMetrics] = []
        self._lock = threading.Lock()

    def record_metric(self, metric: PerformanceMetrics) -> None:
        with self._lock:
            self._metrics.append(metric)

    def get_metrics(self, operation: Optional[str] = None) -> List[PerformanceMetrics]:
        """Get recorded metrics, optionally filtered by operation."""
        with self._lock:
            metrics = list(self._metrics)
        if operation:
            return [m for m in metrics if m.operation == operation]
        return metrics

    def get_summary(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """Summary statistics; empty when nothing was recorded."""
        metrics = self.get_metrics(operation)
        if not metrics:
            return {}

        durations = [m.duration for m in metrics]
        successful = [m for m in metrics if m.success]
        return {
            "total_operations": len(metrics),
            "successful_operations": len(successful),
            "failed_operations": len(metrics) - len(successful),
            "success_rate": len(successful) / len(metrics),
            "pages_rendered": sum(m.pages for m in successful),
            "avg_duration": sum(durations) / len(durations),
            "max_duration": max(durations),
        }
