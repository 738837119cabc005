"""Custom exceptions and error handling utilities for printable maps."""

from __future__ import annotations

from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, TypeVar

from .logging_config import get_logger


BATCH_EXHAUSTED_MESSAGE = "All files failed to process"


class PrintableMapsError(Exception):
    """Base exception for all printable maps errors."""


class ValidationError(PrintableMapsError):
    """Error raised for malformed calibration values or unusable images."""


class InvalidDimensionError(ValidationError):
    """Error raised when image dimensions or scale are not positive."""


class NotFoundError(PrintableMapsError):
    """Error raised when a referenced project or batch job does not exist."""


class PreconditionError(PrintableMapsError):
    """Error raised when an operation is attempted from the wrong state."""


class ProcessingError(PrintableMapsError):
    """Error raised when building the document for a single map fails."""


class StorageError(PrintableMapsError):
    """Error raised for artifact storage failures."""


class ConfigurationError(PrintableMapsError):
    """Error raised for invalid configuration options."""


F = TypeVar("F", bound=Callable[..., Any])


def with_error_handling(func: F) -> F:
    """Wrap a function so unexpected errors surface as ProcessingError."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:  # type: ignore[override]
        logger = get_logger("printable-maps.processor")
        try:
            return func(*args, **kwargs)
        except PrintableMapsError:
            logger.error(f"Printable maps error in {func.__name__}", exc_info=True)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Unhandled error in {func.__name__}: {exc}", exc_info=True)
            raise ProcessingError(str(exc)) from exc

    return wrapper  # type: ignore[return-value]


@contextmanager
def processing_error_handler(description: str) -> Any:
    """Context manager converting unexpected errors into ProcessingError."""
    try:
        yield
    except PrintableMapsError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise ProcessingError(f"{description}: {exc}") from exc
