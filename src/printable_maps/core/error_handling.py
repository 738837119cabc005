# src/printable_maps/core/error_handling.py

import functools
import logging
import time

from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import StorageError

RETRYABLE_S3_ERROR_CODES = ("ProvisionedThroughputExceededException", "ThrottlingException", "SlowDown")


def with_storage_error_handling(func):
    """
    A decorator translating S3 client failures into StorageError.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__ + "." + func.__name__)
        try:
            return func(*args, **kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error in '{func.__name__}': {e}", exc_info=True)
            raise StorageError(f"S3 operation failed in {func.__name__}: {e}") from e
    return wrapper


def retry_s3_operation(max_attempts=3, initial_delay=1, backoff_factor=2):
    """
    Decorator to retry S3 operations with exponential backoff.

    Only StorageErrors caused by a throttling ClientError are retried; any
    other error is raised on the first attempt.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(func.__module__ + "." + func.__name__)
            attempts = 0
            delay = initial_delay
            while True:
                try:
                    return func(*args, **kwargs)
                except StorageError as e:
                    attempts += 1
                    is_retryable = False
                    if isinstance(e.__cause__, ClientError):
                        error_code = e.__cause__.response.get("Error", {}).get("Code")
                        is_retryable = error_code in RETRYABLE_S3_ERROR_CODES

                    if not is_retryable:
                        logger.error(f"S3 operation '{func.__name__}' failed with non-retryable error: {e}")
                        raise

                    if attempts >= max_attempts:
                        logger.error(
                            f"S3 operation '{func.__name__}' failed after {max_attempts} attempts. Error: {e}"
                        )
                        raise

                    logger.info(
                        f"S3 operation '{func.__name__}' throttled. Attempt {attempts}/{max_attempts}. "
                        f"Retrying in {delay:.2f}s. Error: {e}"
                    )
                    time.sleep(delay)
                    delay *= backoff_factor
        return wrapper
    return decorator


class BatchOperationContextManager:
    """
    Context manager for batch operations to collect and summarize errors.
    """
    def __init__(self, operation_name="Batch Operation"):
        self.operation_name = operation_name
        self.errors = []
        self.logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    def __enter__(self):
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb)
            )
        elif self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                self.logger.error(
                    f"  Error {i+1}/{len(self.errors)} for item '{error_detail['item']}': {error_detail['error']}"
                )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")

        # Never suppress: unhandled exceptions reach the caller
        return False

    def add_error(self, error_message: str, item_identifier: str = "Unknown item"):
        """
        Report an error for a specific item within the 'with' block.

        Args:
            error_message (str): The error message or exception string.
            item_identifier (str): A string identifying the item that failed.
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(f"Error added for item '{item_identifier}' in {self.operation_name}: {error_message}")
