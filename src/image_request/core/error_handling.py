# src/image_request/core/error_handling.py

import functools
import logging
import time
from typing import Any, Callable, Type

from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import S3Error

RETRYABLE_S3_ERROR_CODES = ("ThrottlingException", "SlowDown", "RequestTimeout", "InternalError")


def with_error_handling(error_cls: Type[Exception]) -> Callable:
    """
    Decorator factory translating botocore failures into `error_cls`.

    Errors that are not botocore errors propagate unchanged.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(func.__module__ + "." + func.__name__)
            try:
                return func(*args, **kwargs)
            except (ClientError, BotoCoreError) as e:
                logger.error(f"AWS call failed in '{func.__name__}': {e}", exc_info=True)
                raise error_cls(f"{func.__name__} failed: {e}") from e
        return wrapper
    return decorator


def _error_code(error: BaseException) -> str:
    cause = error.__cause__
    if isinstance(cause, ClientError):
        return cause.response.get("Error", {}).get("Code", "")
    return ""


def retry_s3_operation(max_attempts: int = 3, initial_delay: float = 0.2, backoff_factor: float = 2) -> Callable:
    """
    Decorator to retry S3 operations with exponential backoff.

    Only S3Error instances caused by a throttling-style ClientError are retried.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            logger = logging.getLogger(func.__module__ + "." + func.__name__)
            delay = initial_delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except S3Error as e:
                    code = _error_code(e)
                    if code not in RETRYABLE_S3_ERROR_CODES:
                        logger.error(f"S3 operation '{func.__name__}' failed with non-retryable error: {e}")
                        raise
                    if attempt >= max_attempts:
                        logger.error(
                            f"S3 operation '{func.__name__}' failed after {max_attempts} attempts. Error: {e}"
                        )
                        raise
                    logger.info(
                        f"S3 operation '{func.__name__}' throttled ({code}). Attempt {attempt}/{max_attempts}. "
                        f"Retrying in {delay:.2f}s."
                    )
                    time.sleep(delay)
                    delay *= backoff_factor
        return wrapper
    return decorator
