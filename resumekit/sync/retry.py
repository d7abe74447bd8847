# resumekit/sync/retry.py
"""Retry logic for resume saves with exponential backoff."""

import logging

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from resumekit.config.schema import EditorConfig
from resumekit.models.errors import ErrorCode, RemoteError

logger = logging.getLogger(__name__)

# Failures that another attempt cannot fix
_PERMANENT_CODES = {
    ErrorCode.UNAUTHORIZED,
    ErrorCode.NOT_FOUND,
    ErrorCode.FORBIDDEN,
    ErrorCode.VALIDATION,
}


def is_retryable(exception: BaseException) -> bool:
    """
    Returns True if the exception should be retried.

    Retryable conditions:
    - ConnectionError / TimeoutError (store unreachable)
    - RemoteError with code SERVER
    """
    if isinstance(exception, (ConnectionError, TimeoutError)):
        return True

    if isinstance(exception, RemoteError):
        return exception.code not in _PERMANENT_CODES

    return False


def save_retrying(config: EditorConfig) -> AsyncRetrying:
    """
    Build the retry controller for one save.

    With the defaults: 3 attempts, waiting 1s then 2s between them.
    The last exception is re-raised when attempts run out.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(config.save_attempts),
        wait=wait_exponential(
            multiplier=config.retry_min_delay, min=0, max=config.retry_max_delay
        ),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
