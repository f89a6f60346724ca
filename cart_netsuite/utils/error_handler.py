"""
Error handling utilities for the 3DCart-NetSuite integration.

This module provides custom exception classes, error logging wrappers,
and the retry policy used around order processing.
"""

import logging
import random
import time
import functools
from typing import Callable, Any, Type, Tuple, Optional, List


logger = logging.getLogger(__name__)


# ============================================================================
# Custom Exception Classes
# ============================================================================

class IntegrationError(Exception):
    """Base exception for integration errors."""
    pass


class VendorAPIError(IntegrationError):
    """Non-2xx answer (or transport failure) from a vendor API."""

    service = "API"

    def __init__(self, message: str, status_code: Optional[int] = None, response: Optional[str] = None):
        self.status_code = status_code
        self.response = response
        detail = f"{message}: {response}" if response else message
        super().__init__(f"{self.service} API Error: {detail}")


class ThreeDCartAPIError(VendorAPIError):
    """Exception raised for 3DCart API errors."""
    service = "3DCart"


class NetSuiteAPIError(VendorAPIError):
    """Exception raised for NetSuite API errors."""
    service = "NetSuite"


class SendGridAPIError(VendorAPIError):
    """Exception raised for SendGrid API errors."""
    service = "SendGrid"


class OrderValidationError(IntegrationError):
    """Order or customer data failed validation; carries every error found."""

    def __init__(self, prefix: str, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"{prefix}: {', '.join(self.errors)}")


class CustomerNotFoundError(IntegrationError):
    """No matching customer in NetSuite and auto-creation is disabled."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Customer not found and auto-creation is disabled: {email}")


class FileUploadError(IntegrationError):
    """Uploaded file was rejected or could not be parsed."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = list(errors or [])
        super().__init__(message)


class WebhookPayloadError(IntegrationError):
    """Webhook body is not valid JSON or lacks an OrderID."""
    pass


# ============================================================================
# Retry Policy
# ============================================================================

class RetryPolicy:
    """
    Explicit retry policy invoked by the caller around a whole operation.

    The delay before attempt ``n + 1`` is ``delay * backoff ** (n - 1)`` plus up
    to ``jitter`` seconds of random noise. With the defaults (backoff 1.0, no
    jitter) this is a fixed delay between attempts.

    Example:
        >>> policy = RetryPolicy(max_attempts=4, delay=5)
        >>> policy.call(process, order_id)
    """

    def __init__(
        self,
        max_attempts: int = 1,
        delay: float = 0.0,
        backoff: float = 1.0,
        jitter: float = 0.0,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
        give_up_on: Tuple[Type[BaseException], ...] = (),
        sleep: Callable[[float], None] = time.sleep
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.delay = delay
        self.backoff = backoff
        self.jitter = jitter
        self.retry_on = retry_on
        self.give_up_on = give_up_on
        self.sleep = sleep
        self.attempts_made = 0

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "RetryPolicy":
        """Build the configured policy: one try plus ``retry_attempts`` retries."""
        return cls(
            max_attempts=settings.retry_attempts + 1,
            delay=settings.retry_delay,
            backoff=settings.retry_backoff,
            **kwargs
        )

    def compute_delay(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        wait = self.delay * (self.backoff ** (attempt - 1))
        if self.jitter:
            wait += random.uniform(0, self.jitter)
        return wait

    def call(self, func: Callable, *args, **kwargs) -> Any:
        """
        Call ``func`` until it succeeds or the attempts are exhausted.

        Raises:
            The last exception raised by ``func``.
        """
        name = getattr(func, '__name__', repr(func))
        self.attempts_made = 0

        for attempt in range(1, self.max_attempts + 1):
            self.attempts_made = attempt
            try:
                return func(*args, **kwargs)
            except self.give_up_on:
                raise
            except self.retry_on as e:
                if attempt == self.max_attempts:
                    logger.error(f"{name} failed after {self.max_attempts} attempts: {e}")
                    raise

                wait = self.compute_delay(attempt)
                logger.warning(
                    f"{name} failed (attempt {attempt}/{self.max_attempts}): {e}. "
                    f"Retrying in {wait:.1f}s..."
                )
                self.sleep(wait)


# ============================================================================
# Error Logging Wrapper
# ============================================================================

def log_errors(func: Callable) -> Callable:
    """
    Decorator to log exceptions with full context.

    Args:
        func: Function to wrap

    Returns:
        Decorated function that logs errors before raising
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except Exception as e:
            logger.error(
                f"Error in {func.__name__}: {type(e).__name__}: {str(e)}",
                exc_info=logger.isEnabledFor(logging.DEBUG),
                extra={
                    'function': func.__name__,
                    'call_args': str(args)[:200],
                    'call_kwargs': str(kwargs)[:200]
                }
            )
            raise

    return wrapper


# ============================================================================
# Error Handler Functions
# ============================================================================

_API_ERRORS = {
    '3dcart': ThreeDCartAPIError,
    'netsuite': NetSuiteAPIError,
    'sendgrid': SendGridAPIError,
}


def handle_api_error(response, api_name: str = "API", context: Optional[str] = None) -> None:
    """
    Handle HTTP API errors consistently.

    Args:
        response: requests.Response object
        api_name: Name of the API for error messages
        context: What was being done, e.g. "GET /Orders/1"; defaults to
            "<api_name> request"

    Raises:
        The vendor-specific VendorAPIError subclass for api_name
    """
    status_code = response.status_code
    try:
        error_detail = response.json()
    except ValueError:
        error_detail = response.text

    error_message = f"{context or api_name + ' request'} failed with status {status_code}"

    error_class = _API_ERRORS.get(api_name.lower())
    if error_class is None:
        raise IntegrationError(f"{error_message}: {error_detail}")
    raise error_class(error_message, status_code, str(error_detail))


def safe_get(dictionary: dict, *keys, default: Any = None) -> Any:
    """
    Safely get nested dictionary values.

    Example:
        >>> data = {'a': {'b': {'c': 123}}}
        >>> safe_get(data, 'a', 'b', 'c')
        123
        >>> safe_get(data, 'a', 'x', 'y', default=0)
        0
    """
    result = dictionary
    for key in keys:
        if isinstance(result, dict):
            result = result.get(key)
            if result is None:
                return default
        else:
            return default
    return result if result is not None else default
