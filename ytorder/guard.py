"""Rate/failure guard around every remote write.

Classifies API failures into a closed set of categories, retries the
retryable ones with backoff, keeps the shared quota tracker current, and turns
whatever is left into either a fatal ``QuotaExceededError`` or a recoverable
``TransientRemoteError``.
"""

import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, TypeVar

from googleapiclient.errors import HttpError
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)
from tenacity.wait import wait_base

from ytorder.logging import logger
from ytorder.quota import QuotaTracker, get_time_until_reset, get_tracker

T = TypeVar("T")


class ErrorCategory(Enum):
    """Categories for API errors to determine handling strategy."""

    RATE_LIMITED = auto()  # 429 - retry with backoff, halt if it persists
    QUOTA_EXCEEDED = auto()  # 403 quotaExceeded - halt, wait until midnight PT
    NOT_FOUND = auto()  # 404 - skip item, continue batch
    PERMISSION_DENIED = auto()  # 403 (not quota) - skip item, continue
    INVALID_REQUEST = auto()  # 400 - skip item, log error
    SERVER_ERROR = auto()  # 5xx - retry with backoff
    NETWORK_ERROR = auto()  # Connection errors - retry with backoff
    UNKNOWN = auto()


# Categories that stop the whole run once retries are exhausted
FATAL_CATEGORIES = frozenset({ErrorCategory.QUOTA_EXCEEDED, ErrorCategory.RATE_LIMITED})


@dataclass
class APIError:
    """Structured API error with handling guidance."""

    category: ErrorCategory
    message: str
    retryable: bool
    user_action: str
    status_code: int | None = None
    reason: str | None = None

    @property
    def is_fatal(self) -> bool:
        return self.category in FATAL_CATEGORIES

    def __str__(self) -> str:
        return f"{self.category.name}: {self.message}"


class RemoteError(Exception):
    """A remote call failed after the guard's retry policy gave up."""

    def __init__(self, error: APIError) -> None:
        super().__init__(str(error))
        self.error = error

    @property
    def category(self) -> ErrorCategory:
        return self.error.category


class QuotaExceededError(RemoteError):
    """Quota or rate limit exhausted. No further moves in this run."""

    pass


class TransientRemoteError(RemoteError):
    """Any other remote failure. The single move is abandoned, the run goes on."""

    pass


def _error_reason(exc: HttpError) -> str | None:
    try:
        error_content = json.loads(exc.content.decode("utf-8"))
        errors = error_content.get("error", {}).get("errors", [])
        if errors:
            reason: str | None = errors[0].get("reason")
            return reason
    except (json.JSONDecodeError, AttributeError, UnicodeDecodeError):
        pass
    return None


# category -> (retryable, message, user action); messages take {status}, {reason}, {reset}
_HTTP_RULES: dict[ErrorCategory, tuple[bool, str, str]] = {
    ErrorCategory.RATE_LIMITED: (
        True,
        "Rate limit exceeded. Slowing down requests.",
        "Wait a moment. Requests will automatically retry.",
    ),
    ErrorCategory.QUOTA_EXCEEDED: (
        False,
        "Daily quota exceeded. Resets in {reset} (midnight PT).",
        "Wait until midnight PT and re-run; progress is saved.",
    ),
    ErrorCategory.PERMISSION_DENIED: (
        False,
        "Permission denied: {reason}",
        "Check playlist ownership or re-authenticate.",
    ),
    ErrorCategory.NOT_FOUND: (
        False,
        "Resource not found: {reason}",
        "Item may have been removed. Refresh the snapshot with --refresh.",
    ),
    ErrorCategory.INVALID_REQUEST: (
        False,
        "Invalid request: {reason}",
        "Check input data. Snapshot positions may be stale.",
    ),
    ErrorCategory.SERVER_ERROR: (
        True,
        "YouTube server error ({status}): {reason}",
        "Server issue. Requests will automatically retry.",
    ),
    ErrorCategory.UNKNOWN: (
        False,
        "HTTP error {status}: {reason}",
        "Unexpected error. Check logs for details.",
    ),
}


def _http_category(status: int, error_reason: str | None) -> ErrorCategory:
    if status == 429 or error_reason in ("rateLimitExceeded", "userRateLimitExceeded"):
        return ErrorCategory.RATE_LIMITED
    if status == 403:
        if error_reason in ("quotaExceeded", "dailyLimitExceeded"):
            return ErrorCategory.QUOTA_EXCEEDED
        return ErrorCategory.PERMISSION_DENIED
    if status == 404:
        return ErrorCategory.NOT_FOUND
    if status == 400:
        return ErrorCategory.INVALID_REQUEST
    if status >= 500:
        return ErrorCategory.SERVER_ERROR
    return ErrorCategory.UNKNOWN


def classify_error(exc: BaseException) -> APIError:
    """Classify an exception into an APIError with handling guidance.

    Args:
        exc: The exception to classify

    Returns:
        APIError with category, retryability, and user action guidance
    """
    if isinstance(exc, RemoteError):
        return exc.error

    if isinstance(exc, HttpError):
        status = exc.resp.status
        error_reason = _error_reason(exc)
        category = _http_category(status, error_reason)
        retryable, message, user_action = _HTTP_RULES[category]
        reset = get_time_until_reset() if category == ErrorCategory.QUOTA_EXCEEDED else ""
        return APIError(
            category=category,
            message=message.format(status=status, reason=exc.reason or "", reset=reset),
            retryable=retryable,
            user_action=user_action,
            status_code=status,
            reason=error_reason,
        )

    if isinstance(exc, (ConnectionError, TimeoutError, OSError)):
        return APIError(
            category=ErrorCategory.NETWORK_ERROR,
            message=f"Network error: {exc}",
            retryable=True,
            user_action="Check internet connection. Requests will retry.",
        )

    return APIError(
        category=ErrorCategory.UNKNOWN,
        message=str(exc),
        retryable=False,
        user_action="Unexpected error. Check logs for details.",
    )


class Throttler:
    """Enforces minimum delay between API write operations.

    Usage:
        throttler = Throttler(delay_ms=200)
        throttler.wait()  # Call before each API write operation
    """

    def __init__(self, delay_ms: int = 200) -> None:
        self._delay_ms = delay_ms
        self._last_call: float = 0.0

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    @delay_ms.setter
    def delay_ms(self, value: int) -> None:
        self._delay_ms = max(0, value)

    def wait(self) -> None:
        """Wait if needed to maintain minimum delay between calls."""
        if self._delay_ms <= 0:
            return

        elapsed_ms = (time.monotonic() - self._last_call) * 1000
        if elapsed_ms < self._delay_ms:
            time.sleep((self._delay_ms - elapsed_ms) / 1000)

        self._last_call = time.monotonic()

    def increase_delay(self, factor: float = 2.0, max_ms: int = 5000) -> None:
        """Increase delay (e.g., after hitting rate limit)."""
        self._delay_ms = min(max(int(self._delay_ms * factor), 1), max_ms)
        logger.warning("Increased throttle delay to {}ms", self._delay_ms)


_throttler = Throttler(delay_ms=200)


def get_throttler() -> Throttler:
    """Get the global throttler shared by all remote writes."""
    return _throttler


def set_throttle_delay(delay_ms: int) -> None:
    """Set the global throttle delay for API write operations (0 to disable)."""
    _throttler.delay_ms = delay_ms
    logger.debug("Throttle delay set to {}ms", delay_ms)


class RemoteGuard:
    """Wraps remote writes with quota checks, throttling and retry-or-abort policy.

    Args:
        tracker: Quota tracker to consult and update (defaults to the global one)
        throttler: Pacing between writes (defaults to the global one)
        max_attempts: Attempts per call for retryable failures
        wait: tenacity wait strategy between attempts
    """

    def __init__(
        self,
        tracker: QuotaTracker | None = None,
        throttler: Throttler | None = None,
        max_attempts: int = 5,
        wait: wait_base | None = None,
    ) -> None:
        self.tracker = tracker if tracker is not None else get_tracker()
        self.throttler = throttler if throttler is not None else get_throttler()
        self.max_attempts = max_attempts
        self.wait = wait if wait is not None else wait_exponential_jitter(initial=2, max=300, jitter=5)

    def _should_retry(self, exc: BaseException) -> bool:
        api_error = classify_error(exc)
        if api_error.category == ErrorCategory.QUOTA_EXCEEDED:
            logger.error("{}. {}", api_error.message, api_error.user_action)
        elif api_error.category == ErrorCategory.RATE_LIMITED:
            logger.warning("{}. {}", api_error.message, api_error.user_action)
            self.throttler.increase_delay()
        elif api_error.retryable:
            logger.warning("{} (will retry)", api_error.message)
        return api_error.retryable

    def check_budget(self, operation: str) -> None:
        """Raise QuotaExceededError if the tracker cannot afford ``operation``."""
        if self.tracker.can_afford(operation):
            return
        raise QuotaExceededError(
            APIError(
                category=ErrorCategory.QUOTA_EXCEEDED,
                message=(
                    f"Local quota budget exhausted ({self.tracker.used:,}/{self.tracker.limit:,} "
                    f"units). Resets in {get_time_until_reset()} (midnight PT)."
                ),
                retryable=False,
                user_action="Wait until midnight PT and re-run; progress is saved.",
            )
        )

    def call(self, operation: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``fn`` as API ``operation`` under the guard's policy.

        Raises:
            QuotaExceededError: Budget exhausted, quota exceeded or rate limit persisted.
            TransientRemoteError: Any other failure once retries are used up.
        """
        self.check_budget(operation)

        def attempt() -> T:
            self.throttler.wait()
            return fn(*args, **kwargs)

        retrying = Retrying(
            retry=retry_if_exception(self._should_retry),
            stop=stop_after_attempt(self.max_attempts),
            wait=self.wait,
            reraise=True,
        )
        try:
            result = retrying(attempt)
        except Exception as e:
            api_error = classify_error(e)
            if api_error.is_fatal:
                raise QuotaExceededError(api_error) from e
            raise TransientRemoteError(api_error) from e

        self.tracker.record(operation)
        return result
