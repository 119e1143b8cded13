from __future__ import annotations

from typing import Callable, Iterable, Optional, Tuple

from src.monitor.schemas.monitoring import Error, InvalidCredentials, MonitoringState

# Substrings (lower-case) seen in authentication failures from the listing call.
AUTH_ERROR_KEYWORDS: Tuple[str, ...] = (
    "security token",
    "expired",
    "invalid",
    "signature",
    "credentials",
    "access denied",
    "accessdenied",
    "not authorized",
    "unknownawshttpserviceerror",
    "authfailure",
    "unauthorized",
)

INVALID_CREDENTIALS_MESSAGE = "Credentials may be expired or invalid"

ErrorClassifier = Callable[[BaseException], MonitoringState]


def _error_texts(exc: BaseException) -> Iterable[str]:
    # Message text only, never class names (InvalidStateError is not an auth failure).
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield str(current).lower()
        current = current.__cause__ or current.__context__


# PUBLIC_INTERFACE
def is_auth_error(exc: BaseException, keywords: Tuple[str, ...] = AUTH_ERROR_KEYWORDS) -> bool:
    """Case-insensitive keyword match over the error message and the messages of the errors it was raised from."""
    return any(kw in text for text in _error_texts(exc) for kw in keywords)


# PUBLIC_INTERFACE
def classify_listing_failure(exc: BaseException) -> MonitoringState:
    """Map a failed instance listing to InvalidCredentials or Error."""
    if is_auth_error(exc):
        return InvalidCredentials(message=INVALID_CREDENTIALS_MESSAGE)
    return Error(message=str(exc) or type(exc).__name__)
