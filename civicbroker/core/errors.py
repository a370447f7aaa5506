"""Error taxonomy for the civic broker core.

Input validation problems raise ``ValidationError`` with a fixed,
caller-safe message. Store adapters raise ``StoreError``; public operations
are wrapped by ``store_boundary`` which logs the failure and re-raises it as
``OperationFailedError`` so no internal detail reaches the caller. Absence of
data is never an error.
"""

from __future__ import annotations

import functools
import typing as typ

from civicbroker.logging import get_logger, log_error

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)

GENERIC_FAILURE_MESSAGE = "Service temporarily unavailable."
INVALID_INPUT_MESSAGE = "Invalid input."


class CivicBrokerError(Exception):
    """Base class for errors raised by the core."""


class ValidationError(CivicBrokerError, ValueError):
    """Raised when caller input is rejected."""

    def __init__(self, message: str = INVALID_INPUT_MESSAGE) -> None:
        super().__init__(message)
        self.message = message


class NormalisationError(ValidationError):
    """Raised when a provider record cannot be mapped to a politician."""


class StoreError(CivicBrokerError):
    """Raised by key-value store adapters when an operation fails."""


class OperationFailedError(CivicBrokerError):
    """Generic failure surfaced when the store is unavailable."""

    def __init__(self, operation: str) -> None:
        super().__init__(GENERIC_FAILURE_MESSAGE)
        self.operation = operation
        self.message = GENERIC_FAILURE_MESSAGE


def store_boundary[**P, R](
    operation: str,
) -> cabc.Callable[
    [cabc.Callable[P, cabc.Awaitable[R]]],
    cabc.Callable[P, cabc.Awaitable[R]],
]:
    """Translate store failures inside ``operation`` into a generic error.

    Parameters
    ----------
    operation : str
        Name used in the log record and carried by the raised error.

    Returns
    -------
    Callable
        Decorator for async public operations.
    """

    def decorate(
        fn: cabc.Callable[P, cabc.Awaitable[R]],
    ) -> cabc.Callable[P, cabc.Awaitable[R]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await fn(*args, **kwargs)
            except StoreError as exc:
                log_error(
                    logger,
                    "Store failure during %s: %s",
                    operation,
                    exc,
                    exc_info=exc,
                )
                raise OperationFailedError(operation) from exc

        return wrapper

    return decorate
