"""
Exceptions raised by the default error handler.

Every failure during dispatch is first reported to the machine's error
handler. The default handler raises one of these; a custom handler may
return a value instead.
"""

from typing import Optional

from eventfsm.types import ErrorCode, TransitionContext


class TransitionError(Exception):
    """
    Base class for failures reported while firing an event.

    Attributes:
        code: The ErrorCode that was reported.
        context: The TransitionContext of the failed firing.
    """

    code: Optional[ErrorCode] = None

    def __init__(self, message: str, context: Optional[TransitionContext] = None):
        super().__init__(message)
        self.message = message
        self.context = context


class InvalidTransitionError(TransitionError):
    """Event fired that is not permitted from the current state."""

    code = ErrorCode.INVALID_TRANSITION


class PendingTransitionError(TransitionError):
    """Event fired while an asynchronous transition is still pending."""

    code = ErrorCode.PENDING_TRANSITION


class InvalidCallbackError(TransitionError):
    """A caller-supplied hook raised. The original exception is ``cause``."""

    code = ErrorCode.INVALID_CALLBACK

    def __init__(
        self,
        message: str,
        context: Optional[TransitionContext] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, context)
        self.cause = cause


class StaleTransitionError(TransitionError):
    """A pending transition was finalized or cancelled more than once."""


_ERRORS_BY_CODE = {
    ErrorCode.INVALID_TRANSITION: InvalidTransitionError,
    ErrorCode.PENDING_TRANSITION: PendingTransitionError,
    ErrorCode.INVALID_CALLBACK: InvalidCallbackError,
}


def error_for(
    code: ErrorCode,
    message: str,
    context: Optional[TransitionContext] = None,
    cause: Optional[BaseException] = None,
) -> TransitionError:
    """Build the exception matching an error code."""
    cls = _ERRORS_BY_CODE[code]
    if cls is InvalidCallbackError:
        return cls(message, context, cause)
    return cls(message, context)
