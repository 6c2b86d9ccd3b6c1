"""
Wire Driver Error Taxonomy - Exception classes for the WebDriver wire protocol.

Every protocol status code maps to one concrete exception class. Errors carry
an appendable context so that the code that detects a failure (deep inside the
dispatcher) and the code that knows what was being asked for (selector,
strategy, element id) can both contribute to the final message.
"""
from typing import Any, Dict, Optional, Type


class DriverError(Exception):
    """Base exception for all wire driver errors."""

    def __init__(self, message: str = "", **context):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context)

    def parametrize(self, **context) -> "DriverError":
        """
        Attach contextual parameters after construction.

        Applying the same parameters twice leaves the error unchanged.

        Returns:
            The error itself, so it can be re-raised inline.
        """
        self.context.update(context)
        return self

    def __str__(self):
        parts = [self.message or type(self).__name__]
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"context=({context_str})")
        return " | ".join(parts)


class ProtocolError(DriverError):
    """Raised when the server response body is not valid JSON."""

    def __init__(self, message: str, path: Optional[str] = None,
                 raw: Optional[str] = None, reason: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.path = path
        self.raw = raw
        self.reason = reason


class StatusError(DriverError):
    """Raised when the server answers with a non-zero protocol status."""

    status: Optional[int] = None
    summary = "Unknown protocol status"

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None,
                 value: Any = None, **kwargs):
        if status is not None:
            self.status = status
        self.value = value
        if message is None:
            message = self.summary
            server_message = value.get("message") if isinstance(value, dict) else None
            if server_message:
                message = f"{message}: {server_message}"
        super().__init__(message, **kwargs)


class NoSuchDriverError(StatusError):
    status = 6
    summary = "A session is either terminated or not started"


class NoSuchElementError(StatusError):
    status = 7
    summary = "An element could not be located on the page using the given search parameters"


class NoSuchFrameError(StatusError):
    status = 8
    summary = "A request to switch to a frame could not be satisfied because the frame could not be found"


class UnknownCommandError(StatusError):
    status = 9
    summary = "The requested resource could not be found, or a request was received using an HTTP method that is not supported by the mapped resource"


class StaleElementReferenceError(StatusError):
    status = 10
    summary = "An element command failed because the referenced element is no longer attached to the DOM"


class ElementNotVisibleError(StatusError):
    status = 11
    summary = "An element command could not be completed because the element is not visible on the page"


class InvalidElementStateError(StatusError):
    status = 12
    summary = "An element command could not be completed because the element is in an invalid state"


class UnknownError(StatusError):
    status = 13
    summary = "An unknown server-side error occurred while processing the command"


class ElementIsNotSelectableError(StatusError):
    status = 15
    summary = "An attempt was made to select an element that cannot be selected"


class JavaScriptError(StatusError):
    status = 17
    summary = "An error occurred while executing user supplied JavaScript"


class XPathLookupError(StatusError):
    status = 19
    summary = "An error occurred while searching for an element by XPath"


class CommandTimeoutError(StatusError):
    status = 21
    summary = "An operation did not complete before its timeout expired"


class NoSuchWindowError(StatusError):
    status = 23
    summary = "A request to switch to a different window could not be satisfied because the window could not be found"


class InvalidCookieDomainError(StatusError):
    status = 24
    summary = "An illegal attempt was made to set a cookie under a different domain than the current page"


class UnableToSetCookieError(StatusError):
    status = 25
    summary = "A request to set a cookie's value could not be satisfied"


class UnexpectedAlertOpenError(StatusError):
    status = 26
    summary = "A modal dialog was open, blocking this operation"


class NoAlertOpenError(StatusError):
    status = 27
    summary = "An attempt was made to operate on a modal dialog when one was not open"


class ScriptTimeoutError(StatusError):
    status = 28
    summary = "A script did not complete before its timeout expired"


class InvalidElementCoordinatesError(StatusError):
    status = 29
    summary = "The coordinates provided to an interactions operation are invalid"


class IMENotAvailableError(StatusError):
    status = 30
    summary = "IME was not available"


class IMEEngineActivationFailedError(StatusError):
    status = 31
    summary = "An IME engine could not be started"


class InvalidSelectorError(StatusError):
    status = 32
    summary = "Argument was an invalid selector"


class SessionNotCreatedError(StatusError):
    status = 33
    summary = "A new session could not be created"


class MoveTargetOutOfBoundsError(StatusError):
    status = 34
    summary = "Target provided for a move action is out of bounds"


STATUS_ERRORS: Dict[int, Type[StatusError]] = {
    cls.status: cls
    for cls in (
        NoSuchDriverError,
        NoSuchElementError,
        NoSuchFrameError,
        UnknownCommandError,
        StaleElementReferenceError,
        ElementNotVisibleError,
        InvalidElementStateError,
        UnknownError,
        ElementIsNotSelectableError,
        JavaScriptError,
        XPathLookupError,
        CommandTimeoutError,
        NoSuchWindowError,
        InvalidCookieDomainError,
        UnableToSetCookieError,
        UnexpectedAlertOpenError,
        NoAlertOpenError,
        ScriptTimeoutError,
        InvalidElementCoordinatesError,
        IMENotAvailableError,
        IMEEngineActivationFailedError,
        InvalidSelectorError,
        SessionNotCreatedError,
        MoveTargetOutOfBoundsError,
    )
}


def error_for_status(status: int, value: Any = None) -> StatusError:
    """
    Build the typed error for a non-zero protocol status.

    Args:
        status: Status code from the response envelope.
        value: The envelope's ``value`` payload, if any.

    Returns:
        An instance of the matching StatusError subclass, or of StatusError
        itself for codes outside the known table.
    """
    if not status:
        raise ValueError("Status 0 means success and has no error kind")
    error_class = STATUS_ERRORS.get(status, StatusError)
    return error_class(status=status, value=value)


# =============================================================================
# Local (non-protocol) errors
# =============================================================================

class SessionStateError(DriverError):
    """Raised when a command is issued outside the session window."""
    pass


class InvalidParentError(DriverError, TypeError):
    """Raised when a selector parent is not an element handle."""
    pass


class InvalidChainError(DriverError, ValueError):
    """Raised when a traversal chain step is malformed or unsupported."""
    pass


class InvalidArgumentError(DriverError, ValueError):
    """Raised when an operation receives arguments it cannot work with."""
    pass


class InjectionError(DriverError):
    """Raised when in-page helper installation does not converge."""
    pass


class WaitTimeoutError(DriverError):
    """Raised when a polling deadline expires before its condition is met."""

    def __init__(self, message: str, timeout: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.timeout = timeout
