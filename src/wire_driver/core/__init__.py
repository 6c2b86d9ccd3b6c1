"""
Core module - Errors, wire data models, element references, and helpers.
"""
from wire_driver.core.errors import (
    STATUS_ERRORS,
    DriverError,
    InjectionError,
    InvalidArgumentError,
    InvalidChainError,
    InvalidParentError,
    NoSuchElementError,
    ProtocolError,
    SessionStateError,
    StaleElementReferenceError,
    StatusError,
    WaitTimeoutError,
    error_for_status,
)
from wire_driver.core.models import (
    DEFAULT_TIMEOUTS,
    Command,
    Envelope,
    SelectorQuery,
    TimeoutTable,
    ValueShape,
    classify_value,
    unwrap_value,
)
from wire_driver.core.references import element_id, element_reference

__all__ = [
    "STATUS_ERRORS",
    "DriverError",
    "InjectionError",
    "InvalidArgumentError",
    "InvalidChainError",
    "InvalidParentError",
    "NoSuchElementError",
    "ProtocolError",
    "SessionStateError",
    "StaleElementReferenceError",
    "StatusError",
    "WaitTimeoutError",
    "error_for_status",
    "DEFAULT_TIMEOUTS",
    "Command",
    "Envelope",
    "SelectorQuery",
    "TimeoutTable",
    "ValueShape",
    "classify_value",
    "unwrap_value",
    "element_id",
    "element_reference",
]
