"""
Wire Driver Models - Data classes for commands, responses, selector queries
and timeouts.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from wire_driver.core.utils import is_empty_plain_object, is_plain_object

if TYPE_CHECKING:
    from wire_driver.element import WebElement


# =============================================================================
# Commands and responses
# =============================================================================

@dataclass(frozen=True)
class Command:
    """
    One protocol command, relative to the session base path.

    ``raw`` asks the dispatcher for the whole Envelope instead of the
    unwrapped value.
    """

    path: str
    method: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    raw: bool = False


@dataclass
class Envelope:
    """Parsed response body plus the response headers."""

    status: int
    body: Dict[str, Any]
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def value(self) -> Any:
        return self.body.get("value")

    @property
    def session_id(self) -> Optional[str]:
        return self.body.get("sessionId")

    @property
    def location(self) -> Optional[str]:
        return self.headers.get("location")


class ValueShape(Enum):
    """Shape of the ``value`` field of a successful response."""

    ABSENT = "absent"
    NULL = "null"
    EMPTY_MAP = "empty_map"
    MAP = "map"
    ARRAY = "array"
    SCALAR = "scalar"


# Shapes that count as "no meaningful result". EMPTY_MAP is here because some
# servers answer {} for void commands, which makes a legitimately empty map
# result indistinguishable from no result.
NO_VALUE_SHAPES = frozenset({ValueShape.ABSENT, ValueShape.NULL, ValueShape.EMPTY_MAP})


def classify_value(body: Mapping[str, Any]) -> ValueShape:
    """Classify the ``value`` field of a response body."""
    if "value" not in body:
        return ValueShape.ABSENT
    value = body["value"]
    if value is None:
        return ValueShape.NULL
    if isinstance(value, list):
        return ValueShape.ARRAY
    if is_plain_object(value):
        return ValueShape.EMPTY_MAP if is_empty_plain_object(value) else ValueShape.MAP
    return ValueShape.SCALAR


def unwrap_value(body: Mapping[str, Any], owner: Any) -> Any:
    """
    Pick what a successful command returns to its caller.

    Args:
        body: Parsed response body.
        owner: Object returned in place of a missing value (the driver or the
            element that issued the command), so calls can be chained.

    Returns:
        ``body["value"]`` for arrays, scalars and non-empty maps; ``owner``
        when the value is absent, null or an empty map.
    """
    if classify_value(body) in NO_VALUE_SHAPES:
        return owner
    return body["value"]


# =============================================================================
# Selector queries
# =============================================================================

ChainStep = Dict[str, Any]


@dataclass
class SelectorQuery:
    """
    Parameters of a selector lookup.

    Attributes:
        using: Strategy name; the driver default is used when unset.
        no_error: Return None instead of raising when a single lookup finds
            nothing.
        chain: Traversal steps for script-based strategies, each a one-key
            mapping of operation name to argument(s).
        parent: Restrict the lookup to descendants of this element.
        single: Expect one result rather than a list.
    """

    using: Optional[str] = None
    no_error: bool = False
    chain: Optional[List[ChainStep]] = None
    parent: Optional["WebElement"] = None
    single: bool = True

    FIELDS = ("using", "no_error", "chain", "parent")

    @classmethod
    def coerce(
        cls,
        query: Union["SelectorQuery", Mapping[str, Any], None] = None,
        **params: Any,
    ) -> "SelectorQuery":
        """Build a query from another query, a mapping and/or keyword params."""
        values: Dict[str, Any] = {}
        if isinstance(query, SelectorQuery):
            values.update({name: getattr(query, name) for name in cls.FIELDS})
        elif query:
            values.update(query)
        values.update({k: v for k, v in params.items() if v is not None})
        unknown = set(values) - set(cls.FIELDS)
        if unknown:
            raise TypeError(f"Unknown selector parameters: {', '.join(sorted(unknown))}")
        return cls(**values)


# =============================================================================
# Timeouts
# =============================================================================

SERVER_TIMEOUTS: Tuple[str, ...] = ("page load", "script", "implicit")

DEFAULT_TIMEOUTS: Dict[str, int] = {
    # protocol timeouts
    "page load": 3500,
    "script": 1000,
    "implicit": 0,
    # client-only timeouts
    "wait_for": 3000,
}


class TimeoutTable:
    """
    Timeouts in milliseconds by category.

    Server-enforced categories are pushed to the server by the driver;
    client categories are read by the wait operations. A ``wait_for_*``
    category that was never set falls back to ``wait_for``.
    """

    def __init__(self, values: Optional[Mapping[str, int]] = None):
        self._values: Dict[str, int] = dict(DEFAULT_TIMEOUTS)
        if values:
            self._values.update(values)

    @staticmethod
    def is_server_enforced(category: str) -> bool:
        return category in SERVER_TIMEOUTS

    def get(self, category: str) -> Optional[int]:
        if category in self._values:
            return self._values[category]
        if category.startswith("wait_for"):
            return self._values["wait_for"]
        return None

    def set(self, category: str, ms: int) -> None:
        self._values[category] = ms

    def items(self) -> Iterator[Tuple[str, int]]:
        return iter(list(self._values.items()))

    def __contains__(self, category: object) -> bool:
        return category in self._values

    def __repr__(self) -> str:
        return f"TimeoutTable({self._values!r})"
