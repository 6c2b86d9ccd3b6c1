"""
WebElement - element-scoped commands, and their driver-level delegates.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from wire_driver.calllog import install_call_logging
from wire_driver.core.errors import StaleElementReferenceError
from wire_driver.core.models import Command, SelectorQuery
from wire_driver.core.references import element_reference
from wire_driver.core.utils import replace_key_strokes_with_codes
from wire_driver.polling import wait_until

if TYPE_CHECKING:
    from wire_driver.driver import WebDriver

logger = logging.getLogger("wire_driver")

# Every public element operation. The driver's ``element`` delegates and call
# logging are generated from this list.
ELEMENT_OPERATIONS = (
    "get",
    "get_list",
    "get_attr",
    "get_css_prop",
    "get_tag_name",
    "get_text",
    "get_value",
    "get_location",
    "get_size",
    "send_keys",
    "clear",
    "click",
    "submit",
    "is_displayed",
    "is_enabled",
    "is_selected",
    "is_visible",
    "move_to",
    "mouse_down",
    "mouse_up",
    "wait_for_disappear",
)

IS_VISIBLE_SCRIPT = """
for (var node = arguments[0]; node && node.nodeType === 1; node = node.parentElement) {
    var style = window.getComputedStyle(node);
    if (style.display === 'none' || style.visibility === 'hidden' || style.opacity === '0') {
        return false;
    }
}
return true;
"""


class WebElement:
    """
    Handle to a DOM node resolved by the server.

    The handle refers to its driver but does not own it. Two handles are equal
    when they carry the same element id for the same driver.
    """

    def __init__(self, id: Any, driver: "WebDriver"):
        self.id = id
        self.driver = driver
        if driver.config.log_method_calls:
            install_call_logging(self, ELEMENT_OPERATIONS, f"WebElement({id})")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WebElement):
            return NotImplemented
        return self.id == other.id and self.driver is other.driver

    def __hash__(self) -> int:
        return hash((self.id, id(self.driver)))

    def __repr__(self) -> str:
        return f"WebElement(id={self.id!r})"

    async def _cmd(self, path: str, method: str = "POST", data: Optional[Dict[str, Any]] = None) -> Any:
        return await self.driver._dispatcher.dispatch(
            Command(f"/element/{self.id}{path}", method, data), owner=self
        )

    async def _query(self, path: str) -> Any:
        envelope = await self.driver._dispatcher.dispatch(
            Command(f"/element/{self.id}{path}", "GET", raw=True), owner=self
        )
        return envelope.value

    # =========================================================================
    # Lookup
    # =========================================================================

    async def get(self, selector: str, query: Union[SelectorQuery, Mapping[str, Any], None] = None,
                  **params: Any) -> Optional["WebElement"]:
        """Get a descendant element; same parameters as ``WebDriver.get``."""
        return await self.driver.get(selector, query, parent=self, **params)

    async def get_list(self, selector: str, query: Union[SelectorQuery, Mapping[str, Any], None] = None,
                       **params: Any) -> List["WebElement"]:
        """Get descendant elements; same parameters as ``WebDriver.get_list``."""
        return await self.driver.get_list(selector, query, parent=self, **params)

    # =========================================================================
    # Properties
    # =========================================================================

    async def get_attr(self, name: str) -> Any:
        return await self._query(f"/attribute/{name}")

    async def get_css_prop(self, name: str) -> Any:
        return await self._query(f"/css/{name}")

    async def get_tag_name(self) -> str:
        return await self._query("/name")

    async def get_text(self) -> str:
        return await self._query("/text")

    async def get_value(self) -> Any:
        return await self._query("/attribute/value")

    async def get_location(self) -> Dict[str, int]:
        return await self._query("/location")

    async def get_size(self) -> Dict[str, int]:
        return await self._query("/size")

    async def is_displayed(self) -> bool:
        return await self._query("/displayed")

    async def is_enabled(self) -> bool:
        return await self._query("/enabled")

    async def is_selected(self) -> bool:
        return await self._query("/selected")

    async def is_visible(self) -> bool:
        """Whether neither the element nor an ancestor is hidden by its computed style."""
        return await self.driver.execute(IS_VISIBLE_SCRIPT, [element_reference(self.id)])

    # =========================================================================
    # Actions
    # =========================================================================

    async def send_keys(self, value: str) -> "WebElement":
        """Type ``value`` into the element; ``{Enter}``-style tokens become key codes."""
        return await self._cmd("/value", data={
            "value": list(replace_key_strokes_with_codes(value)),
        })

    async def clear(self) -> "WebElement":
        return await self._cmd("/clear")

    async def click(self) -> "WebElement":
        return await self._cmd("/click")

    async def submit(self) -> "WebElement":
        return await self._cmd("/submit")

    async def move_to(self, x_offset: Optional[int] = None, y_offset: Optional[int] = None) -> "WebElement":
        """Move the mouse to the element (its center, or the given offset from its top-left corner)."""
        data: Dict[str, Any] = {"element": self.id}
        if x_offset is not None:
            data["xoffset"] = x_offset
        if y_offset is not None:
            data["yoffset"] = y_offset
        return await self.driver._dispatcher.dispatch(Command("/moveto", "POST", data), owner=self)

    async def mouse_down(self, button: str = "left") -> "WebElement":
        """Move to the element and press ``button`` there."""
        await self.move_to()
        await self.driver.mouse_down(button)
        return self

    async def mouse_up(self, button: str = "left") -> "WebElement":
        """Move to the element and release ``button`` there."""
        await self.move_to()
        await self.driver.mouse_up(button)
        return self

    # =========================================================================
    # Waits
    # =========================================================================

    async def wait_for_disappear(self, *, timeout: Optional[int] = None,
                                 no_error: bool = False) -> "WebDriver":
        """
        Wait until the element is hidden or removed from the document.

        Args:
            timeout: Milliseconds; defaults to the ``wait_for_disappear`` timeout.
            no_error: Return instead of raising when the element stays.

        Returns:
            The driver.
        """
        async def disappeared() -> bool:
            try:
                return not await self.is_displayed()
            except StaleElementReferenceError:
                return True

        await wait_until(
            disappeared,
            timeout_ms=timeout or self.driver.get_timeout("wait_for_disappear"),
            message=f"waiting for {self!r} to disappear",
            no_error=no_error,
        )
        return self.driver


# =============================================================================
# Driver-level delegates
# =============================================================================

class ElementCommands:
    """
    Element operations addressed by selector.

    ``driver.element.get_text("#title")`` resolves the selector with
    ``driver.get`` and then awaits ``WebElement.get_text``. Selector
    parameters go in ``query``; every other argument is forwarded. If the
    lookup returns None (``no_error``), so does the delegate.

    ``query`` always belongs to the outer lookup. Operations that take their
    own selector parameters (``get``, ``get_list``) receive them as keyword
    parameters instead: ``driver.element.get("form", "input", using="xpath")``
    would apply ``using`` to the inner lookup, not to ``"form"``.
    """

    def __init__(self, driver: "WebDriver"):
        self._driver = driver


def _delegate(name: str):
    async def delegate(self: ElementCommands, selector: str, *args: Any,
                       query: Union[SelectorQuery, Mapping[str, Any], None] = None,
                       **kwargs: Any) -> Any:
        element = await self._driver.get(selector, query)
        if element is None:
            return None
        return await getattr(element, name)(*args, **kwargs)

    delegate.__name__ = name
    delegate.__qualname__ = f"ElementCommands.{name}"
    delegate.__doc__ = f"Resolve ``selector`` and await ``WebElement.{name}``."
    return delegate


for _name in ELEMENT_OPERATIONS:
    setattr(ElementCommands, _name, _delegate(_name))
del _name
