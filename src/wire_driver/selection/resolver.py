"""
Selector Resolution - turns selectors into server-side element ids.

Lookups go either to the protocol's native find-element commands or to a
registered custom strategy. Whatever the route, "not found" is handled in one
place and every error leaving the resolver names the selector and strategy.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Union, runtime_checkable

from wire_driver.core.errors import DriverError, InvalidParentError, NoSuchElementError
from wire_driver.core.models import Command, SelectorQuery
from wire_driver.core.references import element_id
from wire_driver.element import WebElement

if TYPE_CHECKING:
    from wire_driver.driver import WebDriver
    from wire_driver.protocol.dispatcher import CommandDispatcher

logger = logging.getLogger("wire_driver")

CSS_SELECTOR = "css selector"

_VISIBLE = ':not([style*="display:none"]):not([style*="display: none"])'
_HIDDEN = (
    '[style*="display:none"],[style*="display: none"],'
    '[style*="opacity: 0"],[style*="opacity:0"]'
)


def sweeten_css(selector: str) -> str:
    """
    Rewrite ``:visible`` and ``:hidden``, which servers do not support, into
    inline-style attribute predicates.
    """
    return selector.replace(":visible", _VISIBLE).replace(":hidden", _HIDDEN)


@runtime_checkable
class Strategy(Protocol):
    """A custom selection strategy."""

    name: str

    async def find(self, driver: "WebDriver", selector: str, query: SelectorQuery,
                   parent_id: Optional[str]) -> List[str]:
        """
        Return matching element ids.

        Raises NoSuchElementError for an empty single-result query.
        """
        ...


class SelectorResolver:
    """Resolves selectors for one driver."""

    def __init__(
        self,
        driver: "WebDriver",
        dispatcher: "CommandDispatcher",
        default_using: str = CSS_SELECTOR,
        strategies: Optional[Dict[str, Strategy]] = None,
    ):
        self.driver = driver
        self.dispatcher = dispatcher
        self.default_using = default_using
        self.strategies: Dict[str, Strategy] = dict(strategies or {})

    def register_strategy(self, strategy: Strategy) -> None:
        self.strategies[strategy.name] = strategy

    async def resolve(self, selector: str, query: SelectorQuery) -> Union[str, List[str], None]:
        """
        Resolve ``selector`` to one id, a list of ids, or None.

        Single-result queries raise NoSuchElementError when nothing matches,
        unless ``query.no_error`` is set (then None is returned).
        Multi-result queries return an empty list instead.

        Raises:
            InvalidParentError: If ``query.parent`` is not a WebElement.
            DriverError: Any lookup failure, parametrized with ``element`` and
                ``using``.
        """
        using = query.using or self.default_using
        parent_id = None
        if query.parent is not None:
            if not isinstance(query.parent, WebElement):
                raise InvalidParentError(
                    "Parent should be an instance of WebElement",
                    element=selector,
                    using=using,
                )
            parent_id = query.parent.id

        try:
            strategy = self.strategies.get(using)
            if strategy is not None:
                ids = await strategy.find(self.driver, selector, query, parent_id)
            else:
                ids = await self._find_native(selector, using, query.single, parent_id)
            if query.single and not ids:
                raise NoSuchElementError()
        except NoSuchElementError as e:
            if not query.single:
                return []
            if query.no_error:
                return None
            raise e.parametrize(element=selector, using=using)
        except DriverError as e:
            raise e.parametrize(element=selector, using=using)

        if query.single:
            return ids[0]
        return ids

    async def _find_native(self, selector: str, using: str, single: bool,
                           parent_id: Optional[str]) -> List[str]:
        plural = "" if single else "s"
        if parent_id is not None:
            path = f"/element/{parent_id}/element{plural}"
        else:
            path = f"/element{plural}"
        value = sweeten_css(selector) if using == CSS_SELECTOR else selector
        logger.debug(f"Find element{plural} using {using}: {value}")

        envelope = await self.dispatcher.dispatch(
            Command(path, "POST", {"using": using, "value": value}, raw=True),
            owner=self.driver,
        )
        result: Any = envelope.value
        if single:
            if not result:
                raise NoSuchElementError()
            return [element_id(result)]
        return [element_id(reference) for reference in result or []]
