"""
WebDriver - High-level async client for a remote WebDriver server.

This module provides the main user-facing API. It owns the session, maps
each public operation to a wire protocol command and builds element lookups
and waits on top of the selection and polling engines.
"""
from __future__ import annotations

import asyncio
import base64
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import httpx

from wire_driver.calllog import install_call_logging
from wire_driver.core.errors import (
    InjectionError,
    InvalidArgumentError,
    NoSuchElementError,
    SessionStateError,
    WaitTimeoutError,
)
from wire_driver.core.models import Command, SelectorQuery, TimeoutTable
from wire_driver.core.utils import deep_merge, is_function, replace_key_strokes_with_codes
from wire_driver.element import ElementCommands, WebElement
from wire_driver.polling import Predicate, UrlMatcher, describe_url_change, url_change_satisfied, wait_until
from wire_driver.protocol.dispatcher import DEFAULT_BASE_PATH, CommandDispatcher
from wire_driver.selection.injection import (
    BUNDLED_EXPORT,
    InjectionStrategy,
    load_library_source,
)
from wire_driver.selection.resolver import CSS_SELECTOR, SelectorResolver, Strategy

logger = logging.getLogger("wire_driver")

DEFAULT_CAPABILITIES: Dict[str, Any] = {
    "browserName": "firefox",
    "version": "",
    "javascriptEnabled": True,
    "platform": "ANY",
}

MOUSE_BUTTONS: Dict[str, int] = {
    "left": 0,
    "middle": 1,
    "right": 2,
}

QueryArg = Union[SelectorQuery, Mapping[str, Any], None]


@dataclass
class DriverConfig:
    """Configuration options for the WebDriver."""

    host: str = "127.0.0.1"
    port: int = 4444
    method: str = "POST"
    base_path: str = DEFAULT_BASE_PATH
    # merged over DEFAULT_CAPABILITIES
    desired_capabilities: Dict[str, Any] = field(default_factory=dict)
    # milliseconds by category, merged over DEFAULT_TIMEOUTS
    timeouts: Dict[str, int] = field(default_factory=dict)
    # default selector parameters, e.g. {"using": "query"}
    defaults: Dict[str, Any] = field(default_factory=dict)
    log_method_calls: bool = False
    request_timeout: Optional[float] = 60.0
    injection_strategy: str = "query"
    helper_library_path: Optional[str] = None
    helper_library_export: str = BUNDLED_EXPORT
    debug: bool = False

    def capabilities(self) -> Dict[str, Any]:
        return deep_merge(DEFAULT_CAPABILITIES, self.desired_capabilities)

    def selector_defaults(self) -> Dict[str, Any]:
        return deep_merge({"using": CSS_SELECTOR}, self.defaults)


class WebDriver:
    """
    Client for one remote browser session.

    Commands must be awaited one at a time: the server keeps per-session state
    (current frame, focus, cookies) and the client does not serialize calls
    that are issued concurrently.

    Usage:
        async with WebDriver(DriverConfig(port=4444)) as driver:
            await driver.set_url("https://example.com")
            heading = await driver.get("h1")
            print(await heading.get_text())
            print(await driver.element.get_text("h1"))
    """

    PUBLIC_OPERATIONS = (
        "init",
        "delete_session",
        "set_url",
        "get_url",
        "get_title",
        "get",
        "get_list",
        "set_timeout",
        "set_timeouts",
        "get_timeout",
        "execute",
        "wait_for",
        "wait_for_element",
        "wait_for_element_absent",
        "wait_for_url_change",
        "wait_for_redirect",
        "wait_for_document_ready",
        "get_cookie",
        "set_cookie",
        "delete_cookie",
        "make_screenshot",
        "maximize_window",
        "back",
        "forward",
        "refresh",
        "mouse_down",
        "mouse_up",
        "click",
        "send_keys",
    )

    def __init__(
        self,
        config: Optional[DriverConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the WebDriver. No request is made until ``init``.

        Args:
            config: Driver configuration. Uses defaults if not provided.
            transport: Optional httpx transport, e.g. ``httpx.MockTransport``.
        """
        self.config = config or DriverConfig()
        self.desired_capabilities = self.config.capabilities()
        self.defaults = self.config.selector_defaults()
        self.timeouts = TimeoutTable(self.config.timeouts)

        self._dispatcher = CommandDispatcher(
            self.config.host,
            self.config.port,
            base_path=self.config.base_path,
            default_method=self.config.method,
            request_timeout=self.config.request_timeout,
            transport=transport,
            debug=self.config.debug,
        )
        self._injection = self._build_injection_strategy()
        self._resolver = SelectorResolver(
            self,
            self._dispatcher,
            default_using=self.defaults["using"],
            strategies={self._injection.name: self._injection},
        )
        self.element = ElementCommands(self)

        if self.config.log_method_calls:
            install_call_logging(self, self.PUBLIC_OPERATIONS, "WebDriver")

    def _build_injection_strategy(self) -> InjectionStrategy:
        if self.config.helper_library_path:
            return InjectionStrategy(
                self.config.injection_strategy,
                load_library_source(self.config.helper_library_path),
                self.config.helper_library_export,
            )
        return InjectionStrategy.bundled(self.config.injection_strategy)

    async def __aenter__(self) -> WebDriver:
        """Async context manager entry - start the session."""
        try:
            await self.init()
        except BaseException:
            await self.aclose()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - end the session and close the client."""
        try:
            if self._dispatcher.has_session:
                await self.delete_session()
        finally:
            await self.aclose()

    @property
    def session_id(self) -> Optional[str]:
        return self._dispatcher.session_id

    async def _cmd(self, path: str, method: str = "POST", data: Optional[Dict[str, Any]] = None) -> Any:
        """Send a command; returns its value, or the driver when there is none."""
        return await self._dispatcher.dispatch(Command(path, method, data), owner=self)

    async def _query(self, path: str, method: str = "GET", data: Optional[Dict[str, Any]] = None) -> Any:
        """Send a command whose value is the result, whatever its shape."""
        envelope = await self._dispatcher.dispatch(Command(path, method, data, raw=True), owner=self)
        return envelope.value

    # =========================================================================
    # Session
    # =========================================================================

    async def init(self) -> WebDriver:
        """
        Start a session and push the configured timeouts.

        The session id is read from the response body, or from the last path
        segment of the ``Location`` header.

        Raises:
            SessionStateError: If the session id cannot be determined or a
                session was already started.
        """
        envelope = await self._dispatcher.dispatch(
            Command("", "POST", {"desiredCapabilities": self.desired_capabilities}, raw=True),
            owner=self,
            sessionless=True,
        )
        session_id = envelope.session_id
        if not session_id and envelope.location:
            session_id = envelope.location.split("/")[-1]
        if not session_id:
            raise SessionStateError("Can't determine session id", location=envelope.location)

        self._dispatcher.bind_session(session_id)
        logger.info(f"Session {session_id} started at {self.config.host}:{self.config.port}")

        await self.set_timeouts(dict(self.timeouts.items()))
        return self

    async def delete_session(self) -> Any:
        """End the current session; the driver cannot be used afterwards."""
        result = await self._cmd("", "DELETE")
        self._dispatcher.release_session()
        logger.info(f"Session {self.session_id} deleted")
        return result

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._dispatcher.aclose()

    # =========================================================================
    # Navigation
    # =========================================================================

    async def set_url(self, url: str) -> Any:
        """Navigate to ``url``."""
        return await self._cmd("/url", data={"url": url})

    async def get_url(self) -> str:
        """Get the current page URL."""
        return await self._query("/url")

    async def get_title(self) -> str:
        """Get the current page title."""
        return await self._query("/title")

    async def back(self) -> Any:
        """Navigate backwards in the browser history, if possible."""
        return await self._cmd("/back")

    async def forward(self) -> Any:
        """Navigate forwards in the browser history, if possible."""
        return await self._cmd("/forward")

    async def refresh(self) -> Any:
        """Reload the current page."""
        return await self._cmd("/refresh")

    async def maximize_window(self) -> Any:
        return await self._cmd("/window/current/maximize")

    # =========================================================================
    # Elements
    # =========================================================================

    async def get(self, selector: str, query: QueryArg = None, **params: Any) -> Optional[WebElement]:
        """
        Get an element from the current page.

        Args:
            selector: Element selector.
            query: SelectorQuery or mapping of selector parameters.
            **params: Selector parameters (``using``, ``no_error``, ``chain``,
                ``parent``), applied over ``query``.

        Returns:
            The element, or None when nothing matches and ``no_error`` is set.

        Raises:
            NoSuchElementError: If nothing matches.
        """
        lookup = SelectorQuery.coerce(query, **params)
        lookup.single = True
        id = await self._resolver.resolve(selector, lookup)
        return WebElement(id, self) if id is not None else None

    async def get_list(self, selector: str, query: QueryArg = None, **params: Any) -> List[WebElement]:
        """Get all matching elements; an empty list when nothing matches."""
        lookup = SelectorQuery.coerce(query, **params)
        lookup.single = False
        ids = await self._resolver.resolve(selector, lookup)
        return [WebElement(id, self) for id in ids or []]

    def register_strategy(self, strategy: Strategy) -> WebDriver:
        """
        Register a custom selection strategy under ``strategy.name``.

        Lookups with ``using=strategy.name`` are routed to it afterwards; an
        existing strategy with the same name is replaced.
        """
        self._resolver.register_strategy(strategy)
        return self

    # =========================================================================
    # Timeouts
    # =========================================================================

    async def set_timeout(self, category: str, ms: int) -> WebDriver:
        """
        Set a timeout in milliseconds.

        Server-enforced categories (``page load``, ``script``, ``implicit``)
        are sent to the server first; client categories are only recorded.
        """
        if self.timeouts.is_server_enforced(category):
            await self._cmd("/timeouts", data={"type": category, "ms": ms})
        self.timeouts.set(category, ms)
        return self

    async def set_timeouts(self, timeouts: Mapping[str, int]) -> WebDriver:
        for category, ms in timeouts.items():
            await self.set_timeout(category, ms)
        return self

    def get_timeout(self, category: str) -> Optional[int]:
        return self.timeouts.get(category)

    # =========================================================================
    # Scripts
    # =========================================================================

    async def execute(self, script: str, args: Optional[Sequence[Any]] = None,
                      is_async: bool = False) -> Any:
        """
        Run JavaScript in the context of the currently selected frame.

        Args:
            script: Function body; arguments are available as ``arguments``.
            args: Script arguments.
            is_async: Run as an async script; the last argument is then the
                callback the script must call with its result.

        Returns:
            The script's result.
        """
        path = "/execute_async" if is_async else "/execute"
        return await self._query(path, "POST", {"script": script, "args": list(args or [])})

    # =========================================================================
    # Waits
    # =========================================================================

    async def wait_for(self, predicate: Predicate, *, timeout: Optional[int] = None,
                       message: Optional[str] = None, no_error: bool = False) -> WebDriver:
        """
        Wait until ``await predicate()`` returns True.

        Args:
            predicate: Coroutine function checked every poll interval.
            timeout: Milliseconds; defaults to the ``wait_for`` timeout.
            message: What is being awaited, for the timeout error.
            no_error: Return instead of raising on timeout.

        Raises:
            InvalidArgumentError: If ``predicate`` is not callable.
            WaitTimeoutError: If the deadline passes first.
        """
        if not is_function(predicate):
            raise InvalidArgumentError("Wait predicate should be a function", predicate=predicate)
        await wait_until(
            predicate,
            timeout_ms=timeout or self.timeouts.get("wait_for"),
            message=message,
            no_error=no_error,
        )
        return self

    async def wait_for_element(self, selector: str, query: QueryArg = None, *,
                               timeout: Optional[int] = None, **params: Any) -> Optional[WebElement]:
        """
        Wait for an element to appear on the page and return it.

        "No such element" means "not yet"; any other error ends the wait.
        With ``no_error`` a timeout returns None instead of raising.
        """
        lookup = SelectorQuery.coerce(query, **params)
        found: Optional[WebElement] = None

        async def present() -> bool:
            nonlocal found
            try:
                found = await self.get(selector, lookup)
            except NoSuchElementError:
                return False
            return found is not None

        met = await wait_until(
            present,
            timeout_ms=timeout or self.timeouts.get("wait_for_element"),
            message=f"waiting for element {selector}",
            no_error=lookup.no_error,
        )
        return found if met else None

    async def wait_for_element_absent(self, selector: str, query: QueryArg = None, *,
                                      timeout: Optional[int] = None, **params: Any) -> WebDriver:
        """Wait until the element is hidden or gone; returns at once if it never existed."""
        lookup = SelectorQuery.coerce(query, **params)
        no_error = lookup.no_error
        lookup.no_error = True
        element = await self.get(selector, lookup)
        if element is None:
            return self
        return await element.wait_for_disappear(timeout=timeout, no_error=no_error)

    async def wait_for_url_change(self, old_url: UrlMatcher, new_url: UrlMatcher = None, *,
                                  timeout: Optional[int] = None) -> WebDriver:
        """
        Wait for the URL to change from ``old_url`` to ``new_url``.

        Either may be a string or a compiled pattern; a falsy one is ignored.
        The query string is not involved in the comparison.

        Raises:
            InvalidArgumentError: If both URLs are falsy.
        """
        if not old_url and not new_url:
            raise InvalidArgumentError("Both of new and old url can't be falsy")

        async def changed() -> bool:
            return url_change_satisfied(await self.get_url(), old_url, new_url)

        await wait_until(
            changed,
            timeout_ms=timeout or self.timeouts.get("wait_for_url_change"),
            message=describe_url_change(old_url, new_url),
        )
        return self

    async def wait_for_redirect(self, new_url: UrlMatcher, *, timeout: Optional[int] = None) -> WebDriver:
        """Wait for the URL to become ``new_url`` (query string ignored)."""
        return await self.wait_for_url_change("", new_url, timeout=timeout)

    async def wait_for_document_ready(self) -> WebDriver:
        """
        Wait for the page's DOMContentLoaded via the injected helper library.

        The in-page script gives up after the ``wait_for`` timeout. The server
        enforces its own ``script`` timeout (1000 ms by default) on the same
        call, so raise it above ``wait_for`` or expect ScriptTimeoutError.
        """
        timeout = self.timeouts.get("wait_for")
        result = await self._injection.wait_for_document_ready(self, timeout)
        if result is True:
            return self
        if result is False:
            raise WaitTimeoutError(
                "Timeout exceeded while waiting for document ready", timeout=timeout
            )
        raise InjectionError(f"Unexpected result while waiting for document ready: {result!r}")

    # =========================================================================
    # Cookies
    # =========================================================================

    async def get_cookie(self, name: Optional[str] = None) -> Any:
        """All cookies visible to the current page, or the one named ``name``."""
        return await self._query(f"/cookie/{name}" if name else "/cookie")

    async def set_cookie(self, name: str, value: str, **attributes: Any) -> Any:
        """Set a cookie; ``attributes`` may include path, domain, secure, expiry."""
        cookie = {"name": name, "value": value}
        cookie.update(attributes)
        return await self._cmd("/cookie", data={"cookie": cookie})

    async def delete_cookie(self, name: Optional[str] = None) -> Any:
        """Delete all cookies, or the one named ``name``."""
        return await self._cmd(f"/cookie/{name}" if name else "/cookie", "DELETE")

    # =========================================================================
    # Screenshots
    # =========================================================================

    async def make_screenshot(self, path: Union[str, Path]) -> WebDriver:
        """Take a screenshot and write the decoded image to ``path``."""
        data = await self._query("/screenshot")
        image = base64.b64decode(data)
        await asyncio.to_thread(Path(path).write_bytes, image)
        return self

    # =========================================================================
    # Mouse and keyboard
    # =========================================================================

    def _button(self, button: str) -> Dict[str, int]:
        if button not in MOUSE_BUTTONS:
            raise InvalidArgumentError(f"Unknown mouse button: {button}", button=button)
        return {"button": MOUSE_BUTTONS[button]}

    async def mouse_down(self, button: str = "left") -> Any:
        """
        Press a mouse button at the position of the last ``move_to``.

        The next mouse command should be ``mouse_up``.
        """
        return await self._cmd("/buttondown", data=self._button(button))

    async def mouse_up(self, button: str = "left") -> Any:
        """Release a mouse button previously pressed with ``mouse_down``."""
        return await self._cmd("/buttonup", data=self._button(button))

    async def click(self, button: str = "left") -> Any:
        """Click a mouse button at the position of the last ``move_to``."""
        return await self._cmd("/click", data=self._button(button))

    async def send_keys(self, value: str) -> Any:
        """Send key strokes to the active element."""
        return await self._cmd("/keys", data={"value": list(replace_key_strokes_with_codes(value))})
