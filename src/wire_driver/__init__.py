"""
Wire Driver - An async client for the WebDriver JSON wire protocol.

This package drives a remote browser through a WebDriver server (Selenium
standalone, chromedriver, geckodriver in legacy mode) over HTTP.

Usage:
    from wire_driver import WebDriver, DriverConfig

    async with WebDriver(DriverConfig(port=4444)) as driver:
        await driver.set_url("https://example.com")
        link = await driver.get("a:visible")
        await link.click()
        await driver.wait_for_url_change("https://example.com/")

Selecting with the injected helper library:
    items = await driver.get_list("li", using="query", chain=[{"eq": 0}])

Element operations by selector:
    text = await driver.element.get_text("h1")
"""
from wire_driver.driver import MOUSE_BUTTONS, DriverConfig, WebDriver
from wire_driver.element import ELEMENT_OPERATIONS, ElementCommands, WebElement
from wire_driver.calllog import setup_logging
from wire_driver.core.models import SelectorQuery, TimeoutTable
from wire_driver.core.errors import (
    STATUS_ERRORS,
    CommandTimeoutError,
    DriverError,
    ElementNotVisibleError,
    InjectionError,
    InvalidArgumentError,
    InvalidChainError,
    InvalidParentError,
    InvalidSelectorError,
    JavaScriptError,
    NoSuchElementError,
    NoSuchWindowError,
    ProtocolError,
    ScriptTimeoutError,
    SessionStateError,
    StaleElementReferenceError,
    StatusError,
    UnknownError,
    WaitTimeoutError,
    error_for_status,
)
from wire_driver.selection.resolver import Strategy, sweeten_css
from wire_driver.selection.injection import InjectionStrategy

__version__ = "0.1.0"

__all__ = [
    # Main API
    "WebDriver",
    "DriverConfig",
    "MOUSE_BUTTONS",
    # Elements
    "WebElement",
    "ElementCommands",
    "ELEMENT_OPERATIONS",
    # Selection
    "SelectorQuery",
    "Strategy",
    "InjectionStrategy",
    "sweeten_css",
    "TimeoutTable",
    # Errors
    "DriverError",
    "ProtocolError",
    "StatusError",
    "STATUS_ERRORS",
    "error_for_status",
    "NoSuchElementError",
    "StaleElementReferenceError",
    "ElementNotVisibleError",
    "UnknownError",
    "JavaScriptError",
    "CommandTimeoutError",
    "NoSuchWindowError",
    "ScriptTimeoutError",
    "InvalidSelectorError",
    "SessionStateError",
    "InvalidParentError",
    "InvalidChainError",
    "InvalidArgumentError",
    "InjectionError",
    "WaitTimeoutError",
    # Logging
    "setup_logging",
    # Version
    "__version__",
]
