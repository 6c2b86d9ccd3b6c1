"""
Tests for the WebDriver and WebElement facade.

Run with: pytest tests/test_driver.py -v
"""
import base64
import logging

import httpx
import pytest

from wire_driver.core.errors import (
    InjectionError,
    InvalidArgumentError,
    InvalidSelectorError,
    ScriptTimeoutError,
    SessionStateError,
    WaitTimeoutError,
)
from wire_driver.driver import DriverConfig, WebDriver
from wire_driver.element import ELEMENT_OPERATIONS, ElementCommands, WebElement
from wire_driver.selection.injection import NEED_LIBRARY

from tests.conftest import SESSION_ID, SESSION_PATH, FakeWireServer, ok, ref


NOT_FOUND = {"status": 7, "value": {"message": "Unable to locate element"}}


# =============================================================================
# Session Tests
# =============================================================================

class TestSession:
    """Tests for session creation and teardown."""

    @pytest.mark.asyncio
    async def test_init_reads_session_id_from_body(self, server):
        driver = WebDriver(transport=server.transport)
        assert await driver.init() is driver
        assert driver.session_id == SESSION_ID
        await driver.aclose()

    @pytest.mark.asyncio
    async def test_init_reads_session_id_from_location(self, server):
        server.on("POST", "/wd/hub/session", httpx.Response(
            200, json={"status": 0, "value": {}}, headers={"Location": SESSION_PATH},
        ))
        server.on_session("GET", "/url", ok("http://a.test/"))
        driver = WebDriver(transport=server.transport)
        await driver.init()

        assert driver.session_id == SESSION_ID
        assert await driver.get_url() == "http://a.test/"
        assert server.requests[-1][:2] == ("GET", f"{SESSION_PATH}/url")
        await driver.aclose()

    @pytest.mark.asyncio
    async def test_init_without_session_id(self, server):
        server.on("POST", "/wd/hub/session", ok({}))
        driver = WebDriver(transport=server.transport)
        with pytest.raises(SessionStateError):
            await driver.init()
        await driver.aclose()

    @pytest.mark.asyncio
    async def test_init_sends_merged_capabilities(self, server):
        config = DriverConfig(desired_capabilities={"browserName": "chrome", "proxy": {"proxyType": "direct"}})
        driver = WebDriver(config, transport=server.transport)
        await driver.init()

        payload = server.requests[0][2]
        assert payload == {"desiredCapabilities": {
            "browserName": "chrome",
            "version": "",
            "javascriptEnabled": True,
            "platform": "ANY",
            "proxy": {"proxyType": "direct"},
        }}
        await driver.aclose()

    @pytest.mark.asyncio
    async def test_init_pushes_server_timeouts(self, server):
        config = DriverConfig(timeouts={"script": 5000, "wait_for_element": 200})
        driver = WebDriver(config, transport=server.transport)
        await driver.init()

        sent = [payload for _, _, payload in server.sent("POST", "/timeouts")]
        assert sent == [
            {"type": "page load", "ms": 3500},
            {"type": "script", "ms": 5000},
            {"type": "implicit", "ms": 0},
        ]
        assert driver.get_timeout("wait_for_element") == 200
        await driver.aclose()

    @pytest.mark.asyncio
    async def test_init_twice(self, driver, server):
        count = len(server.requests)
        with pytest.raises(SessionStateError):
            await driver.init()
        assert len(server.requests) == count

    @pytest.mark.asyncio
    async def test_command_before_init(self, server):
        driver = WebDriver(transport=server.transport)
        with pytest.raises(SessionStateError):
            await driver.get_url()
        assert server.requests == []
        await driver.aclose()

    @pytest.mark.asyncio
    async def test_delete_session(self, driver, server):
        await driver.delete_session()
        assert server.requests[-1][:2] == ("DELETE", SESSION_PATH)
        with pytest.raises(SessionStateError):
            await driver.get_title()

    @pytest.mark.asyncio
    async def test_context_manager(self, server):
        async with WebDriver(transport=server.transport) as driver:
            assert driver.session_id == SESSION_ID
        assert server.requests[-1][:2] == ("DELETE", SESSION_PATH)
        assert driver._dispatcher._client.is_closed

    @pytest.mark.asyncio
    async def test_transport_failure_reaches_caller(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        driver = WebDriver(transport=httpx.MockTransport(refuse))
        with pytest.raises(httpx.ConnectError):
            await driver.init()
        await driver.aclose()


# =============================================================================
# Navigation Tests
# =============================================================================

class TestNavigation:
    """Tests for navigation and page queries."""

    @pytest.mark.asyncio
    async def test_set_url_returns_driver(self, driver, server):
        server.on_session("POST", "/url", ok())
        assert await driver.set_url("http://a.test/") is driver
        assert server.sent("POST", "/url")[-1][2] == {"url": "http://a.test/"}

    @pytest.mark.asyncio
    async def test_get_title(self, driver, server):
        server.on_session("GET", "/title", ok("Example Domain"))
        assert await driver.get_title() == "Example Domain"

    @pytest.mark.asyncio
    async def test_empty_title_is_a_value(self, driver, server):
        server.on_session("GET", "/title", ok(""))
        assert await driver.get_title() == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation,path", [
        ("back", "/back"),
        ("forward", "/forward"),
        ("refresh", "/refresh"),
        ("maximize_window", "/window/current/maximize"),
    ])
    async def test_void_commands(self, driver, server, operation, path):
        server.on_session("POST", path, ok())
        assert await getattr(driver, operation)() is driver
        assert len(server.sent("POST", path)) == 1


# =============================================================================
# Timeout Tests
# =============================================================================

class TestTimeouts:
    """Tests for timeout configuration."""

    @pytest.mark.asyncio
    async def test_server_timeout_is_sent(self, driver, server):
        before = len(server.sent("POST", "/timeouts"))
        assert await driver.set_timeout("implicit", 250) is driver
        assert server.sent("POST", "/timeouts")[before:] == [
            ("POST", f"{SESSION_PATH}/timeouts", {"type": "implicit", "ms": 250}),
        ]
        assert driver.get_timeout("implicit") == 250

    @pytest.mark.asyncio
    async def test_client_timeout_is_local(self, driver, server):
        before = len(server.requests)
        await driver.set_timeout("wait_for_url_change", 900)
        assert len(server.requests) == before
        assert driver.get_timeout("wait_for_url_change") == 900

    @pytest.mark.asyncio
    async def test_wait_timeouts_fall_back(self, driver):
        await driver.set_timeouts({"wait_for": 1234})
        assert driver.get_timeout("wait_for_disappear") == 1234
        assert driver.get_timeout("unknown") is None

    @pytest.mark.asyncio
    async def test_rejected_server_timeout_is_not_recorded(self, driver, server):
        server.on_session("POST", "/timeouts", {"status": 13, "value": {"message": "bad type"}})
        with pytest.raises(Exception):
            await driver.set_timeout("script", 1)
        assert driver.get_timeout("script") == 1000


# =============================================================================
# Script Tests
# =============================================================================

class TestExecute:
    """Tests for script execution."""

    @pytest.mark.asyncio
    async def test_execute_returns_result(self, driver, server):
        server.on_session("POST", "/execute", ok(3))
        assert await driver.execute("return arguments[0] + 1;", [2]) == 3
        assert server.sent("POST", "/execute")[-1][2] == {
            "script": "return arguments[0] + 1;", "args": [2],
        }

    @pytest.mark.asyncio
    async def test_execute_returns_empty_results(self, driver, server):
        server.on_session("POST", "/execute", ok({}))
        assert await driver.execute("return {};") == {}

    @pytest.mark.asyncio
    async def test_execute_async(self, driver, server):
        server.on_session("POST", "/execute_async", ok("done"))
        assert await driver.execute("arguments[0]('done');", is_async=True) == "done"
        assert server.sent("POST", "/execute_async")[-1][2]["args"] == []


# =============================================================================
# Wait Tests
# =============================================================================

class TestWaits:
    """Tests for the wait family."""

    @pytest.mark.asyncio
    async def test_wait_for(self, driver):
        calls = []

        async def ready():
            calls.append(1)
            return len(calls) == 2

        assert await driver.wait_for(ready, timeout=1000) is driver
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_wait_for_timeout(self, driver):
        async def never():
            return False

        with pytest.raises(WaitTimeoutError, match="Timeout \\(50 ms\\) exceeded while waiting for login"):
            await driver.wait_for(never, timeout=50, message="waiting for login")

    @pytest.mark.asyncio
    async def test_wait_for_requires_function(self, driver):
        with pytest.raises(InvalidArgumentError):
            await driver.wait_for(True)

    @pytest.mark.asyncio
    async def test_wait_for_element(self, driver, server):
        server.on_session("POST", "/element", NOT_FOUND, NOT_FOUND, ok(ref("1")))
        element = await driver.wait_for_element("#late", timeout=1000)
        assert element == WebElement("1", driver)
        assert len(server.sent("POST", "/element")) == 3

    @pytest.mark.asyncio
    async def test_wait_for_element_no_error(self, driver, server):
        server.on_session("POST", "/element", NOT_FOUND)
        assert await driver.wait_for_element("#never", timeout=60, no_error=True) is None

    @pytest.mark.asyncio
    async def test_wait_for_element_timeout(self, driver, server):
        server.on_session("POST", "/element", NOT_FOUND)
        with pytest.raises(WaitTimeoutError, match="#never"):
            await driver.wait_for_element("#never", timeout=60)

    @pytest.mark.asyncio
    async def test_wait_for_element_other_error_is_fatal(self, driver, server):
        server.on_session("POST", "/element", {"status": 32, "value": None})
        with pytest.raises(InvalidSelectorError):
            await driver.wait_for_element("a[", timeout=5000)
        assert len(server.sent("POST", "/element")) == 1

    @pytest.mark.asyncio
    async def test_wait_for_element_absent_when_never_present(self, driver, server):
        server.on_session("POST", "/element", NOT_FOUND)
        assert await driver.wait_for_element_absent("#spinner") is driver
        assert server.sent("GET", "/element/1/displayed") == []

    @pytest.mark.asyncio
    async def test_wait_for_element_absent(self, driver, server):
        server.on_session("POST", "/element", ok(ref("1")))
        server.on_session("GET", "/element/1/displayed", ok(True), ok(True), ok(False))
        assert await driver.wait_for_element_absent("#spinner", timeout=1000) is driver
        assert len(server.sent("GET", "/element/1/displayed")) == 3

    @pytest.mark.asyncio
    async def test_removed_element_counts_as_disappeared(self, driver, server):
        server.on_session("POST", "/element", ok(ref("1")))
        server.on_session("GET", "/element/1/displayed", {"status": 10, "value": None})
        assert await driver.wait_for_element_absent("#spinner", timeout=1000) is driver

    @pytest.mark.asyncio
    async def test_wait_for_element_absent_timeout(self, driver, server):
        server.on_session("POST", "/element", ok(ref("1")))
        server.on_session("GET", "/element/1/displayed", ok(True))
        with pytest.raises(WaitTimeoutError):
            await driver.wait_for_element_absent("#spinner", timeout=60)
        assert await driver.wait_for_element_absent("#spinner", timeout=60, no_error=True) is driver

    @pytest.mark.asyncio
    async def test_wait_for_url_change(self, driver, server):
        server.on_session(
            "GET", "/url",
            ok("http://a.test/"),
            ok("http://a.test/?x"),
            ok("http://b.test/?y=1"),
        )
        assert await driver.wait_for_url_change("http://a.test/", "http://b.test/", timeout=1000) is driver
        assert len(server.sent("GET", "/url")) == 3

    @pytest.mark.asyncio
    async def test_wait_for_url_change_needs_a_url(self, driver):
        with pytest.raises(InvalidArgumentError):
            await driver.wait_for_url_change("", None)

    @pytest.mark.asyncio
    async def test_wait_for_url_change_timeout(self, driver, server):
        server.on_session("GET", "/url", ok("http://a.test/"))
        with pytest.raises(WaitTimeoutError, match="from http://a.test/"):
            await driver.wait_for_url_change("http://a.test/", timeout=60)

    @pytest.mark.asyncio
    async def test_wait_for_redirect(self, driver, server):
        server.on_session("GET", "/url", ok("http://a.test/"), ok("http://b.test/done?ok=1"))
        assert await driver.wait_for_redirect("http://b.test/done", timeout=1000) is driver

    @pytest.mark.asyncio
    async def test_wait_for_document_ready(self, driver, server):
        server.on_session("POST", "/execute_async", ok(NEED_LIBRARY), ok(True))
        assert await driver.wait_for_document_ready() is driver

        sent = server.sent("POST", "/execute_async")
        assert len(sent) == 2
        assert sent[0][2]["args"] == [3000]
        assert "function ___wdInstallLibrary" in sent[1][2]["script"]

    @pytest.mark.asyncio
    async def test_wait_for_document_ready_timeout(self, driver, server):
        server.on_session("POST", "/execute_async", ok(False))
        with pytest.raises(WaitTimeoutError, match="document ready"):
            await driver.wait_for_document_ready()

    @pytest.mark.asyncio
    async def test_wait_for_document_ready_unexpected_result(self, driver, server):
        server.on_session("POST", "/execute_async", ok("loading"))
        with pytest.raises(InjectionError):
            await driver.wait_for_document_ready()

    @pytest.mark.asyncio
    async def test_wait_for_document_ready_server_script_timeout(self, driver, server):
        server.on_session("POST", "/execute_async", {"status": 28, "value": {"message": "Timed out"}})
        with pytest.raises(ScriptTimeoutError):
            await driver.wait_for_document_ready()


# =============================================================================
# Cookie and Screenshot Tests
# =============================================================================

class TestCookies:
    """Tests for cookie commands."""

    @pytest.mark.asyncio
    async def test_get_cookies(self, driver, server):
        cookies = [{"name": "sid", "value": "1"}]
        server.on_session("GET", "/cookie", ok(cookies))
        assert await driver.get_cookie() == cookies

    @pytest.mark.asyncio
    async def test_get_cookies_when_there_are_none(self, driver, server):
        server.on_session("GET", "/cookie", ok([]))
        assert await driver.get_cookie() == []

    @pytest.mark.asyncio
    async def test_set_cookie(self, driver, server):
        server.on_session("POST", "/cookie", ok())
        assert await driver.set_cookie("sid", "1", path="/", secure=True) is driver
        assert server.sent("POST", "/cookie")[-1][2] == {
            "cookie": {"name": "sid", "value": "1", "path": "/", "secure": True},
        }

    @pytest.mark.asyncio
    async def test_delete_cookie(self, driver, server):
        server.on_session("DELETE", "/cookie/sid", ok())
        server.on_session("DELETE", "/cookie", ok())
        await driver.delete_cookie("sid")
        await driver.delete_cookie()
        assert len(server.sent("DELETE", "/cookie/sid")) == 1
        assert len(server.sent("DELETE", "/cookie")) == 1


class TestScreenshot:
    """Tests for screenshots."""

    @pytest.mark.asyncio
    async def test_make_screenshot(self, driver, server, tmp_path):
        image = b"\x89PNG\r\n\x1a\nfake"
        server.on_session("GET", "/screenshot", ok(base64.b64encode(image).decode("ascii")))
        path = tmp_path / "page.png"

        assert await driver.make_screenshot(path) is driver
        assert path.read_bytes() == image


# =============================================================================
# Mouse and Keyboard Tests
# =============================================================================

class TestInput:
    """Tests for mouse and keyboard commands."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation,path", [
        ("mouse_down", "/buttondown"),
        ("mouse_up", "/buttonup"),
        ("click", "/click"),
    ])
    async def test_buttons(self, driver, server, operation, path):
        server.on_session("POST", path, ok())
        await getattr(driver, operation)()
        await getattr(driver, operation)("right")
        payloads = [payload for _, _, payload in server.sent("POST", path)]
        assert payloads == [{"button": 0}, {"button": 2}]

    @pytest.mark.asyncio
    async def test_unknown_button(self, driver, server):
        with pytest.raises(InvalidArgumentError):
            await driver.click("fourth")
        assert server.sent("POST", "/click") == []

    @pytest.mark.asyncio
    async def test_send_keys(self, driver, server):
        server.on_session("POST", "/keys", ok())
        await driver.send_keys("hi{Enter}")
        assert server.sent("POST", "/keys")[-1][2] == {"value": ["h", "i", "\ue007"]}


# =============================================================================
# Element Tests
# =============================================================================

class TestWebElement:
    """Tests for element-scoped commands."""

    @pytest.mark.asyncio
    async def test_equality(self, driver, server):
        other = WebDriver(transport=server.transport)
        assert WebElement("1", driver) == WebElement("1", driver)
        assert hash(WebElement("1", driver)) == hash(WebElement("1", driver))
        assert WebElement("1", driver) != WebElement("2", driver)
        assert WebElement("1", driver) != WebElement("1", other)
        await other.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation,args,path,value", [
        ("get_text", (), "/text", "Hello"),
        ("get_tag_name", (), "/name", "h1"),
        ("get_attr", ("href",), "/attribute/href", "/next"),
        ("get_css_prop", ("color",), "/css/color", "rgba(0, 0, 0, 1)"),
        ("get_value", (), "/attribute/value", "typed"),
        ("get_location", (), "/location", {"x": 8, "y": 21}),
        ("get_size", (), "/size", {"width": 10, "height": 20}),
        ("is_displayed", (), "/displayed", False),
        ("is_enabled", (), "/enabled", True),
        ("is_selected", (), "/selected", False),
    ])
    async def test_queries(self, driver, server, operation, args, path, value):
        server.on_session("GET", f"/element/1{path}", ok(value))
        element = WebElement("1", driver)
        assert await getattr(element, operation)(*args) == value

    @pytest.mark.asyncio
    async def test_missing_attribute_is_none(self, driver, server):
        server.on_session("GET", "/element/1/attribute/title", ok(None))
        assert await WebElement("1", driver).get_attr("title") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation,path", [
        ("click", "/click"),
        ("clear", "/clear"),
        ("submit", "/submit"),
    ])
    async def test_actions_return_element(self, driver, server, operation, path):
        server.on_session("POST", f"/element/1{path}", ok())
        element = WebElement("1", driver)
        assert await getattr(element, operation)() is element

    @pytest.mark.asyncio
    async def test_send_keys(self, driver, server):
        server.on_session("POST", "/element/1/value", ok())
        element = WebElement("1", driver)
        assert await element.send_keys("a{Tab}") is element
        assert server.sent("POST", "/element/1/value")[-1][2] == {"value": ["a", "\ue004"]}

    @pytest.mark.asyncio
    async def test_is_visible(self, driver, server):
        server.on_session("POST", "/execute", ok(True))
        assert await WebElement("1", driver).is_visible() is True
        args = server.sent("POST", "/execute")[-1][2]["args"]
        assert args[0]["ELEMENT"] == "1"

    @pytest.mark.asyncio
    async def test_move_to(self, driver, server):
        server.on_session("POST", "/moveto", ok())
        element = WebElement("1", driver)
        assert await element.move_to(5, 7) is element
        assert server.sent("POST", "/moveto")[-1][2] == {"element": "1", "xoffset": 5, "yoffset": 7}

    @pytest.mark.asyncio
    async def test_mouse_down_moves_first(self, driver, server):
        server.on_session("POST", "/moveto", ok())
        server.on_session("POST", "/buttondown", ok())
        element = WebElement("1", driver)
        assert await element.mouse_down("middle") is element

        paths = [path for method, path, _ in server.requests[-2:]]
        assert paths == [f"{SESSION_PATH}/moveto", f"{SESSION_PATH}/buttondown"]
        assert server.requests[-1][2] == {"button": 1}

    @pytest.mark.asyncio
    async def test_element_error_surfaces(self, driver, server):
        server.on_session("POST", "/element/1/click", {"status": 11, "value": {"message": "hidden"}})
        with pytest.raises(Exception) as exc_info:
            await WebElement("1", driver).click()
        assert "hidden" in str(exc_info.value)


# =============================================================================
# Delegate Tests
# =============================================================================

class TestElementCommands:
    """Tests for element operations addressed by selector."""

    def test_every_operation_is_delegated(self, driver):
        assert isinstance(driver.element, ElementCommands)
        for name in ELEMENT_OPERATIONS:
            assert callable(getattr(driver.element, name))

    @pytest.mark.asyncio
    async def test_delegate_resolves_then_calls(self, driver, server):
        server.on_session("POST", "/element", ok(ref("1")))
        server.on_session("GET", "/element/1/attribute/href", ok("/next"))

        assert await driver.element.get_attr("a.next", "href") == "/next"
        assert server.sent("POST", "/element")[-1][2] == {"using": "css selector", "value": "a.next"}

    @pytest.mark.asyncio
    async def test_delegate_query(self, driver, server):
        server.on_session("POST", "/element", ok(ref("1")))
        server.on_session("POST", "/element/1/click", ok())

        result = await driver.element.click("submit", query={"using": "id"})
        assert result == WebElement("1", driver)
        assert server.sent("POST", "/element")[-1][2] == {"using": "id", "value": "submit"}

    @pytest.mark.asyncio
    async def test_nested_get_takes_inner_parameters_as_keywords(self, driver, server):
        server.on_session("POST", "/element", ok(ref("1")))
        server.on_session("POST", "/element/1/element", ok(ref("2")))

        inner = await driver.element.get("form", "//input", using="xpath")
        assert inner == WebElement("2", driver)
        assert server.sent("POST", "/element")[-1][2] == {"using": "css selector", "value": "form"}
        assert server.sent("POST", "/element/1/element")[-1][2] == {"using": "xpath", "value": "//input"}

    @pytest.mark.asyncio
    async def test_delegate_with_no_error(self, driver, server):
        server.on_session("POST", "/element", NOT_FOUND)
        assert await driver.element.get_text("#gone", query={"no_error": True}) is None

    @pytest.mark.asyncio
    async def test_delegate_lookup_failure(self, driver, server):
        server.on_session("POST", "/element", NOT_FOUND)
        with pytest.raises(Exception) as exc_info:
            await driver.element.get_text("#gone")
        assert exc_info.value.context["element"] == "#gone"


# =============================================================================
# Logging Tests
# =============================================================================

class TestCallLogging:
    """Tests for the optional call logging."""

    @pytest.mark.asyncio
    async def test_calls_are_logged(self, caplog):
        server = FakeWireServer()
        server.on_session("GET", "/title", ok("Example"))
        server.on_session("POST", "/element", ok(ref("1")))
        server.on_session("GET", "/element/1/text", ok("Hello"))
        driver = WebDriver(DriverConfig(log_method_calls=True), transport=server.transport)

        with caplog.at_level(logging.INFO, logger="wire_driver"):
            await driver.init()
            assert await driver.get_title() == "Example"
            element = await driver.get("h1")
            await element.get_text()

        messages = [r.getMessage() for r in caplog.records]
        assert "call WebDriver.get_title()" in messages
        assert "done WebDriver.get_title() -> str" in messages
        assert "call WebDriver.get('h1')" in messages
        assert "call WebElement(1).get_text()" in messages
        await driver.aclose()

    @pytest.mark.asyncio
    async def test_failures_are_logged(self, caplog):
        server = FakeWireServer()
        server.on_session("GET", "/title", {"status": 13, "value": None})
        driver = WebDriver(DriverConfig(log_method_calls=True), transport=server.transport)

        with caplog.at_level(logging.INFO, logger="wire_driver"):
            await driver.init()
            with pytest.raises(Exception):
                await driver.get_title()

        assert any(r.getMessage().startswith("fail WebDriver.get_title()") for r in caplog.records)
        await driver.aclose()

    @pytest.mark.asyncio
    async def test_logging_is_per_instance(self, driver):
        assert "get_title" not in vars(driver)
        logged = WebDriver(DriverConfig(log_method_calls=True), transport=httpx.MockTransport(lambda r: None))
        assert "get_title" in vars(logged)
        await logged.aclose()

    @pytest.mark.asyncio
    async def test_debug_logs_wire_traffic(self, caplog):
        server = FakeWireServer()
        server.on_session("GET", "/url", ok("http://a.test/"))
        driver = WebDriver(DriverConfig(debug=True), transport=server.transport)

        with caplog.at_level(logging.DEBUG, logger="wire_driver"):
            await driver.init()
            await driver.get_url()

        messages = [r.getMessage() for r in caplog.records]
        assert f"Wire command: GET {SESSION_PATH}/url" in messages
        await driver.aclose()
