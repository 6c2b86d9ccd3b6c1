"""
Command Dispatcher - JSON-over-HTTP transport for wire protocol commands.
"""
import asyncio
import json
import logging
from typing import Any, Optional

import httpx

from wire_driver.core.errors import ProtocolError, SessionStateError, error_for_status
from wire_driver.core.models import Command, Envelope, unwrap_value

logger = logging.getLogger("wire_driver")

DEFAULT_BASE_PATH = "/wd/hub/session"
JSON_CONTENT_TYPE = "application/json; charset=UTF-8"


def strip_null_bytes(text: str) -> str:
    """Drop NUL characters some servers leave in response bodies."""
    return text.replace("\x00", "")


def parse_body(text: str, path: str) -> dict:
    """
    Parse a response body, treating an empty body as ``{}``.

    Raises:
        ProtocolError: If the body is not a JSON document.
    """
    text = strip_null_bytes(text) if text else "{}"
    try:
        body = json.loads(text)
    except ValueError as e:
        raise ProtocolError(
            f"Can't parse json from response of {path}: {e}\n Raw response data: {text}",
            path=path,
            raw=text,
            reason=str(e),
        ) from e
    if not isinstance(body, dict):
        return {"value": body}
    return body


class CommandDispatcher:
    """
    Sends commands under one session's base path and classifies responses.

    The dispatcher does not retry. Transport failures (``httpx.TransportError``)
    reach the caller unmodified.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 4444,
        *,
        base_path: str = DEFAULT_BASE_PATH,
        default_method: str = "POST",
        request_timeout: Optional[float] = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        debug: bool = False,
    ):
        self.host = host
        self.port = port
        self.default_method = default_method
        self.base_path = base_path
        self.session_id: Optional[str] = None
        self._session_deleted = False
        self.debug = debug
        self._client = httpx.AsyncClient(
            base_url=f"http://{host}:{port}",
            timeout=request_timeout,
            transport=transport,
        )

    def _now(self) -> float:
        return asyncio.get_running_loop().time()

    # =========================================================================
    # Session window
    # =========================================================================

    @property
    def has_session(self) -> bool:
        return self.session_id is not None and not self._session_deleted

    def bind_session(self, session_id: str) -> None:
        """Scope every following command under ``{base_path}/{session_id}``."""
        if self.session_id is not None:
            raise SessionStateError(
                "Session is already initialized", session_id=self.session_id
            )
        self.session_id = str(session_id)
        self.base_path = f"{self.base_path}/{self.session_id}"
        logger.debug(f"Bound session {self.session_id}", extra={"session_id": self.session_id})

    def release_session(self) -> None:
        """Close the session window; later commands are programming errors."""
        self._session_deleted = True

    def _check_session(self, command: Command, sessionless: bool) -> None:
        if sessionless:
            if self.session_id is not None:
                raise SessionStateError(
                    "Session is already initialized", session_id=self.session_id
                )
            return
        if self._session_deleted:
            raise SessionStateError(
                "Session was deleted", session_id=self.session_id, path=command.path
            )
        if self.session_id is None:
            raise SessionStateError(
                "Session is not initialized, call init() first", path=command.path
            )

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _encode(self, data: Optional[dict]) -> bytes:
        if data is None:
            return b""
        return json.dumps(data).encode("utf-8")

    async def dispatch(self, command: Command, owner: Any = None, *, sessionless: bool = False) -> Any:
        """
        Send a command and interpret its response.

        Args:
            command: The command to send.
            owner: Returned instead of the value when the response carries no
                meaningful value (see ``unwrap_value``).
            sessionless: Session creation; sent to the bare base path before
                any session is bound.

        Returns:
            The Envelope when ``command.raw`` is set, otherwise the unwrapped
            value.

        Raises:
            httpx.TransportError: On connection-level failures.
            ProtocolError: If the response body is not JSON.
            StatusError: A typed error for a non-zero status.
            SessionStateError: If the command falls outside the session window.
        """
        self._check_session(command, sessionless)

        method = command.method or self.default_method
        path = self.base_path + command.path
        content = self._encode(command.data)
        headers = {
            "Content-Type": JSON_CONTENT_TYPE,
            "Content-Length": str(len(content)),
        }

        start_time = self._now()
        if self.debug:
            logger.debug(
                f"Wire command: {method} {path}",
                extra={"method": method, "path": path, "session_id": self.session_id},
            )

        response = await self._client.request(method, path, content=content, headers=headers)

        body = parse_body(response.text, command.path)
        status = body.get("status") or 0

        duration = self._now() - start_time
        if self.debug:
            logger.debug(
                f"Wire response: {method} {path} status={status} (duration={duration:.3f}s)",
                extra={
                    "method": method,
                    "path": path,
                    "status": status,
                    "duration_ms": duration * 1000,
                },
            )

        if status:
            raise error_for_status(status, body.get("value"))

        if command.raw:
            return Envelope(status=status, body=body, headers=response.headers)
        return unwrap_value(body, owner)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
