"""
Polling - retry an async condition until it holds or a deadline passes.
"""
from __future__ import annotations

import asyncio
import logging
import re
from typing import Awaitable, Callable, Optional, Union

from wire_driver.core.errors import WaitTimeoutError
from wire_driver.core.utils import is_regex

logger = logging.getLogger("wire_driver")

# Delay before every predicate attempt, in seconds.
POLL_INTERVAL = 0.02

Predicate = Callable[[], Awaitable[bool]]
UrlMatcher = Union[str, "re.Pattern[str]", None]


async def wait_until(
    predicate: Predicate,
    *,
    timeout_ms: int,
    message: Optional[str] = None,
    no_error: bool = False,
) -> bool:
    """
    Await ``predicate()`` repeatedly until it returns True or time runs out.

    The deadline is armed once, alongside the polling loop, and is not reset
    between attempts. Exactly one outcome is reported: once the deadline fires
    the in-flight attempt is cancelled and any later result is discarded.

    Args:
        predicate: Coroutine function returning True when the condition holds.
        timeout_ms: Deadline in milliseconds.
        message: What is being awaited, for the timeout message.
        no_error: Return False on timeout instead of raising.

    Returns:
        True if the condition was met, False if the deadline passed and
        ``no_error`` is set.

    Raises:
        WaitTimeoutError: On deadline expiry without ``no_error``.
        Exception: Whatever ``predicate`` raises, reported immediately.
    """
    loop = asyncio.get_running_loop()
    settled: asyncio.Future = loop.create_future()

    def on_deadline() -> None:
        if not settled.done():
            settled.set_result(False)

    async def poll() -> None:
        while not settled.done():
            await asyncio.sleep(POLL_INTERVAL)
            if settled.done():
                return
            try:
                done = await predicate()
            except Exception as e:
                if not settled.done():
                    settled.set_exception(e)
                return
            if done and not settled.done():
                settled.set_result(True)

    deadline = loop.call_later(timeout_ms / 1000, on_deadline)
    poller = asyncio.ensure_future(poll())
    try:
        met = await settled
    finally:
        deadline.cancel()
        poller.cancel()
        await asyncio.gather(poller, return_exceptions=True)

    if met:
        return True
    if no_error:
        logger.debug(f"Timeout ({timeout_ms} ms) ignored while {message or 'waiting'}")
        return False
    raise WaitTimeoutError(
        f"Timeout ({timeout_ms} ms) exceeded" + (f" while {message}" if message else ""),
        timeout=timeout_ms,
    )


# =============================================================================
# URL matching
# =============================================================================

_QUERY_STRING = re.compile(r"\?.*$")


def strip_query_string(url: str) -> str:
    return _QUERY_STRING.sub("", url)


def _matches(matcher: UrlMatcher, url: str) -> bool:
    if is_regex(matcher):
        return matcher.search(url) is not None
    return matcher == url


def url_change_satisfied(url: str, old_url: UrlMatcher, new_url: UrlMatcher) -> bool:
    """
    Whether ``url`` has left ``old_url`` and (if given) arrived at ``new_url``.

    The query string of ``url`` is ignored. Either matcher may be a string
    (exact comparison) or a compiled pattern (searched).
    """
    url = strip_query_string(url)
    old_url = old_url or ""
    left_old = not _matches(old_url, url)
    arrived = not new_url or _matches(new_url, url)
    return left_old and arrived


def describe_url_change(old_url: UrlMatcher, new_url: UrlMatcher) -> str:
    def _text(matcher: UrlMatcher) -> str:
        return matcher.pattern if is_regex(matcher) else str(matcher)

    message = "waiting for url change"
    if old_url:
        message += f" from {_text(old_url)}"
    if new_url:
        message += f" to {_text(new_url)}"
    return message
