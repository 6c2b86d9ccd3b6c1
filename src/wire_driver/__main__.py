#!/usr/bin/env python3
"""
Script to open a page through a WebDriver server and report on it.
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional

import httpx

from wire_driver.calllog import setup_logging
from wire_driver.core.errors import DriverError
from wire_driver.driver import DriverConfig, WebDriver


async def inspect_page(
    url: str,
    config: DriverConfig,
    *,
    selector: Optional[str] = None,
    using: Optional[str] = None,
    screenshot: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """
    Open ``url`` in a new session and print its title.

    Args:
        url: Page to open.
        config: Driver configuration.
        selector: Also print the text of every element matching this selector.
        using: Selection strategy for ``selector``.
        screenshot: Save a screenshot of the page to this path.
        transport: Optional httpx transport.

    Returns:
        True if every step succeeded, False otherwise.
    """
    print(f"🚀 Connecting to WebDriver at http://{config.host}:{config.port}")
    try:
        async with WebDriver(config, transport=transport) as driver:
            print(f"   Session: {driver.session_id}")
            await driver.set_url(url)
            print(f"   URL: {await driver.get_url()}")
            print(f"   Title: {await driver.get_title()}")

            if selector:
                elements = await driver.get_list(selector, using=using)
                print(f"   {len(elements)} element(s) match {selector!r}")
                for element in elements:
                    print(f"   - {await element.get_text()}")

            if screenshot:
                await driver.make_screenshot(screenshot)
                print(f"📸 Screenshot saved to {screenshot}")
    except httpx.TransportError as e:
        print(f"❌ Can't reach WebDriver server: {e}")
        return False
    except DriverError as e:
        print(f"❌ {type(e).__name__}: {e}")
        return False

    print("✅ Done")
    return True


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Open a page through a WebDriver server.")
    parser.add_argument("url", help="Page to open.")
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="WebDriver server host (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=4444,
        help="WebDriver server port (default: 4444).",
    )
    parser.add_argument(
        "--browser",
        default="firefox",
        help="Browser name requested in the desired capabilities (default: firefox).",
    )
    parser.add_argument(
        "--selector",
        help="Print the text of every element matching this selector.",
    )
    parser.add_argument(
        "--using",
        help="Selection strategy for --selector (default: css selector).",
    )
    parser.add_argument(
        "--screenshot",
        metavar="PATH",
        help="Save a screenshot of the page.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log every wire command and response.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> bool:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    setup_logging(debug=args.debug)
    config = DriverConfig(
        host=args.host,
        port=args.port,
        desired_capabilities={"browserName": args.browser},
        debug=args.debug,
    )
    return asyncio.run(
        inspect_page(
            args.url,
            config,
            selector=args.selector,
            using=args.using,
            screenshot=args.screenshot,
        )
    )


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
