#!/usr/bin/env python3
"""
Basic Navigation Example

Demonstrates basic session usage: navigating, reading the page,
finding elements, waiting for a URL change and taking a screenshot.

Prerequisites:
- A WebDriver server must be listening on port 4444, e.g.:
  java -jar selenium-server-standalone.jar
"""
import asyncio

from wire_driver import DriverConfig, WebDriver, setup_logging


async def main():
    setup_logging()

    # Configure driver (optional - defaults work fine)
    config = DriverConfig(
        port=4444,
        desired_capabilities={"browserName": "firefox"},
        timeouts={"wait_for": 5000},
        log_method_calls=True,
    )

    async with WebDriver(config) as driver:
        # Navigate to a page
        print("Navigating to example.com...")
        await driver.set_url("https://example.com")
        await driver.wait_for_document_ready()

        print(f"URL: {await driver.get_url()}")
        print(f"Title: {await driver.get_title()}")

        # Read an element directly, or through the selector delegates
        heading = await driver.get("h1")
        print(f"Heading: {await heading.get_text()}")
        print(f"Paragraphs: {len(await driver.get_list('p:visible'))}")

        # Follow the only link and wait for the redirect
        print("\nFollowing link...")
        await driver.element.click("a")
        await driver.wait_for_url_change("https://example.com/")
        print(f"Now at: {await driver.get_url()}")

        # Take a screenshot
        print("\nTaking screenshot...")
        await driver.make_screenshot("example.png")
        print("Screenshot saved to example.png")

        # Go back
        print("\nGoing back...")
        await driver.back()
        await driver.wait_for_redirect("https://example.com/")
        print(f"Now at: {await driver.get_url()}")


if __name__ == "__main__":
    asyncio.run(main())
