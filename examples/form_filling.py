#!/usr/bin/env python3
"""
Form Filling Example

Demonstrates how to fill out forms: finding inputs, typing text with
special keys, selecting with traversal chains and submitting.

Prerequisites:
- A WebDriver server must be listening on port 4444.
"""
import asyncio

from wire_driver import DriverConfig, WaitTimeoutError, WebDriver


async def main():
    async with WebDriver(DriverConfig()) as driver:
        print("Navigating to form page...")
        await driver.set_url("https://httpbin.org/forms/post")
        await driver.wait_for_element("form")
        print(f"\nPage: {await driver.get_title()}")

        print("\n--- Form Filling Demo ---")
        name = await driver.get("input[name=custname]")
        await name.clear()
        await name.send_keys("John Doe")
        await driver.element.send_keys("input[name=custemail]", "john@example.com")

        # Pick the second pizza size through the injected query library
        size = await driver.get("input[name=size]", using="query", chain=[{"eq": 1}])
        await size.click()
        print(f"Size selected: {await size.is_selected()}")

        # Optional fields can be looked up without raising
        coupon = await driver.get("input[name=coupon]", no_error=True)
        print(f"Coupon field present: {coupon is not None}")

        # {Enter} is translated to the Enter key code
        print("\nSubmitting with Enter...")
        await name.send_keys("{Enter}")
        try:
            await driver.wait_for_url_change("https://httpbin.org/forms/post")
        except WaitTimeoutError as e:
            print(f"Form was not submitted: {e}")
        print(f"Now at: {await driver.get_url()}")


if __name__ == "__main__":
    asyncio.run(main())
