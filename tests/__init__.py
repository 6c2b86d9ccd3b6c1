"""
Wire Driver Tests

Run all tests:
    pytest tests/ -v

Run specific test file:
    pytest tests/test_driver.py -v

Every test talks to an in-process fake server (httpx.MockTransport);
no WebDriver server or browser is required.
"""
