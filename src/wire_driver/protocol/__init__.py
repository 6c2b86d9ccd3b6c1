"""
Protocol module - HTTP command dispatch.
"""
from wire_driver.protocol.dispatcher import DEFAULT_BASE_PATH, CommandDispatcher, parse_body

__all__ = [
    "DEFAULT_BASE_PATH",
    "CommandDispatcher",
    "parse_body",
]
