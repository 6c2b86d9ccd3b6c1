"""
Call logging - optional interceptor around public driver and element operations.
"""
import functools
import inspect
import logging
from typing import Any, Iterable

logger = logging.getLogger("wire_driver")


def setup_logging(level: int = logging.INFO, debug: bool = False):
    """Configure logging for the wire driver."""
    if debug:
        level = logging.DEBUG

    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    handler.setFormatter(formatter)

    logger.setLevel(level)
    if not logger.handlers:
        logger.addHandler(handler)


def _describe(value: Any) -> str:
    text = repr(value)
    return text if len(text) <= 80 else text[:77] + "..."


def _wrap(target: Any, label: str, name: str):
    method = getattr(target, name)

    if inspect.iscoroutinefunction(method):
        @functools.wraps(method)
        async def logged(*args, **kwargs):
            call = f"{label}.{name}({', '.join(_describe(a) for a in args)})"
            logger.info(f"call {call}")
            try:
                result = await method(*args, **kwargs)
            except Exception as e:
                logger.info(f"fail {call}: {type(e).__name__}: {e}")
                raise
            logger.info(f"done {call} -> {type(result).__name__}")
            return result
    else:
        @functools.wraps(method)
        def logged(*args, **kwargs):
            call = f"{label}.{name}({', '.join(_describe(a) for a in args)})"
            logger.info(f"call {call}")
            return method(*args, **kwargs)

    return logged


def install_call_logging(target: Any, operations: Iterable[str], label: str) -> None:
    """
    Shadow each named bound method of ``target`` with a logging wrapper.

    Only ``target`` is affected; the class and other instances are untouched.
    """
    for name in operations:
        setattr(target, name, _wrap(target, label, name))
