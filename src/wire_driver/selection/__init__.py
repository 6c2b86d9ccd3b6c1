"""
Selection module - Selector resolution and the script-injection strategy.
"""
from wire_driver.selection.injection import (
    InjectionBootstrap,
    InjectionStrategy,
    load_library_source,
    validate_chain,
)
from wire_driver.selection.resolver import CSS_SELECTOR, SelectorResolver, Strategy, sweeten_css

__all__ = [
    "InjectionBootstrap",
    "InjectionStrategy",
    "load_library_source",
    "validate_chain",
    "CSS_SELECTOR",
    "SelectorResolver",
    "Strategy",
    "sweeten_css",
]
