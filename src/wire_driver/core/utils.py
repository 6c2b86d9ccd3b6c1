"""
Small helpers shared by the driver: option merging, type predicates,
in-page injection sources and key stroke translation.
"""
from __future__ import annotations

import copy
import re
from typing import Any, Dict, Mapping, Optional


def deep_merge(base: Optional[Mapping[str, Any]], *overrides: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Merge plain option mappings without mutating any of them.

    Nested plain mappings are merged key by key; any other value from a
    later mapping replaces the earlier one.

    Args:
        base: Default options.
        *overrides: Option mappings applied left to right. ``None`` is skipped.

    Returns:
        A new dictionary.
    """
    result: Dict[str, Any] = copy.deepcopy(dict(base or {}))
    for override in overrides:
        if not override:
            continue
        for key, value in override.items():
            if is_plain_object(value) and is_plain_object(result.get(key)):
                result[key] = deep_merge(result[key], value)
            else:
                result[key] = copy.deepcopy(value)
    return result


def is_function(value: Any) -> bool:
    return callable(value) and not isinstance(value, type)


def is_plain_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_empty_plain_object(value: Any) -> bool:
    return is_plain_object(value) and not value


def is_regex(value: Any) -> bool:
    return isinstance(value, re.Pattern)


def wrap_function(name: str, body: str, params: str = "") -> str:
    """
    Wrap JavaScript statements into a named function declaration.

    The resulting source is meant to be prepended to an executed script, where
    the declaration is hoisted and becomes callable by name.
    """
    return f"function {name}({params}) {{\n{body}\n}}\n"


# =============================================================================
# Key strokes
# =============================================================================

# Symbolic key names to the wire protocol's private-use code points.
KEYS: Dict[str, str] = {
    "null": "\ue000",
    "cancel": "\ue001",
    "help": "\ue002",
    "backspace": "\ue003",
    "tab": "\ue004",
    "clear": "\ue005",
    "return": "\ue006",
    "enter": "\ue007",
    "shift": "\ue008",
    "ctrl": "\ue009",
    "control": "\ue009",
    "alt": "\ue00a",
    "pause": "\ue00b",
    "escape": "\ue00c",
    "space": "\ue00d",
    "pageup": "\ue00e",
    "pagedown": "\ue00f",
    "end": "\ue010",
    "home": "\ue011",
    "left": "\ue012",
    "up": "\ue013",
    "right": "\ue014",
    "down": "\ue015",
    "insert": "\ue016",
    "delete": "\ue017",
    "semicolon": "\ue018",
    "equals": "\ue019",
    "numpad0": "\ue01a",
    "numpad1": "\ue01b",
    "numpad2": "\ue01c",
    "numpad3": "\ue01d",
    "numpad4": "\ue01e",
    "numpad5": "\ue01f",
    "numpad6": "\ue020",
    "numpad7": "\ue021",
    "numpad8": "\ue022",
    "numpad9": "\ue023",
    "multiply": "\ue024",
    "add": "\ue025",
    "separator": "\ue026",
    "subtract": "\ue027",
    "decimal": "\ue028",
    "divide": "\ue029",
    "f1": "\ue031",
    "f2": "\ue032",
    "f3": "\ue033",
    "f4": "\ue034",
    "f5": "\ue035",
    "f6": "\ue036",
    "f7": "\ue037",
    "f8": "\ue038",
    "f9": "\ue039",
    "f10": "\ue03a",
    "f11": "\ue03b",
    "f12": "\ue03c",
    "meta": "\ue03d",
    "command": "\ue03d",
}

_KEY_TOKEN = re.compile(r"\{(\w+)\}")


def replace_key_strokes_with_codes(text: str) -> str:
    """
    Replace ``{Name}`` tokens with wire protocol key codes.

    Names are case-insensitive; unknown tokens are left as typed text.

    Example:
        >>> replace_key_strokes_with_codes("abc{Enter}") == "abc\\ue007"
        True
    """
    def _replace(match: "re.Match[str]") -> str:
        return KEYS.get(match.group(1).lower(), match.group(0))

    return _KEY_TOKEN.sub(_replace, text)
