"""
Element references as they travel over the wire.
"""
from typing import Any, Dict

from wire_driver.core.errors import ProtocolError

# JSON wire protocol key, and the key used by W3C-compliant servers
ELEMENT_KEY = "ELEMENT"
W3C_ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"


def element_id(reference: Any) -> str:
    """
    Extract the server-side id from an element reference.

    Raises:
        ProtocolError: If the reference carries no element id.
    """
    if isinstance(reference, dict):
        for key in (ELEMENT_KEY, W3C_ELEMENT_KEY):
            if key in reference:
                return reference[key]
    raise ProtocolError(f"Not an element reference: {reference!r}", raw=repr(reference))


def element_reference(id: str) -> Dict[str, str]:
    """Build a reference the server turns back into a DOM node (e.g. a script argument)."""
    return {ELEMENT_KEY: id, W3C_ELEMENT_KEY: id}
