"""
Script-injection selection strategy.

Elements are selected by a helper library that lives in the page's global
scope. Installing it is a short negotiation with the page: the executed
script reports which piece is missing and the client re-executes with that
piece's source prepended.
"""
from __future__ import annotations

import logging
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, FrozenSet, List, Mapping, Optional, Sequence

from wire_driver.core.errors import InjectionError, InvalidChainError, NoSuchElementError
from wire_driver.core.models import SelectorQuery
from wire_driver.core.references import element_id, element_reference
from wire_driver.core.utils import wrap_function

if TYPE_CHECKING:
    from wire_driver.driver import WebDriver

logger = logging.getLogger("wire_driver")

NEED_LIBRARY = "needLibrary"
NEED_SELECTOR = "needSelector"
SENTINELS = frozenset({NEED_LIBRARY, NEED_SELECTOR})

QUERY_OPERATIONS: FrozenSet[str] = frozenset({
    "eq", "first", "last", "filter", "not", "find", "children",
    "parent", "parents", "closest", "next", "prev", "siblings",
})

SELECTOR_FUNCTION = wrap_function("___wdSelect", """
    var lib = window.___wdLibrary;
    var elements = lib(selector, parent || undefined);
    if (elements && elements.length && chain) {
        for (var i = 0; i < chain.length; i++) {
            var step = chain[i], name = null, args = null;
            for (var key in step) {
                if (Object.prototype.hasOwnProperty.call(step, key)) {
                    name = key;
                    args = step[key];
                    break;
                }
            }
            args = Array.isArray(args) ? args : [args];
            if (typeof elements[name] !== 'function') {
                throw new Error('Unknown traversal method: ' + name);
            }
            elements = elements[name].apply(elements, args);
        }
    }
    return elements && elements.length ? elements.get() : [];
""", params="selector, parent, chain")

INSTALL_LIBRARY = """
if (typeof window.___wdLibrary !== 'function') {
    if (typeof ___wdInstallLibrary !== 'function') return 'needLibrary';
    window.___wdLibrary = ___wdInstallLibrary();
}
"""

SELECT_SCRIPT = INSTALL_LIBRARY + """
if (typeof window.___wdSelect !== 'function') {
    if (typeof ___wdSelect !== 'function') return 'needSelector';
    window.___wdSelect = ___wdSelect;
}
return window.___wdSelect(arguments[0], arguments[1], arguments[2]);
"""

DOCUMENT_READY_SCRIPT = """
var timeout = arguments[0], done = arguments[arguments.length - 1];
if (typeof window.___wdLibrary !== 'function') {
    if (typeof ___wdInstallLibrary !== 'function') {
        done('needLibrary');
        return;
    }
    window.___wdLibrary = ___wdInstallLibrary();
}
setTimeout(function () { done(false); }, timeout);
window.___wdLibrary(document).ready(function () { done(true); });
"""

BUNDLED_LIBRARY = "query.js"
BUNDLED_EXPORT = "___wdQuery"


def load_library_source(path: Optional[str] = None) -> str:
    """Read the helper library from ``path`` or the bundled copy."""
    if path:
        return Path(path).read_text(encoding="utf-8")
    return resources.files("wire_driver.injections").joinpath(BUNDLED_LIBRARY).read_text(encoding="utf-8")


def library_installer(source: str, export: str) -> str:
    """Source of the function that evaluates the library and returns its entry point."""
    return wrap_function("___wdInstallLibrary", f"{source}\nreturn ({export});")


class BootstrapState(Enum):
    """What is prepended to the next execution of an injected script."""

    BARE = 0       # nothing, helpers assumed installed
    LIBRARY = 1    # helper library only
    FULL = 2       # helper library and selection function


class InjectionBootstrap:
    """
    Drives an injected script through helper installation.

    ``needLibrary`` sends the library; ``needSelector`` sends the library and
    the selection function. The state only moves forward and ``FULL`` is
    terminal, so a script runs at most three times (two retries).
    """

    def __init__(self, library_source: str, selector_source: Optional[str] = None):
        self.library_source = library_source
        self.selector_source = selector_source
        self.state = BootstrapState.BARE

    @property
    def prefix(self) -> str:
        if self.state is BootstrapState.LIBRARY:
            return self.library_source
        if self.state is BootstrapState.FULL:
            return self.library_source + (self.selector_source or "")
        return ""

    @staticmethod
    def is_sentinel(result: Any) -> bool:
        return isinstance(result, str) and result in SENTINELS

    def advance(self, sentinel: str) -> BootstrapState:
        """Move to the state that supplies the piece named by ``sentinel``."""
        if sentinel == NEED_LIBRARY and self.state is BootstrapState.BARE:
            self.state = BootstrapState.LIBRARY
        elif (
            sentinel == NEED_SELECTOR
            and self.state is not BootstrapState.FULL
            and self.selector_source
        ):
            self.state = BootstrapState.FULL
        else:
            raise InjectionError(
                f"Page still reports '{sentinel}' after helper installation",
                state=self.state.name,
            )
        logger.debug(f"Injection bootstrap: {sentinel} -> {self.state.name}")
        return self.state

    async def run(self, attempt: Callable[[str], Awaitable[Any]]) -> Any:
        """
        Execute ``attempt(prefix)`` until it returns something other than a sentinel.

        Raises:
            InjectionError: If the page asks for a piece that was already sent.
        """
        while True:
            result = await attempt(self.prefix)
            if not self.is_sentinel(result):
                return result
            self.advance(result)


def validate_chain(chain: Optional[Sequence[Mapping[str, Any]]],
                   operations: Optional[FrozenSet[str]] = None) -> None:
    """
    Check traversal steps before they are sent to the page.

    Raises:
        InvalidChainError: If a step is not a one-key mapping, or names an
            operation outside ``operations`` (when given).
    """
    if chain is None:
        return
    if isinstance(chain, (str, bytes)) or not isinstance(chain, Sequence):
        raise InvalidChainError("Chain should be a list of steps", chain=chain)
    for step in chain:
        if not isinstance(step, Mapping) or len(step) != 1:
            raise InvalidChainError(
                "Chain step should be a mapping with exactly one key", step=step
            )
        name = next(iter(step))
        if operations is not None and name not in operations:
            raise InvalidChainError(f"Unknown traversal method: {name}", step=step)


class InjectionStrategy:
    """
    Selection strategy backed by an injected helper library.

    Args:
        name: Strategy name used in ``SelectorQuery.using``.
        library_source: JavaScript source of the helper library.
        library_export: Expression evaluated after the library source that
            yields its entry point (``lib(selector, parent)``).
        operations: Traversal operations the library supports; ``None``
            leaves validation to the page.
    """

    def __init__(
        self,
        name: str,
        library_source: str,
        library_export: str,
        operations: Optional[FrozenSet[str]] = None,
    ):
        self.name = name
        self.installer = library_installer(library_source, library_export)
        self.operations = operations

    @classmethod
    def bundled(cls, name: str = "query") -> "InjectionStrategy":
        return cls(name, load_library_source(), BUNDLED_EXPORT, QUERY_OPERATIONS)

    async def find(self, driver: "WebDriver", selector: str, query: SelectorQuery,
                   parent_id: Optional[str]) -> List[str]:
        validate_chain(query.chain, self.operations)
        args = [
            selector,
            element_reference(parent_id) if parent_id is not None else None,
            list(query.chain) if query.chain else None,
        ]
        bootstrap = InjectionBootstrap(self.installer, SELECTOR_FUNCTION)

        async def attempt(prefix: str) -> Any:
            return await driver.execute(prefix + SELECT_SCRIPT, args)

        result = await bootstrap.run(attempt)
        if not isinstance(result, list):
            raise InjectionError(f"Unexpected selection result: {result!r}")
        ids = [element_id(reference) for reference in result]
        if not ids and query.single:
            raise NoSuchElementError()
        return ids

    async def wait_for_document_ready(self, driver: "WebDriver", timeout_ms: int) -> Any:
        """Run the document-ready script; returns True, False or the raw result."""
        bootstrap = InjectionBootstrap(self.installer)

        async def attempt(prefix: str) -> Any:
            return await driver.execute(prefix + DOCUMENT_READY_SCRIPT, [timeout_ms], is_async=True)

        return await bootstrap.run(attempt)
