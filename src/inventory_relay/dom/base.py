"""Capability interface over a loaded document.

Scraping and form filling only talk to a page through ``DomDocument``, so the
extraction and fill algorithms run the same against a saved HTML page, a
live browser tab, or a test fake.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

Element = Any


class InvalidSelectorError(ValueError):
    """The selector is not supported by the underlying engine."""


class DomDocument(ABC):
    """Read/write access to one document."""

    @property
    @abstractmethod
    def url(self) -> str:
        """URL of the document."""
        ...

    @abstractmethod
    async def query_all(self, selector: str, within: Element | None = None) -> list[Element]:
        """Return all elements matching ``selector``, in document order.

        Raises:
            InvalidSelectorError: If the engine cannot parse the selector.
        """
        ...

    @abstractmethod
    async def read_text(self, element: Element | None) -> str:
        """Return the element's visible text, trimmed ("" for None)."""
        ...

    @abstractmethod
    async def read_attribute(self, element: Element, name: str) -> str | None:
        """Return an attribute value, or None when absent."""
        ...

    @abstractmethod
    async def get_by_id(self, element_id: str) -> Element | None:
        """Return the element with the given id, or None."""
        ...

    @abstractmethod
    async def set_value(self, element: Element, value: str) -> None:
        """Set an input's value and notify the page of the change."""
        ...

    async def query_first(
        self, selectors: Sequence[str], within: Element | None = None
    ) -> Element | None:
        """Return the first match of the first selector that matches anything.

        Unsupported selectors are skipped.
        """
        for selector in selectors:
            try:
                found = await self.query_all(selector, within)
            except InvalidSelectorError:
                continue
            if found:
                return found[0]
        return None
