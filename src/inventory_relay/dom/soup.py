"""BeautifulSoup-backed document for saved pages and tests."""

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from inventory_relay.dom.base import DomDocument, Element, InvalidSelectorError


class SoupDocument(DomDocument):
    """Static HTML document.

    ``set_value`` writes the ``value`` attribute (or the text of a
    ``<textarea>``) so fills can be inspected afterwards.
    """

    def __init__(self, html: str, url: str = "") -> None:
        self._soup = BeautifulSoup(html, "html.parser")
        self._url = url

    @property
    def url(self) -> str:
        return self._url

    @property
    def soup(self) -> BeautifulSoup:
        return self._soup

    async def query_all(self, selector: str, within: Element | None = None) -> list[Element]:
        root = within if within is not None else self._soup
        try:
            return list(root.select(selector))
        except SelectorSyntaxError as e:
            raise InvalidSelectorError(selector) from e

    async def read_text(self, element: Element | None) -> str:
        if element is None:
            return ""
        return element.get_text(" ", strip=True)

    async def read_attribute(self, element: Element, name: str) -> str | None:
        value = element.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    async def get_by_id(self, element_id: str) -> Element | None:
        found = self._soup.find(id=element_id)
        return found if isinstance(found, Tag) else None

    async def set_value(self, element: Element, value: str) -> None:
        if element.name == "textarea":
            element.string = value
        else:
            element["value"] = value
