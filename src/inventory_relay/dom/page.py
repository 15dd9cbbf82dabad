"""Playwright-backed document for live browser pages."""

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from inventory_relay.dom.base import DomDocument, Element, InvalidSelectorError

# Uses the native value setter so framework-controlled inputs see the change,
# then fires the events the page listens for.
SET_VALUE_SCRIPT = """(el, value) => {
    el.focus();
    const proto = el.tagName === 'TEXTAREA'
        ? window.HTMLTextAreaElement.prototype
        : window.HTMLInputElement.prototype;
    const setter = Object.getOwnPropertyDescriptor(proto, 'value').set;
    setter.call(el, value);
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
    el.blur();
}"""


class PlaywrightDocument(DomDocument):
    """Live page accessed through Playwright element handles.

    Args:
        page: Playwright Page instance.
        use_alternate_injection: Fill inputs with Playwright's native
            ``fill()`` instead of script value injection.
    """

    def __init__(self, page: Page, use_alternate_injection: bool = False) -> None:
        self._page = page
        self._use_alternate_injection = use_alternate_injection

    @property
    def url(self) -> str:
        return self._page.url

    async def query_all(self, selector: str, within: Element | None = None) -> list[Element]:
        root = within if within is not None else self._page
        try:
            return await root.query_selector_all(selector)
        except PlaywrightError as e:
            if "selector" in str(e).lower():
                raise InvalidSelectorError(selector) from e
            raise

    async def read_text(self, element: Element | None) -> str:
        if element is None:
            return ""
        return (await element.inner_text() or "").strip()

    async def read_attribute(self, element: Element, name: str) -> str | None:
        return await element.get_attribute(name)

    async def get_by_id(self, element_id: str) -> Element | None:
        escaped = element_id.replace("\\", "\\\\").replace('"', '\\"')
        return await self._page.query_selector(f'[id="{escaped}"]')

    async def set_value(self, element: Element, value: str) -> None:
        if self._use_alternate_injection:
            await element.fill(value)
        else:
            await element.evaluate(SET_VALUE_SCRIPT, value)
