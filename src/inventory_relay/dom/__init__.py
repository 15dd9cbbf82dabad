"""Document capability interface and its implementations."""

from inventory_relay.dom.base import DomDocument, InvalidSelectorError
from inventory_relay.dom.page import PlaywrightDocument
from inventory_relay.dom.soup import SoupDocument

__all__ = ["DomDocument", "InvalidSelectorError", "PlaywrightDocument", "SoupDocument"]
