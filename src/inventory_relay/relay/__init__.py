"""Typed message relay between the scraper, the web app and the poster."""

from inventory_relay.relay.auth import (
    DEFAULT_APP_ORIGINS,
    AuthBridge,
    IdentityProvider,
    StaticIdentityProvider,
)
from inventory_relay.relay.channel import MessageRelay
from inventory_relay.relay.hub import RelayHub
from inventory_relay.relay.messages import RelayCommand

__all__ = [
    "DEFAULT_APP_ORIGINS",
    "AuthBridge",
    "IdentityProvider",
    "MessageRelay",
    "RelayCommand",
    "RelayHub",
    "StaticIdentityProvider",
]
