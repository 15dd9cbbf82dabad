"""Authentication bridge between the web app and the relay."""

import logging
from typing import Protocol

from inventory_relay.config import RelaySettings
from inventory_relay.relay.messages import AuthenticateRequest, AuthenticateResponse

logger = logging.getLogger(__name__)

DEFAULT_APP_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:8080",
)


class IdentityProvider(Protocol):
    """Resolves bearer tokens to account identities."""

    async def resolve_owner(self, token: str) -> str | None:
        """Return the owner id for a valid token, else None."""
        ...

    async def is_admin(self, owner_id: str) -> bool:
        ...


class StaticIdentityProvider:
    """Identity provider backed by a fixed token table."""

    def __init__(self, tokens: dict[str, str], admins: set[str] | None = None) -> None:
        self._tokens = dict(tokens)
        self._admins = set(admins or ())

    async def resolve_owner(self, token: str) -> str | None:
        return self._tokens.get(token)

    async def is_admin(self, owner_id: str) -> bool:
        return owner_id in self._admins


class AuthBridge:
    """Holds the authenticated owner for the relay session.

    Authentication is only accepted from trusted web-app origins, and when
    ``require_admin_role`` is set only from admin accounts.
    """

    def __init__(self, provider: IdentityProvider, settings: RelaySettings) -> None:
        self._provider = provider
        self._settings = settings
        self._owner_id: str | None = None

        origins = list(DEFAULT_APP_ORIGINS)
        if settings.origin_override:
            origins.append(settings.origin_override.rstrip("/"))
        self.trusted_origins: tuple[str, ...] = tuple(origins)

    @property
    def owner_id(self) -> str | None:
        return self._owner_id

    def is_trusted_origin(self, origin: str) -> bool:
        origin = origin.rstrip("/")
        return any(
            origin == trusted or origin.startswith(trusted + "/")
            for trusted in self.trusted_origins
        )

    async def authenticate(self, request: AuthenticateRequest) -> AuthenticateResponse:
        """Resolve the token and remember the owner on success.

        A failed attempt leaves any previous identity in place.
        """
        if request.origin is not None and not self.is_trusted_origin(request.origin):
            logger.warning("Rejected authentication from untrusted origin %s", request.origin)
            return AuthenticateResponse(ok=False, error="untrusted_origin", code="ownership")

        owner_id = await self._provider.resolve_owner(request.token)
        if not owner_id:
            return AuthenticateResponse(ok=False, error="not_authenticated", code="ownership")

        if self._settings.require_admin_role:
            try:
                is_admin = await self._provider.is_admin(owner_id)
            except Exception:
                logger.exception("Admin role check failed for %s", owner_id)
                return AuthenticateResponse(ok=False, error="admin_check_failed", code="ownership")
            if not is_admin:
                return AuthenticateResponse(ok=False, error="admin_required", code="ownership")

        self._owner_id = owner_id
        logger.info("Authenticated owner %s", owner_id)
        return AuthenticateResponse(owner_id=owner_id)

    def logout(self) -> None:
        self._owner_id = None
