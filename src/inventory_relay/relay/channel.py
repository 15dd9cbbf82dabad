"""In-process message relay with serialization at the boundary."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from inventory_relay.errors import RelayError, TransportError
from inventory_relay.relay.messages import (
    REQUEST_ADAPTER,
    RESPONSE_TYPES,
    RelayCommand,
    RelayResponse,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[RelayResponse]]


class MessageRelay:
    """Routes typed requests to registered handlers.

    Requests and responses are serialized to JSON-compatible dicts and
    re-validated on the other side, so handlers never share objects with
    callers. Every call resolves to a response: handler failures and
    timeouts become ``ok=False`` responses. Only an unroutable message
    raises TransportError.
    """

    def __init__(self, timeout: float = 60.0) -> None:
        self._timeout = timeout
        self._handlers: dict[RelayCommand, Handler] = {}

    def register(self, command: RelayCommand, handler: Handler) -> None:
        self._handlers[command] = handler

    @property
    def commands(self) -> list[RelayCommand]:
        return list(self._handlers)

    async def send(self, request: BaseModel | dict[str, Any]) -> Any:
        """Deliver ``request`` and return the handler's typed response.

        Raises:
            TransportError: If the message is malformed or no handler serves
                its command.
        """
        payload = (
            request.model_dump(mode="json", by_alias=True)
            if isinstance(request, BaseModel)
            else request
        )
        try:
            message = REQUEST_ADAPTER.validate_python(payload)
        except PydanticValidationError as e:
            command = payload.get("command") if isinstance(payload, dict) else None
            raise TransportError(f"Unknown or malformed relay message {command!r}: {e}") from e

        command = RelayCommand(message.command)
        handler = self._handlers.get(command)
        if handler is None:
            raise TransportError(f"No handler registered for {command.value}")

        response_type = RESPONSE_TYPES[command]
        try:
            response = await asyncio.wait_for(handler(message), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("%s timed out after %.1fs", command.value, self._timeout)
            return response_type(
                ok=False,
                error=f"{command.value} timed out after {self._timeout:g}s",
                code=TransportError.code,
            )
        except RelayError as e:
            logger.info("%s failed: %s", command.value, e.message)
            return response_type(ok=False, error=e.message, code=e.code)
        except Exception as e:
            logger.exception("%s handler raised", command.value)
            return response_type(ok=False, error=str(e) or type(e).__name__, code="internal")

        return response_type.model_validate(response.model_dump(mode="json", by_alias=True))
