"""Error taxonomy shared by ingest, relay and posting.

Every error is attached to the smallest unit of work (one record or one
posting task) and carries a stable ``code`` so callers can classify
failures without string matching.
"""


class RelayError(Exception):
    """Base class for all inventory-relay errors."""

    code: str = "error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class RecordValidationError(RelayError):
    """A record failed the validity gate (missing make/model, malformed VIN)."""

    code = "validation"


class TransportError(RelayError):
    """A cross-boundary call failed (relay timeout, HTTP failure, unknown command)."""

    code = "transport"


class OwnershipError(RelayError):
    """A write was attempted without a usable owner identity."""

    code = "ownership"


class MissingOwnerError(OwnershipError):
    """Insert attempted without an authenticated owner."""

    code = "missing_owner"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "Missing user; please authenticate before ingesting")


class TargetContextError(RelayError):
    """Form filling was attempted outside the expected page context."""

    code = "target_context"


class NotOnTargetPageError(TargetContextError):
    """The active page is not the marketplace create-listing form."""

    code = "not_on_marketplace_create"
