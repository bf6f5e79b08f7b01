"""Pricing error taxonomy.

Each error carries the HTTP status the API layer maps it to. Remote errors
never reach the API: RemoteSyncError is recorded on the tier row and
RemoteArchiveError is only logged.
"""

from typing import Optional


class PricingError(Exception):
    """Base exception for tier pricing operations."""

    status_code = 500
    error_code = "pricing_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TierValidationError(PricingError):
    """Malformed or semantically invalid tier input. Nothing is persisted."""

    status_code = 400
    error_code = "validation_error"

    def __init__(self, message: str, index: Optional[int] = None):
        if index is not None:
            message = f"tiers[{index}]: {message}"
        super().__init__(message)
        self.index = index


class ItemNotFoundError(PricingError):
    """Referenced variant or lock technology does not exist."""

    status_code = 404
    error_code = "not_found"


class LocalConstraintError(PricingError):
    """The local store rejected the transactional write. Nothing was written."""

    status_code = 409
    error_code = "constraint_violation"


class ReplaceInProgressError(PricingError):
    """Another replace or sync for the same item holds the item lock."""

    status_code = 409
    error_code = "replace_in_progress"


class RemoteSyncError(PricingError):
    """Creating a remote price failed (network, auth, rejected payload, timeout)."""

    status_code = 502
    error_code = "remote_sync_error"


class RemoteArchiveError(PricingError):
    """Deactivating a retired remote price failed."""

    status_code = 502
    error_code = "remote_archive_error"
