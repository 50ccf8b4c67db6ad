"""Exception taxonomy shared by the control API and the session.

HTTP-facing errors carry the status code the control API answers with;
coordinator errors are handled inside the session and never reach a caller.
"""


class BlockerError(Exception):
    """Base exception for the blocker service."""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self):
        return {'error': self.message}


class InvalidInput(BlockerError):
    """Missing or malformed parameter or account identity."""
    status_code = 400


class CapacityExceeded(BlockerError):
    """The target registry already holds the configured maximum."""
    status_code = 507


class Unauthorized(BlockerError):
    """Shared secret mismatch."""
    status_code = 401


class ProtocolAnomaly(BlockerError):
    """Coordinator sent a payload the session cannot act on."""


class LinkFatal(BlockerError):
    """Transport failure that cannot be retried in-process."""

    def __init__(self, message: str, cause: Exception = None):
        self.cause = cause
        super().__init__(message)
