"""Error taxonomy for the order import."""


class OrderSyncError(Exception):
    """Base class for all order sync errors."""


class ConfigurationError(OrderSyncError):
    """Invalid shop configuration: bad status mapping entry, missing transition, bad schedule."""


class TransportError(OrderSyncError):
    """The Magento API could not be read.

    ``code`` carries the numeric error code of Magento's structured error
    response or the HTTP status, when one is known.
    """

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code is not None:
            return f"[{self.code}] {self.message}"
        return self.message


class AuthError(TransportError):
    """Magento rejected the credentials. Needs credential rotation, never retried."""


class ApplyError(OrderSyncError):
    """A case could not be created or updated in the workflow."""


class ImportAlreadyRunning(OrderSyncError):
    """Another import run holds the lock for this shop."""
