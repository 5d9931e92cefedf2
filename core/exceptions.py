"""Custom exception classes for the credit scanner service."""


class CreditScannerError(Exception):
    """Base exception for all credit scanner errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class DiscogsAPIError(CreditScannerError):
    """Raised when a Discogs request fails for good."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.url = url


class PermanentClientError(DiscogsAPIError):
    """Raised on 401/403/404 responses. Never retried."""

    pass


class TransientAPIError(DiscogsAPIError):
    """Raised when network/5xx/parse failures exhaust the attempt budget."""

    pass


class ScanCancelledError(CreditScannerError):
    """Raised when a manual stop is observed at a suspension point."""

    pass


class SyncInProgressError(CreditScannerError):
    """Raised when an operation needs the artist's sync to be idle."""

    pass


class CSVImportError(CreditScannerError):
    """Raised when an imported CSV document is rejected."""

    pass


class ServiceInitializationError(CreditScannerError):
    """Raised when a service fails to initialize."""

    pass


class ConfigurationError(CreditScannerError):
    """Raised when there's a configuration error."""

    pass
