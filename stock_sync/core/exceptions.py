from typing import Optional


class StockSyncError(Exception):
    """Base exception for all stock sync errors."""
    pass

class ConfigurationError(StockSyncError):
    """Raised when required settings (e.g. API credentials) are missing."""
    pass

class RemoteFetchError(StockSyncError):
    """Raised when the stock API request fails at the network or HTTP level."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        retryable: bool = False
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.retryable = retryable

class ValidationError(StockSyncError):
    """Raised when input data (e.g. a date range) fails validation."""
    pass

class PersistenceError(StockSyncError):
    """Raised when writing or verifying stock rows fails."""
    pass

class SyncAlreadyRunningError(StockSyncError):
    """Raised when a sync run is requested while another is in progress."""
    pass
