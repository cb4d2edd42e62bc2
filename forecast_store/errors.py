"""
Errors raised by the forecast store.

Every failure aborts the operation that triggered it. Callers decide whether to
retry, the store itself never does.
"""

class ForecastStoreError(Exception):
    """Base class for all forecast store errors."""


class UnrecognizedLocator(ForecastStoreError, ValueError):
    """The router could not classify a locator."""

    def __init__(self, locator: str):
        self.locator = locator
        super().__init__(f"Unknown locator: {locator}")


class InvalidRecord(ForecastStoreError, ValueError):
    """A record in a batch failed validation. The whole batch was rejected."""

    def __init__(self, message: str, index: int | None = None):
        self.index = index
        if index is not None:
            message = f"Record {index}: {message}"
        super().__init__(message)


class UnsupportedOperation(ForecastStoreError, NotImplementedError):
    """The operation is not part of the provider contract."""


class StorageFailure(ForecastStoreError, RuntimeError):
    """The underlying database is unavailable, corrupt or rejected a statement."""
