class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is malformed or missing."""


class ConflictError(DomainError):
    """Raised when an operation would violate the current state of an entity."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist or is tombstoned."""


class ConfigurationError(DomainError):
    """Raised when no rate source resolves for an enrollment."""


class AggregationError(DomainError):
    """Non-fatal failure of a single item inside a batch job."""

    def __init__(self, item_id: int, message: str):
        super().__init__(f"item {item_id}: {message}")
        self.item_id = item_id
