"""Exceptions raised by the pricing engine and the editing session."""


class PricingError(Exception):
    """Base class for product pricing errors."""

    def __init__(self, message: str, *, code: str = "pricing_error", status_code: int = 400):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


class LimitExceeded(PricingError):
    """Raised when a product already carries the maximum number of special fields."""

    def __init__(self, limit: int):
        super().__init__(
            f"You can only add up to {limit} special fields.",
            code="limit_exceeded",
            status_code=409,
        )
        self.limit = limit


class UnknownField(PricingError, KeyError):
    """Raised when a customer selection targets a field the product does not have."""

    def __init__(self, field_id: str):
        super().__init__(
            f"Special field '{field_id}' not found",
            code="unknown_field",
            status_code=404,
        )
        self.field_id = field_id

    def __str__(self) -> str:
        return self.message
