# backend/utils/errors.py
from typing import Optional


class FilterValidationError(ValueError):
    """Query parameters for a product listing could not be understood."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ProductValidationError(ValueError):
    """A product draft is malformed (rejected before any store access)."""


class ProductCreationError(RuntimeError):
    """The creation transaction failed and was rolled back."""


class DataIntegrityError(RuntimeError):
    """Stored product graph is inconsistent, e.g. the featured photo cannot be resolved.

    Points at a bug in product creation; never a client error.
    """

    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.context = context or {}
