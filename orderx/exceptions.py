"""
Exceptions raised by the Order-X document builder.
"""
from __future__ import annotations


class OrderXError(Exception):
    """Base class for all builder errors."""


class MissingCapabilityError(OrderXError):
    """A field does not support the requested operation in the active profile.

    Raised by slots when ``add`` targets a single-valued field, or when any
    mutator targets a field the profile does not carry at all.
    """

    def __init__(self, field: str, operation: str, profile: str | None = None):
        self.field = field
        self.operation = operation
        self.profile = profile
        where = f" in profile {profile}" if profile else ""
        super().__init__(f"'{field}' does not support '{operation}'{where}")


class EmbeddingError(OrderXError):
    """The PDF embedding step produced no output."""
