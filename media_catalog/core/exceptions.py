"""
Catalog error taxonomy.

Routes translate the first three into typed responses (404 / 400);
anything else falls through to the global 500 handler in main.py.
"""

from typing import Any, Optional, Sequence, Tuple


class CatalogError(Exception):
    """Base class for all catalog errors."""


class MediaNotFoundError(CatalogError):
    """Point lookup or update against an id that does not exist."""

    def __init__(self, family: str, media_id: Any):
        self.family = family
        self.media_id = media_id
        super().__init__(f"{family} not found with id: {media_id}")


class ParentNotFoundError(CatalogError):
    """Child write whose parent row does not exist."""

    def __init__(self, parent_family: str, parent_field: str, parent_id: Any):
        self.parent_family = parent_family
        self.parent_field = parent_field
        self.parent_id = parent_id
        super().__init__(f"{parent_family} not found with {parent_field}: {parent_id}")


class ValidationFailed(CatalogError):
    """
    Write rejected by the validation gate.

    Carries every violated (field, message) pair, not just the first one.
    """

    def __init__(self, errors: Sequence[Tuple[str, str]], media_id: Optional[Any] = None):
        self.errors = list(errors)
        self.media_id = media_id
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return "; ".join(f"{field}: {msg}" for field, msg in self.errors)

    @property
    def fields(self) -> list[str]:
        return [field for field, _ in self.errors]


class RateLimitExceeded(CatalogError):
    """Call rejected because the named limiter is at capacity."""

    def __init__(self, name: str, max_concurrent: int):
        self.name = name
        self.max_concurrent = max_concurrent
        super().__init__(f"Rate limiter '{name}' rejected call (max {max_concurrent} concurrent)")


class CircuitOpenError(CatalogError):
    """Call short-circuited because the named breaker is open."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Circuit breaker '{name}' is open")
