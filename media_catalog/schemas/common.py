"""
Shared building blocks for catalog DTOs.

Every constraint is expressed as an AfterValidator raising a
PydanticCustomError, so the error message is exactly the one a client sees
(no "Value error, ..." prefix). Fields are declared Optional with a None
default and the models set validate_default=True, which means "required"
checks run even when the field is missing from the payload and every
violation is reported in one pass.
"""

import re
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

# ================================
# Patterns
# ================================
# Hash part of the magnet URI is matched case-insensitively; base32 and hex
# btih hashes are both accepted (32-40 chars).
MAGNET_PATTERN = re.compile(r"^magnet:\?xt=urn:[a-z0-9]+:[a-zA-Z0-9]{32,40}&dn=.+&tr=.+$")
SHA256_PATTERN = re.compile(r"^[a-fA-F0-9]{64}$")
IMDB_PATTERN = re.compile(r"^tt\d{7,8}$")

CONSTRAINT_ERROR = "catalog_constraint"


def _fail(message: str) -> None:
    raise PydanticCustomError(CONSTRAINT_ERROR, message)


# ================================
# Validator factories
# ================================

def required_text(label: str, max_length: int) -> AfterValidator:
    """Non-blank string of 1..max_length characters."""

    def check(value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            _fail(f"{label} is required")
        if len(value) > max_length:
            _fail(f"{label} must be between 1 and {max_length} characters")
        return value

    return AfterValidator(check)


def max_length(label: str, limit: int) -> AfterValidator:
    def check(value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) > limit:
            _fail(f"{label} must be {limit} characters or less")
        return value

    return AfterValidator(check)


def each_max_length(label: str, limit: int) -> AfterValidator:
    """Length check applied to every element of a list field independently."""

    def check(values: Optional[List[str]]) -> Optional[List[str]]:
        if values is not None and any(item is not None and len(item) > limit for item in values):
            _fail(f"Each {label} must be {limit} characters or less")
        return values

    return AfterValidator(check)


def required_value(message: str) -> AfterValidator:
    def check(value: Any) -> Any:
        if value is None:
            _fail(message)
        return value

    return AfterValidator(check)


def not_negative(label: str) -> AfterValidator:
    def check(value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            _fail(f"{label} must be a positive number or zero")
        return value

    return AfterValidator(check)


def year_between(lower: int, upper: int, required: bool = False) -> AfterValidator:
    def check(value: Optional[int]) -> Optional[int]:
        if value is None:
            if required:
                _fail("Year is required")
            return value
        if value < lower:
            _fail(f"Year must be {lower} or later")
        if value > upper:
            _fail(f"Year must be {upper} or earlier")
        return value

    return AfterValidator(check)


def matches(
    pattern: "re.Pattern[str]",
    message: str,
    required_message: Optional[str] = None,
) -> AfterValidator:
    def check(value: Optional[str]) -> Optional[str]:
        if value is None or (required_message and not value.strip()):
            if required_message:
                _fail(required_message)
            return value
        if not pattern.match(value):
            _fail(message)
        return value

    return AfterValidator(check)


def _lowercase(value: Optional[str]) -> Optional[str]:
    return value.lower() if value is not None else value


# Canonical (lowercase) form is what gets stored.
lowercase: AfterValidator = AfterValidator(_lowercase)


# ================================
# Base DTOs
# ================================

class CatalogSchema(BaseModel):
    """
    Base DTO for every catalog family.

    JSON uses camelCase (sha256Hash, createdAt); Python attributes stay
    snake_case and match the ORM column attributes one to one.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
        extra="ignore",
    )

    id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MediaSchema(CatalogSchema):
    """Base DTO for the soft-deletable parent families."""

    is_deleted: Optional[bool] = None

