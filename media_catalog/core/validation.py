"""
Validation gate.

Every write goes through validate_payload() before anything touches the
database. The family DTO carries the rules; this module turns pydantic's
ValidationError into a ValidationFailed that lists every violated field.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

from pydantic import ValidationError

from media_catalog.core.exceptions import ValidationFailed
from media_catalog.core.logging import get_logger
from media_catalog.core.metrics import HASH_VALIDATION_FAILURES, MAGNET_LINKS_INVALID
from media_catalog.schemas.common import CatalogSchema

if TYPE_CHECKING:
    from media_catalog.catalog.family import EntityFamily

logger = get_logger(__name__)

BTIH_PREFIX = "urn:btih:"
SHA256_FIELD = "sha256Hash"


def _field_name(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "body"


def validate_payload(
    family: "EntityFamily",
    payload: Any,
    media_id: Optional[Any] = None,
) -> CatalogSchema:
    """
    Validate a raw request body against the family DTO.

    Args:
        family: Family whose DTO holds the rules
        payload: Decoded JSON body
        media_id: Path id on update, echoed back in the 400 body

    Returns:
        The validated DTO (sha256 hash already lowercased)

    Raises:
        ValidationFailed: with every (field, message) pair
    """
    if not isinstance(payload, Mapping):
        raise ValidationFailed([("body", "Request body must be a JSON object")], media_id)

    try:
        return family.schema.model_validate(payload)
    except ValidationError as e:
        errors = [(_field_name(err["loc"]), err["msg"]) for err in e.errors()]

        if any(field == SHA256_FIELD for field, _ in errors):
            HASH_VALIDATION_FAILURES.labels(family=family.name).inc()

        logger.info(
            "validation_failed",
            family=family.name,
            fields=[field for field, _ in errors],
        )
        raise ValidationFailed(errors, media_id) from e


def extract_hash_from_magnet(magnet: Optional[str]) -> Optional[str]:
    """
    Pull the BitTorrent info hash out of a magnet URI.

    Returns the hash lowercased, or None (and bumps the invalid-magnet
    counter) when the link is empty, has no urn:btih: segment, or the
    segment is empty.
    """
    if not magnet:
        logger.warning("magnet_hash_extraction_failed", reason="null_or_empty")
        MAGNET_LINKS_INVALID.labels(reason="null_or_empty").inc()
        return None

    start = magnet.find(BTIH_PREFIX)
    if start == -1:
        logger.warning("magnet_hash_extraction_failed", reason="no_btih_prefix", magnet=magnet)
        MAGNET_LINKS_INVALID.labels(reason="no_btih_prefix").inc()
        return None

    info_hash = magnet[start + len(BTIH_PREFIX):].split("&", 1)[0]
    if not info_hash:
        logger.warning("magnet_hash_extraction_failed", reason="parsing_error", magnet=magnet)
        MAGNET_LINKS_INVALID.labels(reason="parsing_error").inc()
        return None

    return info_hash.lower()
