"""
Row <-> DTO mapping driven by the family's static field table.

Both directions copy attribute by attribute using EntityFamily.fields, so a
field added to the model, the DTO and the table is mapped everywhere at once.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from media_catalog.catalog.family import EntityFamily
from media_catalog.schemas.common import CatalogSchema


def to_row(
    family: EntityFamily,
    dto: CatalogSchema,
    media_id: UUID,
    created_at: datetime,
    updated_at: datetime,
    is_deleted: Optional[bool] = False,
) -> dict[str, Any]:
    """
    Build the column values for an upsert.

    Identity and lifecycle columns come from the caller, never from the
    client payload.
    """
    values = {name: getattr(dto, name) for name in family.fields}
    values["id"] = media_id
    values["created_at"] = created_at
    values["updated_at"] = updated_at
    if family.soft_delete:
        values["is_deleted"] = bool(is_deleted)
    return values


def to_dto(family: EntityFamily, row: Any) -> CatalogSchema:
    # Rows were validated on the way in; skip re-validation on the way out
    return family.schema.model_construct(
        **{name: getattr(row, name) for name in family.dto_fields}
    )


def to_json(dto: CatalogSchema) -> dict[str, Any]:
    """JSON-ready camelCase dict."""
    return dto.model_dump(mode="json", by_alias=True)


def error_body(family: EntityFamily, message: str, media_id: Optional[UUID] = None) -> dict[str, Any]:
    """
    DTO-shaped 400 body: every field null except title (the joined message)
    and id (the path id on update).
    """
    dto = family.schema.model_construct(
        **{name: None for name in family.schema.model_fields}
    )
    dto.title = message
    dto.id = media_id
    return to_json(dto)


def count_rows(dimension: str, rows: list[tuple[Any, int]]) -> list[dict[str, Any]]:
    """[(value, n), ...] -> [{"<dimension>": value, "count": n}, ...]"""
    return [{dimension: value, "count": count} for value, count in rows]
