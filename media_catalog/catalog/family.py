"""
Entity family descriptors.

One EntityFamily instance describes everything the generic repository,
service and router need to know about a media type: its table, its DTO,
which columns are searchable, which filters advanced search accepts, which
dimensions can be counted, and whether deletes are soft or hard.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy.dialects.postgresql import ARRAY, JSONB

from media_catalog.db.base import Base
from media_catalog.schemas.common import CatalogSchema


class MatchMode(str, Enum):
    """How a filter value is compared against its column."""

    SUBSTRING = "substring"  # LOWER(col) LIKE '%value%'
    EXACT_CI = "exact_ci"  # LOWER(col) = LOWER(value)
    EQUALS = "equals"  # col = value
    ANY = "any"  # value = ANY(array_col)


@dataclass(frozen=True)
class FilterSpec:
    """One optional advanced-search parameter."""

    param: str  # query parameter name as clients send it (camelCase)
    column: str  # model attribute
    mode: MatchMode
    python_type: type = str


@dataclass(frozen=True)
class Lookup:
    """A GET /{path}/{value} listing by a single column."""

    path: str
    column: str
    mode: MatchMode
    python_type: type = str


@dataclass(frozen=True)
class Dimension:
    """A grouped-count dimension served at GET /{route}?limit=."""

    name: str  # key in each result row
    column: str
    route: str
    is_array: bool = False


@dataclass(frozen=True)
class ParentLink:
    """Child -> parent relationship checked before every child write."""

    family: str  # parent family name
    column: str  # fk attribute on the child model
    label: str  # e.g. "Album" for error messages
    route: str  # e.g. "album" -> /album/{parent_id}
    order_by: tuple[str, ...] = ()
    season_column: Optional[str] = None


@dataclass(frozen=True)
class EntityFamily:
    name: str
    label: str
    model: type[Base]
    schema: type[CatalogSchema]
    # Static DTO attribute -> column attribute table (same name on both sides).
    # Only data fields; id and lifecycle columns are handled separately.
    fields: tuple[str, ...]
    text_columns: tuple[str, ...] = ()
    array_text_columns: tuple[str, ...] = ()
    filters: tuple[FilterSpec, ...] = ()
    lookups: tuple[Lookup, ...] = ()
    external_ids: tuple[Lookup, ...] = ()
    dimensions: tuple[Dimension, ...] = ()
    soft_delete: bool = True
    cacheable: bool = True  # get-by-id reads through the DTO cache
    full_text: bool = True
    has_year: bool = True
    versioned: bool = False
    conflict_columns: tuple[str, ...] = ("id",)
    parent: Optional[ParentLink] = None

    @property
    def path(self) -> str:
        return f"/{self.name}"

    @property
    def cache_prefix(self) -> str:
        return self.name

    @property
    def lifecycle_fields(self) -> tuple[str, ...]:
        if self.soft_delete:
            return ("is_deleted", "created_at", "updated_at")
        return ("created_at", "updated_at")

    @property
    def dto_fields(self) -> tuple[str, ...]:
        """Every DTO attribute populated from a row."""
        return ("id",) + self.fields + self.lifecycle_fields

    @property
    def sortable_fields(self) -> dict[str, str]:
        """camelCase and snake_case names accepted in ?sort= mapped to columns."""
        columns = self.model.__table__.c
        sortable: dict[str, str] = {}
        for name in self.dto_fields:
            if isinstance(columns[name].type, (ARRAY, JSONB)):
                continue
            sortable[name] = name
            field = self.schema.model_fields.get(name)
            if field is not None and field.alias:
                sortable[field.alias] = name
        return sortable

    def dimension(self, name: str) -> Dimension:
        for dimension in self.dimensions:
            if dimension.name == name:
                return dimension
        raise KeyError(f"{self.name} has no '{name}' dimension")

    def has_dimension(self, name: str) -> bool:
        return any(d.name == name for d in self.dimensions)
