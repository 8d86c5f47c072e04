"""
Pagination and sort query parameters shared by the listing routes.

    GET /v1/movies?page=2&size=50&sort=year,desc&sort=title

page is 0-based. size is capped at MAX_PAGE_SIZE. Each sort value is
"field[,direction]" where field is a DTO field (camelCase or snake_case)
and direction is asc (default) or desc.
"""

from dataclasses import dataclass
from typing import List, Optional

from fastapi import Query

from media_catalog.catalog.family import EntityFamily
from media_catalog.core.config import settings
from media_catalog.core.exceptions import ValidationFailed

SORT_DIRECTIONS = ("asc", "desc")


@dataclass
class PageParams:
    page: int
    size: int


def page_params(
    page: int = Query(0, ge=0, description="0-based page number"),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, description="Page size"),
) -> PageParams:
    return PageParams(page=page, size=min(size, settings.MAX_PAGE_SIZE))


def parse_sort(family: EntityFamily, values: Optional[List[str]]) -> list[tuple[str, str]]:
    """
    Turn ["year,desc", "title"] into [("year", "desc"), ("title", "asc")].

    Raises:
        ValidationFailed: unknown field or direction (400 with a DTO-shaped body)
    """
    if not values:
        return []

    sortable = family.sortable_fields
    order: list[tuple[str, str]] = []
    for value in values:
        field, _, direction = value.partition(",")
        field = field.strip()
        direction = (direction.strip() or "asc").lower()

        if field not in sortable:
            raise ValidationFailed([("sort", f"Unknown sort field: {field}")])
        if direction not in SORT_DIRECTIONS:
            raise ValidationFailed([("sort", f"Invalid sort direction: {direction}")])
        order.append((sortable[field], direction))
    return order


def sort_dependency(family: EntityFamily):
    """Dependency factory: validated sort order for `family`."""

    def _sort(sort: Optional[List[str]] = Query(None, description="field,dir")) -> list[tuple[str, str]]:
        return parse_sort(family, sort)

    return _sort
