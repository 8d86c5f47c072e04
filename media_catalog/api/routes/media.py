"""
Catalog API endpoints.

One router per family, all built by build_family_router() from the family
descriptor. Every family gets CRUD, search, advanced search, upsert,
bulk operations and incremental sync; lookups, grouped counts and the child
parent routes are added from the descriptor.

Literal paths (/search, /count, /bulk, ...) are registered before /{media_id}
so they are matched first.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Path, Query, Response, status
from fastapi.responses import JSONResponse

from media_catalog.api.deps import filters_dependency, service_dependency
from media_catalog.api.pagination import PageParams, page_params, sort_dependency
from media_catalog.catalog.family import Dimension, EntityFamily, Lookup
from media_catalog.catalog.mapper import error_body, to_json
from media_catalog.catalog.service import CatalogService
from media_catalog.core.config import settings
from media_catalog.core.exceptions import MediaNotFoundError, ParentNotFoundError, ValidationFailed
from media_catalog.core.logging import get_logger

logger = get_logger(__name__)

NOT_FOUND = {404: {"description": "No record with this id (empty body)"}}
BAD_REQUEST = {400: {"description": "Validation failed; title carries the message"}}


def _not_found(exc: Exception) -> Response:
    logger.info("catalog_not_found", reason=str(exc))
    return Response(status_code=status.HTTP_404_NOT_FOUND)


def _bad_request(family: EntityFamily, exc: ValidationFailed) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(family, exc.message, exc.media_id),
    )


def build_family_router(family: EntityFamily) -> APIRouter:
    router = APIRouter(prefix=family.path, tags=[family.label])
    get_service = service_dependency(family)
    get_sort = sort_dependency(family)
    get_filters = filters_dependency(family)

    # ========================================
    # Listing and search
    # ========================================

    @router.get("", response_model=None, summary=f"List {family.name}")
    async def list_media(
        paging: PageParams = Depends(page_params),
        sort: list = Depends(get_sort),
        service: CatalogService = Depends(get_service),
    ):
        """Non-deleted records, newest update first unless sort is given."""
        dtos = await service.list_page(paging.page, paging.size, sort)
        return [to_json(dto) for dto in dtos]

    @router.get("/search", response_model=None, summary=f"Keyword search over {family.name}")
    async def search_media(
        term: str = Query(..., description="Search term"),
        paging: PageParams = Depends(page_params),
        sort: list = Depends(get_sort),
        service: CatalogService = Depends(get_service),
    ):
        """
        Full-text match ranked by relevance, with substring and year
        fallbacks. Returns [] when the search circuit is open.
        """
        dtos = await service.search(term, paging.page, paging.size, sort)
        return [to_json(dto) for dto in dtos]

    @router.get("/advanced-search", response_model=None, summary=f"Filter {family.name}")
    async def advanced_search_media(
        filters: dict = Depends(get_filters),
        paging: PageParams = Depends(page_params),
        sort: list = Depends(get_sort),
        service: CatalogService = Depends(get_service),
    ):
        """AND of the supplied filters; absent filters impose nothing."""
        dtos = await service.advanced_search(filters, paging.page, paging.size, sort)
        return [to_json(dto) for dto in dtos]

    @router.get("/count", response_model=None, summary=f"Count {family.name}")
    async def count_media(service: CatalogService = Depends(get_service)) -> int:
        return await service.count()

    @router.get("/updated-since", response_model=None, summary="Records updated after a timestamp")
    async def updated_since(
        since: datetime = Query(..., description="ISO-8601 timestamp (exclusive)"),
        paging: PageParams = Depends(page_params),
        service: CatalogService = Depends(get_service),
    ):
        """Incremental sync feed, oldest change first."""
        dtos = await service.updated_since(since, paging.page, paging.size)
        return [to_json(dto) for dto in dtos]

    if family.has_year:

        @router.get("/year-count", response_model=None, summary="Record count per year")
        async def year_counts(
            limit: int = Query(settings.DEFAULT_TOP_LIMIT, ge=1),
            service: CatalogService = Depends(get_service),
        ):
            return await service.year_counts(limit)

        @router.get("/count-by-year/{year}", response_model=None, summary="Record count for one year")
        async def count_by_year(year: int, service: CatalogService = Depends(get_service)) -> int:
            return await service.count_by_year(year)

    for lookup in family.lookups:
        _add_lookup_route(router, lookup, get_service)

    for lookup in family.external_ids:
        _add_external_id_route(router, lookup, get_service)

    for dimension in family.dimensions:
        _add_top_route(router, dimension, get_service)

    if family.parent is not None:
        _add_parent_routes(router, family, get_service)

    # ========================================
    # Writes
    # ========================================

    @router.post(
        "",
        status_code=status.HTTP_201_CREATED,
        response_model=None,
        summary=f"Create a {family.label}",
        responses={**BAD_REQUEST, **NOT_FOUND},
    )
    async def create_media(
        payload: Any = Body(...),
        service: CatalogService = Depends(get_service),
    ):
        try:
            dto = await service.create(payload)
        except ValidationFailed as e:
            return _bad_request(family, e)
        except ParentNotFoundError as e:
            return _not_found(e)
        return JSONResponse(status_code=status.HTTP_201_CREATED, content=to_json(dto))

    @router.post(
        "/create-or-update",
        response_model=None,
        summary="Update when the body carries an id, create otherwise",
        responses={**BAD_REQUEST, **NOT_FOUND},
    )
    async def create_or_update_media(
        payload: Any = Body(...),
        service: CatalogService = Depends(get_service),
    ):
        try:
            dto = await service.create_or_update(payload)
        except ValidationFailed as e:
            return _bad_request(family, e)
        except (MediaNotFoundError, ParentNotFoundError) as e:
            return _not_found(e)
        return to_json(dto)

    @router.put("/bulk", response_model=None, summary="Save many records", responses=BAD_REQUEST)
    async def bulk_update_media(
        payloads: List[Any] = Body(...),
        service: CatalogService = Depends(get_service),
    ):
        """Returns [] when the bulk-update policy rejects or fails the call."""
        try:
            dtos = await service.bulk_update(payloads)
        except ValidationFailed as e:
            return _bad_request(family, e)
        except ParentNotFoundError as e:
            return _not_found(e)
        return [to_json(dto) for dto in dtos]

    @router.delete(
        "/bulk",
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
        summary="Delete many records",
    )
    async def bulk_delete_media(
        ids: List[UUID] = Body(...),
        service: CatalogService = Depends(get_service),
    ):
        await service.bulk_delete(ids)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    # ========================================
    # Single record
    # ========================================

    @router.get("/{media_id}", response_model=None, summary=f"Get a {family.label}", responses=NOT_FOUND)
    async def get_media(media_id: UUID, service: CatalogService = Depends(get_service)):
        """Soft-deleted records are still returned here."""
        try:
            dto = await service.get(media_id)
        except MediaNotFoundError as e:
            return _not_found(e)
        return to_json(dto)

    @router.put(
        "/{media_id}",
        response_model=None,
        summary=f"Update a {family.label}",
        responses={**BAD_REQUEST, **NOT_FOUND},
    )
    async def update_media(
        media_id: UUID,
        payload: Any = Body(...),
        service: CatalogService = Depends(get_service),
    ):
        try:
            dto = await service.update(media_id, payload)
        except ValidationFailed as e:
            return _bad_request(family, e)
        except (MediaNotFoundError, ParentNotFoundError) as e:
            return _not_found(e)
        return to_json(dto)

    @router.delete(
        "/{media_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
        summary=f"Delete a {family.label}",
        responses=NOT_FOUND,
    )
    async def delete_media(media_id: UUID, service: CatalogService = Depends(get_service)):
        try:
            await service.delete(media_id)
        except MediaNotFoundError as e:
            return _not_found(e)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


# ========================================
# Descriptor-driven routes
# ========================================

def _add_lookup_route(router: APIRouter, lookup: Lookup, get_service) -> None:
    value_type = lookup.python_type

    async def find_by(
        value: value_type = Path(...),
        paging: PageParams = Depends(page_params),
        service: CatalogService = Depends(get_service),
    ):
        dtos = await service.find_by(lookup, value, paging.page, paging.size)
        return [to_json(dto) for dto in dtos]

    router.add_api_route(
        f"/{lookup.path}/{{value}}",
        find_by,
        methods=["GET"],
        response_model=None,
        name=f"find_by_{lookup.path}",
        summary=f"Records by {lookup.path}",
    )


def _add_external_id_route(router: APIRouter, lookup: Lookup, get_service) -> None:
    value_type = lookup.python_type

    async def find_by_external_id(
        value: value_type = Path(...),
        service: CatalogService = Depends(get_service),
    ):
        dtos = await service.find_by_external_id(lookup, value)
        return [to_json(dto) for dto in dtos]

    router.add_api_route(
        f"/{lookup.path}/{{value}}",
        find_by_external_id,
        methods=["GET"],
        response_model=None,
        name=f"find_by_{lookup.path}",
        summary=f"Records by {lookup.path} id",
    )


def _add_top_route(router: APIRouter, dimension: Dimension, get_service) -> None:
    async def top(
        limit: int = Query(settings.DEFAULT_TOP_LIMIT, ge=1),
        service: CatalogService = Depends(get_service),
    ):
        return await service.top(dimension.name, limit)

    router.add_api_route(
        f"/{dimension.route}",
        top,
        methods=["GET"],
        response_model=None,
        name=dimension.route.replace("-", "_"),
        summary=f"Most frequent {dimension.name} values",
    )


def _add_parent_routes(router: APIRouter, family: EntityFamily, get_service) -> None:
    parent = family.parent
    base = f"/{parent.route}/{{parent_id}}"

    async def list_by_parent(parent_id: UUID, service: CatalogService = Depends(get_service)):
        dtos = await service.list_by_parent(parent_id)
        return [to_json(dto) for dto in dtos]

    async def delete_by_parent(parent_id: UUID, service: CatalogService = Depends(get_service)):
        await service.delete_by_parent(parent_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    router.add_api_route(
        base,
        list_by_parent,
        methods=["GET"],
        response_model=None,
        summary=f"{family.label} records of one {parent.label}",
    )
    router.add_api_route(
        base,
        delete_by_parent,
        methods=["DELETE"],
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
        summary=f"Delete every {family.label} of one {parent.label}",
    )

    if parent.season_column is None:
        return

    async def list_by_season(
        parent_id: UUID,
        season: int,
        service: CatalogService = Depends(get_service),
    ):
        dtos = await service.list_by_parent_and_season(parent_id, season)
        return [to_json(dto) for dto in dtos]

    async def count_by_parent(parent_id: UUID, service: CatalogService = Depends(get_service)) -> int:
        return await service.count_by_parent(parent_id)

    async def max_season(
        parent_id: UUID,
        service: CatalogService = Depends(get_service),
    ) -> Optional[int]:
        return await service.max_season(parent_id)

    router.add_api_route(f"{base}/season/{{season}}", list_by_season, methods=["GET"], response_model=None)
    router.add_api_route(f"{base}/count", count_by_parent, methods=["GET"], response_model=None)
    router.add_api_route(f"{base}/max-season", max_season, methods=["GET"], response_model=None)
