"""
Sites API — Sites Route Handlers
==================================

What:  CRUD endpoints for the sites collection.
How:   Parse and validate HTTP input, delegate to SiteService, return JSON.
       Errors are raised as app exceptions and rendered by the global
       handlers in main.py.

    POST   /api/sites        create               201
    GET    /api/sites        filtered page        200 (+ X-Total-Count)
    GET    /api/sites/{id}   single site          200 / 404
    PUT    /api/sites/{id}   partial update       200
    DELETE /api/sites/{id}   delete               204
"""

import logging
import re
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import NotFoundError, ValidationError
from app.schemas.site import (
    ErrorResponse,
    SiteCreate,
    SiteResponse,
    SiteUpdate,
    SiteUpdateResult,
)
from app.services.site_service import site_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Sites"])

PAGINATION_ERROR = "page and perPage must be valid numbers"

# Optional sign and decimal digits at the start; anything after is ignored
_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


def parse_int(value: Optional[str]) -> Optional[int]:
    """
    Leading decimal integer of `value`, or None when there is none.

        "12" → 12    " 7" → 7    "2abc" → 2    "1.5" → 1    "abc" → None

    Range is not checked here; SiteService decides which pages exist.
    """
    if value is None:
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


@router.post(
    "/sites",
    status_code=201,
    response_model=SiteResponse,
    responses={
        400: {"description": "Malformed body", "model": ErrorResponse},
        500: {"description": "Store error", "model": ErrorResponse},
    },
    summary="Create a site",
)
async def create_site(
    site: SiteCreate = Body(...),
    db: AsyncSession = Depends(get_db_session),
) -> SiteResponse:
    return await site_service.add_new_site(db, site)


@router.get(
    "/sites",
    response_model=List[SiteResponse],
    responses={
        400: {"description": "page/perPage missing or not numeric", "model": ErrorResponse},
        500: {"description": "Store error", "model": ErrorResponse},
    },
    summary="List sites with pagination and optional filters",
)
async def list_sites(
    response: Response,
    page: Optional[str] = Query(default=None, description="1-based page number (required)"),
    per_page: Optional[str] = Query(
        default=None, alias="perPage", description="Items per page (required)"
    ),
    name: Optional[str] = Query(default=None, description="Case-insensitive substring of the name"),
    description: Optional[str] = Query(default=None, description="Substring of the description"),
    year: Optional[str] = Query(default=None, description="Exact year"),
    town: Optional[str] = Query(default=None, description="Substring of the town"),
    province_or_territory_code: Optional[str] = Query(
        default=None, alias="provinceOrTerritoryCode", description="Province/territory code"
    ),
    db: AsyncSession = Depends(get_db_session),
) -> List[SiteResponse]:
    """
    List one page of sites.

    page and perPage arrive as text and are parsed here rather than by
    FastAPI, so that a missing or non-numeric value produces our 400 body
    instead of FastAPI's 422. Values are forwarded as parsed, without a
    range check. A year with no leading integer is ignored.

    Example:
        GET /api/sites?page=2&perPage=10&provinceOrTerritoryCode=ON
    """
    page_num = parse_int(page)
    per_page_num = parse_int(per_page)
    if page_num is None or per_page_num is None:
        raise ValidationError(
            message=PAGINATION_ERROR,
            context={"page": page, "perPage": per_page},
        )

    filters = (name, description, parse_int(year), town, province_or_territory_code)
    sites = await site_service.get_all_sites(db, page_num, per_page_num, *filters)

    response.headers["X-Total-Count"] = str(await site_service.count_sites(db, *filters))
    return sites


@router.get(
    "/sites/{site_id}",
    response_model=SiteResponse,
    responses={
        404: {"description": "Site not found", "model": ErrorResponse},
        500: {"description": "Store error", "model": ErrorResponse},
    },
    summary="Get a single site by ID",
)
async def get_site(
    site_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> SiteResponse:
    site = await site_service.get_site_by_id(db, site_id)
    if not site:
        raise NotFoundError(message="Site not found", resource="site", resource_id=site_id)
    return site


@router.put(
    "/sites/{site_id}",
    response_model=SiteUpdateResult,
    responses={
        400: {"description": "Malformed body", "model": ErrorResponse},
        500: {"description": "Store error", "model": ErrorResponse},
    },
    summary="Update a site by ID",
)
async def update_site(
    site_id: str,
    changes: SiteUpdate = Body(...),
    db: AsyncSession = Depends(get_db_session),
) -> SiteUpdateResult:
    # Unknown ids are not an error: the result reports matchedCount=0
    return await site_service.update_site_by_id(db, changes, site_id)


@router.delete(
    "/sites/{site_id}",
    status_code=204,
    response_class=Response,
    responses={500: {"description": "Store error", "model": ErrorResponse}},
    summary="Delete a site by ID",
)
async def delete_site(
    site_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await site_service.delete_site_by_id(db, site_id)
    return Response(status_code=204)
