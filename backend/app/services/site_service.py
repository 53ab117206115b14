"""
Sites API — Site Service (Data Access Layer)
==============================================

What:  All store I/O for site records: create, filtered page, count, get,
       update and delete by identifier.
Why:   Keeps SQL out of the route handlers. Routes parse HTTP input and map
       results to status codes; this layer only talks to the database.
How:   Stateless methods receiving the request's AsyncSession. Writes commit
       before returning, so a failed commit is reported to the caller
       instead of surfacing after the response is sent. Store errors
       are wrapped in DataAccessError carrying the underlying message, or
       the operation's fallback message when the error has none.

Filter semantics (GET /api/sites):
    name, description, town       case-insensitive substring
    year                          equality
    provinceOrTerritoryCode       case-insensitive equality

Identifiers:
    Site ids are UUIDs. A string that is not a valid UUID cannot name a
    stored site, so it behaves exactly like an unknown id.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import Select, asc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import initialize_schema
from app.exceptions import DataAccessError
from app.models.site import Site
from app.schemas.site import SiteCreate, SiteResponse, SiteUpdate, SiteUpdateResult

logger = logging.getLogger(__name__)

PAGE_RANGE_ERROR = "page and perPage must be at least 1"


def _parse_id(site_id: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(site_id))
    except ValueError:
        return None


def _contains(value: str) -> str:
    """LIKE pattern matching `value` anywhere, with wildcards escaped."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _to_response(site: Site) -> SiteResponse:
    return SiteResponse(
        id=str(site.id),
        name=site.name,
        description=site.description,
        year=site.year,
        town=site.town,
        province_or_territory_code=site.province_or_territory_code,
        image=site.image,
        latitude=site.latitude,
        longitude=site.longitude,
        created_at=site.created_at,
    )


def _wrap(e: Exception, fallback: str, **context: Any) -> DataAccessError:
    logger.error("%s: %s", fallback, str(e), exc_info=True)
    context["error_type"] = type(e).__name__
    return DataAccessError(message=str(e) or fallback, context=context)


class SiteService:
    """
    Data access for the `sites` table.

    Responsibilities:
        - initialize():        connect and create the schema
        - add_new_site():      insert and return the stored record
        - get_all_sites():     one filtered page
        - count_sites():       number of records matching the same filters
        - get_site_by_id():    single record or None
        - update_site_by_id(): apply the fields present in the body
        - delete_site_by_id(): remove the record if it exists
    """

    async def initialize(self) -> None:
        await initialize_schema()

    async def add_new_site(self, db: AsyncSession, data: SiteCreate) -> SiteResponse:
        try:
            site = Site(**data.model_dump())
            db.add(site)
            await db.flush()  # Assigns id and created_at
            await db.commit()
            logger.info("Site created: %s", site.id)
            return _to_response(site)
        except Exception as e:
            raise _wrap(e, "Unable to add site")

    def _filtered(
        self,
        query: Select,
        name: Optional[str] = None,
        description: Optional[str] = None,
        year: Optional[int] = None,
        town: Optional[str] = None,
        province_or_territory_code: Optional[str] = None,
    ) -> Select:
        if name:
            query = query.where(Site.name.ilike(_contains(name), escape="\\"))
        if description:
            query = query.where(Site.description.ilike(_contains(description), escape="\\"))
        if year is not None:
            query = query.where(Site.year == year)
        if town:
            query = query.where(Site.town.ilike(_contains(town), escape="\\"))
        if province_or_territory_code:
            query = query.where(
                func.upper(Site.province_or_territory_code)
                == province_or_territory_code.upper()
            )
        return query

    async def get_all_sites(
        self,
        db: AsyncSession,
        page: int,
        per_page: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        year: Optional[int] = None,
        town: Optional[str] = None,
        province_or_territory_code: Optional[str] = None,
    ) -> List[SiteResponse]:
        """
        Return one page of sites matching the filters.

        Pages are 1-based: page 1 is the first `per_page` records ordered
        by creation time (ties broken by id so pages never overlap).
        A page or page size below 1 names no page and is a store error.
        """
        if page < 1 or per_page < 1:
            raise DataAccessError(
                message=PAGE_RANGE_ERROR,
                context={"page": page, "per_page": per_page},
            )
        try:
            query = self._filtered(
                select(Site),
                name=name,
                description=description,
                year=year,
                town=town,
                province_or_territory_code=province_or_territory_code,
            )
            query = (
                query.order_by(asc(Site.created_at), asc(Site.id))
                .offset((page - 1) * per_page)
                .limit(per_page)
            )
            result = await db.execute(query)
            return [_to_response(site) for site in result.scalars().all()]
        except Exception as e:
            raise _wrap(e, "Unable to fetch sites", page=page, per_page=per_page)

    async def count_sites(
        self,
        db: AsyncSession,
        name: Optional[str] = None,
        description: Optional[str] = None,
        year: Optional[int] = None,
        town: Optional[str] = None,
        province_or_territory_code: Optional[str] = None,
    ) -> int:
        try:
            query = self._filtered(
                select(func.count(Site.id)),
                name=name,
                description=description,
                year=year,
                town=town,
                province_or_territory_code=province_or_territory_code,
            )
            result = await db.execute(query)
            return result.scalar() or 0
        except Exception as e:
            raise _wrap(e, "Unable to fetch sites")

    async def get_site_by_id(self, db: AsyncSession, site_id: str) -> Optional[SiteResponse]:
        key = _parse_id(site_id)
        if key is None:
            return None
        try:
            site = await db.get(Site, key)
        except Exception as e:
            raise _wrap(e, "Unable to fetch site", site_id=site_id)
        return _to_response(site) if site is not None else None

    async def update_site_by_id(
        self, db: AsyncSession, data: SiteUpdate, site_id: str
    ) -> SiteUpdateResult:
        """
        Apply the fields present in `data` to the site.

        No existence check is reported as an error: an unknown id yields
        matchedCount=0. modifiedCount is 1 only if a value actually changed.
        """
        key = _parse_id(site_id)
        if key is None:
            return SiteUpdateResult(matched_count=0, modified_count=0)

        changes: Dict[str, Any] = data.model_dump(exclude_unset=True)
        try:
            site = await db.get(Site, key)
            if site is None:
                return SiteUpdateResult(matched_count=0, modified_count=0)

            modified = False
            for field, value in changes.items():
                if getattr(site, field) != value:
                    setattr(site, field, value)
                    modified = True
            if modified:
                await db.commit()
                logger.info("Site updated: %s (%s)", key, ", ".join(sorted(changes)))

            return SiteUpdateResult(matched_count=1, modified_count=1 if modified else 0)
        except Exception as e:
            raise _wrap(e, "Unable to update site", site_id=site_id)

    async def delete_site_by_id(self, db: AsyncSession, site_id: str) -> int:
        """Delete the site; returns the number of rows removed (0 or 1)."""
        key = _parse_id(site_id)
        if key is None:
            return 0
        try:
            site = await db.get(Site, key)
            if site is None:
                return 0
            await db.delete(site)
            await db.commit()
            logger.info("Site deleted: %s", key)
            return 1
        except Exception as e:
            raise _wrap(e, "Unable to delete site", site_id=site_id)


# ── Singleton Instance ────────────────────────────────────────────────────
site_service = SiteService()
