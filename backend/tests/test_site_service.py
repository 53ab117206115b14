"""
Sites API — Site Service Tests
================================

What:  Tests for SiteService against a real SQLite database, plus error
       wrapping with a mock session.

What we test:
    ✅ Create assigns an id and creation time
    ✅ Pagination is 1-based, ordered, non-overlapping
    ✅ Each filter (substring, equality, case-insensitivity, wildcard escaping)
    ✅ Update applies only present fields; unknown ids match nothing
    ✅ Delete removes the row; unknown and malformed ids are no-ops
    ✅ Store failures (including commit) become DataAccessError
    ✅ Writes are committed before the service returns
"""

import uuid

import pytest
from unittest.mock import AsyncMock

from app.database import async_session_factory
from app.exceptions import DataAccessError
from app.schemas.site import SiteCreate, SiteUpdate
from app.services.site_service import PAGE_RANGE_ERROR, SiteService


SEED = [
    {"name": "Fort York", "description": "Battle of York, 1813", "year": 1793,
     "town": "Toronto", "provinceOrTerritoryCode": "ON"},
    {"name": "Fort Henry", "description": "Limestone fortress", "year": 1832,
     "town": "Kingston", "provinceOrTerritoryCode": "ON"},
    {"name": "Citadel Hill", "description": "Star-shaped fort", "year": 1856,
     "town": "Halifax", "provinceOrTerritoryCode": "NS"},
    {"name": "Signal Hill", "description": "100% wireless history", "year": 1901,
     "town": "St. John's", "provinceOrTerritoryCode": "NL"},
    {"name": "Batoche", "description": "Métis village", "year": 1885,
     "town": "Batoche", "provinceOrTerritoryCode": "SK"},
]


@pytest.fixture
def service():
    return SiteService()


async def seed(service, db):
    created = []
    for record in SEED:
        created.append(await service.add_new_site(db, SiteCreate(**record)))
    return created


class TestAddNewSite:

    @pytest.mark.asyncio
    async def test_assigns_identifier(self, service, db_session):
        site = await service.add_new_site(
            db_session, SiteCreate(name="Fort Langley", provinceOrTerritoryCode="BC")
        )

        assert uuid.UUID(site.id)
        assert site.name == "Fort Langley"
        assert site.province_or_territory_code == "BC"
        assert site.created_at is not None

    @pytest.mark.asyncio
    async def test_created_site_is_readable(self, service, db_session):
        site = await service.add_new_site(db_session, SiteCreate(name="Louisbourg", year=1713))

        fetched = await service.get_site_by_id(db_session, site.id)

        assert fetched is not None
        assert fetched.id == site.id
        assert fetched.year == 1713


class TestGetAllSites:

    @pytest.mark.asyncio
    async def test_pages_do_not_overlap(self, service, db_session):
        await seed(service, db_session)

        first = await service.get_all_sites(db_session, 1, 2)
        second = await service.get_all_sites(db_session, 2, 2)
        third = await service.get_all_sites(db_session, 3, 2)

        assert len(first) == 2 and len(second) == 2 and len(third) == 1
        ids = [s.id for s in first + second + third]
        assert len(set(ids)) == 5

    @pytest.mark.asyncio
    async def test_page_past_end_is_empty(self, service, db_session):
        await seed(service, db_session)

        assert await service.get_all_sites(db_session, 10, 5) == []

    @pytest.mark.asyncio
    async def test_name_filter_is_case_insensitive_substring(self, service, db_session):
        await seed(service, db_session)

        sites = await service.get_all_sites(db_session, 1, 10, name="FORT")

        assert sorted(s.name for s in sites) == ["Fort Henry", "Fort York"]

    @pytest.mark.asyncio
    async def test_description_filter(self, service, db_session):
        await seed(service, db_session)

        sites = await service.get_all_sites(db_session, 1, 10, description="fort")

        assert sorted(s.name for s in sites) == ["Citadel Hill", "Fort Henry"]

    @pytest.mark.asyncio
    async def test_year_filter_is_exact(self, service, db_session):
        await seed(service, db_session)

        sites = await service.get_all_sites(db_session, 1, 10, year=1856)

        assert [s.name for s in sites] == ["Citadel Hill"]

    @pytest.mark.asyncio
    async def test_town_filter(self, service, db_session):
        await seed(service, db_session)

        sites = await service.get_all_sites(db_session, 1, 10, town="kings")

        assert [s.name for s in sites] == ["Fort Henry"]

    @pytest.mark.asyncio
    async def test_province_filter_is_exact_and_case_insensitive(self, service, db_session):
        await seed(service, db_session)

        sites = await service.get_all_sites(db_session, 1, 10, province_or_territory_code="on")
        partial = await service.get_all_sites(db_session, 1, 10, province_or_territory_code="O")

        assert sorted(s.name for s in sites) == ["Fort Henry", "Fort York"]
        assert partial == []

    @pytest.mark.asyncio
    async def test_like_wildcards_are_literal(self, service, db_session):
        await seed(service, db_session)

        percent = await service.get_all_sites(db_session, 1, 10, description="100%")
        underscore = await service.get_all_sites(db_session, 1, 10, name="_")

        assert [s.name for s in percent] == ["Signal Hill"]
        assert underscore == []

    @pytest.mark.asyncio
    async def test_filters_combine(self, service, db_session):
        await seed(service, db_session)

        sites = await service.get_all_sites(
            db_session, 1, 10, name="fort", province_or_territory_code="ON", year=1832
        )

        assert [s.name for s in sites] == ["Fort Henry"]

    @pytest.mark.asyncio
    async def test_count_matches_filters(self, service, db_session):
        await seed(service, db_session)

        assert await service.count_sites(db_session) == 5
        assert await service.count_sites(db_session, province_or_territory_code="ON") == 2
        assert await service.count_sites(db_session, name="zzz") == 0


class TestGetSiteById:

    @pytest.mark.asyncio
    async def test_unknown_id_returns_none(self, service, db_session):
        assert await service.get_site_by_id(db_session, str(uuid.uuid4())) is None

    @pytest.mark.asyncio
    async def test_malformed_id_returns_none(self, service, db_session):
        assert await service.get_site_by_id(db_session, "not-a-uuid") is None


class TestUpdateSiteById:

    @pytest.mark.asyncio
    async def test_applies_only_present_fields(self, service, db_session):
        site = await service.add_new_site(
            db_session, SiteCreate(name="Fort Henry", town="Kingston", year=1832)
        )

        result = await service.update_site_by_id(db_session, SiteUpdate(year=1836), site.id)
        updated = await service.get_site_by_id(db_session, site.id)

        assert result.matched_count == 1
        assert result.modified_count == 1
        assert updated.year == 1836
        assert updated.town == "Kingston"

    @pytest.mark.asyncio
    async def test_unchanged_values_report_no_modification(self, service, db_session):
        site = await service.add_new_site(db_session, SiteCreate(name="Batoche"))

        result = await service.update_site_by_id(db_session, SiteUpdate(name="Batoche"), site.id)

        assert result.matched_count == 1
        assert result.modified_count == 0

    @pytest.mark.asyncio
    async def test_explicit_null_clears_optional_field(self, service, db_session):
        site = await service.add_new_site(db_session, SiteCreate(name="Batoche", town="Batoche"))

        await service.update_site_by_id(db_session, SiteUpdate(town=None), site.id)
        updated = await service.get_site_by_id(db_session, site.id)

        assert updated.town is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("site_id", [str(uuid.uuid4()), "not-a-uuid"])
    async def test_unknown_id_matches_nothing(self, service, db_session, site_id):
        result = await service.update_site_by_id(db_session, SiteUpdate(year=2000), site_id)

        assert result.acknowledged is True
        assert result.matched_count == 0
        assert result.modified_count == 0


class TestDeleteSiteById:

    @pytest.mark.asyncio
    async def test_deletes_existing(self, service, db_session):
        site = await service.add_new_site(db_session, SiteCreate(name="Fort York"))

        assert await service.delete_site_by_id(db_session, site.id) == 1
        assert await service.get_site_by_id(db_session, site.id) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("site_id", [str(uuid.uuid4()), "not-a-uuid"])
    async def test_unknown_id_is_noop(self, service, db_session, site_id):
        assert await service.delete_site_by_id(db_session, site_id) == 0


class TestStoreErrors:
    """Store failures are wrapped with the underlying message or a fallback."""

    @pytest.mark.asyncio
    async def test_list_error_carries_message(self, service, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=RuntimeError("connection reset"))

        with pytest.raises(DataAccessError) as exc_info:
            await service.get_all_sites(mock_db_session, 1, 10)

        assert exc_info.value.message == "connection reset"
        assert exc_info.value.context["error_type"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_empty_error_uses_fallback(self, service, mock_db_session):
        mock_db_session.flush = AsyncMock(side_effect=RuntimeError())

        with pytest.raises(DataAccessError, match="Unable to add site"):
            await service.add_new_site(mock_db_session, SiteCreate(name="Fort"))

    @pytest.mark.asyncio
    async def test_get_error_wrapped(self, service, mock_db_session):
        mock_db_session.get = AsyncMock(side_effect=RuntimeError())

        with pytest.raises(DataAccessError, match="Unable to fetch site"):
            await service.get_site_by_id(mock_db_session, str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_delete_error_wrapped(self, service, mock_db_session):
        mock_db_session.get = AsyncMock(side_effect=RuntimeError())

        with pytest.raises(DataAccessError, match="Unable to delete site"):
            await service.delete_site_by_id(mock_db_session, str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_commit_error_wrapped(self, service, mock_db_session):
        mock_db_session.commit = AsyncMock(side_effect=RuntimeError("disk full"))

        with pytest.raises(DataAccessError, match="disk full"):
            await service.add_new_site(mock_db_session, SiteCreate(name="Fort"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page,per_page", [(0, 10), (1, 0), (-1, 5)])
    async def test_page_below_one_is_rejected(self, service, mock_db_session, page, per_page):
        with pytest.raises(DataAccessError) as exc_info:
            await service.get_all_sites(mock_db_session, page, per_page)

        assert exc_info.value.message == PAGE_RANGE_ERROR
        mock_db_session.execute.assert_not_awaited()


class TestWritesAreCommitted:
    """Writes are durable once the service returns, before any response."""

    @pytest.mark.asyncio
    async def test_created_site_visible_to_other_sessions(self, service, db_session):
        site = await service.add_new_site(db_session, SiteCreate(name="Fort Langley"))

        async with async_session_factory() as other:
            assert await service.get_site_by_id(other, site.id) is not None

    @pytest.mark.asyncio
    async def test_update_visible_to_other_sessions(self, service, db_session):
        site = await service.add_new_site(db_session, SiteCreate(name="Fort Langley"))
        await service.update_site_by_id(db_session, SiteUpdate(year=1827), site.id)

        async with async_session_factory() as other:
            assert (await service.get_site_by_id(other, site.id)).year == 1827

    @pytest.mark.asyncio
    async def test_delete_visible_to_other_sessions(self, service, db_session):
        site = await service.add_new_site(db_session, SiteCreate(name="Fort Langley"))
        await service.delete_site_by_id(db_session, site.id)

        async with async_session_factory() as other:
            assert await service.get_site_by_id(other, site.id) is None
