"""Unit tests for the site settings singleton."""

import pytest
from sqlalchemy import func, select

from dreamland.models.content import SiteSettingsDB
from dreamland.services.cache import CacheService
from dreamland.services.content_service import SETTINGS_ID, ContentService


async def count_settings(database) -> int:
    async with database.get_async_session() as session:
        return await session.scalar(select(func.count()).select_from(SiteSettingsDB))


@pytest.mark.unit
class TestSiteSettings:
    """Unit tests for get-or-create of site settings."""

    @pytest.mark.asyncio
    async def test_defaults_created_once(self, database) -> None:
        """Test that repeated first reads share one settings row."""
        for _ in range(2):
            async with database.get_async_session() as session:
                settings = await ContentService(session, CacheService(None)).get_settings()

        assert settings["site_name"] == "Dreamland Travel"
        assert await count_settings(database) == 1

    @pytest.mark.asyncio
    async def test_concurrent_creation_reuses_row(self, database, monkeypatch) -> None:
        """Test that losing the creation race returns the row the other reader stored."""
        async with database.get_async_session() as other:
            other.add(SiteSettingsDB(id=SETTINGS_ID, site_name="Already There"))

        async with database.get_async_session() as session:
            lookup = session.get
            calls = []

            # The first lookup misses, as if it ran before the other insert committed
            async def first_lookup_misses(model, key, **kwargs):
                calls.append(key)
                if len(calls) == 1:
                    return None
                return await lookup(model, key, **kwargs)

            monkeypatch.setattr(session, "get", first_lookup_misses)
            settings = await ContentService(session, CacheService(None)).get_settings()

        assert settings["site_name"] == "Already There"
        assert await count_settings(database) == 1
