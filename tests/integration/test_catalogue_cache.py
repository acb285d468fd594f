"""Integration tests for the read-through cache in front of the catalogue."""

import pytest

from dreamland.api.dependencies import get_cache
from dreamland.services.cache import CacheKeys, CacheService
from dreamland.services.tour_service import DEFAULT_PAGE_SIZE


@pytest.mark.integration
class TestCatalogueCache:
    """Integration tests for catalogue caching and invalidation."""

    @pytest.mark.asyncio
    async def test_listing_is_cached(self, client, tour, fake_redis) -> None:
        """Test that a listing read populates Redis with a TTL."""
        await client.get("/api/tours/list")

        key = CacheKeys.tours_list(1, DEFAULT_PAGE_SIZE)
        assert await fake_redis.exists(key) == 1
        assert await fake_redis.ttl(key) > 0

    @pytest.mark.asyncio
    async def test_cached_listing_served_from_cache(self, client, tour, fake_redis) -> None:
        """Test that a second read comes from the cache."""
        await client.get("/api/tours/featured")
        await fake_redis.set(CacheKeys.tours_featured(), '[{"title": "From cache"}]')

        response = await client.get("/api/tours/featured")

        assert response.json()["tours"] == [{"title": "From cache"}]

    @pytest.mark.asyncio
    async def test_admin_write_invalidates(self, client, admin_client, tour, fake_redis) -> None:
        """Test that editing a tour clears the listing and detail keys."""
        await client.get("/api/tours/list")
        await client.get("/api/tours/slug/serengeti-explorer")
        await client.get("/api/categories")

        await admin_client.put(f"/api/admin/tours/{tour.id}", json={"title": "Serengeti Migration"})

        assert await fake_redis.exists(CacheKeys.tours_list(1, DEFAULT_PAGE_SIZE)) == 0
        assert await fake_redis.exists(CacheKeys.tour_by_slug("serengeti-explorer")) == 0
        listing = await client.get("/api/tours/list")
        assert listing.json()["tours"][0]["title"] == "Serengeti Migration"

    @pytest.mark.asyncio
    async def test_catalogue_works_without_redis(self, client, tour, app_overrides) -> None:
        """Test that a missing Redis only disables caching."""
        app_overrides.dependency_overrides[get_cache] = lambda: CacheService(None)

        response = await client.get("/api/tours/list")

        assert response.status_code == 200
        assert response.json()["totalCount"] == 1
