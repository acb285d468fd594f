"""Tour catalogue queries and admin mutations."""

import math

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dreamland.models.booking import BookingDB, RequestInfoDB
from dreamland.models.tour import (
    Category,
    CategoryCreate,
    ItineraryDay,
    ItineraryDayDB,
    PriceTier,
    PriceTierDB,
    TourCategoryDB,
    TourCreate,
    TourDateCreate,
    TourDateDB,
    TourDB,
    TourDetail,
    TourListItem,
    TourUpdate,
)
from dreamland.services.cache import CacheKeys, CacheService
from dreamland.services.errors import BadRequestError, ConflictError, NotFoundError
from dreamland.services.id_encoder import encode_id

logger = structlog.get_logger(__name__)

LIST_TTL = 300
DETAIL_TTL = 600
FEATURED_TTL = 600
CATEGORIES_TTL = 3600

DEFAULT_PAGE_SIZE = 9
MAX_PAGE_SIZE = 24
FEATURED_LIMIT = 6


def clamp_pagination(page: int | None, page_size: int | None) -> tuple[int, int]:
    """Force page >= 1 and page size into 1..24."""
    page = max(1, page or 1)
    page_size = min(MAX_PAGE_SIZE, max(1, page_size or DEFAULT_PAGE_SIZE))
    return page, page_size


def public_tour(item: TourListItem) -> dict:
    """Serialise a tour for public consumers, swapping the raw id for an opaque one."""
    data = item.model_dump(mode="json")
    data["encodedId"] = encode_id(data.pop("id"))
    return data


class TourService:
    """Reads go through the cache; writes invalidate it after committing."""

    def __init__(self, db_session: AsyncSession, cache: CacheService):
        self.db_session = db_session
        self.cache = cache

    # ========== Public reads ==========

    async def list_tours(
        self, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE, category_id: str | None = None
    ) -> dict:
        """One page of active tours, featured first, then newest.

        Returns:
            Dict with ``tours``, ``totalCount``, ``page``, ``pageSize``, ``totalPages``
        """
        page, page_size = clamp_pagination(page, page_size)

        async def fetch() -> dict:
            filters = [TourDB.is_active.is_(True)]
            if category_id:
                filters.append(TourDB.category_id == category_id)

            total = await self.db_session.scalar(
                select(func.count()).select_from(TourDB).where(*filters)
            )
            result = await self.db_session.execute(
                select(TourDB)
                .options(selectinload(TourDB.category))
                .where(*filters)
                .order_by(TourDB.is_featured.desc(), TourDB.created_at.desc(), TourDB.id)
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            tours = result.scalars().all()
            return {
                "tours": [public_tour(TourListItem.model_validate(tour)) for tour in tours],
                "totalCount": total or 0,
                "page": page,
                "pageSize": page_size,
                "totalPages": math.ceil((total or 0) / page_size),
            }

        return await self.cache.get_or_set(
            CacheKeys.tours_list(page, page_size, category_id), fetch, LIST_TTL
        )

    async def featured_tours(self, limit: int = FEATURED_LIMIT) -> list[dict]:
        async def fetch() -> list[dict]:
            result = await self.db_session.execute(
                select(TourDB)
                .options(selectinload(TourDB.category))
                .where(TourDB.is_active.is_(True), TourDB.is_featured.is_(True))
                .order_by(TourDB.created_at.desc())
                .limit(limit)
            )
            return [public_tour(TourListItem.model_validate(tour)) for tour in result.scalars()]

        return await self.cache.get_or_set(CacheKeys.tours_featured(), fetch, FEATURED_TTL)

    async def tours_by_category(self, category_id: str) -> list[dict]:
        async def fetch() -> list[dict]:
            result = await self.db_session.execute(
                select(TourDB)
                .options(selectinload(TourDB.category))
                .where(TourDB.is_active.is_(True), TourDB.category_id == category_id)
                .order_by(TourDB.is_featured.desc(), TourDB.created_at.desc())
            )
            return [public_tour(TourListItem.model_validate(tour)) for tour in result.scalars()]

        return await self.cache.get_or_set(
            CacheKeys.tours_by_category(category_id), fetch, LIST_TTL
        )

    async def list_categories(self) -> list[dict]:
        """Active categories with their active tour counts."""

        async def fetch() -> list[dict]:
            counts = (
                select(TourDB.category_id, func.count(TourDB.id).label("tour_count"))
                .where(TourDB.is_active.is_(True))
                .group_by(TourDB.category_id)
                .subquery()
            )
            result = await self.db_session.execute(
                select(TourCategoryDB, func.coalesce(counts.c.tour_count, 0))
                .outerjoin(counts, counts.c.category_id == TourCategoryDB.id)
                .where(TourCategoryDB.is_active.is_(True))
                .order_by(TourCategoryDB.order, TourCategoryDB.name)
            )
            categories = []
            for category, tour_count in result.all():
                item = Category.model_validate(category)
                item.tour_count = tour_count
                categories.append(item.model_dump(mode="json"))
            return categories

        return await self.cache.get_or_set(CacheKeys.categories(), fetch, CATEGORIES_TTL)

    async def _load_tour(self, *filters, active_only: bool = True) -> TourDB | None:
        query = (
            select(TourDB)
            .options(
                selectinload(TourDB.category),
                selectinload(TourDB.dates),
                selectinload(TourDB.itinerary),
                selectinload(TourDB.price_tiers),
            )
            .where(*filters)
            .execution_options(populate_existing=True)
        )
        if active_only:
            query = query.where(TourDB.is_active.is_(True))
        result = await self.db_session.execute(query)
        return result.scalar_one_or_none()

    async def get_tour(self, tour_id: str) -> dict | None:
        """Public tour detail by database id, or None if missing or inactive."""

        async def fetch() -> dict | None:
            tour = await self._load_tour(TourDB.id == tour_id)
            return public_tour(TourDetail.model_validate(tour)) if tour else None

        return await self.cache.get_or_set(CacheKeys.tour(tour_id), fetch, DETAIL_TTL)

    async def get_tour_by_slug(self, slug: str) -> dict | None:
        async def fetch() -> dict | None:
            tour = await self._load_tour(TourDB.slug == slug)
            return public_tour(TourDetail.model_validate(tour)) if tour else None

        return await self.cache.get_or_set(CacheKeys.tour_by_slug(slug), fetch, DETAIL_TTL)

    # ========== Admin ==========

    async def admin_list_tours(self) -> list[dict]:
        result = await self.db_session.execute(
            select(TourDB)
            .options(selectinload(TourDB.category))
            .order_by(TourDB.created_at.desc())
        )
        return [
            {**TourListItem.model_validate(tour).model_dump(mode="json"), "is_active": tour.is_active}
            for tour in result.scalars()
        ]

    async def admin_get_tour(self, tour_id: str) -> dict:
        tour = await self._load_tour(TourDB.id == tour_id, active_only=False)
        if tour is None:
            raise NotFoundError("Tour not found")
        return TourDetail.model_validate(tour).model_dump(mode="json")

    async def _ensure_slug_free(self, slug: str, exclude_id: str | None = None) -> None:
        query = select(TourDB.id).where(TourDB.slug == slug)
        if exclude_id:
            query = query.where(TourDB.id != exclude_id)
        if await self.db_session.scalar(query) is not None:
            raise ConflictError(f"A tour with slug '{slug}' already exists")

    async def _ensure_category(self, category_id: str | None) -> None:
        if category_id and await self.db_session.get(TourCategoryDB, category_id) is None:
            raise BadRequestError("Unknown category", details={"category_id": category_id})

    async def create_tour(
        self,
        data: TourCreate,
        itinerary: list[ItineraryDay] | None = None,
        price_tiers: list[PriceTier] | None = None,
    ) -> dict:
        await self._ensure_slug_free(data.slug)
        await self._ensure_category(data.category_id)

        tour = TourDB(**data.model_dump())
        for day in itinerary or []:
            tour.itinerary.append(ItineraryDayDB(**day.model_dump()))
        for tier in price_tiers or []:
            tour.price_tiers.append(PriceTierDB(**tier.model_dump()))
        self.db_session.add(tour)
        await self.db_session.commit()

        await self.cache.invalidate_tour_caches(tour.id, tour.slug, tour.category_id)
        logger.info("tour_created", tour_id=tour.id, slug=tour.slug)
        return await self.admin_get_tour(tour.id)

    async def update_tour(
        self,
        tour_id: str,
        data: TourUpdate,
        itinerary: list[ItineraryDay] | None = None,
        price_tiers: list[PriceTier] | None = None,
    ) -> dict:
        """Apply a partial update; itinerary and price tiers are replaced when given."""
        tour = await self._load_tour(TourDB.id == tour_id, active_only=False)
        if tour is None:
            raise NotFoundError("Tour not found")

        changes = data.model_dump(exclude_unset=True)
        if "slug" in changes and changes["slug"] != tour.slug:
            await self._ensure_slug_free(changes["slug"], exclude_id=tour_id)
        if "category_id" in changes:
            await self._ensure_category(changes["category_id"])

        old_slug, old_category = tour.slug, tour.category_id
        for name, value in changes.items():
            setattr(tour, name, value)
        if itinerary is not None:
            tour.itinerary = [ItineraryDayDB(**day.model_dump()) for day in itinerary]
        if price_tiers is not None:
            tour.price_tiers = [PriceTierDB(**tier.model_dump()) for tier in price_tiers]
        await self.db_session.commit()

        await self.cache.invalidate_tour_caches(tour_id, old_slug, old_category)
        if tour.slug != old_slug or tour.category_id != old_category:
            await self.cache.invalidate_tour_caches(tour_id, tour.slug, tour.category_id)
        logger.info("tour_updated", tour_id=tour_id, fields=sorted(changes))
        return await self.admin_get_tour(tour_id)

    async def delete_tour(self, tour_id: str) -> None:
        """Delete a tour, or refuse with 409 if bookings or booking requests reference it."""
        # Children are loaded up front so the delete cascade needs no lazy loads
        tour = await self._load_tour(TourDB.id == tour_id, active_only=False)
        if tour is None:
            raise NotFoundError("Tour not found")

        references = {
            "bookings": await self.db_session.scalar(
                select(func.count()).select_from(BookingDB).where(BookingDB.tour_id == tour_id)
            ),
            "requests": await self.db_session.scalar(
                select(func.count()).select_from(RequestInfoDB).where(RequestInfoDB.tour_id == tour_id)
            ),
        }
        if any(references.values()):
            raise ConflictError(
                "Tour has bookings; deactivate it instead",
                details={name: count for name, count in references.items() if count},
            )

        slug, category_id = tour.slug, tour.category_id
        await self.db_session.delete(tour)
        await self.db_session.commit()

        await self.cache.invalidate_tour_caches(tour_id, slug, category_id)
        logger.info("tour_deleted", tour_id=tour_id)

    async def add_tour_date(self, tour_id: str, data: TourDateCreate) -> dict:
        tour = await self.db_session.get(TourDB, tour_id)
        if tour is None:
            raise NotFoundError("Tour not found")
        if data.end_date < data.start_date:
            raise BadRequestError("end_date must not be before start_date")

        tour_date = TourDateDB(tour_id=tour_id, **data.model_dump())
        self.db_session.add(tour_date)
        await self.db_session.commit()

        await self.cache.invalidate_tour_caches(tour_id, tour.slug, tour.category_id)
        return {
            "id": tour_date.id,
            "tour_id": tour_id,
            "start_date": tour_date.start_date.isoformat(),
            "end_date": tour_date.end_date.isoformat(),
            "capacity": tour_date.capacity,
        }

    async def delete_tour_date(self, tour_id: str, date_id: str) -> None:
        """Remove a departure.

        Raises:
            NotFoundError: If the date does not belong to the tour
            ConflictError: If any booking references the date
        """
        tour_date = await self.db_session.get(TourDateDB, date_id)
        if tour_date is None or tour_date.tour_id != tour_id:
            raise NotFoundError("Tour date not found")

        booking_count = await self.db_session.scalar(
            select(func.count()).select_from(BookingDB).where(BookingDB.tour_date_id == date_id)
        )
        if booking_count:
            raise ConflictError(
                "Cannot delete a tour date that has bookings",
                details={"bookings": booking_count},
            )

        tour = await self.db_session.get(TourDB, tour_id)
        await self.db_session.delete(tour_date)
        await self.db_session.commit()

        await self.cache.invalidate_tour_caches(tour_id, tour.slug if tour else None)

    # ========== Categories ==========

    async def admin_list_categories(self) -> list[dict]:
        result = await self.db_session.execute(
            select(TourCategoryDB).order_by(TourCategoryDB.order, TourCategoryDB.name)
        )
        return [
            {**Category.model_validate(category).model_dump(mode="json"), "is_active": category.is_active}
            for category in result.scalars()
        ]

    async def _ensure_category_slug_free(self, slug: str, exclude_id: str | None = None) -> None:
        query = select(TourCategoryDB.id).where(TourCategoryDB.slug == slug)
        if exclude_id:
            query = query.where(TourCategoryDB.id != exclude_id)
        if await self.db_session.scalar(query) is not None:
            raise ConflictError(f"A category with slug '{slug}' already exists")

    async def create_category(self, data: CategoryCreate) -> dict:
        await self._ensure_category_slug_free(data.slug)
        category = TourCategoryDB(**data.model_dump())
        self.db_session.add(category)
        await self.db_session.commit()
        await self.cache.invalidate(CacheKeys.categories())
        return {"id": category.id, **data.model_dump()}

    async def update_category(self, category_id: str, data: CategoryCreate) -> dict:
        category = await self.db_session.get(TourCategoryDB, category_id)
        if category is None:
            raise NotFoundError("Category not found")
        if data.slug != category.slug:
            await self._ensure_category_slug_free(data.slug, exclude_id=category_id)

        for name, value in data.model_dump().items():
            setattr(category, name, value)
        await self.db_session.commit()

        await self.cache.invalidate(
            CacheKeys.categories(), CacheKeys.tours_by_category(category_id)
        )
        await self.cache.invalidate_pattern("tours:list:*")
        await self.cache.invalidate_pattern("tour:*")
        return {"id": category_id, **data.model_dump()}

    async def delete_category(self, category_id: str) -> None:
        category = await self.db_session.get(TourCategoryDB, category_id)
        if category is None:
            raise NotFoundError("Category not found")

        tour_count = await self.db_session.scalar(
            select(func.count()).select_from(TourDB).where(TourDB.category_id == category_id)
        )
        if tour_count:
            raise ConflictError(
                "Category still has tours", details={"tours": tour_count}
            )

        await self.db_session.delete(category)
        await self.db_session.commit()
        await self.cache.invalidate(
            CacheKeys.categories(), CacheKeys.tours_by_category(category_id)
        )
