"""Public tour catalogue endpoints.

Listings are served through the read-through cache and rate limited per
client. Tours are addressed publicly by opaque encoded ids only.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from dreamland.api.dependencies import get_tour_service
from dreamland.api.middleware.rate_limiter import RateLimitTier, rate_limit
from dreamland.services.id_encoder import validate_encoded_id
from dreamland.services.tour_service import DEFAULT_PAGE_SIZE, TourService

router = APIRouter(prefix="/api", tags=["tours"])

LISTING_CACHE_CONTROL = "public, s-maxage=3600, stale-while-revalidate=86400"


@router.get(
    "/tours/list",
    summary="List tours",
    dependencies=[Depends(rate_limit("tours:list", RateLimitTier.PUBLIC))],
)
async def list_tours(
    response: Response,
    page: int = Query(1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
    category_id: str | None = Query(None, alias="categoryId"),
    service: TourService = Depends(get_tour_service),
) -> dict:
    """Paginated active tours, featured first.

    Out-of-range ``page``/``pageSize`` values are clamped rather than rejected.
    """
    response.headers["Cache-Control"] = LISTING_CACHE_CONTROL
    return await service.list_tours(page, page_size, category_id or None)


@router.get(
    "/tours/featured",
    summary="Featured tours",
    dependencies=[Depends(rate_limit("tours:featured", RateLimitTier.PUBLIC))],
)
async def featured_tours(
    response: Response,
    service: TourService = Depends(get_tour_service),
) -> dict:
    response.headers["Cache-Control"] = LISTING_CACHE_CONTROL
    return {"tours": await service.featured_tours()}


@router.get(
    "/tours/category/{category_id}",
    summary="Tours in a category",
    dependencies=[Depends(rate_limit("tours:category", RateLimitTier.PUBLIC))],
)
async def tours_by_category(
    category_id: str,
    service: TourService = Depends(get_tour_service),
) -> dict:
    return {"tours": await service.tours_by_category(category_id)}


@router.get(
    "/tours/slug/{slug}",
    summary="Tour by slug",
    dependencies=[Depends(rate_limit("tours:detail", RateLimitTier.PUBLIC))],
)
async def tour_by_slug(
    slug: str,
    service: TourService = Depends(get_tour_service),
) -> dict:
    tour = await service.get_tour_by_slug(slug)
    if tour is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tour not found")
    return tour


@router.get(
    "/tours/{encoded_id}",
    summary="Tour detail",
    dependencies=[Depends(rate_limit("tours:detail", RateLimitTier.PUBLIC))],
)
async def tour_detail(
    encoded_id: str,
    service: TourService = Depends(get_tour_service),
) -> dict:
    """Tour with dates, itinerary, price tiers and category.

    Raises:
        HTTPException: 400 for a malformed or tampered id, 404 if no such active tour
    """
    valid, tour_id, error = validate_encoded_id(encoded_id)
    if not valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    tour = await service.get_tour(tour_id)
    if tour is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tour not found")
    return tour


@router.get(
    "/categories",
    summary="Tour categories",
    dependencies=[Depends(rate_limit("categories", RateLimitTier.PUBLIC))],
)
async def list_categories(
    response: Response,
    service: TourService = Depends(get_tour_service),
) -> dict:
    response.headers["Cache-Control"] = LISTING_CACHE_CONTROL
    return {"categories": await service.list_categories()}
