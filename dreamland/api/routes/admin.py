"""Admin authentication and tour catalogue management."""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from dreamland.api.dependencies import get_tour_service
from dreamland.api.middleware.auth import (
    clear_session_cookie,
    require_admin,
    require_admin_enabled,
    set_session_cookie,
)
from dreamland.api.middleware.rate_limiter import RateLimitTier, rate_limit
from dreamland.auth.admin_session import get_session_signer, verify_admin_credentials
from dreamland.models.tour import (
    CategoryCreate,
    ItineraryDay,
    PriceTier,
    TourCreate,
    TourDateCreate,
    TourUpdate,
)
from dreamland.services.tour_service import TourService

router = APIRouter(prefix="/api/admin", tags=["admin"])


class LoginRequest(BaseModel):
    email: str
    password: str


class TourPayload(TourCreate):
    """Tour with its itinerary and price tiers."""

    itinerary: list[ItineraryDay] = Field(default_factory=list)
    price_tiers: list[PriceTier] = Field(default_factory=list)


class TourUpdatePayload(TourUpdate):
    """Partial tour update; itinerary and price tiers are replaced when present."""

    itinerary: list[ItineraryDay] | None = None
    price_tiers: list[PriceTier] | None = None


# ========== Authentication ==========


@router.post(
    "/login",
    summary="Admin login",
    dependencies=[
        Depends(require_admin_enabled),
        Depends(rate_limit("admin:login", RateLimitTier.LOGIN)),
    ],
)
async def login(request: LoginRequest, response: Response) -> dict:
    """Exchange admin credentials for a signed session cookie.

    Raises:
        HTTPException: 401 for wrong credentials
    """
    email = request.email.strip().lower()
    if not verify_admin_credentials(email, request.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    set_session_cookie(response, get_session_signer().sign(email))
    return {"ok": True}


@router.post("/logout", summary="Admin logout", dependencies=[Depends(require_admin_enabled)])
async def logout(response: Response) -> dict:
    clear_session_cookie(response)
    return {"ok": True}


# ========== Tours ==========


@router.get("/tours", dependencies=[Depends(require_admin)])
async def list_tours(service: TourService = Depends(get_tour_service)) -> dict:
    return {"tours": await service.admin_list_tours()}


@router.get("/tours/{tour_id}", dependencies=[Depends(require_admin)])
async def get_tour(tour_id: str, service: TourService = Depends(get_tour_service)) -> dict:
    return await service.admin_get_tour(tour_id)


@router.post(
    "/tours",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_tour(payload: TourPayload, service: TourService = Depends(get_tour_service)) -> dict:
    data = TourCreate(**payload.model_dump(exclude={"itinerary", "price_tiers"}))
    tour = await service.create_tour(data, payload.itinerary, payload.price_tiers)
    return {"ok": True, "data": tour}


@router.put("/tours/{tour_id}", dependencies=[Depends(require_admin)])
async def update_tour(
    tour_id: str,
    payload: TourUpdatePayload,
    service: TourService = Depends(get_tour_service),
) -> dict:
    data = TourUpdate(
        **payload.model_dump(exclude_unset=True, exclude={"itinerary", "price_tiers"})
    )
    tour = await service.update_tour(tour_id, data, payload.itinerary, payload.price_tiers)
    return {"ok": True, "data": tour}


@router.delete("/tours/{tour_id}", dependencies=[Depends(require_admin)])
async def delete_tour(tour_id: str, service: TourService = Depends(get_tour_service)) -> dict:
    await service.delete_tour(tour_id)
    return {"ok": True}


@router.post(
    "/tours/{tour_id}/dates",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def add_tour_date(
    tour_id: str,
    payload: TourDateCreate,
    service: TourService = Depends(get_tour_service),
) -> dict:
    return {"ok": True, "data": await service.add_tour_date(tour_id, payload)}


@router.delete("/tours/{tour_id}/dates/{date_id}", dependencies=[Depends(require_admin)])
async def delete_tour_date(
    tour_id: str,
    date_id: str,
    service: TourService = Depends(get_tour_service),
) -> dict:
    await service.delete_tour_date(tour_id, date_id)
    return {"ok": True}


# ========== Categories ==========


@router.get("/categories", dependencies=[Depends(require_admin)])
async def list_categories(service: TourService = Depends(get_tour_service)) -> dict:
    return {"categories": await service.admin_list_categories()}


@router.post(
    "/categories",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_category(
    payload: CategoryCreate, service: TourService = Depends(get_tour_service)
) -> dict:
    return {"ok": True, "data": await service.create_category(payload)}


@router.put("/categories/{category_id}", dependencies=[Depends(require_admin)])
async def update_category(
    category_id: str,
    payload: CategoryCreate,
    service: TourService = Depends(get_tour_service),
) -> dict:
    return {"ok": True, "data": await service.update_category(category_id, payload)}


@router.delete("/categories/{category_id}", dependencies=[Depends(require_admin)])
async def delete_category(
    category_id: str, service: TourService = Depends(get_tour_service)
) -> dict:
    await service.delete_category(category_id)
    return {"ok": True}
