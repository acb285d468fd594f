"""Public content endpoints: blog, FAQ, pages, team, testimonials, settings, i18n."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from dreamland.api.dependencies import get_content_service
from dreamland.api.middleware.rate_limiter import RateLimitTier, rate_limit
from dreamland.models.content import ContactMessage, TestimonialSubmit
from dreamland.services.content_service import DEFAULT_BLOG_LIMIT, ContentService
from dreamland.services.i18n import DEFAULT_LOCALE, get_translations, is_supported, translate

router = APIRouter(prefix="/api", tags=["content"])

public_rate_limit = Depends(rate_limit("content", RateLimitTier.PUBLIC))


@router.get("/blog", dependencies=[public_rate_limit])
async def list_blog_posts(
    category: str | None = Query(None),
    page: int = Query(1),
    limit: int = Query(DEFAULT_BLOG_LIMIT),
    service: ContentService = Depends(get_content_service),
) -> dict:
    return await service.list_blog_posts(category, page, limit)


@router.get("/blog/{slug}", dependencies=[public_rate_limit])
async def get_blog_post(slug: str, service: ContentService = Depends(get_content_service)) -> dict:
    return await service.get_blog_post(slug)


@router.get("/faq", dependencies=[public_rate_limit])
async def list_faqs(
    category: str | None = Query(None),
    service: ContentService = Depends(get_content_service),
) -> dict:
    return await service.list_faqs(category)


@router.get("/content", dependencies=[public_rate_limit])
async def list_pages(
    section: str | None = Query(None),
    service: ContentService = Depends(get_content_service),
) -> dict:
    return {"pages": await service.list_pages(section)}


@router.get("/content/{slug:path}", dependencies=[public_rate_limit])
async def get_page(slug: str, service: ContentService = Depends(get_content_service)) -> dict:
    return await service.get_page(slug)


@router.get("/testimonials", dependencies=[public_rate_limit])
async def list_testimonials(
    featured: bool = Query(False),
    limit: int | None = Query(None, ge=1, le=100),
    service: ContentService = Depends(get_content_service),
) -> list[dict]:
    return await service.list_testimonials(featured, limit)


@router.post(
    "/testimonials",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("testimonials:submit", RateLimitTier.FORM))],
)
async def submit_testimonial(
    payload: TestimonialSubmit,
    service: ContentService = Depends(get_content_service),
) -> dict:
    testimonial = await service.submit_testimonial(payload)
    return {
        "ok": True,
        "message": translate(DEFAULT_LOCALE, "testimonial.received"),
        "data": testimonial,
    }


@router.get("/team", dependencies=[public_rate_limit])
async def list_team(service: ContentService = Depends(get_content_service)) -> dict:
    return {"team": await service.list_team()}


@router.get("/settings", dependencies=[public_rate_limit])
async def get_settings(service: ContentService = Depends(get_content_service)) -> dict:
    return await service.get_settings()


@router.post(
    "/contact",
    dependencies=[Depends(rate_limit("contact", RateLimitTier.FORM))],
)
async def contact(
    payload: ContactMessage,
    service: ContentService = Depends(get_content_service),
) -> dict:
    delivered = await service.send_contact_message(payload)
    return {
        "success": True,
        "delivered": delivered,
        "message": translate(DEFAULT_LOCALE, "contact.received"),
    }


@router.get("/i18n/{locale}", dependencies=[public_rate_limit])
async def translations(locale: str) -> dict:
    """Full message catalogue for a supported locale."""
    if not is_supported(locale):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown locale")
    return {"locale": locale, "messages": get_translations(locale)}
