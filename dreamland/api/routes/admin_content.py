"""Admin CRUD for editorial content and site settings."""

from fastapi import APIRouter, Depends, status

from dreamland.api.dependencies import get_content_service
from dreamland.api.middleware.auth import require_admin
from dreamland.models.content import (
    BlogPostCreate,
    ContentPageCreate,
    FAQCreate,
    SiteSettingsUpdate,
    TeamMemberCreate,
    TestimonialModerate,
)
from dreamland.services.content_service import ContentService

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# ========== Blog ==========


@router.get("/blog")
async def list_blog_posts(service: ContentService = Depends(get_content_service)) -> dict:
    return {"posts": await service.admin_list_blog_posts()}


@router.post("/blog", status_code=status.HTTP_201_CREATED)
async def create_blog_post(
    payload: BlogPostCreate, service: ContentService = Depends(get_content_service)
) -> dict:
    return {"ok": True, "data": await service.create_blog_post(payload)}


@router.put("/blog/{post_id}")
async def update_blog_post(
    post_id: str,
    payload: BlogPostCreate,
    service: ContentService = Depends(get_content_service),
) -> dict:
    return {"ok": True, "data": await service.update_blog_post(post_id, payload)}


@router.delete("/blog/{post_id}")
async def delete_blog_post(
    post_id: str, service: ContentService = Depends(get_content_service)
) -> dict:
    await service.delete_blog_post(post_id)
    return {"ok": True}


# ========== FAQ ==========


@router.post("/faq", status_code=status.HTTP_201_CREATED)
async def create_faq(payload: FAQCreate, service: ContentService = Depends(get_content_service)) -> dict:
    return {"ok": True, "data": await service.create_faq(payload)}


@router.put("/faq/{faq_id}")
async def update_faq(
    faq_id: str, payload: FAQCreate, service: ContentService = Depends(get_content_service)
) -> dict:
    return {"ok": True, "data": await service.update_faq(faq_id, payload)}


@router.delete("/faq/{faq_id}")
async def delete_faq(faq_id: str, service: ContentService = Depends(get_content_service)) -> dict:
    await service.delete_faq(faq_id)
    return {"ok": True}


# ========== Content pages ==========


@router.post("/content", status_code=status.HTTP_201_CREATED)
async def create_page(
    payload: ContentPageCreate, service: ContentService = Depends(get_content_service)
) -> dict:
    return {"ok": True, "data": await service.create_page(payload)}


@router.put("/content/{page_id}")
async def update_page(
    page_id: str,
    payload: ContentPageCreate,
    service: ContentService = Depends(get_content_service),
) -> dict:
    return {"ok": True, "data": await service.update_page(page_id, payload)}


@router.delete("/content/{page_id}")
async def delete_page(page_id: str, service: ContentService = Depends(get_content_service)) -> dict:
    await service.delete_page(page_id)
    return {"ok": True}


# ========== Team ==========


@router.post("/team", status_code=status.HTTP_201_CREATED)
async def create_team_member(
    payload: TeamMemberCreate, service: ContentService = Depends(get_content_service)
) -> dict:
    return {"ok": True, "data": await service.create_team_member(payload)}


@router.put("/team/{member_id}")
async def update_team_member(
    member_id: str,
    payload: TeamMemberCreate,
    service: ContentService = Depends(get_content_service),
) -> dict:
    return {"ok": True, "data": await service.update_team_member(member_id, payload)}


@router.delete("/team/{member_id}")
async def delete_team_member(
    member_id: str, service: ContentService = Depends(get_content_service)
) -> dict:
    await service.delete_team_member(member_id)
    return {"ok": True}


# ========== Testimonials ==========


@router.get("/testimonials")
async def list_testimonials(service: ContentService = Depends(get_content_service)) -> dict:
    return {"testimonials": await service.admin_list_testimonials()}


@router.patch("/testimonials/{testimonial_id}")
async def moderate_testimonial(
    testimonial_id: str,
    payload: TestimonialModerate,
    service: ContentService = Depends(get_content_service),
) -> dict:
    """Approve, feature, or withdraw a testimonial."""
    return {"ok": True, "data": await service.moderate_testimonial(testimonial_id, payload)}


@router.delete("/testimonials/{testimonial_id}")
async def delete_testimonial(
    testimonial_id: str, service: ContentService = Depends(get_content_service)
) -> dict:
    await service.delete_testimonial(testimonial_id)
    return {"ok": True}


# ========== Settings ==========


@router.put("/settings")
async def update_settings(
    payload: SiteSettingsUpdate, service: ContentService = Depends(get_content_service)
) -> dict:
    return {"ok": True, "data": await service.update_settings(payload)}
