"""Editorial content: blog, FAQ, pages, team, testimonials and site settings."""

import math
from datetime import datetime, timezone

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dreamland.models.content import (
    FAQ,
    FAQDB,
    BlogPost,
    BlogPostCreate,
    BlogPostDB,
    ContactMessage,
    ContentPage,
    ContentPageCreate,
    ContentPageDB,
    FAQCreate,
    SiteSettings,
    SiteSettingsDB,
    SiteSettingsUpdate,
    TeamMember,
    TeamMemberCreate,
    TeamMemberDB,
    Testimonial,
    TestimonialDB,
    TestimonialModerate,
    TestimonialSubmit,
)
from dreamland.services.cache import CacheKeys, CacheService
from dreamland.services.email import Mailer, send_best_effort
from dreamland.services.errors import ConflictError, NotFoundError
from dreamland.services.security import sanitize_phone, sanitize_string, strip_html

logger = structlog.get_logger(__name__)

BLOG_TTL = 300
FAQ_TTL = 3600
TESTIMONIALS_TTL = 600
SETTINGS_TTL = 3600

DEFAULT_BLOG_LIMIT = 10
MAX_BLOG_LIMIT = 50

# Primary key of the single settings row
SETTINGS_ID = "site"

DEFAULT_SETTINGS = {
    "site_name": "Dreamland Travel",
    "tagline": "Discover the Land of the Blue Sky",
    "contact_email": "info@dreamland.local",
    "contact_phone": None,
    "address": None,
    "whatsapp": None,
    "social_links": {},
    "currency": "USD",
}


def _dump(model, row) -> dict:
    return model.model_validate(row).model_dump(mode="json")


class ContentService:
    """Public reads are cached; admin mutations commit then invalidate."""

    def __init__(self, db_session: AsyncSession, cache: CacheService, mailer: Mailer | None = None):
        self.db_session = db_session
        self.cache = cache
        self.mailer = mailer

    async def _get_or_404(self, model, row_id: str, label: str):
        row = await self.db_session.get(model, row_id)
        if row is None:
            raise NotFoundError(f"{label} not found")
        return row

    async def _commit_unique(self, label: str) -> None:
        try:
            await self.db_session.commit()
        except IntegrityError as exc:
            await self.db_session.rollback()
            raise ConflictError(f"{label} with this slug already exists") from exc

    # ========== Blog ==========

    async def list_blog_posts(
        self, category: str | None = None, page: int = 1, limit: int = DEFAULT_BLOG_LIMIT
    ) -> dict:
        """Published posts, newest first.

        Only the unfiltered default-size listing is cached, keyed by page.
        """
        page = max(1, page)
        limit = min(MAX_BLOG_LIMIT, max(1, limit))

        async def fetch() -> dict:
            conditions = [BlogPostDB.is_published.is_(True)]
            if category:
                conditions.append(BlogPostDB.category == category)
            total = (
                await self.db_session.execute(
                    select(func.count(BlogPostDB.id)).where(*conditions)
                )
            ).scalar_one()
            result = await self.db_session.execute(
                select(BlogPostDB)
                .where(*conditions)
                .order_by(BlogPostDB.published_at.desc(), BlogPostDB.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            return {
                "posts": [_dump(BlogPost, post) for post in result.scalars()],
                "pagination": {
                    "total": total,
                    "page": page,
                    "limit": limit,
                    "totalPages": math.ceil(total / limit) if total else 0,
                },
            }

        if category or limit != DEFAULT_BLOG_LIMIT:
            return await fetch()
        return await self.cache.get_or_set(CacheKeys.blog_list(page), fetch, ttl=BLOG_TTL)

    async def get_blog_post(self, slug: str) -> dict:
        result = await self.db_session.execute(
            select(BlogPostDB).where(BlogPostDB.slug == slug, BlogPostDB.is_published.is_(True))
        )
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFoundError("Blog post not found")
        return _dump(BlogPost, post)

    async def admin_list_blog_posts(self) -> list[dict]:
        result = await self.db_session.execute(
            select(BlogPostDB).order_by(BlogPostDB.created_at.desc())
        )
        return [_dump(BlogPost, post) for post in result.scalars()]

    async def create_blog_post(self, data: BlogPostCreate) -> dict:
        post = BlogPostDB(**data.model_dump())
        if post.is_published:
            post.published_at = datetime.now(timezone.utc)
        self.db_session.add(post)
        await self._commit_unique("Blog post")
        await self.db_session.refresh(post)
        await self.cache.invalidate_pattern("blog:list:*")
        logger.info("blog_post_created", post_id=post.id, slug=post.slug)
        return _dump(BlogPost, post)

    async def update_blog_post(self, post_id: str, data: BlogPostCreate) -> dict:
        post = await self._get_or_404(BlogPostDB, post_id, "Blog post")
        was_published = post.is_published
        for field_name, value in data.model_dump().items():
            setattr(post, field_name, value)
        if post.is_published and not was_published and post.published_at is None:
            post.published_at = datetime.now(timezone.utc)
        await self._commit_unique("Blog post")
        await self.db_session.refresh(post)
        await self.cache.invalidate_pattern("blog:list:*")
        logger.info("blog_post_updated", post_id=post_id)
        return _dump(BlogPost, post)

    async def delete_blog_post(self, post_id: str) -> None:
        post = await self._get_or_404(BlogPostDB, post_id, "Blog post")
        await self.db_session.delete(post)
        await self.db_session.commit()
        await self.cache.invalidate_pattern("blog:list:*")
        logger.info("blog_post_deleted", post_id=post_id)

    # ========== FAQ ==========

    async def list_faqs(self, category: str | None = None) -> dict:
        """Active FAQs as a flat list and grouped by category."""

        async def fetch() -> dict:
            query = select(FAQDB).where(FAQDB.is_active.is_(True))
            if category:
                query = query.where(FAQDB.category == category)
            result = await self.db_session.execute(query.order_by(FAQDB.category, FAQDB.order))
            faqs = [_dump(FAQ, faq) for faq in result.scalars()]
            grouped: dict[str, list[dict]] = {}
            for faq in faqs:
                grouped.setdefault(faq["category"], []).append(faq)
            return {"faqs": faqs, "grouped": grouped}

        if category:
            return await fetch()
        return await self.cache.get_or_set(CacheKeys.faq_list(), fetch, ttl=FAQ_TTL)

    async def create_faq(self, data: FAQCreate) -> dict:
        faq = FAQDB(**data.model_dump())
        self.db_session.add(faq)
        await self.db_session.commit()
        await self.cache.invalidate(CacheKeys.faq_list())
        return _dump(FAQ, faq)

    async def update_faq(self, faq_id: str, data: FAQCreate) -> dict:
        faq = await self._get_or_404(FAQDB, faq_id, "FAQ")
        for field_name, value in data.model_dump().items():
            setattr(faq, field_name, value)
        await self.db_session.commit()
        await self.cache.invalidate(CacheKeys.faq_list())
        return _dump(FAQ, faq)

    async def delete_faq(self, faq_id: str) -> None:
        faq = await self._get_or_404(FAQDB, faq_id, "FAQ")
        await self.db_session.delete(faq)
        await self.db_session.commit()
        await self.cache.invalidate(CacheKeys.faq_list())

    # ========== Content pages ==========

    async def list_pages(self, section: str | None = None) -> list[dict]:
        query = select(ContentPageDB).where(ContentPageDB.is_published.is_(True))
        if section:
            query = query.where(ContentPageDB.section == section)
        result = await self.db_session.execute(
            query.order_by(ContentPageDB.section, ContentPageDB.order, ContentPageDB.title)
        )
        return [_dump(ContentPage, page) for page in result.scalars()]

    async def get_page(self, slug: str) -> dict:
        result = await self.db_session.execute(
            select(ContentPageDB).where(
                ContentPageDB.slug == slug, ContentPageDB.is_published.is_(True)
            )
        )
        page = result.scalar_one_or_none()
        if page is None:
            raise NotFoundError("Page not found")
        return _dump(ContentPage, page)

    async def create_page(self, data: ContentPageCreate) -> dict:
        page = ContentPageDB(**data.model_dump())
        self.db_session.add(page)
        await self._commit_unique("Page")
        await self.db_session.refresh(page)
        logger.info("content_page_created", slug=page.slug)
        return _dump(ContentPage, page)

    async def update_page(self, page_id: str, data: ContentPageCreate) -> dict:
        page = await self._get_or_404(ContentPageDB, page_id, "Page")
        for field_name, value in data.model_dump().items():
            setattr(page, field_name, value)
        await self._commit_unique("Page")
        await self.db_session.refresh(page)
        return _dump(ContentPage, page)

    async def delete_page(self, page_id: str) -> None:
        page = await self._get_or_404(ContentPageDB, page_id, "Page")
        await self.db_session.delete(page)
        await self.db_session.commit()

    # ========== Team ==========

    async def list_team(self) -> list[dict]:
        result = await self.db_session.execute(
            select(TeamMemberDB)
            .where(TeamMemberDB.is_active.is_(True))
            .order_by(TeamMemberDB.order, TeamMemberDB.name)
        )
        return [_dump(TeamMember, member) for member in result.scalars()]

    async def create_team_member(self, data: TeamMemberCreate) -> dict:
        member = TeamMemberDB(**data.model_dump())
        self.db_session.add(member)
        await self.db_session.commit()
        return _dump(TeamMember, member)

    async def update_team_member(self, member_id: str, data: TeamMemberCreate) -> dict:
        member = await self._get_or_404(TeamMemberDB, member_id, "Team member")
        for field_name, value in data.model_dump().items():
            setattr(member, field_name, value)
        await self.db_session.commit()
        return _dump(TeamMember, member)

    async def delete_team_member(self, member_id: str) -> None:
        member = await self._get_or_404(TeamMemberDB, member_id, "Team member")
        await self.db_session.delete(member)
        await self.db_session.commit()

    # ========== Testimonials ==========

    async def list_testimonials(self, featured: bool = False, limit: int | None = None) -> list[dict]:
        """Approved testimonials, newest first."""

        async def fetch() -> list[dict]:
            query = select(TestimonialDB).where(TestimonialDB.is_approved.is_(True))
            if featured:
                query = query.where(TestimonialDB.is_featured.is_(True))
            query = query.order_by(TestimonialDB.created_at.desc())
            if limit:
                query = query.limit(limit)
            result = await self.db_session.execute(query)
            return [_dump(Testimonial, item) for item in result.scalars()]

        if featured or limit:
            return await fetch()
        return await self.cache.get_or_set(CacheKeys.testimonials(), fetch, ttl=TESTIMONIALS_TTL)

    async def submit_testimonial(self, data: TestimonialSubmit) -> dict:
        """Store a public submission, unapproved, with the rating clamped to 1..5."""
        testimonial = TestimonialDB(
            name=sanitize_string(data.name),
            country=sanitize_string(data.country) or None,
            rating=min(5, max(1, data.rating or 5)),
            text=strip_html(data.text),
            tour_name=sanitize_string(data.tour_name) or None,
            is_approved=False,
            is_featured=False,
        )
        self.db_session.add(testimonial)
        await self.db_session.commit()
        await self.db_session.refresh(testimonial)
        logger.info("testimonial_submitted", testimonial_id=testimonial.id, rating=testimonial.rating)
        return _dump(Testimonial, testimonial)

    async def admin_list_testimonials(self) -> list[dict]:
        result = await self.db_session.execute(
            select(TestimonialDB).order_by(TestimonialDB.created_at.desc())
        )
        return [_dump(Testimonial, item) for item in result.scalars()]

    async def moderate_testimonial(self, testimonial_id: str, data: TestimonialModerate) -> dict:
        testimonial = await self._get_or_404(TestimonialDB, testimonial_id, "Testimonial")
        for field_name, value in data.model_dump(exclude_none=True).items():
            setattr(testimonial, field_name, value)
        await self.db_session.commit()
        await self.cache.invalidate(CacheKeys.testimonials())
        logger.info(
            "testimonial_moderated",
            testimonial_id=testimonial_id,
            approved=testimonial.is_approved,
            featured=testimonial.is_featured,
        )
        return _dump(Testimonial, testimonial)

    async def delete_testimonial(self, testimonial_id: str) -> None:
        testimonial = await self._get_or_404(TestimonialDB, testimonial_id, "Testimonial")
        await self.db_session.delete(testimonial)
        await self.db_session.commit()
        await self.cache.invalidate(CacheKeys.testimonials())

    # ========== Site settings ==========

    async def _settings_row(self) -> SiteSettingsDB:
        settings = await self.db_session.get(SiteSettingsDB, SETTINGS_ID)
        if settings is not None:
            return settings

        self.db_session.add(SiteSettingsDB(id=SETTINGS_ID, **DEFAULT_SETTINGS))
        try:
            await self.db_session.commit()
        except IntegrityError:
            # A concurrent first read created the row
            await self.db_session.rollback()
        else:
            logger.info("site_settings_created")
        return await self.db_session.get(SiteSettingsDB, SETTINGS_ID)

    async def get_settings(self) -> dict:
        """Site settings, creating the defaults on first read."""

        async def fetch() -> dict:
            return _dump(SiteSettings, await self._settings_row())

        return await self.cache.get_or_set(CacheKeys.site_settings(), fetch, ttl=SETTINGS_TTL)

    async def update_settings(self, data: SiteSettingsUpdate) -> dict:
        settings = await self._settings_row()
        for field_name, value in data.model_dump(exclude_unset=True).items():
            setattr(settings, field_name, value)
        await self.db_session.commit()
        await self.cache.invalidate(CacheKeys.site_settings())
        logger.info("site_settings_updated", fields=sorted(data.model_fields_set))
        return _dump(SiteSettings, settings)

    # ========== Contact ==========

    async def send_contact_message(self, data: ContactMessage) -> bool:
        """Forward the contact form to the admin mailbox.

        Returns:
            True if the email was handed to the SMTP server
        """
        if self.mailer is None:
            return False
        sent = await send_best_effort(
            self.mailer.send_contact_form(
                name=sanitize_string(data.name),
                email=data.email.strip().lower(),
                phone=sanitize_phone(data.phone) or None,
                subject=sanitize_string(data.subject),
                message=strip_html(data.message),
            ),
            "contact_form",
        )
        logger.info("contact_message_received", delivered=sent)
        return sent
