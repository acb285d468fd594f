"""FastAPI dependencies that build services for a request."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dreamland.services.booking_service import BookingService
from dreamland.services.cache import CacheService
from dreamland.services.content_service import ContentService
from dreamland.services.database import get_db_session
from dreamland.services.email import Mailer
from dreamland.services.image_storage import ImageStorage
from dreamland.services.inquiry_service import InquiryService
from dreamland.services.redis_client import get_redis
from dreamland.services.stripe_gateway import StripeGateway
from dreamland.services.tour_service import TourService


def get_cache() -> CacheService:
    return CacheService(get_redis())


def get_mailer() -> Mailer:
    return Mailer()


def get_stripe_gateway() -> StripeGateway:
    return StripeGateway()


def get_image_storage() -> ImageStorage:
    return ImageStorage()


def get_tour_service(
    db: AsyncSession = Depends(get_db_session),
    cache: CacheService = Depends(get_cache),
) -> TourService:
    return TourService(db, cache)


def get_booking_service(
    db: AsyncSession = Depends(get_db_session),
    mailer: Mailer = Depends(get_mailer),
    gateway: StripeGateway = Depends(get_stripe_gateway),
) -> BookingService:
    return BookingService(db, mailer, gateway)


def get_inquiry_service(
    db: AsyncSession = Depends(get_db_session),
    mailer: Mailer = Depends(get_mailer),
    gateway: StripeGateway = Depends(get_stripe_gateway),
) -> InquiryService:
    return InquiryService(db, mailer, gateway)


def get_content_service(
    db: AsyncSession = Depends(get_db_session),
    cache: CacheService = Depends(get_cache),
    mailer: Mailer = Depends(get_mailer),
) -> ContentService:
    return ContentService(db, cache, mailer)
