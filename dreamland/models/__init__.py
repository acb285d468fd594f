"""Data models for the Dreamland travel API."""

# Import SQLAlchemy ORM models to register them with Base.metadata
# This ensures all tables are known when create_tables() is called
from dreamland.models.booking import (  # noqa: F401
    Booking,
    BookingDB,
    BookingStatus,
    Customer,
    CustomerDB,
    PaymentStatus,
    RequestBookingStatus,
    RequestInfo,
    RequestInfoDB,
)
from dreamland.models.content import (  # noqa: F401
    FAQDB,
    BlogPostDB,
    ContentPageDB,
    SiteSettingsDB,
    TeamMemberDB,
    TestimonialDB,
)
from dreamland.models.inquiry import Inquiry, InquiryDB, LeadStatus  # noqa: F401
from dreamland.models.payment import (  # noqa: F401
    Payment,
    PaymentDB,
    PaymentProvider,
    PaymentRecordStatus,
    StripeWebhookEventDB,
    WebhookOutcome,
)
from dreamland.models.tour import (  # noqa: F401
    ItineraryDayDB,
    PriceTierDB,
    TourCategoryDB,
    TourDateDB,
    TourDB,
    TourDetail,
    TourListItem,
)

__all__ = [
    # Tour models
    "TourDetail",
    "TourListItem",
    # Booking models
    "Booking",
    "BookingStatus",
    "Customer",
    "PaymentStatus",
    "RequestBookingStatus",
    "RequestInfo",
    # Inquiry models
    "Inquiry",
    "LeadStatus",
    # Payment models
    "Payment",
    "PaymentProvider",
    "PaymentRecordStatus",
    "WebhookOutcome",
]
