"""Business logic services for the Dreamland travel API."""

from dreamland.services.database import DatabaseManager, get_db_session

__all__ = [
    "DatabaseManager",
    "get_db_session",
]
