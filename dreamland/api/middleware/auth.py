"""Admin session dependencies for FastAPI."""

from fastapi import HTTPException, Request, Response, status

from dreamland.auth.admin_session import (
    SESSION_COOKIE_NAME,
    AdminSession,
    get_session_signer,
    is_admin_enabled,
    is_production,
)


def read_admin_session(request: Request) -> AdminSession | None:
    """Decode the admin cookie on a request without enforcing anything."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None
    session = get_session_signer().verify(token)
    if session is None or not session.is_admin:
        return None
    return session


def set_session_cookie(response: Response, token: str) -> None:
    signer = get_session_signer()
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=signer.max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=is_production(),
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=is_production(),
    )


async def require_admin_enabled() -> None:
    """Hide the admin surface entirely when it is switched off.

    Raises:
        HTTPException: 404 so the routes are indistinguishable from missing ones
    """
    if not is_admin_enabled():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")


async def require_admin(request: Request) -> AdminSession:
    """FastAPI dependency for admin-only routes.

    Returns:
        The verified admin session

    Raises:
        HTTPException: 404 if the admin API is disabled, 401 without a valid session

    Example:
        @router.get("/api/admin/bookings")
        async def list_bookings(admin: AdminSession = Depends(require_admin)):
            ...
    """
    await require_admin_enabled()

    session = read_admin_session(request)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin authentication required",
        )

    request.state.admin_email = session.email
    return session


async def get_optional_admin(request: Request) -> AdminSession | None:
    return read_admin_session(request)
