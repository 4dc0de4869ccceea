"""Route guards for protected and public-only views."""

from urllib.parse import quote

from fastapi import Depends, Request

from jobtracker.core.config import settings
from jobtracker.core.exceptions import RedirectRequired
from jobtracker.core.redis_client import BrowserSessionStore
from jobtracker.services.auth_state import AuthState
from jobtracker.services.dependencies import get_auth_state, get_sessions

LOGIN_PATH = "/"
HOME_PATH = "/applications"


def safe_next(target: str | None, default: str = HOME_PATH) -> str:
    """Only same-site relative paths may be used as a post-login target."""
    if not target or not target.startswith("/") or target.startswith("//"):
        return default
    if "\\" in target or target == LOGIN_PATH:
        return default
    return target


async def is_signed_in(
    request: Request, auth_state: AuthState, sessions: BrowserSessionStore
) -> bool:
    """The caller holds a live session cookie and the account session is valid."""
    token = request.cookies.get(settings.session_cookie_name)
    if not await sessions.is_valid(token):
        return False
    await auth_state.check_auth()
    return auth_state.is_authenticated


async def require_auth(
    request: Request,
    auth_state: AuthState = Depends(get_auth_state),
    sessions: BrowserSessionStore = Depends(get_sessions),
) -> AuthState:
    """Send unauthenticated callers to the login view."""
    if not await is_signed_in(request, auth_state, sessions):
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        raise RedirectRequired(f"{LOGIN_PATH}?next={quote(target, safe='/')}")
    return auth_state


async def public_only(
    request: Request,
    next: str | None = None,
    auth_state: AuthState = Depends(get_auth_state),
    sessions: BrowserSessionStore = Depends(get_sessions),
) -> AuthState:
    """Send authenticated callers away from the login view."""
    if await is_signed_in(request, auth_state, sessions):
        raise RedirectRequired(safe_next(next))
    return auth_state
