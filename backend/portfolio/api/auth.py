from fastapi import APIRouter, Depends, Request, Response

from portfolio.api.deps import get_settings
from portfolio.core.config import Settings
from portfolio.core.errors import Unauthorized
from portfolio.core.logging import get_logger
from portfolio.schemas.auth import LoginRequest, SessionStatus
from portfolio.services.session import credentials_match

log = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("")
async def login(body: LoginRequest, response: Response, settings: Settings = Depends(get_settings)):
    if not credentials_match(settings, body.username, body.password):
        log.warning("login_rejected", username=body.username)
        raise Unauthorized("Invalid credentials")

    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        settings.SESSION_SENTINEL,
        max_age=settings.SESSION_MAX_AGE,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )
    log.info("login_succeeded", username=body.username)
    return {"success": True}


@router.delete("")
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return {"success": True}


@router.get("", response_model=SessionStatus)
async def session_status(request: Request):
    guard = request.app.state.session_guard
    return SessionStatus(authenticated=guard.is_authorized(request.cookies.get(guard.cookie_name)))
