# storefront/api/deps.py
from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from storefront.domain.errors import StorefrontError
from storefront.services.category_cache import CategoryCache
from storefront.services.lock_service import LockService
from storefront.services.payment_client import PaymentClient
from storefront.services.session_resolver import SessionContext, SessionResolver
from storefront.utils.settings import SESSION_COOKIE_NAME, SESSION_COOKIE_SECURE, SESSION_TTL_DAYS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def get_lock_service() -> LockService:
    return LockService()


def get_payment_client() -> PaymentClient:
    return PaymentClient()


def get_category_cache(request: Request) -> CategoryCache:
    return request.app.state.category_cache


def resolve_session(request: Request, db: Session) -> SessionContext:
    """Wolane jawnie na poczatku handlera; brak bazy przy tworzeniu sesji to 500."""
    ip = request.client.host if request.client else ""
    user_agent = request.headers.get("user-agent", "")
    try:
        return SessionResolver(db).resolve(request.cookies.get(SESSION_COOKIE_NAME), ip, user_agent)
    except StorefrontError as e:
        logger.error(f"Session resolution failed: {e}")
        raise HTTPException(status_code=e.status_code, detail="Session create failed")


def attach_session_cookie(response: Response, ctx: SessionContext | None) -> Response:
    # cookie tylko gdy sesja zostala wlasnie utworzona
    if ctx is not None and ctx.was_created:
        response.set_cookie(
            key=SESSION_COOKIE_NAME,
            value=ctx.session_id,
            max_age=SESSION_TTL_DAYS * 24 * 60 * 60,
            path="/",
            httponly=True,
            secure=SESSION_COOKIE_SECURE,
            samesite="lax",
        )
    return response


def error_response(e: StorefrontError, ctx: SessionContext | None = None) -> JSONResponse:
    content = {"detail": str(e), "error": type(e).__name__}
    if e.state is not None:
        content["state"] = e.state.value
    return attach_session_cookie(JSONResponse(status_code=e.status_code, content=content), ctx)
