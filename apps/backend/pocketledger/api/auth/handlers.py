"""Sign-up, sign-in and email confirmation handlers."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Query, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from pocketledger import models
from pocketledger.core.config import settings
from pocketledger.core.database import get_db
from pocketledger.core.deps import get_bearer_token, get_current_user
from pocketledger.schemas import LoginRequest, MeOut, SignUpRequest, SignUpResult, TokenOut, UserOut
from pocketledger.services import AuthService, ProfileService
from pocketledger.services.errors import AuthenticationError

logger = logging.getLogger(__name__)

DEFAULT_NEXT = "/dashboard"
ERROR_PATH = "/auth/error"


def _safe_next(value: Optional[str]) -> str:
    # 외부 도메인으로의 리다이렉트 차단
    if not value or not value.startswith("/") or value.startswith("//"):
        return DEFAULT_NEXT
    return value


def sign_up(payload: SignUpRequest, db: Session = Depends(get_db)) -> SignUpResult:
    user, confirmation_token = AuthService(db).sign_up(payload.email, payload.password, payload.full_name)
    if settings.exposes_confirmation_tokens:
        exposed = confirmation_token
    else:
        exposed = None
        logger.info("confirmation token issued user_id=%s", user.id)
    return SignUpResult(
        user=UserOut.model_validate(user),
        confirmation_required=settings.REQUIRE_EMAIL_CONFIRMATION,
        confirmation_token=exposed,
    )


def sign_in(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenOut:
    token, expires_at = AuthService(db).sign_in(payload.email, payload.password)
    return TokenOut(access_token=token, expires_at=expires_at)


def sign_out(
    token: Optional[str] = Depends(get_bearer_token),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> Response:
    AuthService(db).sign_out(token)
    return Response(status_code=204)


def confirm(
    token_hash: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    next: Optional[str] = Query(None),
    db: Session = Depends(get_db),
) -> RedirectResponse:
    """Verify an emailed signup OTP and redirect the browser.

    Success goes to ``next`` (``/dashboard`` by default); anything else lands on ``/auth/error``.
    """
    if not token_hash or type != models.AuthTokenPurpose.SIGNUP.value:
        return RedirectResponse(ERROR_PATH, status_code=303)
    try:
        AuthService(db).confirm_signup(token_hash)
    except AuthenticationError as exc:
        logger.warning("signup confirmation failed: %s", exc.detail)
        return RedirectResponse(ERROR_PATH, status_code=303)
    return RedirectResponse(_safe_next(next), status_code=303)


def me(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> MeOut:
    return MeOut(user=UserOut.model_validate(user), profile=ProfileService(db).to_out(user))
