from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta

import bcrypt
from sqlalchemy import or_
from sqlalchemy.orm import Session

from pocketledger import models
from pocketledger.core.config import settings
from pocketledger.utils import normalize_email

from .account_service import AccountService
from .category_service import CategoryService
from .errors import AuthenticationError, ConflictError, PermissionDeniedError

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid login credentials"
INVALID_CONFIRMATION = "Email link is invalid or has expired"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash stored for the user
        return False


def hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class AuthService:
    """Password sign-in, opaque bearer sessions and signup confirmation tokens."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def sign_up(self, email: str, password: str, full_name: str | None = None) -> tuple[models.User, str]:
        """Register a user with profile, default categories and a cash account.

        Returns the user and the raw signup confirmation token.
        """
        normalized = normalize_email(email)
        exists = self.db.query(models.User.id).filter(models.User.email == normalized).first()
        if exists:
            raise ConflictError("User already registered")

        user = models.User(email=normalized, password_hash=hash_password(password), is_active=True)
        self.db.add(user)
        self.db.flush()
        self.db.add(
            models.Profile(
                user_id=user.id,
                full_name=(full_name or "").strip() or None,
                currency=settings.DEFAULT_CURRENCY,
            )
        )
        CategoryService(self.db).ensure_defaults(user.id)
        AccountService(self.db).ensure_default_account(user.id)
        raw_token = self._issue(user.id, models.AuthTokenPurpose.SIGNUP, hours=settings.CONFIRMATION_TTL_HOURS)
        self.db.commit()
        self.db.refresh(user)
        logger.info("user signed up user_id=%s", user.id)
        return user, raw_token

    def sign_in(self, email: str, password: str) -> tuple[str, datetime]:
        normalized = normalize_email(email)
        user = self.db.query(models.User).filter(models.User.email == normalized).first()
        if not user or not verify_password(password, user.password_hash):
            logger.warning("failed sign-in for %s", normalized)
            raise AuthenticationError(INVALID_CREDENTIALS)
        if not user.is_active:
            raise PermissionDeniedError("User is disabled")
        if settings.REQUIRE_EMAIL_CONFIRMATION and not user.is_confirmed:
            raise PermissionDeniedError("Email not confirmed")
        self._purge_stale(user.id)
        raw_token = self._issue(user.id, models.AuthTokenPurpose.SESSION, hours=settings.SESSION_TTL_HOURS)
        self.db.commit()
        token = self._lookup(raw_token, models.AuthTokenPurpose.SESSION)
        return raw_token, token.expires_at

    def issue_session(self, user_id: int) -> str:
        raw_token = self._issue(user_id, models.AuthTokenPurpose.SESSION, hours=settings.SESSION_TTL_HOURS)
        self.db.commit()
        return raw_token

    def sign_out(self, raw_token: str) -> None:
        token = self._lookup(raw_token, models.AuthTokenPurpose.SESSION)
        if token and token.used_at is None:
            token.used_at = models.now_local_naive()
            self.db.commit()

    def resolve_session(self, raw_token: str | None) -> models.User:
        if not raw_token:
            raise AuthenticationError("Not authenticated")
        token = self._lookup(raw_token, models.AuthTokenPurpose.SESSION)
        if not token or not token.is_usable(models.now_local_naive()):
            raise AuthenticationError("Session expired or invalid")
        user = token.user
        if not user.is_active:
            raise AuthenticationError("Session expired or invalid")
        return user

    def confirm_signup(self, raw_token: str) -> models.User:
        token = self._lookup(raw_token, models.AuthTokenPurpose.SIGNUP)
        now = models.now_local_naive()
        if not token or not token.is_usable(now):
            raise AuthenticationError(INVALID_CONFIRMATION)
        token.used_at = now
        user = token.user
        if user.email_confirmed_at is None:
            user.email_confirmed_at = now
        self.db.commit()
        self.db.refresh(user)
        logger.info("email confirmed user_id=%s", user.id)
        return user

    # ---- Helpers ---------------------------------------------------------
    def _issue(self, user_id: int, purpose: models.AuthTokenPurpose, *, hours: int) -> str:
        raw_token = secrets.token_urlsafe(32)
        self.db.add(
            models.AuthToken(
                user_id=user_id,
                purpose=purpose,
                token_hash=hash_token(raw_token),
                expires_at=models.now_local_naive() + timedelta(hours=hours),
            )
        )
        self.db.flush()
        return raw_token

    def _purge_stale(self, user_id: int) -> int:
        """Drop the user's expired or already used tokens."""
        removed = (
            self.db.query(models.AuthToken)
            .filter(
                models.AuthToken.user_id == user_id,
                or_(
                    models.AuthToken.used_at.is_not(None),
                    models.AuthToken.expires_at <= models.now_local_naive(),
                ),
            )
            .delete(synchronize_session="fetch")
        )
        if removed:
            logger.info("stale auth tokens purged user_id=%s removed=%s", user_id, removed)
        return removed

    def _lookup(self, raw_token: str, purpose: models.AuthTokenPurpose) -> models.AuthToken | None:
        return (
            self.db.query(models.AuthToken)
            .filter(
                models.AuthToken.token_hash == hash_token(raw_token),
                models.AuthToken.purpose == purpose,
            )
            .first()
        )
