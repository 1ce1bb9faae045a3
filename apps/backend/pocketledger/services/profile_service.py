from __future__ import annotations

import logging
import re
from pathlib import Path

from sqlalchemy import func
from sqlalchemy.orm import Session

from pocketledger import models
from pocketledger.core.config import settings

from .errors import NotFoundError, PayloadTooLargeError, ServiceError, UnsupportedMediaTypeError

logger = logging.getLogger(__name__)

ALLOWED_AVATAR_TYPES = {"image/png": ".png", "image/jpeg": ".jpg"}
INVALID_AVATAR_TYPE = "Invalid file type. Please upload a PNG or JPG."


def _safe_filename(filename: str | None, content_type: str) -> str:
    # 경로 구분자 제거 후 안전한 문자만 유지
    name = Path(filename or "").name
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name).lstrip(".")
    return name or f"avatar{ALLOWED_AVATAR_TYPES[content_type]}"


class ProfileService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, user: models.User) -> models.Profile:
        profile = self.db.query(models.Profile).filter(models.Profile.user_id == user.id).first()
        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    def to_out(self, user: models.User) -> dict:
        profile = self.get(user)
        return {
            "id": user.id,
            "email": user.email,
            "full_name": profile.full_name,
            "avatar_url": profile.avatar_url,
            "currency": profile.currency,
        }

    def update(self, user: models.User, patch: dict) -> models.Profile:
        profile = self.get(user)
        if "full_name" in patch:
            patch["full_name"] = (patch["full_name"] or "").strip() or None
        if "currency" in patch and patch["currency"] is None:
            patch.pop("currency")
        for key, value in patch.items():
            setattr(profile, key, value)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def upload_avatar(self, user: models.User, *, filename: str | None, content_type: str | None, data: bytes) -> str:
        """Store an avatar under the user's folder, overwriting any file of the same name.

        Returns the public URL now recorded on the profile.
        """
        if content_type not in ALLOWED_AVATAR_TYPES:
            raise UnsupportedMediaTypeError(INVALID_AVATAR_TYPE)
        if not data:
            raise ServiceError("Uploaded file is empty")
        if len(data) > settings.MAX_AVATAR_BYTES:
            raise PayloadTooLargeError(
                f"File is too large. Maximum size is {settings.MAX_AVATAR_BYTES // (1024 * 1024)} MB."
            )

        name = _safe_filename(filename, content_type)
        target_dir = Path(settings.STORAGE_DIR) / "avatars" / str(user.id)
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / name).write_bytes(data)

        public_url = f"{settings.STORAGE_PUBLIC_URL.rstrip('/')}/avatars/{user.id}/{name}"
        profile = self.get(user)
        profile.avatar_url = public_url
        self.db.commit()
        logger.info("avatar uploaded user_id=%s bytes=%s", user.id, len(data))
        return public_url

    def stats(self, user: models.User) -> dict:
        total_transactions = (
            self.db.query(func.count(models.Transaction.id))
            .filter(models.Transaction.user_id == user.id)
            .scalar()
        )
        budgets_created = (
            self.db.query(func.count(models.Budget.id))
            .filter(models.Budget.user_id == user.id)
            .scalar()
        )
        totals = dict(
            self.db.query(models.Transaction.type, func.coalesce(func.sum(models.Transaction.amount), 0))
            .filter(models.Transaction.user_id == user.id)
            .group_by(models.Transaction.type)
            .all()
        )
        income = abs(float(totals.get(models.TxnType.INCOME, 0) or 0))
        expenses = abs(float(totals.get(models.TxnType.EXPENSE, 0) or 0))
        return {
            "total_transactions": int(total_transactions or 0),
            "budgets_created": int(budgets_created or 0),
            # 저축액: 총수입 - 총지출 (음수면 0)
            "money_saved": round(max(income - expenses, 0.0), 2),
        }
