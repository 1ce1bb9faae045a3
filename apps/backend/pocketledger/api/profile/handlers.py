"""Profile, avatar and danger-zone handlers."""

from __future__ import annotations

from fastapi import Depends, File, UploadFile
from sqlalchemy.orm import Session

from pocketledger import models
from pocketledger.core.config import settings
from pocketledger.core.database import get_db
from pocketledger.core.deps import get_current_user
from pocketledger.schemas import BulkDeleteResult, ProfileOut, ProfileUpdate, UserStatsOut
from pocketledger.services import ProfileService, TransactionService


def get_profile(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> ProfileOut:
    return ProfileOut(**ProfileService(db).to_out(user))


def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> ProfileOut:
    service = ProfileService(db)
    service.update(user, payload.model_dump(exclude_unset=True))
    return ProfileOut(**service.to_out(user))


def upload_avatar(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> ProfileOut:
    # 한도보다 1바이트만 더 읽어 초과 여부를 판단
    data = file.file.read(settings.MAX_AVATAR_BYTES + 1)
    service = ProfileService(db)
    service.upload_avatar(user, filename=file.filename, content_type=file.content_type, data=data)
    return ProfileOut(**service.to_out(user))


def get_stats(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> UserStatsOut:
    return UserStatsOut(**ProfileService(db).stats(user))


def delete_all_transactions(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> BulkDeleteResult:
    removed = TransactionService(db).delete_all(user.id)
    return BulkDeleteResult(removed=removed)
