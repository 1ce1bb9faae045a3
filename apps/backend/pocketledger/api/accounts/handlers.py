"""Account handlers mounted by ``pocketledger.routers.accounts``."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Query, Response
from sqlalchemy.orm import Session

from pocketledger import models
from pocketledger.core.database import get_db
from pocketledger.core.deps import get_current_user
from pocketledger.schemas import AccountCreate, AccountUpdate
from pocketledger.services import AccountService


def create_account(
    payload: AccountCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Account:
    return AccountService(db).create(payload.model_dump(), user_id=user.id)


def list_accounts(
    is_active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> list[models.Account]:
    return AccountService(db).get_all(user_id=user.id, is_active=is_active)


def get_account(
    account_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Account:
    return AccountService(db).get_by_id(user.id, account_id)


def update_account(
    account_id: int,
    payload: AccountUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Account:
    service = AccountService(db)
    row = service.get_by_id(user.id, account_id)
    patch = payload.model_dump(exclude_unset=True)
    # currency/name 은 null 로 지울 수 없음
    for key in ("name", "type", "currency", "is_active"):
        if key in patch and patch[key] is None:
            patch.pop(key)
    return service.update(row, patch)


def delete_account(
    account_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> Response:
    service = AccountService(db)
    service.delete(service.get_by_id(user.id, account_id))
    return Response(status_code=204)
