from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from pocketledger import models
from pocketledger.core.config import settings

from .errors import ConflictError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_NAME = "Cash"


class AccountService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_all(self, *, user_id: int, is_active: Optional[bool] = None) -> list[models.Account]:
        q = self.db.query(models.Account).filter(models.Account.user_id == user_id)
        if is_active is not None:
            q = q.filter(models.Account.is_active == bool(is_active))
        return q.order_by(models.Account.is_active.desc(), models.Account.id).all()

    def get_by_id(self, user_id: int, account_id: int) -> models.Account:
        row = (
            self.db.query(models.Account)
            .filter(models.Account.user_id == user_id, models.Account.id == account_id)
            .first()
        )
        if not row:
            raise NotFoundError("Account not found")
        return row

    def create(self, payload: dict, *, user_id: int) -> models.Account:
        self._ensure_unique_name(user_id, payload["name"])
        if not payload.get("currency"):
            payload["currency"] = settings.DEFAULT_CURRENCY
        row = models.Account(user_id=user_id, **payload)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info("account created user_id=%s account_id=%s", user_id, row.id)
        return row

    def update(self, row: models.Account, patch: dict) -> models.Account:
        if not patch:
            return row
        if "name" in patch and patch["name"] != row.name:
            self._ensure_unique_name(row.user_id, patch["name"], exclude_id=row.id)
        for key, value in patch.items():
            setattr(row, key, value)
        self.db.commit()
        self.db.refresh(row)
        return row

    def delete(self, row: models.Account) -> None:
        in_use = (
            self.db.query(models.Transaction.id)
            .filter(
                (models.Transaction.account_id == row.id)
                | (models.Transaction.to_account_id == row.id)
            )
            .first()
        )
        if in_use:
            raise ServiceError("Account has transactions; delete or move them first")
        self.db.delete(row)
        self.db.commit()
        logger.info("account deleted user_id=%s account_id=%s", row.user_id, row.id)

    # ---- Helpers ---------------------------------------------------------
    def ensure_default_account(self, user_id: int) -> models.Account:
        """Create the starter cash account if the user has no account by that name.

        Flushes only; the caller owns the transaction.
        """
        row = (
            self.db.query(models.Account)
            .filter(models.Account.user_id == user_id, models.Account.name == DEFAULT_ACCOUNT_NAME)
            .first()
        )
        if row:
            return row
        row = models.Account(
            user_id=user_id,
            name=DEFAULT_ACCOUNT_NAME,
            type=models.AccountType.CASH,
            balance=0,
            currency=settings.DEFAULT_CURRENCY,
            icon="💵",
            is_active=True,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def _ensure_unique_name(self, user_id: int, name: str, *, exclude_id: int | None = None) -> None:
        q = self.db.query(models.Account.id).filter(
            models.Account.user_id == user_id,
            models.Account.name == name,
        )
        if exclude_id is not None:
            q = q.filter(models.Account.id != exclude_id)
        if q.first():
            raise ConflictError("Account name already exists")
