from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from pocketledger import models

from .errors import ConflictError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_all(self, *, user_id: int, type: Optional[models.CategoryType] = None) -> list[models.Category]:
        q = self.db.query(models.Category).filter(models.Category.user_id == user_id)
        if type is not None:
            q = q.filter(models.Category.type == type)
        return q.order_by(models.Category.name, models.Category.id).all()

    def get_by_id(self, user_id: int, category_id: int) -> models.Category:
        row = (
            self.db.query(models.Category)
            .filter(models.Category.user_id == user_id, models.Category.id == category_id)
            .first()
        )
        if not row:
            raise NotFoundError("Category not found")
        return row

    def create(self, payload: dict, *, user_id: int) -> models.Category:
        self._ensure_unique(user_id, payload["name"], payload["type"])
        row = models.Category(user_id=user_id, **payload)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def update(self, row: models.Category, patch: dict) -> models.Category:
        if not patch:
            return row
        if "name" in patch:
            patch["name"] = patch["name"].strip()
            if not patch["name"]:
                raise ServiceError("Category name must not be blank")
            if patch["name"] != row.name:
                self._ensure_unique(row.user_id, patch["name"], row.type, exclude_id=row.id)
        for key, value in patch.items():
            setattr(row, key, value)
        self.db.commit()
        self.db.refresh(row)
        return row

    def delete(self, row: models.Category) -> None:
        """Remove a category; its transactions become uncategorized and its budgets go away."""
        category_id = row.id
        cleared = (
            self.db.query(models.Transaction)
            .filter(models.Transaction.category_id == category_id)
            .update({models.Transaction.category_id: None}, synchronize_session=False)
        )
        removed_budgets = (
            self.db.query(models.Budget)
            .filter(models.Budget.category_id == category_id)
            .delete(synchronize_session=False)
        )
        self.db.delete(row)
        self.db.commit()
        logger.info(
            "category deleted category_id=%s cleared_transactions=%s removed_budgets=%s",
            category_id,
            cleared,
            removed_budgets,
        )

    # ---- Helpers ---------------------------------------------------------
    def ensure_defaults(self, user_id: int) -> list[models.Category]:
        """Seed the default catalogue for ``user_id``.

        Idempotent by (name, type); flushes only so sign-up can commit once.
        """
        existing = {
            (row.name, row.type)
            for row in self.db.query(models.Category).filter(models.Category.user_id == user_id).all()
        }
        created: list[models.Category] = []
        for default in models.DEFAULT_CATEGORIES:
            if (default["name"], default["type"]) in existing:
                continue
            row = models.Category(user_id=user_id, **default)
            self.db.add(row)
            created.append(row)
        self.db.flush()
        return created

    def _ensure_unique(
        self,
        user_id: int,
        name: str,
        type: models.CategoryType,
        *,
        exclude_id: int | None = None,
    ) -> None:
        q = self.db.query(models.Category.id).filter(
            models.Category.user_id == user_id,
            models.Category.name == name,
            models.Category.type == type,
        )
        if exclude_id is not None:
            q = q.filter(models.Category.id != exclude_id)
        if q.first():
            raise ConflictError("Category already exists")
