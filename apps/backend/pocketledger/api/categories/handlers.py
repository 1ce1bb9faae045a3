from __future__ import annotations

from typing import Optional

from fastapi import Depends, Query, Response
from sqlalchemy.orm import Session

from pocketledger import models
from pocketledger.core.database import get_db
from pocketledger.core.deps import get_current_user
from pocketledger.schemas import CategoryCreate, CategoryUpdate
from pocketledger.services import CategoryService


def list_categories(
    type: Optional[models.CategoryType] = Query(None),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> list[models.Category]:
    return CategoryService(db).get_all(user_id=user.id, type=type)


def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Category:
    return CategoryService(db).create(payload.model_dump(), user_id=user.id)


def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Category:
    service = CategoryService(db)
    row = service.get_by_id(user.id, category_id)
    patch = payload.model_dump(exclude_unset=True)
    if "name" in patch and patch["name"] is None:
        patch.pop("name")
    return service.update(row, patch)


def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> Response:
    service = CategoryService(db)
    service.delete(service.get_by_id(user.id, category_id))
    return Response(status_code=204)
