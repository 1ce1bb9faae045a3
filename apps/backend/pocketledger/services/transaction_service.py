from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Literal, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, joinedload

from pocketledger import models
from pocketledger.utils import date_range_bounds, normalize_search
from pocketledger.utils.periods import DateRange

from .errors import NotFoundError, ServiceError

logger = logging.getLogger(__name__)

TypeFilter = Literal["all", "income", "expense", "transfer"]


class TransactionBalanceService:
    """Coordinate account balance adjustments for directional transactions."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def apply_balance(self, from_account_id: Optional[int], to_account_id: Optional[int], amount: float) -> None:
        """Apply the net balance movement for a transaction.

        The ``amount`` is treated as an absolute value. Funds move out of
        ``from_account_id`` and into ``to_account_id`` when provided.
        """
        magnitude = abs(float(amount or 0))
        if magnitude == 0:
            return
        if from_account_id and to_account_id and from_account_id == to_account_id:
            return
        if from_account_id:
            self._apply_delta(from_account_id, -magnitude)
        if to_account_id:
            self._apply_delta(to_account_id, magnitude)

    def revert_single_transfer_effect(
        self,
        from_account_id: Optional[int],
        to_account_id: Optional[int],
        amount: float,
    ) -> None:
        """Undo a previously applied directional movement."""
        self.apply_balance(to_account_id, from_account_id, amount)

    def apply_transaction(self, txn: models.Transaction) -> None:
        self.apply_balance(*self._directions(txn.type, txn.account_id, txn.to_account_id), txn.amount)

    def revert_transaction(self, txn: models.Transaction) -> None:
        self.revert_single_transfer_effect(
            *self._directions(txn.type, txn.account_id, txn.to_account_id),
            txn.amount,
        )

    @staticmethod
    def _directions(
        txn_type: models.TxnType,
        account_id: Optional[int],
        to_account_id: Optional[int],
    ) -> tuple[Optional[int], Optional[int]]:
        # income: 계좌로 입금 / expense: 계좌에서 출금 / transfer: account -> to_account
        if txn_type == models.TxnType.INCOME:
            return None, account_id
        if txn_type == models.TxnType.EXPENSE:
            return account_id, None
        return account_id, to_account_id

    def _apply_delta(self, account_id: int, delta: float) -> None:
        account = (
            self.db.query(models.Account)
            .filter(models.Account.id == account_id)
            .first()
        )
        if not account:
            return
        current = float(account.balance or 0)
        account.balance = round(current + float(delta), 2)


@dataclass
class TransactionFilters:
    """Filters shared by list, stats and CSV export."""

    type: TypeFilter = "all"
    range: DateRange = "all"
    start: Optional[date] = None
    end: Optional[date] = None
    search: Optional[str] = None
    category_id: Optional[int] = None
    as_of: Optional[date] = None

    def bounds(self) -> tuple[date, date]:
        as_of = self.as_of or models.today_local()
        lower, upper = date_range_bounds(self.range, as_of)
        # 명시적 start/end 가 상대 기간보다 우선
        return self.start or lower, self.end or upper


class TransactionService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.balances = TransactionBalanceService(db)

    # ---- Queries ---------------------------------------------------------
    def base_query(self, user_id: int) -> Query:
        return self.db.query(models.Transaction).filter(models.Transaction.user_id == user_id)

    def filtered_query(self, user_id: int, filters: TransactionFilters) -> Query:
        q = self.base_query(user_id)
        if filters.type and filters.type != "all":
            q = q.filter(models.Transaction.type == models.TxnType(filters.type))
        lower, upper = filters.bounds()
        q = q.filter(models.Transaction.date >= lower, models.Transaction.date <= upper)
        if filters.category_id is not None:
            q = q.filter(models.Transaction.category_id == filters.category_id)
        term = normalize_search(filters.search)
        if term:
            pattern = f"%{term}%"
            q = q.outerjoin(models.Category, models.Transaction.category_id == models.Category.id).filter(
                or_(
                    models.Transaction.description.ilike(pattern, escape="\\"),
                    models.Category.name.ilike(pattern, escape="\\"),
                )
            )
        return q

    @staticmethod
    def newest_first(q: Query) -> Query:
        return q.order_by(
            models.Transaction.date.desc(),
            models.Transaction.created_at.desc(),
            models.Transaction.id.desc(),
        )

    def list_page(
        self,
        user_id: int,
        filters: TransactionFilters,
        *,
        page: int = 1,
        page_size: int,
    ) -> tuple[list[models.Transaction], int]:
        """Return one 1-based page of matching rows plus the total match count."""
        q = self.filtered_query(user_id, filters)
        total = q.order_by(None).count()
        offset = (max(page, 1) - 1) * page_size
        rows = (
            self.newest_first(q)
            .options(joinedload(models.Transaction.category))
            .offset(offset)
            .limit(page_size)
            .all()
        )
        return rows, total

    def list_all(self, user_id: int, filters: TransactionFilters) -> list[models.Transaction]:
        q = self.filtered_query(user_id, filters).options(joinedload(models.Transaction.category))
        return self.newest_first(q).all()

    def stats(self, user_id: int, filters: TransactionFilters) -> dict[str, float]:
        # 검색어와 무관하게 유형/기간/카테고리 필터만 적용
        scoped = TransactionFilters(
            type=filters.type,
            range=filters.range,
            start=filters.start,
            end=filters.end,
            category_id=filters.category_id,
            as_of=filters.as_of,
        )
        q = self.filtered_query(user_id, scoped).with_entities(
            models.Transaction.type,
            func.coalesce(func.sum(models.Transaction.amount), 0),
        ).group_by(models.Transaction.type)
        totals = {txn_type: abs(float(total or 0)) for txn_type, total in q.all()}
        income = totals.get(models.TxnType.INCOME, 0.0)
        expenses = totals.get(models.TxnType.EXPENSE, 0.0)
        return {
            "total_income": round(income, 2),
            "total_expenses": round(expenses, 2),
            "net_balance": round(income - expenses, 2),
        }

    def get_by_id(self, user_id: int, txn_id: int) -> models.Transaction:
        row = self.base_query(user_id).filter(models.Transaction.id == txn_id).first()
        if not row:
            raise NotFoundError("Transaction not found")
        return row

    # ---- Mutations -------------------------------------------------------
    def create(self, payload: dict, *, user_id: int) -> models.Transaction:
        payload["amount"] = abs(float(payload["amount"]))
        self._validate_refs(user_id, payload)
        row = models.Transaction(user_id=user_id, **payload)
        self.db.add(row)
        self.db.flush()
        self.balances.apply_transaction(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info(
            "transaction created user_id=%s txn_id=%s type=%s amount=%s",
            user_id,
            row.id,
            row.type.value,
            row.amount,
        )
        return row

    def update(self, row: models.Transaction, patch: dict) -> models.Transaction:
        if not patch:
            return row
        merged = {
            "account_id": row.account_id,
            "to_account_id": row.to_account_id,
            "category_id": row.category_id,
            "type": row.type,
            "amount": row.amount,
        }
        merged.update({k: v for k, v in patch.items() if k in merged})
        # 유형이 바뀌면 새 유형에 맞지 않는 연결은 자동으로 끊는다
        if merged["type"] != models.TxnType.TRANSFER and "to_account_id" not in patch:
            merged["to_account_id"] = None
        if merged["type"] == models.TxnType.TRANSFER and "category_id" not in patch:
            merged["category_id"] = None
        merged["amount"] = abs(float(merged["amount"]))
        self._validate_directions(merged)
        self._validate_refs(row.user_id, merged)

        self.balances.revert_transaction(row)
        for key, value in {**patch, **merged}.items():
            setattr(row, key, value)
        self.db.flush()
        self.balances.apply_transaction(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info("transaction updated user_id=%s txn_id=%s", row.user_id, row.id)
        return row

    def delete(self, row: models.Transaction) -> None:
        txn_id, user_id = row.id, row.user_id
        self.balances.revert_transaction(row)
        self.db.delete(row)
        self.db.commit()
        logger.info("transaction deleted user_id=%s txn_id=%s", user_id, txn_id)

    def delete_all(self, user_id: int) -> int:
        """Remove every transaction of ``user_id``, reverting balance effects."""
        rows = self.db.query(models.Transaction).filter(models.Transaction.user_id == user_id).all()
        for row in rows:
            self.balances.revert_transaction(row)
            self.db.delete(row)
        self.db.commit()
        logger.warning("all transactions deleted user_id=%s removed=%s", user_id, len(rows))
        return len(rows)

    # ---- Helpers ---------------------------------------------------------
    @staticmethod
    def _validate_directions(values: dict) -> None:
        if values["type"] == models.TxnType.TRANSFER:
            if values.get("category_id") is not None:
                raise ServiceError("Transfers cannot carry a category")
            to_account_id = values.get("to_account_id")
            if to_account_id is not None and to_account_id == values["account_id"]:
                raise ServiceError("Destination account must differ from the source account")
        elif values.get("to_account_id") is not None:
            raise ServiceError("Only transfers can have a destination account")

    def _validate_refs(self, user_id: int, values: dict) -> None:
        for key in ("account_id", "to_account_id"):
            account_id = values.get(key)
            if account_id is None:
                continue
            exists = (
                self.db.query(models.Account.id)
                .filter(models.Account.user_id == user_id, models.Account.id == account_id)
                .first()
            )
            if not exists:
                raise NotFoundError("Account not found")
        category_id = values.get("category_id")
        if category_id is None:
            return
        category = (
            self.db.query(models.Category)
            .filter(models.Category.user_id == user_id, models.Category.id == category_id)
            .first()
        )
        if not category:
            raise NotFoundError("Category not found")
        if category.type.value != models.TxnType(values["type"]).value:
            raise ServiceError("Category type does not match transaction type")
