from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from .core.database import SessionLocal
from .core.logging_config import configure_logging
from .models import Account, Category, Transaction, TxnType, User, today_local
from .services.auth_service import AuthService
from .services.transaction_service import TransactionService

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo-password"


def seed() -> None:
    db: Session = SessionLocal()
    try:
        # 기본 사용자(데모): 프로필, 기본 카테고리, 현금 계좌까지 함께 생성
        user = db.query(User).filter_by(email=DEMO_EMAIL).first()
        if not user:
            user, _ = AuthService(db).sign_up(DEMO_EMAIL, DEMO_PASSWORD, "Demo")
            logger.info("demo user created user_id=%s", user.id)

        if db.query(Transaction).filter_by(user_id=user.id).first():
            return

        account = db.query(Account).filter_by(user_id=user.id).order_by(Account.id).first()
        salary = db.query(Category).filter_by(user_id=user.id, name="Salary").first()
        food = db.query(Category).filter_by(user_id=user.id, name="Food & Groceries").first()
        today = today_local()
        samples = [
            (TxnType.INCOME, salary, 50000, "Monthly salary", today.replace(day=1)),
            (TxnType.EXPENSE, food, 1250.5, "Weekly groceries", today - timedelta(days=2)),
            (TxnType.EXPENSE, food, 480, "Lunch", today),
        ]
        service = TransactionService(db)
        for txn_type, category, amount, description, when in samples:
            service.create(
                {
                    "account_id": account.id,
                    "category_id": category.id if category else None,
                    "type": txn_type,
                    "amount": amount,
                    "description": description,
                    "date": when,
                },
                user_id=user.id,
            )
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    seed()
