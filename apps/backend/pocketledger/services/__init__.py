"""
Services 패키지

비즈니스 로직 서비스 클래스들을 제공합니다.
"""

from .account_service import AccountService
from .analytics_service import AnalyticsService
from .auth_service import AuthService
from .budget_service import BudgetService
from .category_service import CategoryService
from .dashboard_service import DashboardService
from .errors import ServiceError
from .export_service import CSVExportService
from .profile_service import ProfileService
from .transaction_service import TransactionBalanceService, TransactionFilters, TransactionService

__all__ = [
    "AccountService",
    "AnalyticsService",
    "AuthService",
    "BudgetService",
    "CategoryService",
    "CSVExportService",
    "DashboardService",
    "ProfileService",
    "ServiceError",
    "TransactionBalanceService",
    "TransactionFilters",
    "TransactionService",
]
