"""Router aggregation: every feature router is mounted under ``/api``."""

from fastapi import FastAPI

from . import accounts, analytics, auth, budgets, categories, dashboard, profile, transactions

_FEATURE_ROUTERS = (
    auth.router,
    profile.router,
    accounts.router,
    categories.router,
    transactions.router,
    budgets.router,
    dashboard.router,
    analytics.router,
)


def register_routers(app: FastAPI) -> None:
    """Attach all API routes to the FastAPI application."""

    for feature_router in _FEATURE_ROUTERS:
        app.include_router(feature_router, prefix="/api")
