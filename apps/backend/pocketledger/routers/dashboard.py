from fastapi import APIRouter

from pocketledger.api.dashboard import handlers
from pocketledger.schemas import DashboardOut

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

router.add_api_route("", handlers.get_dashboard, methods=["GET"], response_model=DashboardOut)
