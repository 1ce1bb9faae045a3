from fastapi import APIRouter

from pocketledger.api.analytics import handlers
from pocketledger.schemas import AnalyticsOut

router = APIRouter(prefix="/analytics", tags=["analytics"])

router.add_api_route("", handlers.get_analytics, methods=["GET"], response_model=AnalyticsOut)
