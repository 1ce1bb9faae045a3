from fastapi import APIRouter

from pocketledger.api.profile import handlers
from pocketledger.schemas import BulkDeleteResult, ProfileOut, UserStatsOut

router = APIRouter(prefix="/profile", tags=["profile"])

router.add_api_route("", handlers.get_profile, methods=["GET"], response_model=ProfileOut)
router.add_api_route("", handlers.update_profile, methods=["PATCH"], response_model=ProfileOut)
router.add_api_route("/avatar", handlers.upload_avatar, methods=["POST"], response_model=ProfileOut)
router.add_api_route("/stats", handlers.get_stats, methods=["GET"], response_model=UserStatsOut)
# Danger zone
router.add_api_route(
    "/transactions",
    handlers.delete_all_transactions,
    methods=["DELETE"],
    response_model=BulkDeleteResult,
)
