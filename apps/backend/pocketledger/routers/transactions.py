"""Transactions router.

Static paths (``/stats``, ``/export``) are registered before ``/{txn_id}``.
"""

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from pocketledger.api.transactions import handlers
from pocketledger.schemas import BulkDeleteResult, TransactionOut, TransactionStatsOut

router = APIRouter(prefix="/transactions", tags=["transactions"])

router.add_api_route(
    "",
    handlers.list_transactions,
    methods=["GET"],
    response_model=list[TransactionOut],
)

router.add_api_route(
    "",
    handlers.create_transaction,
    methods=["POST"],
    response_model=TransactionOut,
    status_code=201,
)

router.add_api_route(
    "",
    handlers.delete_all_transactions,
    methods=["DELETE"],
    response_model=BulkDeleteResult,
)

router.add_api_route(
    "/stats",
    handlers.get_transaction_stats,
    methods=["GET"],
    response_model=TransactionStatsOut,
)

router.add_api_route(
    "/export",
    handlers.export_transactions,
    methods=["GET"],
    response_class=StreamingResponse,
)

router.add_api_route(
    "/{txn_id}",
    handlers.get_transaction,
    methods=["GET"],
    response_model=TransactionOut,
)

router.add_api_route(
    "/{txn_id}",
    handlers.update_transaction,
    methods=["PATCH"],
    response_model=TransactionOut,
)

router.add_api_route(
    "/{txn_id}",
    handlers.delete_transaction,
    methods=["DELETE"],
    status_code=204,
)
