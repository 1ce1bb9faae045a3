"""Accounts router exposing the account handlers."""

from fastapi import APIRouter

from pocketledger.api.accounts import handlers
from pocketledger.schemas import AccountOut

router = APIRouter(prefix="/accounts", tags=["accounts"])

router.add_api_route(
    "",
    handlers.create_account,
    methods=["POST"],
    response_model=AccountOut,
    status_code=201,
)

router.add_api_route(
    "",
    handlers.list_accounts,
    methods=["GET"],
    response_model=list[AccountOut],
)

router.add_api_route(
    "/{account_id}",
    handlers.get_account,
    methods=["GET"],
    response_model=AccountOut,
)

router.add_api_route(
    "/{account_id}",
    handlers.update_account,
    methods=["PATCH"],
    response_model=AccountOut,
)

router.add_api_route(
    "/{account_id}",
    handlers.delete_account,
    methods=["DELETE"],
    status_code=204,
)
