from fastapi import APIRouter

from pocketledger.api.budgets import handlers
from pocketledger.schemas import BudgetOut, BudgetOverviewOut, BudgetSummaryOut, BudgetWithSpentOut

router = APIRouter(prefix="/budgets", tags=["budgets"])

router.add_api_route(
    "",
    handlers.list_budgets,
    methods=["GET"],
    response_model=list[BudgetWithSpentOut],
)

router.add_api_route(
    "",
    handlers.create_budget,
    methods=["POST"],
    response_model=BudgetOut,
    status_code=201,
)

router.add_api_route(
    "/overview",
    handlers.get_budget_overview,
    methods=["GET"],
    response_model=BudgetOverviewOut,
)

router.add_api_route(
    "/{budget_id}",
    handlers.update_budget,
    methods=["PATCH"],
    response_model=BudgetOut,
)

router.add_api_route(
    "/{budget_id}",
    handlers.delete_budget,
    methods=["DELETE"],
    status_code=204,
)

router.add_api_route(
    "/{budget_id}/summary",
    handlers.get_budget_summary,
    methods=["GET"],
    response_model=BudgetSummaryOut,
)
