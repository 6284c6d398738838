"""GET /api/data: unified read endpoint."""

from fastapi import APIRouter, Query, Request

from api.errors import result_response
from utils.owner_context import get_current_owner_id


VALID_TYPES = {
    "invoices", "transactions",
    "invoice_stats", "transaction_stats",
    "payment_status", "network_distribution",
    "monthly_revenue", "top_clients",
}


def create_data_router(actions: dict) -> APIRouter:
    router = APIRouter()

    invoice_actions = actions["invoice"]
    transaction_actions = actions["transaction"]
    analytics_actions = actions["analytics"]

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: str | None = Query(None),
        invoice_id: str | None = Query(None),
        limit: int | None = Query(None, ge=1, le=500),
        months: int | None = Query(None, ge=1, le=36),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        owner_id = get_current_owner_id()

        if type == "invoices":
            if id:
                result = invoice_actions.get_invoice(owner_id, id)
            else:
                result = invoice_actions.get_invoices(owner_id, limit=limit)
        elif type == "transactions":
            if id:
                result = transaction_actions.get_transaction(owner_id, id)
            else:
                result = transaction_actions.get_transactions(owner_id, invoice_id=invoice_id, limit=limit)
        elif type == "invoice_stats":
            result = analytics_actions.get_invoice_stats(owner_id)
        elif type == "transaction_stats":
            result = analytics_actions.get_transaction_stats(owner_id)
        elif type == "payment_status":
            result = analytics_actions.get_payment_status_distribution(owner_id)
        elif type == "network_distribution":
            result = analytics_actions.get_network_distribution(owner_id)
        elif type == "monthly_revenue":
            result = analytics_actions.get_monthly_revenue_data(owner_id, months_back=months)
        else:
            result = analytics_actions.get_top_clients(owner_id, limit=limit)

        return result_response(request, result)

    return router
