"""POST /api/actions: unified mutation endpoint."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.errors import result_response
from utils.owner_context import get_current_owner_id


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict = {}


def create_actions_router(actions: dict) -> APIRouter:
    router = APIRouter()

    handlers = {
        "invoice": InvoiceHandler(actions["invoice"]),
        "transaction": TransactionHandler(actions["transaction"]),
        "payment": PaymentHandler(actions["payment"]),
        "telegram": TelegramHandler(actions["telegram"]),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        method = getattr(handler, f"_handle_{body.action}")
        result = method(body.data)
        return result_response(request, result)

    return router


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class InvoiceHandler:
    ALLOWED_ACTIONS = {
        "create", "update_status", "mark_paid", "delete", "flag_overdue",
        "generate_ai", "send_email", "generate_pdf",
    }

    def __init__(self, actions):
        self.actions = actions

    def _handle_create(self, data: dict):
        return self.actions.create_invoice(get_current_owner_id(), data)

    def _handle_update_status(self, data: dict):
        return self.actions.update_invoice_status(get_current_owner_id(), data.get("id"), data.get("status"))

    def _handle_mark_paid(self, data: dict):
        return self.actions.mark_invoice_as_paid(
            get_current_owner_id(), data.get("id"), data.get("transaction_hash")
        )

    def _handle_delete(self, data: dict):
        return self.actions.delete_invoice(get_current_owner_id(), data.get("id"))

    def _handle_flag_overdue(self, data: dict):
        return self.actions.flag_overdue_invoices(get_current_owner_id())

    def _handle_generate_ai(self, data: dict):
        return self.actions.generate_ai_invoice(data.get("prompt"))

    def _handle_send_email(self, data: dict):
        return self.actions.send_invoice_email(get_current_owner_id(), data)

    def _handle_generate_pdf(self, data: dict):
        return self.actions.generate_invoice_pdf(get_current_owner_id(), data.get("id"))


class TransactionHandler:
    ALLOWED_ACTIONS = {"create", "update_status", "track"}

    def __init__(self, actions):
        self.actions = actions

    def _handle_create(self, data: dict):
        return self.actions.create_transaction(get_current_owner_id(), data)

    def _handle_update_status(self, data: dict):
        return self.actions.update_transaction_status(
            get_current_owner_id(), data.get("id"), data.get("status")
        )

    def _handle_track(self, data: dict):
        return self.actions.track_wallet_transaction(get_current_owner_id(), data)


class PaymentHandler:
    ALLOWED_ACTIONS = {"initiate", "reconcile"}

    def __init__(self, actions):
        self.actions = actions

    def _handle_initiate(self, data: dict):
        return self.actions.initiate_payment(get_current_owner_id(), data)

    def _handle_reconcile(self, data: dict):
        return self.actions.reconcile_payments(get_current_owner_id())


class TelegramHandler:
    ALLOWED_ACTIONS = {"save_settings", "test_connection"}

    def __init__(self, actions):
        self.actions = actions

    def _handle_save_settings(self, data: dict):
        return self.actions.save_telegram_settings(data)

    def _handle_test_connection(self, data: dict):
        return self.actions.test_telegram_connection(data)
