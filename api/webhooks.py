"""Inbound webhooks. Mounted under a public path, no owner context."""

import json
import logging

from fastapi import APIRouter, Request
from starlette.responses import PlainTextResponse

from core.notifications import TelegramNotifier

logger = logging.getLogger(__name__)


def create_webhooks_router(notifier: TelegramNotifier) -> APIRouter:
    router = APIRouter()

    @router.post("/webhooks/telegram")
    async def telegram_update(request: Request):
        """
        Answer bot commands.

        Telegram retries anything but a 200, so a failed reply still
        returns OK. Only a body that is not a JSON object is an error.
        """
        try:
            update = json.loads(await request.body())
        except ValueError as e:
            logger.error(f"Error processing Telegram webhook: {e}")
            return PlainTextResponse("Error", status_code=500)
        if not isinstance(update, dict):
            logger.error("Error processing Telegram webhook: update is not an object")
            return PlainTextResponse("Error", status_code=500)

        if not notifier.handle_update(update):
            logger.warning("Telegram webhook reply was not delivered")
        return PlainTextResponse("OK")

    @router.get("/webhooks/telegram")
    async def telegram_liveness():
        return PlainTextResponse("Telegram webhook endpoint is active")

    return router
