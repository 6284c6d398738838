"""
Point the Telegram bot's webhook at this deployment.

Usage:
    python -m scripts.setup_telegram_webhook
    python -m scripts.setup_telegram_webhook --base-url https://ledger.example.com
    python -m scripts.setup_telegram_webhook --bot-token 123:abc --base-url https://...

The bot token comes from Vault (chainledger/telegram) unless --bot-token is
given. The base URL defaults to CHAINLEDGER_APP_BASE_URL.
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

from clients.telegram_client import TelegramClient
from core.config import AppConfig
from core.notifications import register_webhook

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/api/webhooks/telegram"


def webhook_url(base_url: str) -> str:
    return base_url.rstrip("/") + WEBHOOK_PATH


def main(argv: list[str] | None = None, client_factory=TelegramClient) -> int:
    load_dotenv()
    config = AppConfig.from_env()

    parser = argparse.ArgumentParser(description="Register the Telegram bot webhook")
    parser.add_argument("--base-url", default=config.app_base_url, help="Public base URL of the app")
    parser.add_argument("--bot-token", help="Bot token (default: read from Vault)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=config.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    url = webhook_url(args.base_url)
    if not url.startswith("https://"):
        print(f"ERROR: Telegram requires an https webhook URL, got {url}")
        return 1

    token = args.bot_token
    if not token:
        from clients.vault_client import get_telegram_config

        token = get_telegram_config()["bot_token"]

    print(f"Setting webhook to: {url}")
    if not register_webhook(client_factory(token), url):
        print("ERROR: Failed to set up Telegram webhook")
        return 1

    print("Webhook set up successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
