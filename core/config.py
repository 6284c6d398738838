"""Application configuration (non-secret settings)."""

import os
from typing import Mapping
from uuid import UUID

from pydantic import BaseModel, Field

# Placeholder owner used until real authentication is wired in
DEFAULT_OWNER_ID = UUID("00000000-0000-0000-0000-000000000001")

_ENV_PREFIX = "CHAINLEDGER_"


class AppConfig(BaseModel):
    """
    Application configuration.

    Secrets (database URL, bot token, API keys) live in Vault; everything
    here is safe to keep in the environment or a .env file.
    """

    # Application
    app_name: str = Field(
        default="AI Finance Assistant",
        description="Product name used in emails and notifications",
    )
    app_base_url: str = Field(
        default="http://localhost:8000",
        description="Public base URL, used for webhook and dashboard links",
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level",
    )

    # Ownership
    default_owner_id: UUID = Field(
        default=DEFAULT_OWNER_ID,
        description="Owner for requests that carry no X-Owner-Id header",
    )

    # Payments
    default_token_type: str = Field(
        default="ETH",
        description="Token recorded when an invoice names no payment token",
        min_length=1,
    )

    # AI generation
    ai_fallback_due_days: int = Field(
        default=30,
        description="Due date offset for the fallback AI invoice",
        ge=1,
        le=365,
    )

    # Analytics
    monthly_revenue_months: int = Field(
        default=6,
        description="Months shown by the monthly revenue report",
        ge=1,
        le=60,
    )
    top_clients_limit: int = Field(
        default=5,
        description="Rows shown by the top clients report",
        ge=1,
        le=100,
    )

    # Revalidation
    revalidation_ttl_seconds: int = Field(
        default=86400,
        description="How long a dashboard revalidation stamp is kept",
        ge=60,
    )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        """
        Build from CHAINLEDGER_* variables, e.g. CHAINLEDGER_APP_BASE_URL.

        Unset variables keep their defaults. Call after load_dotenv().
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(f"{_ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls.model_validate(values)
