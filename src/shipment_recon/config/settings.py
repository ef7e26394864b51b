"""
Configuration management for ShipmentRecon.

This module provides environment-based configuration using Pydantic BaseSettings.
Credentials and base URLs for both upstream systems are read from the process
environment (or a ``.env`` file) and are immutable for the process lifetime.

Environment variables are loaded with the SR_ prefix. The bare FMS_* and
TMS_* names (FMS_USER, TMS_PASS, ...) are accepted as aliases.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, List

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("SR_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE

# Upstream search page-size ceiling; batches are never larger than this.
MAX_BATCH_SIZE = 150


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Order-System fields (alias in parentheses):
    - order_system_base_url (FMS_BASE_URL)
    - order_system_company_id (FMS_COMPANY_ID)
    - order_system_client (FMS_CLIENT)
    - order_system_user / order_system_password (FMS_USER / FMS_PASS)

    Trace-System fields:
    - trace_system_base_url (TMS_BASE_URL)
    - trace_system_user / trace_system_password (TMS_USER / TMS_PASS)
    - trace_system_group_id (TMS_GROUP_ID)
    """

    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )

    # Order-System
    order_system_base_url: str = Field(
        default="https://fms.item.com",
        validation_alias=AliasChoices("SR_ORDER_SYSTEM_BASE_URL", "FMS_BASE_URL"),
        description="Order-System API base URL",
    )
    order_system_company_id: str = Field(
        default="SBFH",
        validation_alias=AliasChoices("SR_ORDER_SYSTEM_COMPANY_ID", "FMS_COMPANY_ID"),
        description="Tenant/company id sent on every Order-System call",
    )
    order_system_client: str = Field(
        default="FMS_WEB",
        validation_alias=AliasChoices("SR_ORDER_SYSTEM_CLIENT", "FMS_CLIENT"),
        description="Client id header value",
    )
    order_system_user: str = Field(
        default="",
        validation_alias=AliasChoices("SR_ORDER_SYSTEM_USER", "FMS_USER"),
        description="Order-System login account",
    )
    order_system_password: str = Field(
        default="",
        validation_alias=AliasChoices("SR_ORDER_SYSTEM_PASSWORD", "FMS_PASS"),
        description="Order-System login password",
    )

    # Trace-System
    trace_system_base_url: str = Field(
        default="https://tms.freightapp.com",
        validation_alias=AliasChoices("SR_TRACE_SYSTEM_BASE_URL", "TMS_BASE_URL"),
        description="Trace-System base URL",
    )
    trace_system_user: str = Field(
        default="",
        validation_alias=AliasChoices("SR_TRACE_SYSTEM_USER", "TMS_USER"),
        description="Trace-System username",
    )
    trace_system_password: str = Field(
        default="",
        validation_alias=AliasChoices("SR_TRACE_SYSTEM_PASSWORD", "TMS_PASS"),
        description="Trace-System password (encoded form as used by the web UI)",
    )
    trace_system_group_id: str = Field(
        default="28",
        validation_alias=AliasChoices("SR_TRACE_SYSTEM_GROUP_ID", "TMS_GROUP_ID"),
        description="Active group selected after every Trace-System login",
    )
    trace_enabled: bool = Field(
        default=True, description="Query the Trace-System during reconciliation"
    )

    # Transport
    request_timeout: float = Field(
        default=30.0, gt=0, description="Per-request timeout in seconds"
    )
    retry_max: int = Field(
        default=0,
        ge=0,
        le=5,
        description="Retries per call on connectivity failures and 5xx responses",
    )

    # Batch processing
    detail_concurrency: int = Field(
        default=5, ge=1, description="Maximum in-flight Order-System detail fetches"
    )
    max_batch_size: int = Field(
        default=MAX_BATCH_SIZE,
        ge=1,
        le=MAX_BATCH_SIZE,
        description="Maximum identifiers per reconciliation batch",
    )

    @model_validator(mode="after")
    def normalize_base_urls(self) -> "Settings":
        """Strip trailing slashes so endpoint paths can be appended verbatim."""
        self.order_system_base_url = self.order_system_base_url.rstrip("/")
        self.trace_system_base_url = self.trace_system_base_url.rstrip("/")
        return self

    def missing_credentials(self) -> Dict[str, List[str]]:
        """
        Report which required credentials are absent, per backend.

        The Trace-System pair is only required while trace lookups are enabled.

        Returns:
            Mapping of backend name to missing setting names; empty when complete
        """
        missing: Dict[str, List[str]] = {}

        order_missing = [
            name
            for name in ("order_system_user", "order_system_password")
            if not getattr(self, name)
        ]
        if order_missing:
            missing["order_system"] = order_missing

        if self.trace_enabled:
            trace_missing = [
                name
                for name in ("trace_system_user", "trace_system_password")
                if not getattr(self, name)
            ]
            if trace_missing:
                missing["trace_system"] = trace_missing

        return missing

    model_config = SettingsConfigDict(
        env_prefix="SR_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache so settings are loaded once and reused for the process
    lifetime; credentials are immutable once read.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()
