"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
Supplier credentials mirror the names used by the Supabase edge functions
(SCANSOURCE_BASE, OAUTH_TOKEN_URL, WAREHOUSES, ...).
"""

import json
from pydantic_settings import BaseSettings, SettingsConfigDict, NoDecode
from pydantic import AliasChoices, Field, field_validator
from functools import lru_cache
from typing import Annotated, Any, Optional


def parse_list_value(raw: Any) -> list[str]:
    """
    Parse a list setting.

    Accepts a JSON array, a JSON scalar, or a comma separated string:
        '["1700", "1750"]' -> ["1700", "1750"]
        '1710'             -> ["1710"]
        '1710, 1720'       -> ["1710", "1720"]
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        values = raw
    else:
        text = str(raw).strip()
        if not text:
            return []
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = text
        values = parsed if isinstance(parsed, list) else [parsed]

    result = []
    for value in values:
        for part in str(value).split(","):
            part = part.strip()
            if part:
                result.append(part)
    return result


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        validation_alias=AliasChoices("supabase_key", "supabase_anon_key"),
        description="Supabase anon/public key (used to validate user tokens)"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("supabase_service_key", "supabase_service_role_key"),
        description="Supabase service role key (for admin operations)"
    )
    database_url: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("supabase_db_url", "database_url"),
        description="Direct Postgres connection string (stock backfill)"
    )

    # ===================
    # SCANSOURCE API
    # ===================
    scansource_base: str = Field(
        default="",
        description="ScanSource API base URL, e.g. https://api.scansource.com"
    )
    scansource_api_key: str = Field(
        default="",
        description="Subscription key sent as Ocp-Apim-Subscription-Key"
    )
    oauth_token_url: str = Field(
        default="",
        description="OAuth token endpoint for the client-credentials grant"
    )
    oauth_client_id: str = Field(default="", description="OAuth client id")
    oauth_client_secret: str = Field(default="", description="OAuth client secret")
    oauth_scope: str = Field(default="", description="OAuth scope")
    customer_number: str = Field(
        default="",
        description="ScanSource customer number"
    )
    business_units: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["1700"],
        validation_alias=AliasChoices("business_units", "business_unit"),
        description="Business units tried for price quotes"
    )
    warehouses: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["1710"],
        description="Warehouses tried for price quotes"
    )
    default_deal_id: Optional[str] = Field(
        None,
        description="Deal id attached to price quotes"
    )
    default_page_size: int = Field(
        default=50,
        ge=1,
        le=200,
        description="Search page size used by the importer"
    )
    max_batch: int = Field(
        default=40,
        ge=1,
        le=200,
        description="Maximum items priced by the pricing diagnostics endpoint"
    )
    supplier_name: str = Field(
        default="scansource",
        description="Supplier name stored on product_sources links"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    @field_validator("business_units", mode="before")
    @classmethod
    def parse_business_units(cls, v: Any) -> list[str]:
        return parse_list_value(v) or ["1700"]

    @field_validator("warehouses", mode="before")
    @classmethod
    def parse_warehouses(cls, v: Any) -> list[str]:
        return parse_list_value(v) or ["1710"]

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def scansource_configured(self) -> bool:
        """Check if supplier API credentials are present."""
        return bool(
            self.scansource_base
            and self.scansource_api_key
            and self.oauth_token_url
            and self.oauth_client_id
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
