"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings (for dependency injection)
    get_supabase_client: Service-role Supabase client
    get_auth_client: Anon client for token validation
    get_pg_connection: Direct Postgres connection
    check_connection: Health check function
"""

from config.settings import settings, get_settings, Settings, parse_list_value
from config.database import (
    get_supabase_client,
    get_auth_client,
    get_pg_connection,
    check_connection
)

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",
    "parse_list_value",

    # Database
    "get_supabase_client",
    "get_auth_client",
    "get_pg_connection",
    "check_connection",
]
