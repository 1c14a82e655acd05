"""
Database connection management.

Provides the Supabase client singletons used by services, plus a direct
Postgres connection for the statements PostgREST cannot run (DDL inside a
transaction).
"""

from supabase import create_client, Client
from functools import lru_cache
import psycopg
import structlog

from config.settings import settings
from exceptions import ConfigurationError, DatabaseError

logger = structlog.get_logger(__name__)


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Uses the service role key when configured, so importer writes bypass
    row level security. Falls back to the anon key otherwise.
    Call get_supabase_client.cache_clear() to reconnect.

    Returns:
        Client: Supabase client

    Raises:
        DatabaseError: If the client cannot be created
    """
    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "...",  # Log partial URL only
            service_role=bool(settings.supabase_service_key)
        )

        client = create_client(
            settings.supabase_url,
            settings.supabase_service_key or settings.supabase_key
        )

        logger.info("supabase_connected", status="success")
        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise DatabaseError("connect", str(e)) from e


@lru_cache()
def get_auth_client() -> Client:
    """
    Get Supabase client bound to the anon key.

    Only used to validate end-user access tokens.
    """
    return create_client(settings.supabase_url, settings.supabase_key)


def get_pg_connection() -> psycopg.Connection:
    """
    Open a direct Postgres connection (autocommit off).

    Caller owns the transaction: commit or rollback, then close.

    Raises:
        ConfigurationError: If SUPABASE_DB_URL / DATABASE_URL is not set
    """
    if not settings.database_url:
        raise ConfigurationError("DB URL not configured (SUPABASE_DB_URL or DATABASE_URL)")

    logger.debug("opening_pg_connection")
    return psycopg.connect(settings.database_url, autocommit=False)


# ===================
# HELPER FUNCTIONS
# ===================

def check_connection() -> dict:
    """
    Check database connection health.

    Returns:
        dict: Connection status with details
    """
    try:
        client = get_supabase_client()

        staged = client.table("supplier_items").select("item_number", count="exact").limit(1).execute()
        jobs = client.table("import_jobs").select("id", count="exact").limit(1).execute()

        return {
            "status": "healthy",
            "supplier_items_count": staged.count,
            "import_jobs_count": jobs.count
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }
