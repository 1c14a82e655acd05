"""
Shared route dependencies.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Header

from config import settings
from exceptions import ConfigurationError
from integrations.scansource import ScanSourceClient
from services.auth_service import AdminUser, get_auth_service
from services.import_job_service import get_import_job_service
from services.import_runner import ImportRunner
from services.staging_service import get_staging_service


def require_admin(authorization: Optional[str] = Header(default=None)) -> AdminUser:
    """
    Admin gate for every supplier endpoint.

    Raises AuthenticationError (401) which the app-level handler renders.
    """
    return get_auth_service().require_admin(authorization)


@lru_cache()
def get_scansource_client() -> ScanSourceClient:
    """
    One client (and so one token cache) per process.

    Raises:
        ConfigurationError: ScanSource credentials are missing
    """
    if not settings.scansource_configured:
        raise ConfigurationError("ScanSource API not configured (SCANSOURCE_BASE, SCANSOURCE_API_KEY, OAUTH_*)")
    return ScanSourceClient.from_settings(settings)


def get_import_runner() -> ImportRunner:
    return ImportRunner(
        client=get_scansource_client(),
        jobs=get_import_job_service(),
        staging=get_staging_service(),
    )
