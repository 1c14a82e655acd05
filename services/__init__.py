"""
Business logic services.

Each service handles one domain area.
"""

from services.auth_service import AuthService, AdminUser, get_auth_service
from services.staging_service import StagingService, UpsertOutcome, get_staging_service
from services.import_job_service import ImportJobService, get_import_job_service
from services.item_resolver import ItemResolver, PartNumberType, ResolvedItem
from services.pricing_resolver import PricingResolver, PricingResult, PriceContext
from services.import_runner import ImportRunner
from services.publish_service import PublishService, get_publish_service
from services.stock_backfill_service import StockBackfillService, get_stock_backfill_service
from services.pricing_check_service import PricingCheckService

__all__ = [
    "AuthService",
    "AdminUser",
    "get_auth_service",
    "StagingService",
    "UpsertOutcome",
    "get_staging_service",
    "ImportJobService",
    "get_import_job_service",
    "ItemResolver",
    "PartNumberType",
    "ResolvedItem",
    "PricingResolver",
    "PricingResult",
    "PriceContext",
    "ImportRunner",
    "PublishService",
    "get_publish_service",
    "StockBackfillService",
    "get_stock_backfill_service",
    "PricingCheckService",
]
