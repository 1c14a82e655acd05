"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
    PaginationParams,
)
from models.import_job import (
    JobStatus,
    ImportRunRequest,
    ImportProgress,
    ImportRunResponse,
    ImportJobResponse,
    MAX_PAGES_CAP,
    DEFAULT_MAX_PAGES,
    MAX_PROGRESS_ERRORS,
)
from models.staging import (
    StagingListResponse,
    DiffItem,
    DiffResponse,
    ClearStagingResponse,
    StockBackfillDetails,
    StockBackfillResult,
)
from models.publish import (
    PublishStatus,
    PublishMapping,
    PublishRequest,
    PublishResult,
    PublishResponse,
    MAX_PUBLISH_ITEMS,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",
    "PaginationParams",

    # Import jobs
    "JobStatus",
    "ImportRunRequest",
    "ImportProgress",
    "ImportRunResponse",
    "ImportJobResponse",
    "MAX_PAGES_CAP",
    "DEFAULT_MAX_PAGES",
    "MAX_PROGRESS_ERRORS",

    # Staging
    "StagingListResponse",
    "DiffItem",
    "DiffResponse",
    "ClearStagingResponse",
    "StockBackfillDetails",
    "StockBackfillResult",

    # Publishing
    "PublishStatus",
    "PublishMapping",
    "PublishRequest",
    "PublishResult",
    "PublishResponse",
    "MAX_PUBLISH_ITEMS",
]
