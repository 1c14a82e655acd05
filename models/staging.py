"""
Staging and stock schemas.

supplier_items rows are loose (many nullable supplier columns plus raw
JSON payloads), so list endpoints return them as plain dicts.
"""

from pydantic import Field
from typing import Any, Optional

from models.base import BaseSchema


class StagingListResponse(BaseSchema):
    """Paged supplier_items listing."""

    items: list[dict[str, Any]]
    total: int
    page: int
    page_size: int = Field(..., alias="pageSize")


class DiffItem(BaseSchema):
    """Staged item not yet linked to a product."""

    item_number: str
    title: Optional[str] = None
    msrp: Optional[float] = None
    manufacturer: Optional[str] = None
    category: Optional[str] = None
    availability: Optional[float] = None


class DiffResponse(BaseSchema):
    new: list[DiffItem]
    changed: list[DiffItem] = Field(default_factory=list)
    unchanged: list[str]


class ClearStagingResponse(BaseSchema):
    success: bool = True
    count: int = 0


class StockBackfillDetails(BaseSchema):
    alter_column: str = "ok"
    backfill_updated: Optional[int] = None
    set_default: str = "ok"
    index: str = "ok"


class StockBackfillResult(BaseSchema):
    success: bool
    details: StockBackfillDetails
