"""
Publish schemas.

Publishing maps staged supplier_items rows into customer-visible products.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema


MAX_PUBLISH_ITEMS = 20


class PublishStatus(str, Enum):
    """Per-item outcome of a publish call."""
    CREATED = "created"
    UPDATED = "updated"
    NOT_FOUND = "not_found"
    ALREADY_PUBLISHED = "already_published"
    ERROR = "error"


class PublishMapping(BaseSchema):
    """Optional restriction of the derived product fields that get written."""

    fields_to_copy: Optional[list[str]] = Field(
        None,
        description="Product columns to copy; sku, title and published are always written"
    )


class PublishRequest(BaseSchema):
    """Body of POST /import/publish."""

    item_numbers: list[str] = Field(..., description="Staged item numbers (first 20 are processed)")
    mapping: Optional[PublishMapping] = None
    upsert: bool = Field(False, description="Refresh already-published products instead of skipping")


class PublishResult(BaseSchema):
    """Outcome for one item number."""

    item_number: str = Field(..., alias="itemNumber")
    status: PublishStatus
    product_id: Optional[str] = Field(None, alias="productId")
    error: Optional[str] = None


class PublishResponse(BaseSchema):
    results: list[PublishResult]
