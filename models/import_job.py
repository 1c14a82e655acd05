"""
Import job schemas.

An import job is one run of the ScanSource import pipeline. The row in
import_jobs is the only thing callers can observe while it runs.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, Optional
from enum import Enum

from models.base import BaseSchema, TimestampMixin


MAX_PAGES_CAP = 10
DEFAULT_MAX_PAGES = 2
MAX_PROGRESS_ERRORS = 100


class JobStatus(str, Enum):
    """Import job lifecycle. COMPLETED and FAILED are terminal."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ImportRunRequest(BaseSchema):
    """
    Body of POST /import/run.

    Field names follow the admin UI (camelCase); snake_case is accepted too.
    """

    manufacturers: Optional[list[str]] = Field(None, description="Manufacturer names to filter by")
    categories: Optional[list[str]] = Field(None, description="Category paths to filter by")
    search_text: Optional[str] = Field(None, alias="searchText", description="Free text search")
    max_pages: Optional[int] = Field(None, alias="maxPages", ge=1, description="Pages to scan (capped at 10)")
    mfr_item_numbers: Optional[list[str]] = Field(
        None,
        alias="mfrItemNumbers",
        description="Direct lookup: part numbers resolved one by one instead of paging search"
    )

    @field_validator("manufacturers", "categories", "mfr_item_numbers")
    @classmethod
    def strip_blank_entries(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is None:
            return v
        return [s.strip() for s in v if s and s.strip()]

    @property
    def page_limit(self) -> int:
        """Pages to scan, hard-capped."""
        return min(self.max_pages or DEFAULT_MAX_PAGES, MAX_PAGES_CAP)

    def to_config(self) -> dict:
        """Serialize for the import_jobs.config column (camelCase, no nulls)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ImportProgress(BaseModel):
    """Counters persisted on the job after every page."""

    scanned: int = 0
    added: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)

    def record_error(self, message: str) -> None:
        """Append to the bounded error list."""
        if len(self.errors) < MAX_PROGRESS_ERRORS:
            self.errors.append(message)


class ImportRunResponse(BaseSchema):
    """Returned immediately by POST /import/run."""

    job_id: str = Field(..., alias="jobId")
    status: str = "started"


class ImportJobResponse(BaseSchema, TimestampMixin):
    """import_jobs row."""

    id: str
    status: JobStatus
    config: dict[str, Any] = Field(default_factory=dict)
    progress: ImportProgress = Field(default_factory=ImportProgress)
    created_by: Optional[str] = None
