"""
ScanSource importer routes.

Admin-only endpoints to run imports, poll job status, browse staging,
diff staging against published products, publish, and clear staging.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.import_job import ImportRunRequest, ImportRunResponse
from models.publish import PublishRequest, PublishResponse
from models.staging import ClearStagingResponse, DiffResponse, StagingListResponse
from routes.dependencies import get_import_runner, require_admin
from services.auth_service import AdminUser
from services.import_job_service import get_import_job_service
from services.publish_service import get_publish_service
from services.staging_service import get_staging_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": str(e)
            }
        }
    )


# ===================
# IMPORT JOBS
# ===================

@router.post("/import/run", response_model=ImportRunResponse)
async def run_import(
    data: ImportRunRequest,
    background_tasks: BackgroundTasks,
    admin: AdminUser = Depends(require_admin)
):
    """
    Start an import job.

    The job row is created before returning; the import itself runs in the
    background. Poll /import/status with the returned jobId.
    """
    try:
        runner = get_import_runner()
        job_id = get_import_job_service().create(
            data.to_config(),
            created_by=admin.auth_user_id
        )
        background_tasks.add_task(runner.run, job_id, data)

        logger.info("import_run_started", job_id=job_id, config=data.to_config())
        return ImportRunResponse(job_id=job_id, status="started")

    except Exception as e:
        return handle_error(e)


@router.get("/import/status")
async def import_status(
    job_id: Optional[str] = Query(None, alias="jobId", description="Job id; omit for recent jobs")
):
    """
    One job, or the 10 most recent jobs when no id is given.

    Raises:
        404: Job not found
    """
    try:
        service = get_import_job_service()
        if job_id:
            return service.get(job_id)
        return service.list_recent()

    except Exception as e:
        return handle_error(e)


# ===================
# STAGING
# ===================

@router.get("/staging/items", response_model=StagingListResponse)
async def list_staging_items(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=500, alias="pageSize", description="Items per page"),
    manufacturer: Optional[str] = Query(None, description="Manufacturer contains"),
    category: Optional[str] = Query(None, description="Category path contains"),
    q: Optional[str] = Query(None, description="Search item numbers, title and descriptions")
):
    """Paged staging listing, most recently synced first."""
    try:
        items, total = get_staging_service().list_items(
            page=page,
            page_size=page_size,
            manufacturer=manufacturer.strip() if manufacturer else None,
            category=category.strip() if category else None,
            search=q.strip() if q else None
        )
        return StagingListResponse(items=items, total=total, page=page, page_size=page_size)

    except Exception as e:
        return handle_error(e)


@router.delete("/staging/clear", response_model=ClearStagingResponse)
async def clear_staging():
    """Delete every staged supplier item."""
    try:
        count = get_staging_service().clear()
        return ClearStagingResponse(success=True, count=count)

    except Exception as e:
        return handle_error(e)


# ===================
# PUBLISHING
# ===================

@router.get("/import/diff", response_model=DiffResponse)
async def import_diff():
    """Staged items not yet linked to a product."""
    try:
        return get_staging_service().diff()

    except Exception as e:
        return handle_error(e)


@router.post("/import/publish", response_model=PublishResponse)
def publish_items(data: PublishRequest):
    """
    Publish staged items as products.

    Always 200; per-item failures are reported in results.
    """
    try:
        results = get_publish_service().publish(
            data.item_numbers,
            mapping=data.mapping,
            upsert=data.upsert
        )
        return PublishResponse(results=results)

    except Exception as e:
        return handle_error(e)
