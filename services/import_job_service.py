"""
Import job persistence (import_jobs).

The job row is the only synchronization point between the request that
starts an import and the background run: the runner writes status and
progress here, admins poll it.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client
from exceptions import DatabaseError, ImportJobNotFoundError
from models.import_job import MAX_PROGRESS_ERRORS, ImportJobResponse, ImportProgress, JobStatus

logger = structlog.get_logger(__name__)


RECENT_JOBS_LIMIT = 10


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ImportJobService:
    """Create, read and transition import jobs."""

    def __init__(self, db=None):
        self.db = db or get_supabase_client()
        self.table = "import_jobs"

    def create(self, config: dict, created_by: Optional[str] = None) -> str:
        """
        Insert a pending job.

        Returns:
            New job id

        Raises:
            DatabaseError: Insert failed or returned no row
        """
        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "status": JobStatus.PENDING.value,
                    "config": config,
                    "progress": ImportProgress().model_dump(),
                    "created_by": created_by,
                })
                .execute()
            )
        except Exception as e:
            logger.error("import_job_create_failed", error=str(e))
            raise DatabaseError("insert", str(e))

        if not result.data:
            raise DatabaseError("insert", "Failed to create job")

        job_id = result.data[0]["id"]
        logger.info("import_job_created", job_id=job_id, created_by=created_by)
        return job_id

    def get(self, job_id: str) -> ImportJobResponse:
        """
        Raises:
            ImportJobNotFoundError: No job with this id
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", job_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("import_job_get_failed", job_id=job_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ImportJobNotFoundError(job_id)
        return ImportJobResponse(**result.data[0])

    def list_recent(self, limit: int = RECENT_JOBS_LIMIT) -> list[ImportJobResponse]:
        """Most recent jobs, newest first."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
            return [ImportJobResponse(**row) for row in result.data or []]

        except Exception as e:
            logger.error("import_jobs_list_failed", error=str(e))
            raise DatabaseError("select", str(e))

    # ===================
    # STATE TRANSITIONS
    # ===================

    def _update(self, job_id: str, data: dict) -> None:
        try:
            self.db.table(self.table).update(data).eq("id", job_id).execute()
        except Exception as e:
            logger.error("import_job_update_failed", job_id=job_id, error=str(e))
            raise DatabaseError("update", str(e))

    def mark_running(self, job_id: str) -> None:
        self._update(job_id, {"status": JobStatus.RUNNING.value, "started_at": utc_now()})
        logger.info("import_job_running", job_id=job_id)

    def save_progress(self, job_id: str, progress: ImportProgress) -> None:
        self._update(job_id, {"progress": progress.model_dump()})

    def mark_completed(self, job_id: str, progress: ImportProgress) -> None:
        self._update(job_id, {
            "status": JobStatus.COMPLETED.value,
            "completed_at": utc_now(),
            "progress": progress.model_dump(),
        })
        logger.info(
            "import_job_completed",
            job_id=job_id,
            scanned=progress.scanned,
            added=progress.added,
            updated=progress.updated,
            skipped=progress.skipped,
            errors=len(progress.errors)
        )

    def mark_failed(self, job_id: str, progress: ImportProgress, error: str) -> None:
        """
        Terminal failure. Counters gathered before the failure are kept and
        the fatal error is appended, since rows already staged stay staged.
        The fatal error replaces the last entry of a full error list.
        """
        progress.errors = progress.errors[:MAX_PROGRESS_ERRORS - 1] + [error]
        self._update(job_id, {
            "status": JobStatus.FAILED.value,
            "completed_at": utc_now(),
            "progress": progress.model_dump(),
        })
        logger.error("import_job_failed", job_id=job_id, error=error)


# Singleton instance for convenience
_import_job_service: Optional[ImportJobService] = None

def get_import_job_service() -> ImportJobService:
    """Get or create ImportJobService instance."""
    global _import_job_service
    if _import_job_service is None:
        _import_job_service = ImportJobService()
    return _import_job_service
