"""
Stock backfill route.

POST runs the transactional stock_available migration. Admin only.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from models.staging import StockBackfillResult
from routes.dependencies import require_admin
from services.stock_backfill_service import get_stock_backfill_service

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("", response_model=StockBackfillResult)
async def run_products_stock_update():
    """
    Add, backfill, default and index products.stock_available.

    Returns:
        {success, details: {alter_column, backfill_updated, set_default, index}}

    Raises:
        500: {success: false, error} when any step fails (all steps rolled back)
    """
    try:
        return get_stock_backfill_service().run()

    except Exception as e:
        message = getattr(e, "message", None) or str(e)
        logger.error("stock_update_failed", error=message, type=type(e).__name__)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": message}
        )
