"""
Stock availability backfill for published products.

Adds products.stock_available and fills it from the linked supplier pricing
payloads. The four statements run in one transaction: either the column,
the backfilled values, the default and the index all land, or none do.
"""

from typing import Callable, Optional
import psycopg
import structlog

from config import get_pg_connection, settings
from exceptions import StockBackfillError
from models.staging import StockBackfillDetails, StockBackfillResult

logger = structlog.get_logger(__name__)


ADD_COLUMN_SQL = "ALTER TABLE products ADD COLUMN IF NOT EXISTS stock_available integer"

BACKFILL_SQL = """
UPDATE products p
SET stock_available = COALESCE(
  (si.pricing_json->>'AvailableQuantity')::int,
  (si.pricing_json->>'availableQuantity')::int,
  (si.pricing_json->>'QuantityAvailable')::int,
  (si.pricing_json->>'qtyAvailable')::int,
  (si.detail_json->>'AvailableQuantity')::int,
  0
)
FROM product_sources ps
JOIN supplier_items si ON si.item_number = ps.item_number
WHERE ps.supplier = %s
  AND ps.product_id = p.id
"""

SET_DEFAULT_SQL = "ALTER TABLE products ALTER COLUMN stock_available SET DEFAULT 0"

CREATE_INDEX_SQL = "CREATE INDEX IF NOT EXISTS products_stock_available_idx ON products (stock_available)"


class StockBackfillService:
    """
    Runs the stock_available migration.

    Usage:
        result = StockBackfillService().run()
        result.details.backfill_updated  # rows touched
    """

    def __init__(
        self,
        connect: Optional[Callable[[], psycopg.Connection]] = None,
        supplier: Optional[str] = None,
    ):
        self.connect = connect or get_pg_connection
        self.supplier = supplier or settings.supplier_name

    def run(self) -> StockBackfillResult:
        """
        Execute all steps in a single transaction.

        Raises:
            StockBackfillError: Any step failed; the transaction was rolled back
        """
        conn = self.connect()
        step = "alter_column"

        try:
            with conn.cursor() as cur:
                cur.execute(ADD_COLUMN_SQL)

                step = "backfill"
                cur.execute(BACKFILL_SQL, (self.supplier,))
                updated = cur.rowcount if cur.rowcount is not None and cur.rowcount >= 0 else None

                step = "set_default"
                cur.execute(SET_DEFAULT_SQL)

                step = "index"
                cur.execute(CREATE_INDEX_SQL)

            step = "commit"
            conn.commit()

        except psycopg.Error as e:
            logger.error("stock_backfill_failed", step=step, error=str(e))
            conn.rollback()
            raise StockBackfillError(str(e), step=step) from e

        finally:
            conn.close()

        logger.info("stock_backfill_complete", updated=updated, supplier=self.supplier)
        return StockBackfillResult(
            success=True,
            details=StockBackfillDetails(backfill_updated=updated),
        )


def get_stock_backfill_service() -> StockBackfillService:
    """StockBackfillService bound to the configured database."""
    return StockBackfillService()
