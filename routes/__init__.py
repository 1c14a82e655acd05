"""
API route modules.

Each module defines routes for one supplier function.
"""

from routes.scansource_importer import router as scansource_importer_router
from routes.scansource_test import router as scansource_test_router
from routes.stock_update import router as stock_update_router

__all__ = [
    "scansource_importer_router",
    "scansource_test_router",
    "stock_update_router",
]
