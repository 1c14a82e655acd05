"""
Test data factories.

Uses factory pattern to generate consistent supplier payloads and rows.
"""

from datetime import datetime
from typing import Optional


class SearchItemFactory:
    """
    Factory for ScanSource search result entries.

    Usage:
        item = SearchItemFactory.create(item_number="ZEB-1")
        page = SearchItemFactory.create_batch(3)
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        item_number: Optional[str] = None,
        manufacturer: str = "Zebra",
        description: Optional[str] = None,
        category_path: str = "Barcode//Scanners",
        **extra
    ) -> dict:
        n = cls._next_counter()
        item_number = item_number or f"SS-{n:05d}"
        return {
            "ScanSourceItemNumber": item_number,
            "ManufacturerItemNumber": f"MFR-{item_number}",
            "Manufacturer": manufacturer,
            "Description": description or f"Scanner {item_number}",
            "CategoryPath": category_path,
            "ItemStatus": "Active",
            **extra,
        }

    @classmethod
    def create_batch(cls, count: int, **kwargs) -> list[dict]:
        return [cls.create(**kwargs) for _ in range(count)]


class PricingRowFactory:
    """
    Factory for pricing response rows.

    Usage:
        row = PricingRowFactory.create("ZEB-1", unit_price=12.5)
        unpriced = PricingRowFactory.create("ZEB-2", unit_price=0)
    """

    @classmethod
    def create(
        cls,
        item_number: str,
        unit_price: Optional[float] = 100.0,
        msrp: Optional[float] = 150.0,
        available: Optional[int] = 7,
        pricing_error: bool = False,
        **extra
    ) -> dict:
        row = {"ItemNumber": item_number, "PricingError": pricing_error, **extra}
        if unit_price is not None:
            row["UnitPrice"] = unit_price
        if msrp is not None:
            row["MSRP"] = msrp
        if available is not None:
            row["AvailableQuantity"] = available
        return row


class SupplierItemFactory:
    """
    Factory for supplier_items rows as stored in staging.

    Usage:
        row = SupplierItemFactory.create(item_number="ZEB-1", manufacturer="Zebra")
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        item_number: Optional[str] = None,
        manufacturer: Optional[str] = "Zebra",
        description: Optional[str] = None,
        category_path: Optional[str] = "Barcode//Scanners",
        pricing_json: Optional[dict] = None,
        detail_json: Optional[dict] = None,
        last_synced_at: Optional[str] = None,
        **extra
    ) -> dict:
        n = cls._next_counter()
        item_number = item_number or f"SS-{n:05d}"
        return {
            "item_number": item_number,
            "mfr_item_number": f"MFR-{item_number}",
            "manufacturer": manufacturer,
            "title": description or f"Scanner {item_number}",
            "description": description or f"Scanner {item_number}",
            "category_path": category_path,
            "item_status": "Active",
            "item_image_url": f"https://img.example.com/{item_number}.jpg",
            "product_family_image_url": None,
            "product_family": "DS2200",
            "pricing_json": pricing_json if pricing_json is not None else {},
            "detail_json": detail_json if detail_json is not None else {},
            "stock_available": None,
            "last_synced_at": last_synced_at or datetime(2026, 1, 1, 12, n % 60).isoformat(),
            **extra,
        }

    @classmethod
    def create_batch(cls, count: int, **kwargs) -> list[dict]:
        return [cls.create(**kwargs) for _ in range(count)]
