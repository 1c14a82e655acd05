"""
Unit tests for publishing staged items as products.
"""

import pytest

from services.publish_service import (
    PublishService,
    apply_mapping,
    build_product,
    derive_dimensions,
    derive_prices,
    parse_json_field,
)
from models.publish import PublishMapping, PublishStatus
from tests.factories import PricingRowFactory, SupplierItemFactory


# ===================
# FIXTURES
# ===================

@pytest.fixture
def publisher(mock_db):
    return PublishService(supplier="scansource")


@pytest.fixture
def staged_row():
    return SupplierItemFactory.create(
        item_number="ZEB-1",
        manufacturer="Zebra",
        description="DS2208 Scanner",
        pricing_json=PricingRowFactory.create("ZEB-1", unit_price=80.0, msrp=100.0, available=3),
        detail_json={
            "PackagedLength": "10",
            "ImageURL": "https://img.example.com/ZEB-1.jpg",
            "UPC": "0123456789",
            "Specs": '{"Interface": "USB"}',
        },
        item_description="Handheld imager",
        catalog_name="Barcode",
        business_unit="1700",
        unspsc="43211701",
        gross_weight=0.5,
        packaged_length=10.0,
        minimum_order_quantity=1,
        rebox_item=False,
        sell_via_edi="Y",
    )


@pytest.fixture
def seeded(mock_supabase, staged_row):
    mock_supabase.set_table_data("supplier_items", [staged_row])
    return mock_supabase


# ===================
# PUBLISH TESTS
# ===================

class TestPublish:
    """Tests for PublishService.publish."""

    def test_creates_product_link_and_brand(self, publisher, seeded):
        results = publisher.publish(["ZEB-1"])

        assert results[0].status is PublishStatus.CREATED
        product = seeded.rows("products")[0]
        assert results[0].product_id == product["id"]

        brand = seeded.rows("brands")[0]
        assert brand["name"] == "Zebra"
        assert product["brand_id"] == brand["id"]

        link = seeded.rows("product_sources")[0]
        assert link == {
            "id": link["id"],
            "created_at": link["created_at"],
            "product_id": product["id"],
            "supplier": "scansource",
            "item_number": "ZEB-1",
        }

    def test_second_publish_is_already_published(self, publisher, seeded):
        """Publishing twice never creates a second product."""
        first = publisher.publish(["ZEB-1"])[0]
        second = publisher.publish(["ZEB-1"])[0]

        assert second.status is PublishStatus.ALREADY_PUBLISHED
        assert second.product_id == first.product_id
        assert len(seeded.rows("products")) == 1
        assert len(seeded.rows("product_sources")) == 1

    def test_upsert_updates_linked_product(self, publisher, seeded):
        first = publisher.publish(["ZEB-1"])[0]
        seeded.rows("supplier_items")[0]["description"] = "DS2208 Scanner v2"

        second = publisher.publish(["ZEB-1"], upsert=True)[0]

        assert second.status is PublishStatus.UPDATED
        assert second.product_id == first.product_id
        assert seeded.rows("products")[0]["title"] == "DS2208 Scanner v2"

    def test_existing_brand_matched_case_insensitively(self, publisher, seeded):
        seeded.set_table_data("brands", [{"id": "brand-1", "name": "ZEBRA"}])

        publisher.publish(["ZEB-1"])

        assert seeded.rows("products")[0]["brand_id"] == "brand-1"
        assert len(seeded.rows("brands")) == 1

    def test_not_found(self, publisher, seeded):
        results = publisher.publish(["MISSING"])

        assert results[0].status is PublishStatus.NOT_FOUND
        assert seeded.rows("products") == []

    def test_item_error_does_not_stop_batch(self, publisher, seeded):
        """A failing item is reported and the next is processed."""
        seeded.fail("products", "insert", "duplicate key value")

        results = publisher.publish(["ZEB-1", "MISSING"])

        assert results[0].status is PublishStatus.ERROR
        assert "duplicate key value" in results[0].error
        assert results[1].status is PublishStatus.NOT_FOUND

    def test_caps_batch_at_twenty(self, publisher, seeded):
        results = publisher.publish([f"X-{n}" for n in range(25)])

        assert len(results) == 20

    def test_mapping_restricts_columns(self, publisher, seeded):
        publisher.publish(["ZEB-1"], mapping=PublishMapping(fields_to_copy=["msrp"]))

        product = seeded.rows("products")[0]
        assert set(product) == {"id", "created_at", "sku", "title", "published", "msrp", "brand_id"}


# ===================
# DERIVATION TESTS
# ===================

class TestBuildProduct:
    """Tests for build_product and its helpers."""

    def test_product_fields(self, staged_row):
        product = build_product(staged_row)

        assert product["sku"] == "ZEB-1"
        assert product["title"] == "DS2208 Scanner"
        assert product["msrp"] == 100.0
        assert product["reseller_price"] == 80.0
        assert product["map_price"] == 80.0
        assert product["sale_price"] == 100.0
        assert product["stock_available"] == 3
        assert product["categories"] == ["Barcode", "Scanners"]
        assert product["tags"] == ["DS2200", "Zebra"]
        assert product["images"] == ["https://img.example.com/ZEB-1.jpg"]
        assert product["upc"] == "0123456789"
        assert product["specs"] == {"Interface": "USB"}
        assert product["dimensions"] == {"length": 10.0, "width": None, "height": None}
        assert product["published"] is True

        assert product["price_adjustment_type"] == "fixed"
        assert product["price_adjustment_value"] == 20.0
        assert product["item_status"] == "Active"
        assert product["item_description"] == "Handheld imager"
        assert product["product_family"] == "DS2200"
        assert product["product_family_headline"] == "Handheld imager"
        assert product["product_family_image_url"] is None
        assert product["catalog_name"] == "Barcode"
        assert product["business_unit"] == "1700"
        assert product["unspsc"] == "43211701"
        assert product["gross_weight"] == 0.5
        assert product["weight"] == 0.5
        assert product["packaged_length"] == 10.0
        assert product["packaged_width"] is None
        assert product["minimum_order_quantity"] == 1
        assert product["rebox_item"] is False
        assert product["sell_via_edi"] is None
        assert product["date_added"] is None
        assert product["detail_json"]["UPC"] == "0123456789"

    def test_price_adjustment_without_prices(self):
        product = build_product(SupplierItemFactory.create(pricing_json={}))

        assert product["price_adjustment_type"] == "fixed"
        assert product["price_adjustment_value"] is None

    def test_mapping_filters_copied_columns(self, staged_row):
        product = apply_mapping(build_product(staged_row), PublishMapping(fields_to_copy=["unspsc"]))

        assert set(product) == {"sku", "title", "published", "unspsc"}

    def test_title_falls_back_to_item_number(self):
        staged = SupplierItemFactory.create(item_number="ZEB-9")
        staged["title"] = staged["description"] = None

        assert build_product(staged)["title"] == "ZEB-9"

    def test_supplier_tags_win(self, staged_row):
        staged_row["detail_json"]["Tags"] = ["rugged"]

        assert build_product(staged_row)["tags"] == ["rugged"]

    def test_stock_defaults_to_zero(self):
        staged = SupplierItemFactory.create(pricing_json={})

        assert build_product(staged)["stock_available"] == 0

    def test_derive_prices_without_unit_price(self):
        assert derive_prices({"Msrp": "50"}) == {
            "msrp": 50.0,
            "map_price": 50.0,
            "reseller_price": 50.0,
            "sale_price": 50.0,
        }
        assert derive_prices({})["sale_price"] is None

    def test_derive_dimensions_none_when_absent(self):
        assert derive_dimensions({}, {}) is None
        assert derive_dimensions({}, {"packaged_height": 4}) == {"length": None, "width": None, "height": 4.0}

    def test_parse_json_field(self):
        assert parse_json_field('{"a": 1}') == {"a": 1}
        assert parse_json_field("not json") is None
        assert parse_json_field({"a": 1}) == {"a": 1}

    def test_apply_mapping_passthrough(self):
        product = {"sku": "A", "title": "t", "published": True, "msrp": 1}

        assert apply_mapping(product, None) == product
        assert apply_mapping(product, PublishMapping(fields_to_copy=[])) == product
