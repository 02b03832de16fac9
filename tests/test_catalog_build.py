import json
from datetime import datetime, timezone

import pandas as pd
import pytest

from marketrank.catalog_build import (
    build_catalog,
    default_bucket_id,
    load_catalog_snapshot,
    normalize_bucket,
    normalize_item,
    normalize_vendor,
    parse_timestamp,
)


def test_parse_timestamp_shapes():
    expected = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    assert parse_timestamp("2024-01-02T03:04:05Z") == expected
    assert parse_timestamp({"seconds": expected.timestamp(), "nanoseconds": 0}) == expected
    assert parse_timestamp({"_seconds": expected.timestamp()}) == expected
    assert parse_timestamp(int(expected.timestamp() * 1000)) == expected
    assert parse_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == expected


def test_parse_timestamp_junk_is_none():
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(float("nan")) is None
    assert parse_timestamp({"foo": 1}) is None
    assert parse_timestamp(True) is None


def test_normalize_item_defaults_and_camel_case():
    item = normalize_item(
        {
            "id": "p1",
            "name": "  Iphone&nbsp;12 ",
            "category": "Hostel &amp; Student Essentials",
            "price": "15000",
            "inStock": "false",
            "viewCount": "7",
            "orderCount": -3,
            "cartCount": None,
            "createdAt": "2024-05-01T10:00:00Z",
            "updatedAt": "garbage",
        },
        default_bucket_id="bucket-products",
    )

    assert item.name == "Iphone 12"
    assert item.category == "Hostel & Student Essentials"
    assert item.description == ""
    assert item.price == 15000.0
    assert item.in_stock is False
    assert item.view_count == 7
    assert item.order_count == 0
    assert item.cart_count == 0
    assert item.compare_count == 0
    assert item.bucket_id == "bucket-products"
    assert item.created_at == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert item.updated_at is None


def test_normalize_item_keeps_explicit_bucket():
    item = normalize_item({"id": "p1", "bucketId": "b7"}, default_bucket_id="fallback")
    assert item.bucket_id == "b7"


def test_normalize_vendor_metrics():
    vendor = normalize_vendor(
        {
            "id": "v1",
            "name": "Ade",
            "businessName": "Ade Gadgets",
            "isActiveNow": True,
            "metrics": {"trustScore": 91, "averageResponseMinutes": "12"},
        }
    )
    assert vendor.business_name == "Ade Gadgets"
    assert vendor.is_active_now is True
    assert vendor.metrics.trust_score == 91
    assert vendor.metrics.average_response_minutes == 12
    assert vendor.metrics.response_rate is None


def test_default_bucket_id():
    buckets = [normalize_bucket({"id": "b1", "name": "Services"}),
               normalize_bucket({"id": "b2", "name": "All Products"})]
    assert default_bucket_id(buckets) == "b2"
    assert default_bucket_id(buckets[:1]) == ""


def test_build_catalog_drops_items_without_id_and_collects_categories():
    catalog = build_catalog(
        [
            {"id": "1", "name": "A", "category": "Fashion"},
            {"name": "no id", "category": "Food"},
            {"id": "2", "name": "B", "category": "Electronics"},
            {"id": "3", "name": "C", "category": "Fashion"},
        ],
        raw_buckets=[{"id": "bp", "name": "Products"}],
    )
    assert [i.id for i in catalog.items] == ["1", "2", "3"]
    assert catalog.categories == ["Fashion", "Electronics"]
    assert all(i.bucket_id == "bp" for i in catalog.items)
    assert catalog.item_by_id("2").name == "B"
    assert catalog.item_by_id("missing") is None


def test_load_catalog_snapshot_json(tmp_path):
    doc = {
        "items": [
            {"id": "1", "name": "Rice", "category": "Groceries", "viewCount": 2},
            {"id": "2", "name": "Bed", "category": "Hostels", "createdAt": {"seconds": 1700000000}},
        ],
        "vendors": [{"id": "v1", "name": "Ade", "businessName": "Ade Foods"}],
        "buckets": [{"id": "b1", "name": "Products"}],
        "categories": ["Groceries", "Hostels", "Fashion"],
    }
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(doc), encoding="utf-8")

    catalog = load_catalog_snapshot(path)

    assert [i.id for i in catalog.items] == ["1", "2"]
    assert catalog.items[0].view_count == 2
    assert catalog.items[1].view_count == 0
    assert catalog.items[1].created_at == datetime.fromtimestamp(1700000000, tz=timezone.utc)
    assert catalog.vendors[0].business_name == "Ade Foods"
    assert catalog.categories == ["Groceries", "Hostels", "Fashion"]


def test_load_catalog_snapshot_csv_table(tmp_path):
    path = tmp_path / "items.csv"
    pd.DataFrame(
        {
            "id": ["10", "11"],
            "name": ["Kettle", "Fan"],
            "category": ["Kitchen", "Electronics"],
            "price": [5000, None],
        }
    ).to_csv(path, index=False)

    catalog = load_catalog_snapshot(path)

    assert [i.id for i in catalog.items] == ["10", "11"]
    assert catalog.items[1].price == 0.0
    assert catalog.vendors == []


def test_load_catalog_snapshot_parquet_table(tmp_path):
    path = tmp_path / "items.parquet"
    pd.DataFrame(
        {
            "id": ["20", "21"],
            "name": ["Desk lamp", "Mattress"],
            "category": ["Electronics", "Hostels"],
            "orderCount": [4, None],
        }
    ).to_parquet(path, index=False)

    catalog = load_catalog_snapshot(path)

    assert [i.id for i in catalog.items] == ["20", "21"]
    assert catalog.items[0].order_count == 4
    assert catalog.items[1].order_count == 0
    assert catalog.items[1].in_stock is True
    assert catalog.categories == ["Electronics", "Hostels"]


def test_load_catalog_snapshot_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_catalog_snapshot(tmp_path / "nope.json")
