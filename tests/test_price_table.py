"""Tests for price table validation and JSON persistence."""

import copy
from decimal import Decimal

import pytest

from mountquote.pricing.price_table import (
    DEFAULT_PRICE_DATA,
    PriceTableError,
    build_price_table,
    load_price_table,
    save_price_table,
)


class TestDefaultTable:
    def test_standard_mount_price(self, price_table):
        assert price_table.price("tv_mounting", "standard") == Decimal("100")

    def test_hardware_grid_complete(self, price_table):
        for hardware in ("fixed", "tilting", "full_motion"):
            for size in ("small", "large"):
                assert price_table.price("tv_mounts", f"{hardware}_{size}") > 0

    def test_restricted_items(self, price_table):
        assert price_table.item("wire_concealment", "fireplace_warning").restriction
        assert price_table.item("smart_home", "floodlight_no_wiring").restriction

    def test_handyman_rates(self, price_table):
        handyman = price_table.item("custom_services", "handyman")
        assert handyman.minimum == Decimal("100")
        assert handyman.half_hour_rate == Decimal("50")

    def test_bulk_rule(self, price_table):
        bulk = price_table.discount("bulk")
        assert bulk.percent == Decimal("10")
        assert bulk.min_services == 3


class TestValidation:
    def test_missing_item_named_in_error(self):
        data = copy.deepcopy(DEFAULT_PRICE_DATA)
        del data["categories"]["tv_mounting"]["ceiling"]
        with pytest.raises(PriceTableError, match="tv_mounting.ceiling"):
            build_price_table(data)

    def test_missing_discount_named_in_error(self):
        data = copy.deepcopy(DEFAULT_PRICE_DATA)
        del data["discounts"]["combo"]
        with pytest.raises(PriceTableError, match="discounts.combo"):
            build_price_table(data)

    def test_negative_price_rejected(self):
        data = copy.deepcopy(DEFAULT_PRICE_DATA)
        data["categories"]["smart_home"]["camera"]["price"] = -5
        with pytest.raises(PriceTableError):
            build_price_table(data)

    def test_handyman_requires_rates(self):
        data = copy.deepcopy(DEFAULT_PRICE_DATA)
        del data["categories"]["custom_services"]["handyman"]["half_hour_rate"]
        with pytest.raises(PriceTableError, match="half_hour_rate"):
            build_price_table(data)

    def test_price_table_error_is_value_error(self):
        assert issubclass(PriceTableError, ValueError)


class TestPersistence:
    def test_no_path_gives_defaults(self, price_table):
        assert load_price_table(None) == price_table
        assert load_price_table("") == price_table

    def test_save_then_load(self, tmp_path):
        data = copy.deepcopy(DEFAULT_PRICE_DATA)
        data["categories"]["tv_mounting"]["standard"]["price"] = 150
        table = build_price_table(data)
        path = tmp_path / "prices.json"
        save_price_table(table, path)
        assert load_price_table(path).price("tv_mounting", "standard") == Decimal("150")

    def test_missing_file(self, tmp_path):
        with pytest.raises(PriceTableError, match="Cannot read"):
            load_price_table(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "prices.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PriceTableError, match="Invalid price table"):
            load_price_table(path)
