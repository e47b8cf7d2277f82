"""Tests for the per-category pricing strategies."""

from decimal import Decimal

import pytest

from mountquote.pricing.strategies import (
    DeinstallationStrategy,
    DistanceTravelStrategy,
    FlatTravelStrategy,
    HandymanStrategy,
    MountHardwareStrategy,
    SmartHomeStrategy,
    TVMountingStrategy,
    WireConcealmentStrategy,
    billable_half_hours,
    default_strategies,
    handyman_price,
)
from mountquote.schemas.selection_schema import (
    MountHardware,
    MountLocation,
    ServiceSelection,
    SmartDeviceType,
    SmartHomeItem,
    TVMountItem,
    TVSize,
)


def _with_tv(**options) -> ServiceSelection:
    return ServiceSelection(tv_mounts=(TVMountItem(**options),))


class TestTVMounting:
    @pytest.mark.parametrize("location,expected", [
        (MountLocation.STANDARD, "100"),
        (MountLocation.FIREPLACE, "200"),
        (MountLocation.CEILING, "175"),
    ])
    def test_base_price_by_location(self, price_table, location, expected):
        result = TVMountingStrategy().price(_with_tv(location=location), price_table)
        assert result.total == Decimal(expected)
        assert len(result.items) == 1

    def test_surcharges_are_independent(self, price_table):
        masonry = TVMountingStrategy().price(_with_tv(non_drywall_surface=True), price_table)
        high_rise = TVMountingStrategy().price(_with_tv(high_rise=True), price_table)
        both = TVMountingStrategy().price(
            _with_tv(non_drywall_surface=True, high_rise=True), price_table
        )
        assert masonry.total == Decimal("150")
        assert high_rise.total == Decimal("125")
        assert both.total == Decimal("175")

    def test_unmount_only_ignores_other_options(self, price_table):
        selection = _with_tv(
            unmount_only=True, location=MountLocation.FIREPLACE,
            non_drywall_surface=True, high_rise=True,
        )
        result = TVMountingStrategy().price(selection, price_table)
        assert result.total == Decimal("50")
        assert result.items[0].name == "TV 1: TV Unmounting"

    def test_remount_only(self, price_table):
        result = TVMountingStrategy().price(_with_tv(remount_only=True), price_table)
        assert result.total == Decimal("50")

    def test_both_flat_flags_charge_both_fees(self, price_table):
        result = TVMountingStrategy().price(
            _with_tv(unmount_only=True, remount_only=True), price_table
        )
        assert result.total == Decimal("100")
        assert len(result.items) == 2

    def test_line_items_are_labelled_per_tv(self, price_table):
        selection = ServiceSelection(tv_mounts=(TVMountItem(), TVMountItem(high_rise=True)))
        names = [item.name for item in TVMountingStrategy().price(selection, price_table).items]
        assert names[0].startswith("TV 1: ")
        assert all(name.startswith("TV 2: ") for name in names[1:])


class TestMountHardware:
    @pytest.mark.parametrize("hardware,size,expected", [
        (MountHardware.FIXED, TVSize.SMALL, "50"),
        (MountHardware.FIXED, TVSize.LARGE, "65"),
        (MountHardware.TILTING, TVSize.SMALL, "65"),
        (MountHardware.TILTING, TVSize.LARGE, "80"),
        (MountHardware.FULL_MOTION, TVSize.SMALL, "90"),
        (MountHardware.FULL_MOTION, TVSize.LARGE, "120"),
    ])
    def test_size_by_type_grid(self, price_table, hardware, size, expected):
        result = MountHardwareStrategy().price(
            _with_tv(mount_hardware=hardware, size=size), price_table
        )
        assert result.total == Decimal(expected)

    def test_customer_mount_is_free(self, price_table):
        result = MountHardwareStrategy().price(_with_tv(), price_table)
        assert result.items == []

    def test_flat_service_skips_hardware(self, price_table):
        result = MountHardwareStrategy().price(
            _with_tv(remount_only=True, mount_hardware=MountHardware.TILTING), price_table
        )
        assert result.items == []


class TestWireConcealment:
    def test_standard_outlet(self, price_table):
        result = WireConcealmentStrategy().price(_with_tv(outlet_install=True), price_table)
        assert result.total == Decimal("100")
        assert result.manual_items == []

    def test_fireplace_outlet_flagged_not_priced(self, price_table):
        result = WireConcealmentStrategy().price(
            _with_tv(outlet_install=True, location=MountLocation.FIREPLACE), price_table
        )
        assert result.items == []
        assert len(result.manual_items) == 1
        assert result.manual_items[0].name == "Wire Concealment Above Fireplace"

    def test_no_outlet_requested(self, price_table):
        result = WireConcealmentStrategy().price(_with_tv(), price_table)
        assert result.items == [] and result.manual_items == []


class TestSmartHome:
    def test_unit_price_times_quantity(self, price_table):
        selection = ServiceSelection(
            smart_home_devices=(SmartHomeItem(type=SmartDeviceType.CAMERA, quantity=3),)
        )
        result = SmartHomeStrategy().price(selection, price_table)
        assert result.total == Decimal("225")
        assert result.items[0].quantity == 3
        assert result.items[0].unit_price == Decimal("75")

    def test_doorbell_brick_multiplied_by_quantity(self, price_table):
        selection = ServiceSelection(smart_home_devices=(
            SmartHomeItem(type=SmartDeviceType.DOORBELL, quantity=2, brick_installation=True),
        ))
        result = SmartHomeStrategy().price(selection, price_table)
        assert result.total == Decimal("2") * 85 + Decimal("2") * 10

    def test_brick_flag_ignored_for_cameras(self, price_table):
        selection = ServiceSelection(smart_home_devices=(
            SmartHomeItem(type=SmartDeviceType.CAMERA, brick_installation=True),
        ))
        assert SmartHomeStrategy().price(selection, price_table).total == Decimal("75")

    def test_floodlight_without_wiring_flagged(self, price_table):
        selection = ServiceSelection(smart_home_devices=(
            SmartHomeItem(type=SmartDeviceType.FLOODLIGHT, existing_wiring=False),
        ))
        result = SmartHomeStrategy().price(selection, price_table)
        assert result.items == []
        assert result.manual_items[0].name == "Smart Floodlight Installation (No Wiring)"

    def test_zero_quantity_contributes_nothing(self, price_table):
        selection = ServiceSelection(smart_home_devices=(
            SmartHomeItem(type=SmartDeviceType.DOORBELL, quantity=0),
        ))
        assert SmartHomeStrategy().price(selection, price_table).items == []


class TestDeinstallation:
    @pytest.mark.parametrize("count", [1, 2, 5])
    def test_flat_rate(self, price_table, count):
        result = DeinstallationStrategy().price(
            ServiceSelection(deinstallations=count), price_table
        )
        assert result.total == Decimal("50") * count

    def test_none(self, price_table):
        assert DeinstallationStrategy().price(ServiceSelection(), price_table).items == []


class TestHandyman:
    @pytest.mark.parametrize("hours,expected", [
        (0.5, "100"),
        (1.0, "100"),
        (1.4, "150"),
        (1.5, "150"),
        (1.6, "200"),
        (2.0, "200"),
        (3.25, "350"),
    ])
    def test_half_hour_billing(self, price_table, hours, expected):
        item = price_table.item("custom_services", "handyman")
        assert handyman_price(hours, item) == Decimal(expected)

    def test_billable_half_hours(self):
        assert billable_half_hours(1.0) == 0
        assert billable_half_hours(1.01) == 1
        assert billable_half_hours(2.5) == 3

    def test_zero_hours(self, price_table):
        assert HandymanStrategy().price(ServiceSelection(), price_table).items == []

    def test_line_name_includes_hours(self, price_table):
        result = HandymanStrategy().price(ServiceSelection(handyman_hours=1.5), price_table)
        assert result.items[0].name == "General Handyman Work (1.5 hours)"


class TestTravel:
    def test_flat_fee_zero_rated_by_default(self, price_table):
        result = FlatTravelStrategy().price(
            ServiceSelection(travel_distance_minutes=60), price_table
        )
        assert result.items == []

    def test_distance_within_free_radius(self, price_table):
        result = DistanceTravelStrategy().price(
            ServiceSelection(travel_distance_minutes=30), price_table
        )
        assert result.items == []

    def test_distance_beyond_free_radius(self, price_table):
        result = DistanceTravelStrategy(free_minutes=30, per_minute=2).price(
            ServiceSelection(travel_distance_minutes=45), price_table
        )
        assert result.total == Decimal("30")

    def test_default_strategy_order(self):
        names = [s.category for s in default_strategies()]
        assert names == [
            "TV Mounting",
            "TV Mounts",
            "Wire Concealment & Outlet Installation",
            "Smart Home Installation",
            "TV Removal",
            "Handyman Services",
            "Travel",
        ]
