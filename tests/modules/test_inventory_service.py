"""
Tests for the inventory ledger: quantity edits, thresholds, groups,
products, cascade delete, debounced editing and the stock read models.
"""

from contextlib import contextmanager
from decimal import Decimal
from uuid import uuid4

import pytest

from workshop_kernel.domain.debounce import Debouncer
from workshop_kernel.exceptions import (
    DuplicateRepairTypeError,
    InventoryGroupNotFoundError,
    InventoryItemNotFoundError,
    RepairTypeNotFoundError,
    UnauthorizedActorError,
    ValidationError,
)
from workshop_kernel.services.settings_service import (
    SHOW_STOCK_WARNINGS,
    InMemorySettingsProvider,
)
from workshop_modules.inventory.models import StockStatus
from workshop_modules.inventory.service import DebouncedInventoryEditor, InventoryLedgerService


@pytest.fixture
def brake_pad_item(inventory, brake_pad):
    return inventory.item_for_repair_type(brake_pad.id)


@pytest.fixture
def chain_item(inventory, chain):
    return inventory.item_for_repair_type(chain.id)


# =============================================================================
# Quantities
# =============================================================================


class TestQuantities:

    def test_adjust_relative(self, ledger, brake_pad_item, admin_id):
        assert ledger.adjust_quantity(brake_pad_item.id, -3, admin_id).quantity == 7
        assert ledger.adjust_quantity(brake_pad_item.id, 1, admin_id).quantity == 8

    def test_adjust_floors_at_zero(self, ledger, chain_item, admin_id, captured_logs):
        item = ledger.adjust_quantity(chain_item.id, -10, admin_id)

        assert item.quantity == 0
        record = next(r for r in captured_logs() if r["message"] == "inventory_quantity_adjusted")
        assert record["clamped"] is True
        assert record["before"] == 4

    def test_set_negative_stores_zero(self, ledger, brake_pad_item, admin_id):
        assert ledger.set_quantity(brake_pad_item.id, -2, admin_id).quantity == 0

    def test_unknown_item(self, ledger, admin_id):
        with pytest.raises(InventoryItemNotFoundError):
            ledger.adjust_quantity(uuid4(), 1, admin_id)

    def test_consume_decrements(self, ledger, brake_pad, admin_id):
        assert ledger.consume(brake_pad.id, admin_id).quantity == 9

    def test_consume_leaves_unlimited_alone(self, ledger, brake_pad, brake_pad_item, admin_id):
        ledger.set_unlimited(brake_pad_item.id, True, admin_id)
        assert ledger.consume(brake_pad.id, admin_id, quantity=3).quantity == 10

    def test_consume_untracked_repair(self, ledger, admin_id):
        assert ledger.consume(uuid4(), admin_id) is None


# =============================================================================
# Thresholds, prices and the unlimited switch
# =============================================================================


class TestThresholds:

    def test_low_then_unlimited(self, ledger, inventory, brake_pad_item, admin_id):
        ledger.set_quantity(brake_pad_item.id, 3, admin_id)
        ledger.set_min_stock_level(brake_pad_item.id, 5, admin_id)
        report = next(r for r in inventory.stock_reports() if r.item_id == brake_pad_item.id)
        assert report.status == StockStatus.LOW

        ledger.set_unlimited(brake_pad_item.id, True, admin_id)
        report = next(r for r in inventory.stock_reports() if r.item_id == brake_pad_item.id)
        assert report.status == StockStatus.UNLIMITED

    def test_negative_threshold_rejected(self, ledger, brake_pad_item, admin_id):
        with pytest.raises(ValidationError):
            ledger.set_min_stock_level(brake_pad_item.id, -1, admin_id)

    def test_purchase_price(self, ledger, brake_pad_item, admin_id):
        item = ledger.set_purchase_price(brake_pad_item.id, "12.50", admin_id)
        assert item.purchase_price == Decimal("12.50")

        with pytest.raises(ValidationError):
            ledger.set_purchase_price(brake_pad_item.id, Decimal("-1"), admin_id)


# =============================================================================
# Groups
# =============================================================================


class TestGroups:

    def test_grouped_items_share_stock(self, ledger, inventory, brake_pad_item, chain_item, admin_id):
        group = ledger.create_group("Remmen en kettingen", 20, admin_id)
        ledger.assign_group(brake_pad_item.id, group.id, admin_id)
        ledger.assign_group(chain_item.id, group.id, admin_id)

        reports = {r.item_id: r for r in inventory.stock_reports()}
        for item_id in (brake_pad_item.id, chain_item.id):
            assert reports[item_id].effective_quantity == 14
            assert reports[item_id].threshold == 20
            assert reports[item_id].status == StockStatus.LOW

        [stock] = inventory.group_stocks()
        assert stock.total_quantity == 14

        ledger.set_group_min_stock_level(group.id, 10, admin_id)
        assert inventory.group_stocks()[0].status == StockStatus.OK

    def test_delete_group_releases_members(self, ledger, inventory, brake_pad_item, chain_item, admin_id):
        group = ledger.create_group("Slijtdelen", 3, admin_id)
        ledger.assign_group(brake_pad_item.id, group.id, admin_id)
        ledger.assign_group(chain_item.id, group.id, admin_id)

        assert ledger.delete_group(group.id, admin_id) == 2
        assert inventory.groups() == {}
        assert inventory.get_item(chain_item.id).group_id is None
        # Chain falls back to its own threshold.
        report = next(r for r in inventory.stock_reports() if r.item_id == chain_item.id)
        assert report.status == StockStatus.LOW

    def test_unknown_group(self, ledger, brake_pad_item, admin_id):
        with pytest.raises(InventoryGroupNotFoundError):
            ledger.assign_group(brake_pad_item.id, uuid4(), admin_id)

    def test_group_requires_name(self, ledger, admin_id):
        with pytest.raises(ValidationError):
            ledger.create_group("  ", 1, admin_id)

    def test_created_logged(self, ledger, admin_id, captured_logs):
        group = ledger.create_group(" Remmen ", 4, admin_id)

        [record] = [r for r in captured_logs() if r["message"] == "inventory_group_created"]
        assert record["group_name"] == "Remmen"
        assert record["group_id"] == str(group.id)


# =============================================================================
# Products
# =============================================================================


class TestProducts:

    def test_add_product_creates_item(self, ledger, inventory, admin_id):
        repair_type, item = ledger.add_product(
            "Spaak vervangen", "7.50", admin_id, models=["S3", "S5"], quantity=-3,
        )
        assert repair_type.models == ("S3", "S5")
        assert item.quantity == 0
        assert item.min_stock_level == 5
        assert inventory.get_repair_type(repair_type.id).price == Decimal("7.50")

    def test_added_logged(self, ledger, admin_id, captured_logs):
        repair_type, item = ledger.add_product("Binnenband", "6.00", admin_id, models=["S3"])

        [record] = [r for r in captured_logs() if r["message"] == "product_added"]
        assert record["product_name"] == "Binnenband"
        assert record["item_id"] == str(item.id)
        assert record["models"] == ["S3"]

    def test_duplicate_name(self, ledger, brake_pad, admin_id):
        with pytest.raises(DuplicateRepairTypeError):
            ledger.add_product("Brake Pad", "1.00", admin_id)

    def test_unknown_model(self, ledger, admin_id):
        with pytest.raises(ValidationError):
            ledger.add_product("Naaf", "30.00", admin_id, models=["X9"])

    def test_negative_price(self, ledger, admin_id):
        with pytest.raises(ValidationError):
            ledger.add_product("Naaf", "-30.00", admin_id)

    def test_update_replaces_models(self, ledger, inventory, brake_pad, admin_id):
        ledger.update_product(brake_pad.id, admin_id, models=["S5"])
        assert [rt.name for rt in inventory.repair_types_for_model("S3")].count("Brake Pad") == 0

        updated = ledger.update_product(brake_pad.id, admin_id, name="Remblokken", price="27.50", models=[])
        assert updated.name == "Remblokken"
        assert updated.price == Decimal("27.50")
        assert updated.models == ()
        assert "Remblokken" in [rt.name for rt in inventory.repair_types_for_model("S3")]

    def test_update_name_clash(self, ledger, brake_pad, chain, admin_id):
        with pytest.raises(DuplicateRepairTypeError):
            ledger.update_product(chain.id, admin_id, name="Brake Pad")

    def test_update_unknown(self, ledger, admin_id):
        with pytest.raises(RepairTypeNotFoundError):
            ledger.update_product(uuid4(), admin_id, name="x")

    def test_delete_cascades(self, ledger, inventory, bikes, awaiting_bike, brake_pad, brake_pad_item, admin_id):
        assert any(r.repair_type_id == brake_pad.id for r in bikes.registrations(awaiting_bike.id))

        removed = ledger.delete_product(brake_pad_item.id, admin_id)

        assert removed["inventory"] == 1
        assert removed["work_registrations"] == 1
        assert removed["repair_types"] == 1
        assert inventory.get_repair_type(brake_pad.id) is None
        assert all(r.repair_type_id != brake_pad.id for r in bikes.registrations(awaiting_bike.id))

    def test_failed_add_rolls_back(self, ledger, inventory, admin_id):
        with pytest.raises(InventoryGroupNotFoundError):
            ledger.add_product("Zadel", "15.00", admin_id, group_id=uuid4())
        assert "Zadel" not in [rt.name for rt in inventory.repair_types()]


# =============================================================================
# Access
# =============================================================================


class TestAdminOnly:

    def test_mechanic_cannot_add_product(self, ledger, inventory, mechanic_id):
        with pytest.raises(UnauthorizedActorError):
            ledger.add_product("Naaf", "30.00", mechanic_id)
        assert "Naaf" not in [rt.name for rt in inventory.repair_types()]

    def test_front_of_house_cannot_change_catalogue(self, ledger, inventory, brake_pad, brake_pad_item, foh_id):
        with pytest.raises(UnauthorizedActorError):
            ledger.update_product(brake_pad.id, foh_id, price="1.00")
        with pytest.raises(UnauthorizedActorError):
            ledger.delete_product(brake_pad_item.id, foh_id)
        assert inventory.get_repair_type(brake_pad.id).price == Decimal("25.00")

    def test_mechanic_cannot_edit_stock(self, ledger, inventory, brake_pad_item, mechanic_id):
        with pytest.raises(UnauthorizedActorError):
            ledger.set_quantity(brake_pad_item.id, 99, mechanic_id)
        with pytest.raises(UnauthorizedActorError):
            ledger.create_group("Remmen", 3, mechanic_id)
        assert inventory.get_item(brake_pad_item.id).quantity == 10

    def test_mechanic_consumes(self, ledger, brake_pad, mechanic_id):
        assert ledger.consume(brake_pad.id, mechanic_id).quantity == 9


# =============================================================================
# Debounced editing
# =============================================================================


class ManualTimer:
    def __init__(self, delay, fn):
        self.fn = fn

    def start(self):
        pass

    def cancel(self):
        pass


class TestDebouncedEditor:

    @pytest.fixture
    def editor(self, session, clock):
        writes = []

        @contextmanager
        def ledger_scope():
            writes.append(1)
            yield InventoryLedgerService(session, clock)

        editor = DebouncedInventoryEditor(ledger_scope, Debouncer(0.5, timer_factory=ManualTimer))
        editor.write_count = writes
        return editor

    def test_keystrokes_coalesce(self, editor, inventory, brake_pad_item, admin_id):
        for value in (1, 15, 150):
            editor.edit_quantity(brake_pad_item.id, value, admin_id)
        editor.edit_min_stock_level(brake_pad_item.id, 8, admin_id)

        assert editor.pending_count == 2
        assert editor.flush() == 2
        assert len(editor.write_count) == 2

        item = inventory.get_item(brake_pad_item.id)
        assert item.quantity == 150
        assert item.min_stock_level == 8

    def test_cancel_drops_pending(self, editor, inventory, brake_pad_item, admin_id):
        editor.edit_purchase_price(brake_pad_item.id, "9.99", admin_id)
        assert editor.cancel_all() == 1
        assert editor.flush() == 0
        assert inventory.get_item(brake_pad_item.id).purchase_price == Decimal("0")


# =============================================================================
# Read models
# =============================================================================


class TestInventorySelector:

    def test_low_and_out(self, ledger, inventory, brake_pad_item, chain_item, admin_id):
        ledger.set_quantity(brake_pad_item.id, 0, admin_id)

        assert [r.item_id for r in inventory.out_of_stock()] == [brake_pad_item.id]
        assert [r.item_id for r in inventory.low_stock()] == [chain_item.id]

    def test_reports_sorted_by_name(self, inventory, brake_pad, chain):
        names = [r.name for r in inventory.stock_reports()]
        assert names == sorted(names, key=str.lower)

    def test_stock_warnings_follow_setting(self, inventory, brake_pad, chain):
        settings = InMemorySettingsProvider()
        warnings = inventory.stock_warnings([brake_pad.id, chain.id], settings)
        assert [w.name for w in warnings] == ["Chain"]
        assert warnings[0].effective_quantity == 4

        settings.set(SHOW_STOCK_WARNINGS, False)
        assert inventory.stock_warnings([chain.id], settings) == []

    def test_stock_warnings_without_provider(self, inventory, chain):
        assert len(inventory.stock_warnings([chain.id])) == 1

    def test_model_filter(self, ledger, inventory, admin_id):
        ledger.add_product("Naafdynamo", "80.00", admin_id, models=["S5"])
        assert "Naafdynamo" in [rt.name for rt in inventory.repair_types_for_model("S5")]
        assert "Naafdynamo" not in [rt.name for rt in inventory.repair_types_for_model("S3")]
