"""
Tests for beer inventory: add, edit, restock, summary.
"""

import pytest

from casinobar.models import RestockRecord
from casinobar.services.storage import SqlLedgerStore, StorageError, PartialCommitError
from casinobar.services.inventory_service import InventoryService
from casinobar.validation import NotFoundError, ValidationError


class TestAddProduct:
    def test_add_uses_fixed_selling_price(self, inventory, clock):
        product = inventory.add_product("Cerveza Premium", 100, 2500)

        assert product.quantity == 100
        assert product.purchase_cost == 2500
        assert product.selling_price == 4000
        assert product.unit_margin == 1500
        assert product.weekly_restock_day == "monday"
        assert product.last_restock_date == clock.now

    def test_configured_selling_price(self, store, venue, clock):
        service = InventoryService(store, venue.id, selling_price=5000, clock=clock)
        assert service.add_product("Importada", 10, 3000).selling_price == 5000

    @pytest.mark.parametrize("name,qty,cost", [
        ("", 10, 2000),
        ("   ", 10, 2000),
        ("Cerveza", -1, 2000),
        ("Cerveza", 10, 0),
        ("Cerveza", 10, -5),
        ("Cerveza", "1.5", 2000),
    ])
    def test_invalid_input_rejected(self, inventory, name, qty, cost):
        with pytest.raises(ValidationError):
            inventory.add_product(name, qty, cost)
        assert inventory.list_products() == []

    def test_invalid_restock_day(self, inventory):
        with pytest.raises(ValidationError):
            inventory.add_product("Cerveza", 10, 2000, restock_day="someday")


class TestEditProduct:
    def test_edit_descriptive_fields(self, inventory, beer):
        product = inventory.edit_product(beer.id, {
            "name": "Cerveza Negra",
            "purchase_cost": 2300,
            "weekly_restock_day": "Friday",
        })
        assert product.name == "Cerveza Negra"
        assert product.purchase_cost == 2300
        assert product.weekly_restock_day == "friday"

    def test_quantity_not_editable(self, inventory, beer):
        with pytest.raises(ValidationError):
            inventory.edit_product(beer.id, {"quantity": 500})
        assert inventory.get_product(beer.id).quantity == 100

    def test_invalid_edit_changes_nothing(self, inventory, beer):
        with pytest.raises(ValidationError):
            inventory.edit_product(beer.id, {"name": "Nueva", "purchase_cost": 0})
        assert inventory.get_product(beer.id).name == "Cerveza Clásica"

    def test_unknown_product(self, inventory):
        with pytest.raises(NotFoundError):
            inventory.edit_product("missing", {"name": "X"})


class TestRestock:
    def test_restock_adds_units_and_records(self, inventory, beer, clock):
        clock.advance(hours=2)
        product = inventory.restock(beer.id, 24, worker_name="Luis")

        assert product.quantity == 124
        assert product.last_restock_date == clock.now
        assert product.last_restock_worker == "Luis"

        history = inventory.restock_history()
        assert len(history) == 1
        record = history[0]
        assert record.item_type == RestockRecord.ITEM_BEER
        assert record.quantity_added == 24
        assert record.new_total_quantity == 124
        assert record.during_active_shift is False
        assert record.shift_id is None

    @pytest.mark.parametrize("qty", [0, -3])
    def test_restock_requires_positive(self, inventory, beer, qty):
        with pytest.raises(ValidationError):
            inventory.restock(beer.id, qty)

    def test_restock_unknown_product(self, inventory):
        with pytest.raises(NotFoundError):
            inventory.restock("missing", 5)

    def test_restock_during_shift_flags_shift(self, inventory, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        inventory.restock(beer.id, 12)

        record = inventory.restock_history()[0]
        assert record.during_active_shift is True
        assert record.shift_id == shift.id

        reloaded = shifts.get_shift(shift.id)
        assert reloaded.restock_during_shift is True
        assert reloaded.restock_details == "+12 Cerveza Clásica"

    def test_history_newest_first(self, inventory, beer, clock):
        inventory.restock(beer.id, 1)
        clock.advance(minutes=5)
        inventory.restock(beer.id, 2)
        assert [r.quantity_added for r in inventory.restock_history()] == [2, 1]

    def test_failed_record_write_saves_nothing(self, db_session, venue, clock, beer):
        class NoHistoryStore(SqlLedgerStore):
            def add_restock(self, venue_id, record):
                self.session.rollback()
                raise StorageError("disk full")

        service = InventoryService(NoHistoryStore(db_session), venue.id, clock=clock)
        with pytest.raises(StorageError) as excinfo:
            service.restock(beer.id, 6)

        assert not isinstance(excinfo.value, PartialCommitError)
        assert service.get_product(beer.id).quantity == 100
        assert service.restock_history() == []

    def test_resubmitted_restock_survives_close(self, db_session, venue, clock, beer,
                                                inventory, shifts, worker):
        """qty 100, +6 mid-shift after one failed attempt, sold 30, given 5 -> 71."""
        class NoHistoryStore(SqlLedgerStore):
            def add_restock(self, venue_id, record):
                self.session.rollback()
                raise StorageError("disk full")

        shift = shifts.open_shift(worker.id)
        failing = InventoryService(NoHistoryStore(db_session), venue.id, clock=clock)
        with pytest.raises(StorageError):
            failing.restock(beer.id, 6)

        inventory.restock(beer.id, 6)
        assert inventory.get_product(beer.id).quantity == 106

        shifts.close_shift(shift.id, sold={beer.id: 30}, given_away={beer.id: 5}, cash_breakdown={})
        assert inventory.get_product(beer.id).quantity == 71
        assert [r.quantity_added for r in inventory.restock_history()] == [6]

    def test_failed_stock_write_removes_record(self, db_session, venue, clock, beer):
        class NoStockStore(SqlLedgerStore):
            def upsert_product(self, venue_id, product):
                self.session.rollback()
                raise StorageError("disk full")

        service = InventoryService(NoStockStore(db_session), venue.id, clock=clock)
        with pytest.raises(StorageError) as excinfo:
            service.restock(beer.id, 6)

        assert not isinstance(excinfo.value, PartialCommitError)
        assert service.get_product(beer.id).quantity == 100
        assert service.restock_history() == []

    def test_failed_undo_is_partial(self, db_session, venue, clock, beer):
        class StuckStore(SqlLedgerStore):
            def upsert_product(self, venue_id, product):
                self.session.rollback()
                raise StorageError("disk full")

            def delete_restock(self, venue_id, record_id):
                raise StorageError("disk full")

        service = InventoryService(StuckStore(db_session), venue.id, clock=clock)
        with pytest.raises(PartialCommitError) as excinfo:
            service.restock(beer.id, 6)

        record = service.restock_history()[0]
        assert excinfo.value.committed == [record.id]
        assert excinfo.value.pending == [beer.id]
        assert service.get_product(beer.id).quantity == 100


class TestSummary:
    def test_summary_and_low_stock(self, inventory):
        inventory.add_product("Cerveza Premium", 100, 2500)
        low = inventory.add_product("Cerveza Roja", 5, 3000)

        summary = inventory.inventory_summary()
        assert summary["product_count"] == 2
        assert summary["total_units"] == 105
        assert summary["total_value"] == 100 * 2500 + 5 * 3000
        assert summary["low_stock_threshold"] == 20
        assert [p["id"] for p in summary["low_stock"]] == [low.id]
