"""
Tests for the shift lifecycle.

Tests:
1. Opening snapshots stock and never recomputes it
2. Count staging enforces sold + given_away <= initial (clamp / reject)
3. Close derives final inventory, expected cash and updates live stock
4. Drafts round-trip and are dropped on close
5. Partial close failures leave the shift open and converge on retry
6. Queries, duration and reconciliation
"""

from datetime import datetime

import pytest

from casinobar.models import Shift, ShiftDraft
from casinobar.services import cash_service
from casinobar.services.cash_service import CashBreakdown
from casinobar.services.draft_store import FileDraftStore, draft_key
from casinobar.services.shift_service import (
    CountDraft,
    ShiftService,
    apply_stock_limit,
    shift_state,
    SALE_LIMIT_REJECT,
)
from casinobar.services.storage import SqlLedgerStore, StorageError, PartialCommitError
from casinobar.validation import ConflictError, NotFoundError, ValidationError


CASH_120K = {"bills": {"50000": 2, "20000": 1}}
CASH_125K = {"bills": {"50000": 2, "20000": 1, "5000": 1}}


class FailingStore(SqlLedgerStore):
    """Store that fails chosen writes the way the SQL store does: rollback, then StorageError."""

    def __init__(self, session, *, fail_shift=False, fail_product_after=None):
        super().__init__(session)
        self.fail_shift = fail_shift
        self.fail_product_after = fail_product_after
        self.product_writes = 0

    def upsert_product(self, venue_id, product):
        if self.fail_product_after is not None and self.product_writes >= self.fail_product_after:
            self.session.rollback()
            raise StorageError("disk full")
        super().upsert_product(venue_id, product)
        self.product_writes += 1

    def upsert_shift(self, venue_id, shift):
        if self.fail_shift:
            self.session.rollback()
            raise StorageError("disk full")
        super().upsert_shift(venue_id, shift)


class TestStockLimitPolicy:
    def test_within_limit_passes_through(self):
        assert apply_stock_limit(30, 100) == 30

    def test_clamp_caps_at_available(self):
        assert apply_stock_limit(150, 100) == 100

    def test_clamp_with_nothing_available(self):
        assert apply_stock_limit(5, 0) == 0

    def test_reject_raises(self):
        with pytest.raises(ValidationError):
            apply_stock_limit(150, 100, SALE_LIMIT_REJECT)

    def test_negative_always_rejected(self):
        with pytest.raises(ValidationError):
            apply_stock_limit(-1, 100)


class TestOpenShift:
    def test_snapshot_taken_at_open(self, shifts, beer, worker, db_session):
        """initial_inventory equals product quantities at open time."""
        shift = shifts.open_shift(worker.id)

        assert shift.is_active is True
        assert shift.status == Shift.STATUS_OPEN
        assert shift.initial_inventory == {beer.id: 100}
        assert shift.worker_name == "Ana"
        assert shift_state(shift) == "OPEN"
        assert shift_state(None) == "NONE"

    def test_snapshot_not_recomputed_by_restock(self, shifts, inventory, beer, worker):
        shift = shifts.open_shift(worker.id)
        inventory.restock(beer.id, 24, worker_name="Ana")

        reloaded = shifts.get_shift(shift.id)
        assert reloaded.initial_inventory == {beer.id: 100}
        assert inventory.get_product(beer.id).quantity == 124

    def test_one_open_shift_per_worker(self, shifts, beer, worker):
        shifts.open_shift(worker.id)
        with pytest.raises(ConflictError):
            shifts.open_shift(worker.id)

    def test_two_workers_can_overlap(self, shifts, staff, beer, worker):
        other = staff.add_worker("Luis")
        shifts.open_shift(worker.id)
        shifts.open_shift(other.id)
        assert len(shifts.active_shifts()) == 2

    def test_inactive_worker_cannot_open(self, shifts, staff, worker):
        staff.set_active(worker.id, False)
        with pytest.raises(ValidationError):
            shifts.open_shift(worker.id)

    def test_unknown_worker(self, shifts, venue):
        with pytest.raises(NotFoundError):
            shifts.open_shift("does-not-exist")

    def test_missing_worker_id(self, shifts, venue):
        with pytest.raises(ValidationError):
            shifts.open_shift(None)


class TestCountSheet:
    def test_sale_over_stock_is_clamped(self, shifts, beer, worker):
        """Sale of 150 against initial 100 is recorded as 100."""
        shift = shifts.open_shift(worker.id)
        sheet = shifts.begin_count(shift.id)

        assert sheet.record_sale(beer.id, 150) == 100
        assert sheet.sold[beer.id] == 100

    def test_giveaway_limited_by_sales(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        sheet = shifts.begin_count(shift.id)

        sheet.record_sale(beer.id, 90)
        assert sheet.record_giveaway(beer.id, 20) == 10
        assert sheet.remaining(beer.id) == 0

    def test_sale_limited_by_giveaways(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        sheet = shifts.begin_count(shift.id)

        sheet.record_giveaway(beer.id, 40)
        assert sheet.record_sale(beer.id, 70) == 60

    def test_reject_policy(self, store, drafts, venue, clock, beer, worker):
        strict = ShiftService(store, drafts, venue.id, sale_limit_policy=SALE_LIMIT_REJECT, clock=clock)
        shift = strict.open_shift(worker.id)
        sheet = strict.begin_count(shift.id)

        with pytest.raises(ValidationError):
            sheet.record_sale(beer.id, 150)
        assert beer.id not in sheet.sold

    def test_negative_quantity_rejected(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        sheet = shifts.begin_count(shift.id)
        with pytest.raises(ValidationError):
            sheet.record_sale(beer.id, -1)
        with pytest.raises(ValidationError):
            sheet.set_bonuses(-100)

    def test_product_outside_snapshot_has_no_stock(self, shifts, inventory, beer, worker):
        shift = shifts.open_shift(worker.id)
        late = inventory.add_product("Cerveza Roja", 10, 2200)
        sheet = shifts.begin_count(shift.id)
        assert sheet.record_sale(late.id, 5) == 0

    def test_preview(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        sheet = shifts.begin_count(shift.id)
        sheet.record_sale(beer.id, 30)
        sheet.cash = CashBreakdown.from_dict(CASH_120K)

        preview = shifts.preview(sheet)
        assert preview["expected_cash"] == 120000
        assert preview["counted_total"] == 120000
        assert preview["variance"]["status"] == cash_service.VARIANCE_EXACT


class TestDrafts:
    def test_save_then_resume_round_trips(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        draft = CountDraft(
            sold={beer.id: 30},
            given_away={beer.id: 5},
            bonuses=10000,
            prizes=2000,
            cash=CashBreakdown.from_dict({"bills": {"50000": 2}, "coins": 500, "nequi": 7000}),
        )

        shifts.save_draft(shift.id, draft)
        resumed = shifts.resume_draft(shift.id)

        assert resumed.to_dict() == draft.to_dict()

    def test_resume_without_draft_is_empty(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        resumed = shifts.resume_draft(shift.id)
        assert resumed.sold == {}
        assert resumed.cash.total == 0

    def test_save_overwrites(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        shifts.save_draft(shift.id, CountDraft(sold={beer.id: 10}))
        shifts.save_draft(shift.id, CountDraft(sold={beer.id: 12}))
        assert shifts.resume_draft(shift.id).sold == {beer.id: 12}

    def test_save_draft_touches_no_stock(self, shifts, inventory, beer, worker):
        shift = shifts.open_shift(worker.id)
        shifts.save_draft(shift.id, CountDraft(sold={beer.id: 60}))

        assert inventory.get_product(beer.id).quantity == 100
        assert shifts.get_shift(shift.id).is_active is True

    def test_begin_count_resumes_draft(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        shifts.save_draft(shift.id, CountDraft(sold={beer.id: 30}, bonuses=5000))

        sheet = shifts.begin_count(shift.id)
        assert sheet.sold == {beer.id: 30}
        assert sheet.bonuses == 5000

    def test_saved_draft_is_clamped(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        saved = shifts.save_draft(shift.id, CountDraft(sold={beer.id: 500}))
        assert saved.sold == {beer.id: 100}

    @pytest.mark.parametrize("raw", ["[1, 2]", "\"sold\"", "42"])
    def test_non_object_draft_file_is_ignored(self, store, venue, clock, beer, worker, tmp_path, raw):
        shifts = ShiftService(store, FileDraftStore(tmp_path), venue.id, clock=clock)
        shift = shifts.open_shift(worker.id)
        (tmp_path / f"{draft_key(venue.id, shift.id)}.json").write_text(raw, encoding="utf-8")

        resumed = shifts.resume_draft(shift.id)
        assert resumed.sold == {}
        assert resumed.cash.total == 0
        assert shifts.begin_count(shift.id).sold == {}

    def test_non_object_draft_row_is_ignored(self, shifts, db_session, clock, beer, worker):
        shift = shifts.open_shift(worker.id)
        db_session.add(ShiftDraft(venue_id=shift.venue_id, shift_id=shift.id,
                                  payload=["stale"], saved_at=clock.now))
        db_session.commit()

        assert shifts.resume_draft(shift.id).sold == {}

    def test_legacy_draft_keys(self):
        draft = CountDraft.from_dict({
            "salesData": {"p1": 3},
            "freeBeerData": {"p1": 1},
            "cashBreakdown": {"nequi": 4000},
        })
        assert draft.sold == {"p1": 3}
        assert draft.given_away == {"p1": 1}
        assert draft.cash.nequi == 4000


class TestCloseShift:
    def test_close_exact(self, shifts, inventory, beer, worker):
        """qty 100 at 4000: sold 30, given 5, counted 120000."""
        shift = shifts.open_shift(worker.id)

        result = shifts.close_shift(
            shift.id,
            sold={beer.id: 30},
            given_away={beer.id: 5},
            cash_breakdown=CASH_120K,
        )

        closed = result.shift
        assert closed.is_active is False
        assert closed.end_time is not None
        assert closed.final_inventory == {beer.id: 65}
        assert closed.expected_cash == 120000
        assert closed.actual_cash == 120000
        assert result.variance.status == cash_service.VARIANCE_EXACT
        assert inventory.get_product(beer.id).quantity == 65

    def test_close_over(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        result = shifts.close_shift(
            shift.id,
            sold={beer.id: 30},
            given_away={beer.id: 5},
            cash_breakdown=CASH_125K,
        )
        assert result.variance.status == cash_service.VARIANCE_OVER
        assert result.variance.magnitude == 5000
        assert result.variance.display == "+$5,000"

    def test_conservation(self, shifts, inventory, worker):
        """final + sold + given_away == initial for every product."""
        a = inventory.add_product("Cerveza Premium", 100, 2500)
        b = inventory.add_product("Cerveza Clásica", 150, 2000)
        shift = shifts.open_shift(worker.id)

        closed = shifts.close_shift(
            shift.id,
            sold={a.id: 40, b.id: 200},
            given_away={a.id: 7},
            cash_breakdown={},
        ).shift

        for product_id, initial in closed.initial_inventory.items():
            assert (
                closed.final_inventory[product_id]
                + closed.sold[product_id]
                + closed.given_away[product_id]
            ) == initial
        assert closed.final_inventory[b.id] == 0

    def test_bonuses_and_prizes_override_breakdown(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        closed = shifts.close_shift(
            shift.id,
            sold={},
            given_away={},
            bonuses=10000,
            prizes=3000,
            cash_breakdown={"bonuses": 999, "prizes": 1, "nequi": 2000},
        ).shift

        assert closed.cash_breakdown["bonuses"] == 10000
        assert closed.cash_breakdown["prizes"] == 3000
        assert closed.actual_cash == 15000
        assert closed.cash_breakdown["total"] == closed.actual_cash

    def test_close_twice_conflicts(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        shifts.close_shift(shift.id, sold={}, given_away={}, cash_breakdown={})
        with pytest.raises(ConflictError):
            shifts.close_shift(shift.id, sold={}, given_away={}, cash_breakdown={})

    def test_close_deletes_draft(self, shifts, drafts, beer, worker, venue):
        shift = shifts.open_shift(worker.id)
        shifts.save_draft(shift.id, CountDraft(sold={beer.id: 3}))

        shifts.close_shift(shift.id, sold={beer.id: 3}, given_away={}, cash_breakdown={})

        assert drafts.load_draft(venue.id, shift.id) is None
        with pytest.raises(ConflictError):
            shifts.save_draft(shift.id, CountDraft())

    def test_restock_during_shift_is_kept(self, shifts, inventory, beer, worker):
        """Units restocked mid-shift survive the close."""
        shift = shifts.open_shift(worker.id)
        inventory.restock(beer.id, 24, worker_name="Luis")

        closed = shifts.close_shift(
            shift.id,
            sold={beer.id: 30},
            given_away={beer.id: 5},
            cash_breakdown=CASH_120K,
        ).shift

        assert closed.restock_during_shift is True
        assert "+24" in closed.restock_details
        assert closed.final_inventory == {beer.id: 65}
        assert inventory.get_product(beer.id).quantity == 89

    def test_product_added_after_open_untouched(self, shifts, inventory, beer, worker):
        shift = shifts.open_shift(worker.id)
        late = inventory.add_product("Cerveza Roja", 10, 2200)

        closed = shifts.close_shift(shift.id, sold={late.id: 5}, given_away={}, cash_breakdown={}).shift

        assert late.id not in closed.sold
        assert inventory.get_product(late.id).quantity == 10


class TestPartialClose:
    def test_shift_write_failure_leaves_shift_open(self, store, drafts, db_session, venue, clock, inventory, staff):
        a = inventory.add_product("Cerveza Premium", 100, 2500)
        b = inventory.add_product("Cerveza Clásica", 150, 2000)
        worker = staff.add_worker("Ana")
        shift = ShiftService(store, drafts, venue.id, clock=clock).open_shift(worker.id)

        failing = ShiftService(FailingStore(db_session, fail_shift=True), drafts, venue.id, clock=clock)
        with pytest.raises(PartialCommitError) as excinfo:
            failing.close_shift(shift.id, sold={a.id: 10, b.id: 20}, given_away={}, cash_breakdown={})

        assert sorted(excinfo.value.committed) == sorted([a.id, b.id])
        assert excinfo.value.pending == [shift.id]
        assert store.get_shift(venue.id, shift.id).is_active is True
        assert inventory.get_product(a.id).quantity == 90

    def test_retry_converges(self, store, drafts, db_session, venue, clock, inventory, staff):
        a = inventory.add_product("Cerveza Premium", 100, 2500)
        b = inventory.add_product("Cerveza Clásica", 150, 2000)
        worker = staff.add_worker("Ana")
        service = ShiftService(store, drafts, venue.id, clock=clock)
        shift = service.open_shift(worker.id)

        failing = ShiftService(FailingStore(db_session, fail_product_after=1), drafts, venue.id, clock=clock)
        with pytest.raises(PartialCommitError) as excinfo:
            failing.close_shift(shift.id, sold={a.id: 10, b.id: 20}, given_away={}, cash_breakdown={})
        assert len(excinfo.value.committed) == 1
        assert shift.id in excinfo.value.pending

        closed = service.close_shift(shift.id, sold={a.id: 10, b.id: 20}, given_away={}, cash_breakdown={}).shift

        assert closed.is_active is False
        assert inventory.get_product(a.id).quantity == 90
        assert inventory.get_product(b.id).quantity == 130

    def test_nothing_written_raises_plain_storage_error(self, store, drafts, db_session, venue, clock, beer, worker):
        shift = ShiftService(store, drafts, venue.id, clock=clock).open_shift(worker.id)
        failing = ShiftService(FailingStore(db_session, fail_product_after=0), drafts, venue.id, clock=clock)

        with pytest.raises(StorageError) as excinfo:
            failing.close_shift(shift.id, sold={beer.id: 1}, given_away={}, cash_breakdown={})

        assert not isinstance(excinfo.value, PartialCommitError)
        assert store.get_shift(venue.id, shift.id).is_active is True


class TestQueries:
    def test_list_newest_first(self, shifts, staff, clock, beer):
        first = shifts.open_shift(staff.add_worker("Ana").id)
        clock.advance(hours=1)
        second = shifts.open_shift(staff.add_worker("Luis").id)

        assert [s.id for s in shifts.list_shifts()] == [second.id, first.id]

    def test_recent_completed(self, shifts, staff, clock, beer):
        ids = []
        for name in ("Ana", "Luis", "Marta"):
            shift = shifts.open_shift(staff.add_worker(name).id)
            clock.advance(hours=1)
            shifts.close_shift(shift.id, sold={}, given_away={}, cash_breakdown={})
            ids.append(shift.id)
        shifts.open_shift(staff.add_worker("Pedro").id)

        assert [s.id for s in shifts.recent_completed(limit=2)] == [ids[2], ids[1]]

    def test_started_today_uses_venue_calendar(self, shifts, staff, clock, beer):
        """04:00 UTC is 23:00 the previous day in Bogotá."""
        clock.now = datetime(2026, 3, 14, 4, 0)
        shifts.open_shift(staff.add_worker("Ana").id)
        clock.now = datetime(2026, 3, 14, 20, 0)
        today = shifts.open_shift(staff.add_worker("Luis").id)

        assert [s.id for s in shifts.shifts_started_today()] == [today.id]

    def test_duration_floors_hours(self, shifts, clock, beer, worker):
        shift = shifts.open_shift(worker.id)
        clock.advance(hours=7, minutes=59)
        assert shifts.shift_duration(shift) == "7h"

    def test_get_unknown_shift(self, shifts, venue):
        with pytest.raises(NotFoundError):
            shifts.get_shift("nope")


class TestReconcile:
    def test_reports_both_comparisons(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        shifts.close_shift(shift.id, sold={beer.id: 30}, given_away={}, cash_breakdown=CASH_125K)

        result = shifts.reconcile(shift.id)
        assert result["variance"]["status"] == cash_service.VARIANCE_OVER
        assert result["base_check"]["status"] == cash_service.BASE_SHORTFALL
        assert result["base_check"]["amount"] == 10_000_000 - 125000

    def test_open_shift_cannot_be_reconciled(self, shifts, beer, worker):
        shift = shifts.open_shift(worker.id)
        with pytest.raises(ConflictError):
            shifts.reconcile(shift.id)
