# backend/casinobar/services/shift_service.py
"""
Shift lifecycle and end-of-shift reconciliation.

LIFECYCLE: NONE -> OPEN -> CLOSED (terminal)

- open_shift snapshots every product's quantity into initial_inventory.
  The snapshot is written once and never recomputed.
- While closing, sales and giveaways are staged on a CountSheet. Nothing
  is committed until close_shift; progress can be parked as a draft.
- close_shift derives final inventory and expected cash, takes the counted
  cash as actual cash, pushes the final counts into live product stock
  and drops the draft.

DESIGN PRINCIPLES:
- One open shift per worker at a time
- Per product: sold + given_away <= initial, enforced while staging
- Over-limit entries go through apply_stock_limit only (clamp or reject)
- Close writes products first and the shift last. If anything fails the
  shift is still OPEN and the same close can simply be submitted again:
  product quantities are absolute values derived from the snapshot, so a
  second run writes the same numbers.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from ..models import Shift, Product, RestockRecord
from ..models._ids import new_id
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    coerce_quantity_map,
    require_name,
    require_non_negative,
)
from casinobar.time_utils import utcnow, local_day_start, whole_hours_between
from . import cash_service
from .cash_service import CashBreakdown, BaseCheck, Variance
from .draft_store import DraftStore
from .storage import LedgerStore, PartialCommitError, StorageError

logger = logging.getLogger(__name__)

SALE_LIMIT_CLAMP = "clamp"
SALE_LIMIT_REJECT = "reject"
SALE_LIMIT_POLICIES = (SALE_LIMIT_CLAMP, SALE_LIMIT_REJECT)

STATE_NONE = "NONE"


def apply_stock_limit(requested: int, available: int, policy: str = SALE_LIMIT_CLAMP, *, label: str = "quantity") -> int:
    """
    The single place that decides what happens when a count exceeds stock.

    clamp: cap at what is available (the counting form has always done this)
    reject: raise ValidationError
    """
    if requested < 0:
        raise ValidationError(f"{label} cannot be negative")
    available = max(0, available)
    if requested <= available:
        return requested
    if policy == SALE_LIMIT_REJECT:
        raise ValidationError(f"{label} of {requested} exceeds the {available} available")
    return available


@dataclass
class CountDraft:
    """Serializable in-progress close count."""
    sold: dict[str, int] = field(default_factory=dict)
    given_away: dict[str, int] = field(default_factory=dict)
    bonuses: int = 0
    prizes: int = 0
    cash: CashBreakdown = field(default_factory=CashBreakdown)

    def to_dict(self) -> dict:
        return {
            "sold": dict(self.sold),
            "given_away": dict(self.given_away),
            "bonuses": self.bonuses,
            "prizes": self.prizes,
            "cash_breakdown": self.cash.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "CountDraft":
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ValidationError("draft must be an object")
        # Drafts saved by the old browser client used camelCase keys
        return cls(
            sold=coerce_quantity_map("sold", data.get("sold", data.get("salesData"))),
            given_away=coerce_quantity_map("given_away", data.get("given_away", data.get("freeBeerData"))),
            bonuses=require_non_negative("bonuses", data.get("bonuses") or 0),
            prizes=require_non_negative("prizes", data.get("prizes") or 0),
            cash=CashBreakdown.from_dict(data.get("cash_breakdown", data.get("cashBreakdown"))),
        )


class CountSheet:
    """
    Staged close count for one open shift.

    Holds sold/given-away per product, bonuses, prizes and the cash count.
    Every entry is checked against the shift's opening snapshot.
    """

    def __init__(self, shift: Shift, policy: str = SALE_LIMIT_CLAMP):
        if policy not in SALE_LIMIT_POLICIES:
            raise ValidationError(f"Unknown sale limit policy: {policy}")
        self.shift = shift
        self.policy = policy
        self.sold: dict[str, int] = {}
        self.given_away: dict[str, int] = {}
        self.bonuses = 0
        self.prizes = 0
        self.cash = CashBreakdown()

    def initial(self, product_id: str) -> int:
        return int((self.shift.initial_inventory or {}).get(product_id, 0))

    def remaining(self, product_id: str) -> int:
        return self.initial(product_id) - self.sold.get(product_id, 0) - self.given_away.get(product_id, 0)

    def record_sale(self, product_id: str, quantity) -> int:
        """Stage units sold; returns the quantity actually recorded."""
        requested = require_non_negative("sold", quantity)
        available = self.initial(product_id) - self.given_away.get(product_id, 0)
        applied = apply_stock_limit(requested, available, self.policy, label=f"sold[{product_id}]")
        self.sold[product_id] = applied
        return applied

    def record_giveaway(self, product_id: str, quantity) -> int:
        """Stage units given away free; returns the quantity actually recorded."""
        requested = require_non_negative("given_away", quantity)
        available = self.initial(product_id) - self.sold.get(product_id, 0)
        applied = apply_stock_limit(requested, available, self.policy, label=f"given_away[{product_id}]")
        self.given_away[product_id] = applied
        return applied

    def set_bonuses(self, amount) -> None:
        self.bonuses = require_non_negative("bonuses", amount)

    def set_prizes(self, amount) -> None:
        self.prizes = require_non_negative("prizes", amount)

    def load(self, draft: CountDraft) -> "CountSheet":
        for product_id, quantity in draft.sold.items():
            self.record_sale(product_id, quantity)
        for product_id, quantity in draft.given_away.items():
            self.record_giveaway(product_id, quantity)
        self.set_bonuses(draft.bonuses)
        self.set_prizes(draft.prizes)
        self.cash = CashBreakdown.from_dict(draft.cash.to_dict())
        return self

    def to_draft(self) -> CountDraft:
        return CountDraft(
            sold=dict(self.sold),
            given_away=dict(self.given_away),
            bonuses=self.bonuses,
            prizes=self.prizes,
            cash=CashBreakdown.from_dict(self.cash.to_dict()),
        )

    def counted_total(self) -> int:
        """Cash total with this sheet's bonuses/prizes folded in."""
        cash = CashBreakdown.from_dict(self.cash.to_dict())
        cash.bonuses = self.bonuses
        cash.prizes = self.prizes
        return cash.total

    def expected_cash(self, products: list[Product]) -> int:
        prices = {p.id: p.selling_price for p in products}
        return sum(qty * prices.get(product_id, 0) for product_id, qty in self.sold.items())


@dataclass
class CloseResult:
    shift: Shift
    variance: Variance
    base_check: BaseCheck

    def to_dict(self) -> dict:
        return {
            "shift": self.shift.to_dict(),
            "variance": self.variance.to_dict(),
            "base_check": self.base_check.to_dict(),
        }


def shift_state(shift: Shift | None) -> str:
    if shift is None:
        return STATE_NONE
    return shift.status


def format_duration(start: datetime, end: datetime) -> str:
    return f"{whole_hours_between(start, end)}h"


class ShiftService:
    def __init__(
        self,
        store: LedgerStore,
        drafts: DraftStore,
        venue_id: str,
        *,
        sale_limit_policy: str = SALE_LIMIT_CLAMP,
        drawer_base: int = cash_service.DEFAULT_DRAWER_BASE,
        timezone_name: str = "America/Bogota",
        clock: Callable = utcnow,
    ):
        if sale_limit_policy not in SALE_LIMIT_POLICIES:
            raise ValueError(f"Unknown sale limit policy: {sale_limit_policy}")
        self.store = store
        self.drafts = drafts
        self.venue_id = venue_id
        self.sale_limit_policy = sale_limit_policy
        self.drawer_base = drawer_base
        self.timezone_name = timezone_name
        self.clock = clock

    # =========================================================================
    # QUERIES
    # =========================================================================

    def list_shifts(self) -> list[Shift]:
        """All shifts, newest start first."""
        return self.store.list_shifts(self.venue_id)

    def get_shift(self, shift_id: str) -> Shift:
        shift = self.store.get_shift(self.venue_id, shift_id)
        if shift is None:
            raise NotFoundError(f"Shift {shift_id} not found")
        return shift

    def active_shifts(self) -> list[Shift]:
        return [s for s in self.list_shifts() if s.is_active]

    def recent_completed(self, limit: int = 10) -> list[Shift]:
        return [s for s in self.list_shifts() if not s.is_active][:limit]

    def shifts_started_today(self) -> list[Shift]:
        day_start = local_day_start(self.clock(), self.timezone_name)
        return [s for s in self.list_shifts() if s.start_time >= day_start]

    def open_shift_for(self, worker_id: str) -> Shift | None:
        for shift in self.list_shifts():
            if shift.worker_id == worker_id and shift.is_active:
                return shift
        return None

    def shift_duration(self, shift: Shift, now: datetime | None = None) -> str:
        """Whole hours worked so far (or in total once closed), e.g. "7h"."""
        end = shift.end_time or now or self.clock()
        return format_duration(shift.start_time, end)

    # =========================================================================
    # OPEN
    # =========================================================================

    def open_shift(self, worker_id: str) -> Shift:
        """
        Open a shift for a worker and snapshot current stock.

        Raises:
            NotFoundError: unknown worker
            ValidationError: worker is inactive
            ConflictError: worker already has an open shift
        """
        worker_id = require_name("worker_id", worker_id)
        worker = self.store.get_worker(self.venue_id, worker_id)
        if worker is None:
            raise NotFoundError(f"Worker {worker_id} not found")
        if not worker.is_active:
            raise ValidationError(f"Worker {worker.name} is inactive")

        existing = self.open_shift_for(worker_id)
        if existing is not None:
            raise ConflictError(f"{worker.name} already has an open shift ({existing.id})")

        snapshot = {p.id: int(p.quantity) for p in self.store.list_products(self.venue_id)}

        shift = Shift(
            id=new_id(),
            venue_id=self.venue_id,
            worker_id=worker.id,
            worker_name=worker.name,
            start_time=self.clock(),
            is_active=True,
            initial_inventory=snapshot,
            restock_during_shift=False,
        )
        self.store.upsert_shift(self.venue_id, shift)
        logger.info(
            "Opened shift %s for %s with %d units across %d products",
            shift.id, worker.name, sum(snapshot.values()), len(snapshot),
        )
        return shift

    # =========================================================================
    # COUNT STAGING AND DRAFTS
    # =========================================================================

    def _require_open(self, shift_id: str) -> Shift:
        shift = self.get_shift(shift_id)
        if not shift.is_active:
            raise ConflictError(f"Shift {shift_id} is already closed")
        return shift

    def new_sheet(self, shift: Shift) -> CountSheet:
        return CountSheet(shift, self.sale_limit_policy)

    def begin_count(self, shift_id: str) -> CountSheet:
        """Start (or resume) the close count for an open shift."""
        shift = self._require_open(shift_id)
        return self.new_sheet(shift).load(self.resume_draft(shift_id))

    def resume_draft(self, shift_id: str) -> CountDraft:
        """Saved draft for the shift, or an empty one."""
        payload = self.drafts.load_draft(self.venue_id, shift_id)
        if payload is not None and not isinstance(payload, dict):
            logger.warning("Ignoring malformed draft for shift %s: %s", shift_id, type(payload).__name__)
            return CountDraft()
        return CountDraft.from_dict(payload)

    def save_draft(self, shift_id: str, draft: CountDraft | CountSheet) -> CountDraft:
        """
        Park a partial count. Overwrites any earlier draft.

        Does not touch the shift or any product. The draft is normalized
        through a CountSheet first, so it never holds over-limit entries.
        """
        shift = self._require_open(shift_id)
        if isinstance(draft, CountSheet):
            draft = draft.to_draft()
        normalized = self.new_sheet(shift).load(draft).to_draft()
        self.drafts.save_draft(self.venue_id, shift_id, normalized.to_dict())
        return normalized

    # =========================================================================
    # CLOSE
    # =========================================================================

    def close_shift(
        self,
        shift_id: str,
        sold: dict | None,
        given_away: dict | None,
        bonuses=0,
        prizes=0,
        cash_breakdown: CashBreakdown | dict | None = None,
    ) -> CloseResult:
        """Stage the given count on a fresh sheet and close the shift with it."""
        shift = self._require_open(shift_id)
        if isinstance(cash_breakdown, CashBreakdown):
            cash_breakdown = cash_breakdown.to_dict()
        draft = CountDraft(
            sold=coerce_quantity_map("sold", sold),
            given_away=coerce_quantity_map("given_away", given_away),
            bonuses=require_non_negative("bonuses", bonuses or 0),
            prizes=require_non_negative("prizes", prizes or 0),
            cash=CashBreakdown.from_dict(cash_breakdown),
        )
        return self.close_from_sheet(self.new_sheet(shift).load(draft))

    def close_from_sheet(self, sheet: CountSheet) -> CloseResult:
        """
        Commit a staged count.

        Raises:
            ConflictError: shift already closed
            StorageError: nothing was written
            PartialCommitError: some products were written but the shift is
                still open; resubmitting the same close completes it
        """
        shift = self._require_open(sheet.shift.id)
        products = {p.id: p for p in self.store.list_products(self.venue_id)}
        restocked = self._restocked_during(shift)

        final_inventory: dict[str, int] = {}
        sold: dict[str, int] = {}
        given_away: dict[str, int] = {}
        expected_cash = 0
        for product_id, initial in (shift.initial_inventory or {}).items():
            sold_qty = sheet.sold.get(product_id, 0)
            free_qty = sheet.given_away.get(product_id, 0)
            final_inventory[product_id] = int(initial) - sold_qty - free_qty
            sold[product_id] = sold_qty
            given_away[product_id] = free_qty
            product = products.get(product_id)
            if product is not None:
                expected_cash += sold_qty * product.selling_price

        cash = CashBreakdown.from_dict(sheet.cash.to_dict())
        cash.bonuses = sheet.bonuses
        cash.prizes = sheet.prizes
        actual_cash = cash.total

        # Products first
        updates = []
        for product_id, final_qty in final_inventory.items():
            product = products.get(product_id)
            if product is None:
                continue
            live_qty = max(0, final_qty + restocked.get(product_id, 0))
            if product.quantity != live_qty:
                updates.append((product, live_qty))

        committed: list[str] = []
        for index, (product, live_qty) in enumerate(updates):
            product.quantity = live_qty
            try:
                self.store.upsert_product(self.venue_id, product)
            except StorageError as exc:
                if not committed:
                    raise
                pending = [p.id for p, _ in updates[index:]] + [shift.id]
                logger.error(
                    "Close of shift %s stopped after %d product writes: %s",
                    shift.id, len(committed), exc,
                )
                raise PartialCommitError(
                    f"Shift {shift.id} was not closed; stock was partly updated. Submit the close again.",
                    committed=committed,
                    pending=pending,
                ) from exc
            committed.append(product.id)

        # Shift last
        shift.end_time = self.clock()
        shift.is_active = False
        shift.final_inventory = final_inventory
        shift.sold = sold
        shift.given_away = given_away
        shift.bonuses = sheet.bonuses
        shift.prizes = sheet.prizes
        shift.expected_cash = expected_cash
        shift.actual_cash = actual_cash
        shift.cash_breakdown = cash.to_dict()
        try:
            self.store.upsert_shift(self.venue_id, shift)
        except StorageError as exc:
            if not committed:
                raise
            logger.error("Close of shift %s: stock updated but shift not saved: %s", shift.id, exc)
            raise PartialCommitError(
                f"Shift {shift.id} was not closed; stock was updated. Submit the close again.",
                committed=committed,
                pending=[shift.id],
            ) from exc

        try:
            self.drafts.delete_draft(self.venue_id, shift.id)
        except StorageError as exc:
            # Closed shifts never read their draft again
            logger.warning("Shift %s closed but its draft was not removed: %s", shift.id, exc)

        variance = cash_service.classify(expected_cash, actual_cash)
        base_check = cash_service.compare_to_base(actual_cash, self.drawer_base)
        logger.info(
            "Closed shift %s: expected %d, counted %d (%s %d)",
            shift.id, expected_cash, actual_cash, variance.status, variance.magnitude,
        )
        return CloseResult(shift=shift, variance=variance, base_check=base_check)

    # =========================================================================
    # RECONCILIATION
    # =========================================================================

    def reconcile(self, shift_id: str) -> dict:
        """Both cash comparisons for a closed shift."""
        shift = self.get_shift(shift_id)
        if shift.is_active or shift.expected_cash is None or shift.actual_cash is None:
            raise ConflictError(f"Shift {shift_id} has not been closed yet")
        variance = cash_service.classify(shift.expected_cash, shift.actual_cash)
        base_check = cash_service.compare_to_base(shift.actual_cash, self.drawer_base)
        return {
            "shift_id": shift.id,
            "expected_cash": shift.expected_cash,
            "actual_cash": shift.actual_cash,
            "variance": variance.to_dict(),
            "base_check": base_check.to_dict(),
        }

    def preview(self, sheet: CountSheet) -> dict:
        """Running totals shown while a count is in progress."""
        products = self.store.list_products(self.venue_id)
        expected = sheet.expected_cash(products)
        counted = sheet.counted_total()
        return {
            "units_sold": sum(sheet.sold.values()),
            "units_given_away": sum(sheet.given_away.values()),
            "bonuses": sheet.bonuses,
            "prizes": sheet.prizes,
            "expected_cash": expected,
            "counted_total": counted,
            "variance": cash_service.classify(expected, counted).to_dict(),
            "base_check": cash_service.compare_to_base(counted, self.drawer_base).to_dict(),
        }

    def _restocked_during(self, shift: Shift) -> dict[str, int]:
        totals: dict[str, int] = {}
        for record in self.store.list_restocks(self.venue_id):
            if record.shift_id == shift.id and record.item_type == RestockRecord.ITEM_BEER:
                totals[record.item_id] = totals.get(record.item_id, 0) + record.quantity_added
        return totals
