from __future__ import annotations

from ..extensions import db
from casinobar.time_utils import to_utc_z
from ._ids import new_id


class Shift(db.Model):
    """
    A worker's bar shift.

    LIFECYCLE:
    - OPEN: initial_inventory snapshot taken, sales not yet counted
    - CLOSED: sold/given-away committed, cash counted, product stock updated

    IMMUTABLE: initial_inventory is written once at open. Once closed, the
    shift is never reopened.

    Map columns are JSON objects keyed by product id. They are always
    replaced wholesale, never mutated in place.
    """
    __tablename__ = "shifts"
    __table_args__ = (
        db.Index("ix_shifts_venue_start", "venue_id", "start_time"),
    )

    STATUS_OPEN = "OPEN"
    STATUS_CLOSED = "CLOSED"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    venue_id = db.Column(db.String(64), db.ForeignKey("venues.id"), nullable=False, index=True)
    worker_id = db.Column(db.String(32), db.ForeignKey("workers.id"), nullable=False, index=True)
    worker_name = db.Column(db.String(128), nullable=False)

    start_time = db.Column(db.DateTime(timezone=True), nullable=False)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    initial_inventory = db.Column(db.JSON, nullable=False, default=dict)
    final_inventory = db.Column(db.JSON, nullable=True)
    sold = db.Column(db.JSON, nullable=True)
    given_away = db.Column(db.JSON, nullable=True)

    # Pesos
    bonuses = db.Column(db.Integer, nullable=True)
    prizes = db.Column(db.Integer, nullable=True)
    expected_cash = db.Column(db.Integer, nullable=True)
    actual_cash = db.Column(db.Integer, nullable=True)
    cash_breakdown = db.Column(db.JSON, nullable=True)

    restock_during_shift = db.Column(db.Boolean, nullable=False, default=False)
    restock_details = db.Column(db.Text, nullable=True)

    worker = db.relationship("Worker", backref=db.backref("shifts", lazy=True))

    def __repr__(self) -> str:
        return f"<Shift id={self.id} worker={self.worker_name!r} status={self.status}>"

    @property
    def status(self) -> str:
        return self.STATUS_OPEN if self.is_active else self.STATUS_CLOSED

    @property
    def units_sold(self) -> int:
        return sum((self.sold or {}).values())

    @property
    def units_given_away(self) -> int:
        return sum((self.given_away or {}).values())

    @property
    def initial_units(self) -> int:
        return sum((self.initial_inventory or {}).values())

    @property
    def cash_difference(self) -> int | None:
        if self.expected_cash is None or self.actual_cash is None:
            return None
        return self.actual_cash - self.expected_cash

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "venue_id": self.venue_id,
            "worker_id": self.worker_id,
            "worker_name": self.worker_name,
            "status": self.status,
            "is_active": self.is_active,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time) if self.end_time else None,
            "initial_inventory": dict(self.initial_inventory or {}),
            "final_inventory": dict(self.final_inventory) if self.final_inventory is not None else None,
            "sold": dict(self.sold) if self.sold is not None else None,
            "given_away": dict(self.given_away) if self.given_away is not None else None,
            "bonuses": self.bonuses,
            "prizes": self.prizes,
            "expected_cash": self.expected_cash,
            "actual_cash": self.actual_cash,
            "initial_units": self.initial_units,
            "units_sold": self.units_sold,
            "units_given_away": self.units_given_away,
            "cash_difference": self.cash_difference,
            "cash_breakdown": self.cash_breakdown,
            "restock_during_shift": self.restock_during_shift,
            "restock_details": self.restock_details,
        }


class ShiftDraft(db.Model):
    """
    Saved progress of a close count.

    Keyed by (venue_id, shift_id). Overwritten on every save and deleted
    when the shift closes. Holds the serialized count, not a Shift copy.
    """
    __tablename__ = "shift_drafts"

    venue_id = db.Column(db.String(64), db.ForeignKey("venues.id"), primary_key=True)
    shift_id = db.Column(db.String(32), primary_key=True)
    payload = db.Column(db.JSON, nullable=False)
    saved_at = db.Column(db.DateTime(timezone=True), nullable=False)
