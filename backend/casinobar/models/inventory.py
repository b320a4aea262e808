from __future__ import annotations

from ..extensions import db
from casinobar.time_utils import to_utc_z
from ._ids import new_id


class Product(db.Model):
    """
    A beer stocked at a venue.

    Quantity is the live on-hand count. It changes on restock (+n) and when
    a shift closes (set to the shift's final count). It never goes negative.

    selling_price is fixed when the product is created; purchase_cost is the
    current unit cost and is what reports use for profit.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_venue_name", "venue_id", "name"),
    )

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    venue_id = db.Column(db.String(64), db.ForeignKey("venues.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    # Pesos, integers only
    purchase_cost = db.Column(db.Integer, nullable=False)
    selling_price = db.Column(db.Integer, nullable=False)

    last_restock_date = db.Column(db.DateTime(timezone=True), nullable=False)
    last_restock_worker = db.Column(db.String(128), nullable=True)
    weekly_restock_day = db.Column(db.String(16), nullable=False, default="monday")

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} qty={self.quantity} venue={self.venue_id}>"

    @property
    def unit_margin(self) -> int:
        return self.selling_price - self.purchase_cost

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "venue_id": self.venue_id,
            "name": self.name,
            "quantity": self.quantity,
            "purchase_cost": self.purchase_cost,
            "selling_price": self.selling_price,
            "unit_margin": self.unit_margin,
            "last_restock_date": to_utc_z(self.last_restock_date),
            "last_restock_worker": self.last_restock_worker,
            "weekly_restock_day": self.weekly_restock_day,
        }


class SoftDrink(db.Model):
    """Soft drinks kept for the floor; tracked by stock only, never sold on a shift."""
    __tablename__ = "soft_drinks"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    venue_id = db.Column(db.String(64), db.ForeignKey("venues.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    cost = db.Column(db.Integer, nullable=False, default=0)
    last_restock_date = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "venue_id": self.venue_id,
            "name": self.name,
            "quantity": self.quantity,
            "cost": self.cost,
            "last_restock_date": to_utc_z(self.last_restock_date),
        }


class RestockRecord(db.Model):
    """
    One restock event for a beer or a soft drink.

    When the restock happens while a shift is open the record carries that
    shift's id, which is how the close knows to keep the added units.
    """
    __tablename__ = "restock_records"
    __table_args__ = (
        db.Index("ix_restock_records_venue_date", "venue_id", "date"),
    )

    ITEM_BEER = "beer"
    ITEM_SOFT_DRINK = "softdrink"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    venue_id = db.Column(db.String(64), db.ForeignKey("venues.id"), nullable=False, index=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False)
    worker_name = db.Column(db.String(128), nullable=True)

    item_type = db.Column(db.String(16), nullable=False, default=ITEM_BEER)
    item_id = db.Column(db.String(32), nullable=False, index=True)
    item_name = db.Column(db.String(255), nullable=False)

    quantity_added = db.Column(db.Integer, nullable=False)
    new_total_quantity = db.Column(db.Integer, nullable=False)

    during_active_shift = db.Column(db.Boolean, nullable=False, default=False)
    shift_id = db.Column(db.String(32), nullable=True, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "venue_id": self.venue_id,
            "date": to_utc_z(self.date),
            "worker_name": self.worker_name,
            "type": self.item_type,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity_added": self.quantity_added,
            "new_total_quantity": self.new_total_quantity,
            "during_active_shift": self.during_active_shift,
            "shift_id": self.shift_id,
        }
