# backend/casinobar/services/soft_drinks_service.py
"""Soft drink stock for one venue. Not sold through shifts; only consumed."""
from __future__ import annotations

import logging
from typing import Callable

from ..models import SoftDrink, RestockRecord
from ..models._ids import new_id
from ..validation import (
    NotFoundError,
    ValidationError,
    require_name,
    require_non_negative,
    require_positive,
)
from casinobar.time_utils import utcnow
from .storage import LedgerStore

logger = logging.getLogger(__name__)

SOFT_DRINK_EDITABLE_FIELDS = {"name", "cost"}


class SoftDrinksService:
    def __init__(self, store: LedgerStore, venue_id: str, *, clock: Callable = utcnow):
        self.store = store
        self.venue_id = venue_id
        self.clock = clock

    def list_drinks(self) -> list[SoftDrink]:
        return self.store.list_soft_drinks(self.venue_id)

    def get(self, drink_id: str) -> SoftDrink:
        drink = self.store.get_soft_drink(self.venue_id, drink_id)
        if drink is None:
            raise NotFoundError(f"Soft drink {drink_id} not found")
        return drink

    def add(self, name, quantity=0, cost=0) -> SoftDrink:
        drink = SoftDrink(
            id=new_id(),
            venue_id=self.venue_id,
            name=require_name("name", name),
            quantity=require_non_negative("quantity", quantity),
            cost=require_non_negative("cost", cost),
            last_restock_date=self.clock(),
        )
        self.store.upsert_soft_drink(self.venue_id, drink)
        return drink

    def edit(self, drink_id: str, fields: dict) -> SoftDrink:
        unknown = set(fields) - SOFT_DRINK_EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")
        drink = self.get(drink_id)
        patch = {}
        if "name" in fields:
            patch["name"] = require_name("name", fields["name"])
        if "cost" in fields:
            patch["cost"] = require_non_negative("cost", fields["cost"])
        for key, value in patch.items():
            setattr(drink, key, value)
        self.store.upsert_soft_drink(self.venue_id, drink)
        return drink

    def delete(self, drink_id: str) -> None:
        self.get(drink_id)
        self.store.delete_soft_drink(self.venue_id, drink_id)

    def restock(self, drink_id: str, quantity, worker_name: str | None = None) -> SoftDrink:
        added = require_positive("quantity", quantity)
        drink = self.get(drink_id)
        now = self.clock()
        drink.quantity = drink.quantity + added
        drink.last_restock_date = now
        self.store.upsert_soft_drink(self.venue_id, drink)
        self.store.add_restock(
            self.venue_id,
            RestockRecord(
                id=new_id(),
                venue_id=self.venue_id,
                date=now,
                worker_name=(worker_name or "").strip() or None,
                item_type=RestockRecord.ITEM_SOFT_DRINK,
                item_id=drink.id,
                item_name=drink.name,
                quantity_added=added,
                new_total_quantity=drink.quantity,
                during_active_shift=False,
            ),
        )
        return drink

    def consume(self, drink_id: str, quantity) -> SoftDrink:
        """Record drinks used up. Stock floors at zero."""
        used = require_positive("quantity", quantity)
        drink = self.get(drink_id)
        drink.quantity = max(0, drink.quantity - used)
        self.store.upsert_soft_drink(self.venue_id, drink)
        logger.info("Consumed %d x %s (left %d)", used, drink.name, drink.quantity)
        return drink

    def summary(self) -> dict:
        drinks = self.list_drinks()
        return {
            "product_count": len(drinks),
            "total_units": sum(d.quantity for d in drinks),
            "total_value": sum(d.quantity * d.cost for d in drinks),
        }
