# backend/casinobar/services/inventory_service.py
"""
Beer inventory for one venue.

Stock moves in exactly two places:
- restock() adds units and writes a RestockRecord
- shift_service.close_shift() sets the quantity to the shift's final count

Everything else here reads or edits descriptive fields.
"""
from __future__ import annotations

import logging
from typing import Callable

from ..models import Product, RestockRecord, Shift
from ..models._ids import new_id
from ..validation import (
    NotFoundError,
    ValidationError,
    require_name,
    require_non_negative,
    require_positive,
    require_restock_day,
)
from casinobar.time_utils import utcnow
from .storage import LedgerStore, PartialCommitError, StorageError

logger = logging.getLogger(__name__)

DEFAULT_SELLING_PRICE = 4000
DEFAULT_LOW_STOCK_THRESHOLD = 20

PRODUCT_EDITABLE_FIELDS = {"name", "purchase_cost", "weekly_restock_day"}


class InventoryService:
    def __init__(
        self,
        store: LedgerStore,
        venue_id: str,
        *,
        selling_price: int = DEFAULT_SELLING_PRICE,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        clock: Callable = utcnow,
    ):
        self.store = store
        self.venue_id = venue_id
        self.selling_price = selling_price
        self.low_stock_threshold = low_stock_threshold
        self.clock = clock

    def list_products(self) -> list[Product]:
        return self.store.list_products(self.venue_id)

    def get_product(self, product_id: str) -> Product:
        product = self.store.get_product(self.venue_id, product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    def add_product(
        self,
        name,
        initial_quantity,
        purchase_cost,
        restock_day="monday",
    ) -> Product:
        """
        Add a beer at the fixed selling price.

        Raises:
            ValidationError: blank name, purchase cost <= 0, negative quantity
        """
        product = Product(
            id=new_id(),
            venue_id=self.venue_id,
            name=require_name("name", name),
            quantity=require_non_negative("initial_quantity", initial_quantity),
            purchase_cost=require_positive("purchase_cost", purchase_cost),
            selling_price=self.selling_price,
            last_restock_date=self.clock(),
            weekly_restock_day=require_restock_day(restock_day),
        )
        self.store.upsert_product(self.venue_id, product)
        logger.info("Added product %s (%s) to venue %s", product.name, product.id, self.venue_id)
        return product

    def edit_product(self, product_id: str, fields: dict) -> Product:
        """
        Update name, purchase cost or restock day.

        Quantity and selling price are not editable; unknown keys are rejected
        so a client cannot bypass restock/close to change stock.
        """
        unknown = set(fields) - PRODUCT_EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")

        product = self.get_product(product_id)

        # Validate everything before touching the entity
        patch = {}
        if "name" in fields:
            patch["name"] = require_name("name", fields["name"])
        if "purchase_cost" in fields:
            patch["purchase_cost"] = require_positive("purchase_cost", fields["purchase_cost"])
        if "weekly_restock_day" in fields:
            patch["weekly_restock_day"] = require_restock_day(fields["weekly_restock_day"])

        for key, value in patch.items():
            setattr(product, key, value)
        self.store.upsert_product(self.venue_id, product)
        return product

    def restock(self, product_id: str, additional_quantity, worker_name: str | None = None) -> Product:
        """
        Add units to a product.

        If a shift is open, the restock is attributed to it: the record keeps
        the shift id and the shift is flagged, so closing that shift keeps
        these units instead of overwriting them with the opening snapshot.

        The record is written before the product. Closing a shift reads the
        record, so stock is never raised without a record that explains it.

        Raises:
            ValidationError: quantity <= 0
            NotFoundError: unknown product
            StorageError: nothing was saved; the restock can be resubmitted
            PartialCommitError: the record was saved, the stock write failed
                and the record could not be removed
        """
        quantity = require_positive("additional_quantity", additional_quantity)
        product = self.get_product(product_id)
        now = self.clock()
        worker_name = (worker_name or "").strip() or None
        product_id = product.id

        active_shift = self._current_shift()

        record = RestockRecord(
            id=new_id(),
            venue_id=self.venue_id,
            date=now,
            worker_name=worker_name,
            item_type=RestockRecord.ITEM_BEER,
            item_id=product_id,
            item_name=product.name,
            quantity_added=quantity,
            new_total_quantity=product.quantity + quantity,
            during_active_shift=active_shift is not None,
            shift_id=active_shift.id if active_shift is not None else None,
        )
        record_id = record.id
        self.store.add_restock(self.venue_id, record)

        try:
            product.quantity = product.quantity + quantity
            product.last_restock_date = now
            if worker_name:
                product.last_restock_worker = worker_name
            self.store.upsert_product(self.venue_id, product)
        except StorageError as exc:
            try:
                self.store.delete_restock(self.venue_id, record_id)
            except StorageError as undo_exc:
                logger.error("Restock record %s left without stock update: %s", record_id, undo_exc)
                raise PartialCommitError(
                    f"Restock record for {product_id} was saved but the stock was not updated",
                    committed=[record_id],
                    pending=[product_id],
                ) from exc
            raise

        if active_shift is not None:
            note = f"+{quantity} {product.name}" + (f" ({worker_name})" if worker_name else "")
            active_shift.restock_during_shift = True
            active_shift.restock_details = (
                f"{active_shift.restock_details}; {note}" if active_shift.restock_details else note
            )
            try:
                self.store.upsert_shift(self.venue_id, active_shift)
            except StorageError as exc:
                # close reads the record's shift_id, not this flag
                logger.warning("Restock of %s saved but shift %s was not flagged: %s",
                               product_id, active_shift.id, exc)

        logger.info("Restocked %s +%d (now %d)", product_id, quantity, product.quantity)
        return product

    def restock_history(self) -> list[RestockRecord]:
        return self.store.list_restocks(self.venue_id)

    def inventory_summary(self) -> dict:
        products = self.list_products()
        low_stock = [p for p in products if p.quantity < self.low_stock_threshold]
        return {
            "product_count": len(products),
            "total_units": sum(p.quantity for p in products),
            "total_value": sum(p.quantity * p.purchase_cost for p in products),
            "low_stock_threshold": self.low_stock_threshold,
            "low_stock": [p.to_dict() for p in low_stock],
        }

    def _current_shift(self) -> Shift | None:
        for shift in self.store.list_shifts(self.venue_id):
            if shift.is_active:
                return shift
        return None
