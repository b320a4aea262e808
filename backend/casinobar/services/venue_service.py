# backend/casinobar/services/venue_service.py
"""
Venues and the per-request service bundle.

VenueContext resolves a venue id once and wires every service for it with
the app's configuration, so routes and CLI commands share one setup path.
"""
from __future__ import annotations

import logging
import os
from typing import Callable

from flask import current_app

from ..models import Venue
from ..validation import NotFoundError, require_name
from casinobar.time_utils import utcnow
from .draft_store import DraftStore, FileDraftStore, SqlDraftStore
from .inventory_service import InventoryService
from .reporting_service import sales_report
from .shift_service import ShiftService
from .soft_drinks_service import SoftDrinksService
from .staff_service import StaffService
from .storage import LedgerStore, SqlLedgerStore

logger = logging.getLogger(__name__)

DEFAULT_VENUES = (
    ("spezia", "Spezia"),
    ("cali-gran-casino", "Cali Gran Casino"),
)

DEMO_PRODUCTS = (
    # name, quantity, purchase cost
    ("Cerveza Premium", 100, 2500),
    ("Cerveza Clásica", 150, 2000),
)
DEMO_WORKER = "Trabajador Demo"


def build_draft_store(config) -> DraftStore:
    backend = config.get("DRAFT_BACKEND", "sql")
    if backend == "file":
        directory = config.get("DRAFT_DIR", "drafts")
        if not os.path.isabs(directory):
            directory = os.path.join(current_app.instance_path, directory)
        return FileDraftStore(directory)
    if backend == "sql":
        return SqlDraftStore()
    raise ValueError(f"Unknown DRAFT_BACKEND: {backend}")


def list_venues(store: LedgerStore) -> list[Venue]:
    return store.list_venues()


def get_venue(store: LedgerStore, venue_id: str) -> Venue:
    venue = store.get_venue(venue_id)
    if venue is None:
        raise NotFoundError(f"Venue {venue_id} not found")
    return venue


def seed_venues(store: LedgerStore, *, demo: bool = False) -> list[Venue]:
    """
    Create the default venues. Idempotent: existing venues are left alone.

    With demo=True, venues that have no products yet also get the two
    sample beers and a demo worker.
    """
    venues = []
    for venue_id, name in DEFAULT_VENUES:
        venue = store.get_venue(venue_id)
        if venue is None:
            venue = Venue(id=venue_id, name=require_name("name", name))
            store.upsert_venue(venue)
            logger.info("Created venue %s", venue_id)
        venues.append(venue)

        if demo and not store.list_products(venue_id):
            inventory = InventoryService(store, venue_id)
            for product_name, quantity, cost in DEMO_PRODUCTS:
                inventory.add_product(product_name, quantity, cost)
            StaffService(store, venue_id).add_worker(DEMO_WORKER)
            logger.info("Seeded demo data for venue %s", venue_id)
    return venues


class VenueContext:
    """All services for one venue, configured from the current app."""

    def __init__(
        self,
        venue_id: str,
        *,
        store: LedgerStore | None = None,
        drafts: DraftStore | None = None,
        config=None,
        clock: Callable = utcnow,
    ):
        config = config if config is not None else current_app.config
        self.store = store if store is not None else SqlLedgerStore()
        self.venue = get_venue(self.store, venue_id)
        self.venue_id = self.venue.id
        self.timezone_name = config.get("VENUE_TIMEZONE", "America/Bogota")
        self.clock = clock

        self.inventory = InventoryService(
            self.store,
            self.venue_id,
            selling_price=config.get("SELLING_PRICE", 4000),
            low_stock_threshold=config.get("LOW_STOCK_THRESHOLD", 20),
            clock=clock,
        )
        self.staff = StaffService(self.store, self.venue_id, clock=clock)
        self.shifts = ShiftService(
            self.store,
            drafts if drafts is not None else build_draft_store(config),
            self.venue_id,
            sale_limit_policy=config.get("SALE_LIMIT_POLICY", "clamp"),
            drawer_base=config.get("DRAWER_BASE_AMOUNT", 10_000_000),
            timezone_name=self.timezone_name,
            clock=clock,
        )
        self.soft_drinks = SoftDrinksService(self.store, self.venue_id, clock=clock)

    def sales_report(self, period: str) -> dict:
        return sales_report(
            self.shifts.list_shifts(),
            self.inventory.list_products(),
            period=period,
            now=self.clock(),
            tz_name=self.timezone_name,
        )

    def dashboard(self) -> dict:
        products = self.inventory.list_products()
        return {
            "venue": self.venue.to_dict(),
            "total_units": sum(p.quantity for p in products),
            "inventory_value": sum(p.quantity * p.purchase_cost for p in products),
            "active_workers": len(self.staff.list_workers(active=True)),
            "active_shifts": [s.to_dict() for s in self.shifts.active_shifts()],
            "shifts_today": len(self.shifts.shifts_started_today()),
        }
