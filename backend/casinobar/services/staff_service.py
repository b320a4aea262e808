# backend/casinobar/services/staff_service.py
"""
Bar staff for one venue.

Workers are soft-deleted: once any shift references a worker, "delete"
only deactivates it so shift history keeps a valid worker_id. Hard delete
is allowed only for workers who never worked a shift.
"""
from __future__ import annotations

import logging
from typing import Callable

from ..models import Worker, Shift
from ..models._ids import new_id
from ..validation import NotFoundError, require_name
from casinobar.time_utils import utcnow
from .storage import LedgerStore

logger = logging.getLogger(__name__)

DELETE_OUTCOME_DELETED = "deleted"
DELETE_OUTCOME_DEACTIVATED = "deactivated"


class StaffService:
    def __init__(self, store: LedgerStore, venue_id: str, *, clock: Callable = utcnow):
        self.store = store
        self.venue_id = venue_id
        self.clock = clock

    def list_workers(self, active: bool | None = None) -> list[Worker]:
        workers = self.store.list_workers(self.venue_id)
        if active is None:
            return workers
        return [w for w in workers if w.is_active == active]

    def get_worker(self, worker_id: str) -> Worker:
        worker = self.store.get_worker(self.venue_id, worker_id)
        if worker is None:
            raise NotFoundError(f"Worker {worker_id} not found")
        return worker

    def add_worker(self, name) -> Worker:
        worker = Worker(
            id=new_id(),
            venue_id=self.venue_id,
            name=require_name("name", name),
            is_active=True,
            created_at=self.clock(),
        )
        self.store.upsert_worker(self.venue_id, worker)
        logger.info("Added worker %s (%s) to venue %s", worker.name, worker.id, self.venue_id)
        return worker

    def rename_worker(self, worker_id: str, name) -> Worker:
        new_name = require_name("name", name)
        worker = self.get_worker(worker_id)
        worker.name = new_name
        self.store.upsert_worker(self.venue_id, worker)
        return worker

    def set_active(self, worker_id: str, active: bool) -> Worker:
        worker = self.get_worker(worker_id)
        worker.is_active = bool(active)
        self.store.upsert_worker(self.venue_id, worker)
        return worker

    def can_delete(self, worker_id: str) -> bool:
        return not self._shifts_for(worker_id)

    def delete_worker(self, worker_id: str) -> str:
        """
        Remove a worker, or deactivate if shift history references it.

        Returns:
            "deleted" or "deactivated"
        """
        worker = self.get_worker(worker_id)
        if self._shifts_for(worker_id):
            if worker.is_active:
                worker.is_active = False
                self.store.upsert_worker(self.venue_id, worker)
            logger.info("Worker %s has shift history; deactivated instead of deleted", worker_id)
            return DELETE_OUTCOME_DEACTIVATED

        self.store.delete_worker(self.venue_id, worker_id)
        logger.info("Deleted worker %s", worker_id)
        return DELETE_OUTCOME_DELETED

    def worker_stats(self, worker_id: str) -> dict:
        self.get_worker(worker_id)
        return worker_stats(worker_id, self.store.list_shifts(self.venue_id))

    def _shifts_for(self, worker_id: str) -> list[Shift]:
        return [s for s in self.store.list_shifts(self.venue_id) if s.worker_id == worker_id]


def worker_stats(worker_id: str, shifts: list[Shift]) -> dict:
    """Totals over a worker's closed shifts."""
    worker_shifts = [s for s in shifts if s.worker_id == worker_id]
    completed = [s for s in worker_shifts if not s.is_active]

    units_sold = sum(s.units_sold for s in completed)
    revenue = sum(s.expected_cash or 0 for s in completed)
    cash_difference = sum((s.actual_cash or 0) - (s.expected_cash or 0) for s in completed)

    return {
        "worker_id": worker_id,
        "total_shifts": len(completed),
        "has_active_shift": any(s.is_active for s in worker_shifts),
        "total_units_sold": units_sold,
        "total_revenue": revenue,
        "total_cash_difference": cash_difference,
        "average_units_per_shift": round(units_sold / len(completed)) if completed else 0,
    }
