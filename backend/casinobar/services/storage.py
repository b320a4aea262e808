# backend/casinobar/services/storage.py
"""
Ledger Store: per-venue persistence for products, workers and shifts.

DESIGN:
- Services receive a LedgerStore instance; nothing here is a module global.
- The contract is deliberately small: read-all and upsert-by-id, shifts
  ordered by start time (newest first). No transactions across calls.
- Every upsert is its own commit. A failed commit rolls the session back,
  which expires the ORM objects involved, so callers never keep values
  the database did not accept.
"""
from __future__ import annotations

import logging

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Venue, Product, Worker, Shift, SoftDrink, RestockRecord
from ..validation import ValidationError
from .concurrency import run_with_retry

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when the backing store rejects a read or write."""


class PartialCommitError(StorageError):
    """
    Raised when a multi-record write stopped part way.

    committed lists the record ids already written, pending the ones that
    were not. Retrying the same operation is expected to converge.
    """

    def __init__(self, message: str, *, committed: list[str], pending: list[str]):
        super().__init__(message)
        self.committed = committed
        self.pending = pending


class LedgerStore:
    """Storage port. Adapters override every method."""

    def get_venue(self, venue_id: str) -> Venue | None:
        raise NotImplementedError

    def list_venues(self) -> list[Venue]:
        raise NotImplementedError

    def upsert_venue(self, venue: Venue) -> None:
        raise NotImplementedError

    def list_products(self, venue_id: str) -> list[Product]:
        raise NotImplementedError

    def get_product(self, venue_id: str, product_id: str) -> Product | None:
        raise NotImplementedError

    def upsert_product(self, venue_id: str, product: Product) -> None:
        raise NotImplementedError

    def list_workers(self, venue_id: str) -> list[Worker]:
        raise NotImplementedError

    def get_worker(self, venue_id: str, worker_id: str) -> Worker | None:
        raise NotImplementedError

    def upsert_worker(self, venue_id: str, worker: Worker) -> None:
        raise NotImplementedError

    def delete_worker(self, venue_id: str, worker_id: str) -> None:
        raise NotImplementedError

    def list_shifts(self, venue_id: str) -> list[Shift]:
        raise NotImplementedError

    def get_shift(self, venue_id: str, shift_id: str) -> Shift | None:
        raise NotImplementedError

    def upsert_shift(self, venue_id: str, shift: Shift) -> None:
        raise NotImplementedError

    def list_restocks(self, venue_id: str) -> list[RestockRecord]:
        raise NotImplementedError

    def add_restock(self, venue_id: str, record: RestockRecord) -> None:
        raise NotImplementedError

    def delete_restock(self, venue_id: str, record_id: str) -> None:
        raise NotImplementedError

    def list_soft_drinks(self, venue_id: str) -> list[SoftDrink]:
        raise NotImplementedError

    def get_soft_drink(self, venue_id: str, drink_id: str) -> SoftDrink | None:
        raise NotImplementedError

    def upsert_soft_drink(self, venue_id: str, drink: SoftDrink) -> None:
        raise NotImplementedError

    def delete_soft_drink(self, venue_id: str, drink_id: str) -> None:
        raise NotImplementedError


def _column_values(entity) -> dict:
    """Column attributes currently set or loaded on the instance; unset ones keep their defaults."""
    state = sa_inspect(entity)
    return {
        attr.key: state.dict[attr.key]
        for attr in entity.__mapper__.column_attrs
        if attr.key in state.dict
    }


class SqlLedgerStore(LedgerStore):
    """LedgerStore on Flask-SQLAlchemy. One commit per write."""

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    # -------------------------------------------------------------------------
    # plumbing
    # -------------------------------------------------------------------------

    def _read(self, description: str, func):
        try:
            return func()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Store read failed (%s): %s", description, exc)
            raise StorageError(f"Could not load {description}") from exc

    def _write(self, description: str, func):
        try:
            return run_with_retry(func, session=self.session)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Store write failed (%s): %s", description, exc)
            raise StorageError(f"Could not save {description}") from exc

    def _upsert(self, venue_id: str, entity, description: str) -> None:
        if entity.venue_id not in (None, venue_id):
            raise ValidationError(f"{description} belongs to another venue")

        # Captured up front: a rollback between attempts expires the object
        values = _column_values(entity)
        values["venue_id"] = venue_id

        def _op():
            for key, value in values.items():
                setattr(entity, key, value)
            self.session.add(entity)
            self.session.commit()

        self._write(description, _op)

    def _get(self, model, venue_id: str, entity_id: str, description: str):
        def _op():
            entity = self.session.get(model, entity_id)
            if entity is None or entity.venue_id != venue_id:
                return None
            return entity
        return self._read(description, _op)

    def _delete(self, model, venue_id: str, entity_id: str, description: str) -> None:
        def _op():
            entity = self.session.get(model, entity_id)
            if entity is None or entity.venue_id != venue_id:
                return
            self.session.delete(entity)
            self.session.commit()
        self._write(description, _op)

    # -------------------------------------------------------------------------
    # venues
    # -------------------------------------------------------------------------

    def get_venue(self, venue_id: str) -> Venue | None:
        return self._read("venue", lambda: self.session.get(Venue, venue_id))

    def list_venues(self) -> list[Venue]:
        return self._read(
            "venues",
            lambda: self.session.query(Venue).order_by(Venue.name.asc()).all(),
        )

    def upsert_venue(self, venue: Venue) -> None:
        values = _column_values(venue)

        def _op():
            for key, value in values.items():
                setattr(venue, key, value)
            self.session.add(venue)
            self.session.commit()

        self._write("venue", _op)

    # -------------------------------------------------------------------------
    # products
    # -------------------------------------------------------------------------

    def list_products(self, venue_id: str) -> list[Product]:
        return self._read(
            "products",
            lambda: self.session.query(Product)
            .filter_by(venue_id=venue_id)
            .order_by(Product.name.asc(), Product.id.asc())
            .all(),
        )

    def get_product(self, venue_id: str, product_id: str) -> Product | None:
        return self._get(Product, venue_id, product_id, "product")

    def upsert_product(self, venue_id: str, product: Product) -> None:
        self._upsert(venue_id, product, "product")

    # -------------------------------------------------------------------------
    # workers
    # -------------------------------------------------------------------------

    def list_workers(self, venue_id: str) -> list[Worker]:
        return self._read(
            "workers",
            lambda: self.session.query(Worker)
            .filter_by(venue_id=venue_id)
            .order_by(Worker.name.asc(), Worker.id.asc())
            .all(),
        )

    def get_worker(self, venue_id: str, worker_id: str) -> Worker | None:
        return self._get(Worker, venue_id, worker_id, "worker")

    def upsert_worker(self, venue_id: str, worker: Worker) -> None:
        self._upsert(venue_id, worker, "worker")

    def delete_worker(self, venue_id: str, worker_id: str) -> None:
        self._delete(Worker, venue_id, worker_id, "worker")

    # -------------------------------------------------------------------------
    # shifts
    # -------------------------------------------------------------------------

    def list_shifts(self, venue_id: str) -> list[Shift]:
        return self._read(
            "shifts",
            lambda: self.session.query(Shift)
            .filter_by(venue_id=venue_id)
            .order_by(Shift.start_time.desc(), Shift.id.desc())
            .all(),
        )

    def get_shift(self, venue_id: str, shift_id: str) -> Shift | None:
        return self._get(Shift, venue_id, shift_id, "shift")

    def upsert_shift(self, venue_id: str, shift: Shift) -> None:
        self._upsert(venue_id, shift, "shift")

    # -------------------------------------------------------------------------
    # restock history and soft drinks
    # -------------------------------------------------------------------------

    def list_restocks(self, venue_id: str) -> list[RestockRecord]:
        return self._read(
            "restock records",
            lambda: self.session.query(RestockRecord)
            .filter_by(venue_id=venue_id)
            .order_by(RestockRecord.date.desc(), RestockRecord.id.desc())
            .all(),
        )

    def add_restock(self, venue_id: str, record: RestockRecord) -> None:
        self._upsert(venue_id, record, "restock record")

    def delete_restock(self, venue_id: str, record_id: str) -> None:
        self._delete(RestockRecord, venue_id, record_id, "restock record")

    def list_soft_drinks(self, venue_id: str) -> list[SoftDrink]:
        return self._read(
            "soft drinks",
            lambda: self.session.query(SoftDrink)
            .filter_by(venue_id=venue_id)
            .order_by(SoftDrink.name.asc(), SoftDrink.id.asc())
            .all(),
        )

    def get_soft_drink(self, venue_id: str, drink_id: str) -> SoftDrink | None:
        return self._get(SoftDrink, venue_id, drink_id, "soft drink")

    def upsert_soft_drink(self, venue_id: str, drink: SoftDrink) -> None:
        self._upsert(venue_id, drink, "soft drink")

    def delete_soft_drink(self, venue_id: str, drink_id: str) -> None:
        self._delete(SoftDrink, venue_id, drink_id, "soft drink")
