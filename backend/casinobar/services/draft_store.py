# backend/casinobar/services/draft_store.py
"""
Draft Store: saved progress of a shift close count.

Keyed by (venue_id, shift_id) and independent of the ledger. Two adapters:
- SqlDraftStore keeps drafts in the shift_drafts table
- FileDraftStore keeps one JSON file per draft on local disk

Payloads are plain JSON-compatible dicts; shift_service owns their shape.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import ShiftDraft
from casinobar.time_utils import utcnow
from .concurrency import run_with_retry
from .storage import StorageError

logger = logging.getLogger(__name__)


def draft_key(venue_id: str, shift_id: str) -> str:
    return f"shift_progress_{venue_id}_{shift_id}"


class DraftStore:
    """Draft storage port."""

    def save_draft(self, venue_id: str, shift_id: str, draft: dict) -> None:
        raise NotImplementedError

    def load_draft(self, venue_id: str, shift_id: str) -> dict | None:
        raise NotImplementedError

    def delete_draft(self, venue_id: str, shift_id: str) -> None:
        raise NotImplementedError


class SqlDraftStore(DraftStore):
    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def save_draft(self, venue_id: str, shift_id: str, draft: dict) -> None:
        payload = json.loads(json.dumps(draft))

        def _op():
            row = self.session.get(ShiftDraft, (venue_id, shift_id))
            if row is None:
                row = ShiftDraft(venue_id=venue_id, shift_id=shift_id)
                self.session.add(row)
            row.payload = payload
            row.saved_at = utcnow()
            self.session.commit()

        try:
            run_with_retry(_op, session=self.session)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"Could not save draft {draft_key(venue_id, shift_id)}") from exc

    def load_draft(self, venue_id: str, shift_id: str) -> dict | None:
        try:
            row = self.session.get(ShiftDraft, (venue_id, shift_id))
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"Could not load draft {draft_key(venue_id, shift_id)}") from exc
        if row is None:
            return None
        return dict(row.payload) if isinstance(row.payload, dict) else row.payload

    def delete_draft(self, venue_id: str, shift_id: str) -> None:
        def _op():
            row = self.session.get(ShiftDraft, (venue_id, shift_id))
            if row is not None:
                self.session.delete(row)
                self.session.commit()

        try:
            run_with_retry(_op, session=self.session)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError(f"Could not delete draft {draft_key(venue_id, shift_id)}") from exc


class FileDraftStore(DraftStore):
    """
    One JSON file per draft under `directory`.

    Writes go to a temp file first and are renamed into place, so a crash
    mid-save leaves the previous draft intact.
    """

    def __init__(self, directory: str | os.PathLike):
        self.directory = Path(directory)

    def _path(self, venue_id: str, shift_id: str) -> Path:
        return self.directory / f"{draft_key(venue_id, shift_id)}.json"

    def save_draft(self, venue_id: str, shift_id: str, draft: dict) -> None:
        path = self._path(venue_id, shift_id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(draft, sort_keys=True), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise StorageError(f"Could not save draft {path.name}") from exc

    def load_draft(self, venue_id: str, shift_id: str) -> dict | None:
        path = self._path(venue_id, shift_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Could not load draft {path.name}") from exc
        try:
            return json.loads(raw)
        except ValueError:
            # A corrupt draft is treated as missing; the count starts over
            logger.warning("Ignoring unreadable draft file %s", path)
            return None

    def delete_draft(self, venue_id: str, shift_id: str) -> None:
        path = self._path(venue_id, shift_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageError(f"Could not delete draft {path.name}") from exc
