from __future__ import annotations

from ..extensions import db
from casinobar.time_utils import to_utc_z
from ._ids import new_id


class Worker(db.Model):
    """
    Bar staff member at a venue.

    LIFECYCLE: ACTIVE <-> INACTIVE. Workers referenced by any shift are never
    removed; deleting one only deactivates it.
    """
    __tablename__ = "workers"

    STATUS_ACTIVE = "ACTIVE"
    STATUS_INACTIVE = "INACTIVE"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    venue_id = db.Column(db.String(64), db.ForeignKey("venues.id"), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<Worker id={self.id} name={self.name!r} active={self.is_active}>"

    @property
    def status(self) -> str:
        return self.STATUS_ACTIVE if self.is_active else self.STATUS_INACTIVE

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "venue_id": self.venue_id,
            "name": self.name,
            "is_active": self.is_active,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
