from __future__ import annotations

from ..extensions import db
from casinobar.time_utils import to_utc_z


class Venue(db.Model):
    """
    An operated casino location.

    Every product, worker, shift and draft is partitioned by venue_id.
    The id is a readable slug ("spezia", "cali-gran-casino").
    """
    __tablename__ = "venues"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Venue id={self.id!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
        }
