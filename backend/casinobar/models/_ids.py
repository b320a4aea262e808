from __future__ import annotations

import uuid


def new_id() -> str:
    """Opaque identifier for venue-scoped documents."""
    return uuid.uuid4().hex
