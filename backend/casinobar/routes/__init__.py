# backend/casinobar/routes/__init__.py
from flask import request

from ..services.venue_service import VenueContext
from ..validation import ValidationError


def read_json() -> dict:
    """Request body as a dict; a missing body reads as {}."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def venue_context(venue_id: str) -> VenueContext:
    """Services for venue_id; NotFoundError (404) if the venue does not exist."""
    return VenueContext(venue_id)
