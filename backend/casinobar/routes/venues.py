# Overview: Flask API routes for venues; lists the operated locations and their dashboards.

from flask import Blueprint, jsonify

from ..decorators import json_errors
from ..services import venue_service
from ..services.storage import SqlLedgerStore
from . import venue_context


venues_bp = Blueprint("venues", __name__, url_prefix="/api/venues")


@venues_bp.get("")
@venues_bp.get("/")
@json_errors("list venues")
def list_venues_route():
    venues = venue_service.list_venues(SqlLedgerStore())
    return jsonify({"venues": [v.to_dict() for v in venues]}), 200


@venues_bp.get("/<venue_id>")
@json_errors("load venue")
def get_venue_route(venue_id: str):
    venue = venue_service.get_venue(SqlLedgerStore(), venue_id)
    return jsonify({"venue": venue.to_dict()}), 200


@venues_bp.get("/<venue_id>/dashboard")
@json_errors("build dashboard")
def dashboard_route(venue_id: str):
    """
    Landing-screen totals.

    Response: total_units, inventory_value, active_workers, active_shifts,
    shifts_today
    """
    ctx = venue_context(venue_id)
    return jsonify(ctx.dashboard()), 200
