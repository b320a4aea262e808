# Overview: Flask API routes for bar staff; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..decorators import json_errors
from ..validation import ValidationError
from . import read_json, venue_context


workers_bp = Blueprint("workers", __name__, url_prefix="/api/venues/<venue_id>/workers")


def _parse_active_filter(raw: str | None) -> bool | None:
    if raw is None or raw == "":
        return None
    value = raw.strip().lower()
    if value in ("1", "true", "yes"):
        return True
    if value in ("0", "false", "no"):
        return False
    raise ValidationError("active must be true or false")


@workers_bp.get("")
@workers_bp.get("/")
@json_errors("list workers")
def list_workers_route(venue_id: str):
    active = _parse_active_filter(request.args.get("active"))
    ctx = venue_context(venue_id)
    return jsonify({"workers": [w.to_dict() for w in ctx.staff.list_workers(active=active)]}), 200


@workers_bp.post("")
@workers_bp.post("/")
@json_errors("create worker")
def create_worker_route(venue_id: str):
    data = read_json()
    ctx = venue_context(venue_id)
    worker = ctx.staff.add_worker(data.get("name"))
    return jsonify({"worker": worker.to_dict()}), 201


@workers_bp.patch("/<worker_id>")
@json_errors("update worker")
def update_worker_route(venue_id: str, worker_id: str):
    """
    Request body (any of):
    {
        "name": "Ana María",
        "is_active": false
    }
    """
    data = read_json()
    unknown = set(data) - {"name", "is_active"}
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")
    if "is_active" in data and not isinstance(data["is_active"], bool):
        raise ValidationError("is_active must be true or false")

    ctx = venue_context(venue_id)
    worker = ctx.staff.get_worker(worker_id)
    if "name" in data:
        worker = ctx.staff.rename_worker(worker_id, data["name"])
    if "is_active" in data:
        worker = ctx.staff.set_active(worker_id, data["is_active"])
    return jsonify({"worker": worker.to_dict()}), 200


@workers_bp.delete("/<worker_id>")
@json_errors("delete worker")
def delete_worker_route(venue_id: str, worker_id: str):
    """Hard delete, or deactivate when the worker has shift history."""
    ctx = venue_context(venue_id)
    outcome = ctx.staff.delete_worker(worker_id)
    return jsonify({"worker_id": worker_id, "outcome": outcome}), 200


@workers_bp.get("/<worker_id>/stats")
@json_errors("load worker stats")
def worker_stats_route(venue_id: str, worker_id: str):
    ctx = venue_context(venue_id)
    return jsonify(ctx.staff.worker_stats(worker_id)), 200
