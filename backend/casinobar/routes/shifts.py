# Overview: Flask API routes for bar shifts; open, count drafts, close and reconciliation.

"""
Shift API Routes

DESIGN:
- Shift lifecycle: open -> close (immutable once closed)
- The close count can be parked as a draft (PUT /draft) and resumed
- Close returns the sales variance and the drawer base check separately
"""

from flask import Blueprint, request, jsonify

from ..decorators import json_errors
from ..services.shift_service import CountDraft
from . import read_json, venue_context


shifts_bp = Blueprint("shifts", __name__, url_prefix="/api/venues/<venue_id>/shifts")


def _shift_payload(ctx, shift) -> dict:
    data = shift.to_dict()
    data["duration"] = ctx.shifts.shift_duration(shift)
    return data


@shifts_bp.get("")
@shifts_bp.get("/")
@json_errors("list shifts")
def list_shifts_route(venue_id: str):
    """
    List shifts, newest first.

    Query params:
    - status: open | closed (optional)
    - limit: max results (optional)
    """
    ctx = venue_context(venue_id)
    status = (request.args.get("status") or "").lower()
    if status == "open":
        shifts = ctx.shifts.active_shifts()
    elif status == "closed":
        shifts = [s for s in ctx.shifts.list_shifts() if not s.is_active]
    else:
        shifts = ctx.shifts.list_shifts()

    limit = request.args.get("limit", type=int)
    if limit is not None and limit >= 0:
        shifts = shifts[:limit]
    return jsonify({"shifts": [_shift_payload(ctx, s) for s in shifts]}), 200


@shifts_bp.post("")
@shifts_bp.post("/")
@json_errors("open shift")
def open_shift_route(venue_id: str):
    """
    Open a shift and snapshot current stock.

    Request body:
    {
        "worker_id": "6f1c..."
    }
    """
    data = read_json()
    ctx = venue_context(venue_id)
    shift = ctx.shifts.open_shift(data.get("worker_id"))
    return jsonify({"shift": _shift_payload(ctx, shift)}), 201


@shifts_bp.get("/<shift_id>")
@json_errors("load shift")
def get_shift_route(venue_id: str, shift_id: str):
    ctx = venue_context(venue_id)
    return jsonify({"shift": _shift_payload(ctx, ctx.shifts.get_shift(shift_id))}), 200


@shifts_bp.get("/<shift_id>/draft")
@json_errors("load draft")
def get_draft_route(venue_id: str, shift_id: str):
    """Saved close count (empty when none) plus running totals."""
    ctx = venue_context(venue_id)
    sheet = ctx.shifts.begin_count(shift_id)
    return jsonify({
        "draft": sheet.to_draft().to_dict(),
        "preview": ctx.shifts.preview(sheet),
    }), 200


@shifts_bp.put("/<shift_id>/draft")
@json_errors("save draft")
def save_draft_route(venue_id: str, shift_id: str):
    """
    Save progress on a close count. Touches no product or shift.

    Request body:
    {
        "sold": {"<product_id>": 30},
        "given_away": {"<product_id>": 5},
        "bonuses": 0,
        "prizes": 0,
        "cash_breakdown": {"bills": {"50000": 2}, "coins": 0, "nequi": 20000, "misc_bills": 0}
    }
    """
    data = read_json()
    ctx = venue_context(venue_id)
    draft = ctx.shifts.save_draft(shift_id, CountDraft.from_dict(data))
    return jsonify({"draft": draft.to_dict()}), 200


@shifts_bp.post("/<shift_id>/close")
@json_errors("close shift")
def close_shift_route(venue_id: str, shift_id: str):
    """
    Close a shift: commit the count, update stock, reconcile cash.

    Request body: same shape as PUT /draft.

    Response:
    {
        "shift": {...},
        "variance": {"status": "over", "magnitude": 5000, "display": "+$5,000", ...},
        "base_check": {"status": "shortfall", "amount": ..., "message": ...}
    }
    """
    data = read_json()
    ctx = venue_context(venue_id)
    result = ctx.shifts.close_shift(
        shift_id,
        sold=data.get("sold"),
        given_away=data.get("given_away"),
        bonuses=data.get("bonuses") or 0,
        prizes=data.get("prizes") or 0,
        cash_breakdown=data.get("cash_breakdown"),
    )
    payload = result.to_dict()
    payload["shift"] = _shift_payload(ctx, result.shift)
    return jsonify(payload), 200


@shifts_bp.get("/<shift_id>/reconciliation")
@json_errors("reconcile shift")
def reconciliation_route(venue_id: str, shift_id: str):
    ctx = venue_context(venue_id)
    return jsonify(ctx.shifts.reconcile(shift_id)), 200
