# Overview: Flask API routes for sales reports; aggregates closed shifts by period.

from flask import Blueprint, request, jsonify

from ..decorators import json_errors
from . import venue_context


reports_bp = Blueprint("reports", __name__, url_prefix="/api/venues/<venue_id>/reports")


@reports_bp.get("")
@reports_bp.get("/")
@json_errors("build sales report")
def sales_report_route(venue_id: str):
    """
    Sales report for a period.

    Query params:
    - period: today | week | month | all (default: all)

    Response: summary totals, daily series, per-product distribution and
    one row per closed shift.
    """
    period = (request.args.get("period") or "all").lower()
    ctx = venue_context(venue_id)
    return jsonify(ctx.sales_report(period)), 200
