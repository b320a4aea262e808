# Overview: Flask API routes for beer inventory; parses input and returns JSON responses.

"""
Product Inventory API Routes

DESIGN:
- Stock only moves through restock (here) and shift close (shifts routes)
- PATCH accepts name, purchase_cost and weekly_restock_day only
"""

from flask import Blueprint, request, jsonify

from ..decorators import json_errors
from . import read_json, venue_context


products_bp = Blueprint("products", __name__, url_prefix="/api/venues/<venue_id>/products")


@products_bp.get("")
@products_bp.get("/")
@json_errors("list products")
def list_products_route(venue_id: str):
    ctx = venue_context(venue_id)
    return jsonify({"products": [p.to_dict() for p in ctx.inventory.list_products()]}), 200


@products_bp.post("")
@products_bp.post("/")
@json_errors("create product")
def create_product_route(venue_id: str):
    """
    Add a beer.

    Request body:
    {
        "name": "Cerveza Premium",
        "initial_quantity": 100,
        "purchase_cost": 2500,
        "restock_day": "monday"  (optional)
    }
    """
    data = read_json()
    ctx = venue_context(venue_id)
    product = ctx.inventory.add_product(
        name=data.get("name"),
        initial_quantity=data.get("initial_quantity", 0),
        purchase_cost=data.get("purchase_cost"),
        restock_day=data.get("restock_day") or "monday",
    )
    return jsonify({"product": product.to_dict()}), 201


@products_bp.get("/summary")
@json_errors("summarize inventory")
def inventory_summary_route(venue_id: str):
    ctx = venue_context(venue_id)
    return jsonify(ctx.inventory.inventory_summary()), 200


@products_bp.get("/restocks")
@json_errors("list restocks")
def restock_history_route(venue_id: str):
    """Restock records, newest first. ?type=beer|softdrink filters by item type."""
    ctx = venue_context(venue_id)
    records = ctx.inventory.restock_history()
    item_type = request.args.get("type")
    if item_type:
        records = [r for r in records if r.item_type == item_type]
    return jsonify({"restocks": [r.to_dict() for r in records]}), 200


@products_bp.get("/<product_id>")
@json_errors("load product")
def get_product_route(venue_id: str, product_id: str):
    ctx = venue_context(venue_id)
    return jsonify({"product": ctx.inventory.get_product(product_id).to_dict()}), 200


@products_bp.patch("/<product_id>")
@json_errors("update product")
def update_product_route(venue_id: str, product_id: str):
    data = read_json()
    ctx = venue_context(venue_id)
    product = ctx.inventory.edit_product(product_id, data)
    return jsonify({"product": product.to_dict()}), 200


@products_bp.post("/<product_id>/restock")
@json_errors("restock product")
def restock_product_route(venue_id: str, product_id: str):
    """
    Request body:
    {
        "additional_quantity": 24,
        "worker_name": "Ana"  (optional)
    }
    """
    data = read_json()
    ctx = venue_context(venue_id)
    product = ctx.inventory.restock(
        product_id,
        data.get("additional_quantity"),
        worker_name=data.get("worker_name"),
    )
    return jsonify({"product": product.to_dict()}), 200
