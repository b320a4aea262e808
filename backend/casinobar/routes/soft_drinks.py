# Overview: Flask API routes for soft drink stock; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import json_errors
from . import read_json, venue_context


soft_drinks_bp = Blueprint("soft_drinks", __name__, url_prefix="/api/venues/<venue_id>/soft-drinks")


@soft_drinks_bp.get("")
@soft_drinks_bp.get("/")
@json_errors("list soft drinks")
def list_soft_drinks_route(venue_id: str):
    ctx = venue_context(venue_id)
    return jsonify({
        "soft_drinks": [d.to_dict() for d in ctx.soft_drinks.list_drinks()],
        "summary": ctx.soft_drinks.summary(),
    }), 200


@soft_drinks_bp.post("")
@soft_drinks_bp.post("/")
@json_errors("create soft drink")
def create_soft_drink_route(venue_id: str):
    data = read_json()
    ctx = venue_context(venue_id)
    drink = ctx.soft_drinks.add(
        data.get("name"),
        quantity=data.get("quantity", 0),
        cost=data.get("cost", 0),
    )
    return jsonify({"soft_drink": drink.to_dict()}), 201


@soft_drinks_bp.patch("/<drink_id>")
@json_errors("update soft drink")
def update_soft_drink_route(venue_id: str, drink_id: str):
    data = read_json()
    ctx = venue_context(venue_id)
    drink = ctx.soft_drinks.edit(drink_id, data)
    return jsonify({"soft_drink": drink.to_dict()}), 200


@soft_drinks_bp.delete("/<drink_id>")
@json_errors("delete soft drink")
def delete_soft_drink_route(venue_id: str, drink_id: str):
    ctx = venue_context(venue_id)
    ctx.soft_drinks.delete(drink_id)
    return jsonify({"deleted": drink_id}), 200


@soft_drinks_bp.post("/<drink_id>/consume")
@json_errors("consume soft drink")
def consume_soft_drink_route(venue_id: str, drink_id: str):
    data = read_json()
    ctx = venue_context(venue_id)
    drink = ctx.soft_drinks.consume(drink_id, data.get("quantity"))
    return jsonify({"soft_drink": drink.to_dict()}), 200


@soft_drinks_bp.post("/<drink_id>/restock")
@json_errors("restock soft drink")
def restock_soft_drink_route(venue_id: str, drink_id: str):
    data = read_json()
    ctx = venue_context(venue_id)
    drink = ctx.soft_drinks.restock(drink_id, data.get("quantity"), worker_name=data.get("worker_name"))
    return jsonify({"soft_drink": drink.to_dict()}), 200
