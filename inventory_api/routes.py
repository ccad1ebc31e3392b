"""HTTP surface．

Every JSON body carries ``success``; failures are raised as InventoryError
subclasses and rendered by ``handle_inventory_error``．
"""
from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from . import accounts, export, reports, stock
from .errors import InventoryError, ServiceUnavailable
from .ledger import LedgerStore
from .validation import require_payload, validate_non_negative_int

logger = logging.getLogger(__name__)

bp = Blueprint("inventory", __name__)

ENDPOINTS = [
    "GET /productos",
    "POST /productos",
    "POST /registrar",
    "POST /transacciones",
    "GET /stock-bajo",
    "GET /reporte-diario",
    "GET /reporte-mensual",
    "GET /exportar/<tipo>",
]


def ledger() -> LedgerStore:
    return current_app.extensions["ledger"]


def json_body() -> dict:
    return require_payload(request.get_json(silent=True) or {})


###############################################################################
# Endpoints                                                                   #
###############################################################################

@bp.route("/", methods=["GET"])
def index():
    return jsonify({"success": True, "servicio": "Sistema de Inventario", "endpoints": ENDPOINTS})


@bp.route("/registrar", methods=["POST"])
def register():
    data = json_body()
    user = accounts.register_user(
        ledger(),
        data.get("nombre"),
        data.get("email"),
        data.get("password"),
        data.get("role_id"),
        default_role_id=current_app.config["DEFAULT_ROLE_ID"],
    )
    return jsonify({"success": True, "usuario": user.to_dict()}), 201


@bp.route("/productos", methods=["GET"])
def list_products():
    products = ledger().list_products()
    return jsonify({"success": True, "productos": [p.to_dict() for p in products]})


@bp.route("/productos", methods=["POST"])
def create_product():
    data = json_body()
    product = stock.create_product(
        ledger(),
        data.get("nombre"),
        data.get("descripcion"),
        data.get("precio"),
        data.get("cantidad"),
    )
    return jsonify({"success": True, "producto": product.to_dict()}), 201


@bp.route("/transacciones", methods=["POST"])
def create_transaction():
    data = json_body()
    movement = stock.record_transaction(
        ledger(),
        data.get("tipo"),
        data.get("cantidad"),
        data.get("producto_id"),
        data.get("usuario_id"),
    )
    return (
        jsonify({
            "success": True,
            "transaccion": movement.transaction.to_dict(),
            "stock_actual": movement.stock,
        }),
        201,
    )


@bp.route("/stock-bajo", methods=["GET"])
def low_stock():
    threshold = validate_non_negative_int(
        request.args.get("min"), "min", default=current_app.config["LOW_STOCK_THRESHOLD"]
    )
    products = reports.low_stock(ledger(), threshold)
    return jsonify({
        "success": True,
        "productos": [{"id": p.id, "nombre": p.name, "cantidad": p.quantity} for p in products],
        "umbral": threshold,
    })


@bp.route("/reporte-diario", methods=["GET"])
def daily_report():
    return jsonify({"success": True, "reporte": reports.window_report(ledger(), "day")})


@bp.route("/reporte-mensual", methods=["GET"])
def monthly_report():
    return jsonify({"success": True, "reporte": reports.window_report(ledger(), "month")})


@bp.route("/exportar/<kind>", methods=["GET"])
def export_csv(kind: str):
    frame = export.export_frame(ledger(), kind)
    return export.csv_response(frame, kind)


###############################################################################
# Error handlers                                                              #
###############################################################################

def handle_inventory_error(err: InventoryError):
    if isinstance(err, ServiceUnavailable):
        ledger().reprovision()
    include_details = current_app.config["APP_ENV"] == "development"
    return jsonify(err.to_dict(include_details)), err.status_code


def handle_http_error(err: HTTPException):
    return jsonify({"success": False, "error": err.description}), err.code


def handle_unexpected_error(err: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.path)
    body = {"success": False, "error": "Error interno del servidor"}
    if current_app.config["APP_ENV"] == "development":
        body["details"] = str(err)
    return jsonify(body), 500
