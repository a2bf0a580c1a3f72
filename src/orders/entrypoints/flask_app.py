"""
Point d'entrée Flask.

L'API Flask est un thin adapter : elle se contente de
convertir les requêtes HTTP en commands, les envoie au
message bus, et convertit les résultats en réponses HTTP.

L'API ne contient aucune logique métier. Une réponse 201 ou 200
signifie que la commande est persistée ; les notifications sont
alors en cours d'envoi, en file, ou perdues, sans effet sur la réponse.
"""

from __future__ import annotations

import atexit

from flask import Flask, jsonify, request

from orders import config
from orders.domain import commands, model
from orders.logging_config import setup_logging
from orders.service_layer import bootstrap, handlers

setup_logging(config.get_log_level())

app = Flask(__name__)
dispatcher = bootstrap.build_dispatcher()
bus = bootstrap.bootstrap(dispatcher=dispatcher)
# Les livraisons en file sont terminées et les clients HTTP fermés à l'arrêt
atexit.register(dispatcher.shutdown)


def _order_json(data: dict) -> dict:
    status = data["status"]
    return {
        "id": data["id"],
        "customerName": data["customer_name"],
        "productName": data["product_name"],
        "quantity": data["quantity"],
        "price": str(data["price"]),
        "totalValue": str(data["total_value"]),
        "status": status.value if isinstance(status, model.OrderStatus) else status,
        "customerEmail": data["customer_email"],
        "customerPhone": data["customer_phone"],
        "createdAt": data["created_at"].isoformat(),
        "updatedAt": data["updated_at"].isoformat(),
    }


def _order_row(order: model.Order) -> dict:
    return {
        "id": order.id,
        "customer_name": order.customer_name,
        "product_name": order.product_name,
        "quantity": order.quantity,
        "price": order.price,
        "status": order.status,
        "customer_email": order.customer_email,
        "customer_phone": order.customer_phone,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "total_value": order.total_value,
    }


@app.route("/orders", methods=["POST"])
def create_order_endpoint():
    """
    POST /orders
    Body JSON : { customerName, productName, quantity, price, customerEmail?, customerPhone? }

    Crée une commande au statut CREATED.
    """
    data = request.get_json(silent=True) or {}
    cmd = commands.CreateOrder(
        customer_name=data.get("customerName"),
        product_name=data.get("productName"),
        quantity=data.get("quantity"),
        price=data.get("price"),
        customer_email=data.get("customerEmail"),
        customer_phone=data.get("customerPhone"),
    )
    try:
        order = bus.handle(cmd).pop(0)
    except handlers.ValidationError as e:
        return jsonify({"message": str(e), "errors": e.errors}), 400

    return jsonify(_order_json(_order_row(order))), 201


@app.route("/orders/<int:order_id>", methods=["GET"])
def get_order_endpoint(order_id: int):
    """
    GET /orders/<order_id>

    Retourne une commande (lecture CQRS).
    """
    from orders.views import views

    result = views.order(order_id, bus.uow)
    if result is None:
        return jsonify({"message": f"Commande introuvable : {order_id}"}), 404
    return jsonify(_order_json(result)), 200


@app.route("/orders/<int:order_id>/status", methods=["PUT"])
def change_status_endpoint(order_id: int):
    """
    PUT /orders/<order_id>/status
    Body JSON : { status }

    Fait passer la commande à CANCELLED ou COMPLETED.
    """
    data = request.get_json(silent=True) or {}
    try:
        order = bus.handle(
            commands.ChangeOrderStatus(order_id=order_id, status=data.get("status"))
        ).pop(0)
    except handlers.NotFoundError as e:
        return jsonify({"message": str(e)}), 404
    except model.InvalidTransitionError as e:
        return jsonify({
            "message": str(e),
            "currentStatus": e.current.value,
            "requestedStatus": e.requested.value,
        }), 400
    except handlers.ValidationError as e:
        return jsonify({"message": str(e), "errors": e.errors}), 400

    return jsonify(_order_json(_order_row(order))), 200


@app.route("/health", methods=["GET"])
def health_check():
    return jsonify({"status": "ok"}), 200
