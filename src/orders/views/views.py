"""
Views (lecture) pour le pattern CQRS.

Les views sont des fonctions de lecture pure qui interrogent
directement la table, sans charger d'agrégat ni passer par le
message bus.
"""

from __future__ import annotations

from sqlalchemy import select

from orders.adapters import orm
from orders.service_layer import unit_of_work


def order(order_id: int, uow: unit_of_work.AbstractUnitOfWork) -> dict | None:
    """Retourne la commande `order_id` sous forme de dict, ou None si elle n'existe pas."""
    with uow:
        row = uow.session.execute(
            select(orm.orders).where(orm.orders.c.id == order_id)
        ).first()
    if row is None:
        return None
    data = dict(row._mapping)
    data["total_value"] = data["price"] * data["quantity"]
    return data
