"""
Handlers pour les commands et events.

Les handlers sont les fonctions qui traitent les commands et events
transitant par le message bus.

- Command handlers : créent ou font évoluer une commande (peuvent échouer)
- Event handlers : réagissent à un fait passé (ne doivent pas échouer)

La persistance est synchrone : l'appelant ne reçoit son résultat
qu'une fois le commit effectué. Les notifications, elles, partent
en tâche de fond et leur sort n'affecte jamais le résultat.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from orders.domain import commands, events, model

if TYPE_CHECKING:
    from orders.service_layer.dispatcher import NotificationDispatcher
    from orders.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# --- Exceptions ---


class ValidationError(Exception):
    """Levée quand les données d'une command sont invalides, avant tout accès au store."""

    def __init__(self, errors: dict[str, str]):
        super().__init__(
            "Données invalides : "
            + ", ".join(f"{field} ({message})" for field, message in errors.items())
        )
        self.errors = errors


class NotFoundError(Exception):
    """Levée quand une commande référencée n'existe pas."""

    def __init__(self, order_id: object):
        super().__init__(f"Commande introuvable : {order_id}")
        self.order_id = order_id


# --- Validation ---


def _is_blank(value: object) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate_new_order(cmd: commands.CreateOrder) -> Decimal:
    """
    Vérifie les préconditions d'une création.

    Retourne le prix en Decimal à deux décimales ; lève ValidationError
    en listant tous les champs fautifs.
    """
    errors: dict[str, str] = {}
    if _is_blank(cmd.customer_name):
        errors["customer_name"] = "obligatoire"
    if _is_blank(cmd.product_name):
        errors["product_name"] = "obligatoire"
    if isinstance(cmd.quantity, bool) or not isinstance(cmd.quantity, int) or cmd.quantity <= 0:
        errors["quantity"] = "doit être un entier positif"

    price = _parse_price(cmd.price)
    if price is None or price <= 0:
        errors["price"] = "doit être un montant positif, à moins de 10^17"

    email = _optional(cmd.customer_email)
    if email is not None and not EMAIL_PATTERN.match(email):
        errors["customer_email"] = "adresse email invalide"

    if errors:
        raise ValidationError(errors)
    return price


def _optional(value: object) -> str | None:
    text = str(value).strip() if value is not None else ""
    return text or None


def _parse_price(value: object) -> Decimal | None:
    """Prix ramené à deux décimales, ou None s'il n'est pas représentable en base."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value)).quantize(model.PRICE_SCALE)
    except InvalidOperation:
        return None
    if not price.is_finite() or abs(price) >= model.MAX_PRICE:
        return None
    return price


def _parse_status(value: object) -> model.OrderStatus:
    try:
        return model.OrderStatus(value)
    except ValueError:
        raise ValidationError({"status": f"statut inconnu : {value}"}) from None


# --- Command Handlers ---


def create_order(
    cmd: commands.CreateOrder,
    uow: AbstractUnitOfWork,
) -> model.Order:
    """
    Crée une commande au statut CREATED et la persiste.

    L'événement OrderCreated n'est émis qu'après le commit, une fois
    l'identifiant attribué par le store. Retourne la commande persistée.
    """
    price = validate_new_order(cmd)
    logger.info("Création d'une commande pour le client %s", cmd.customer_name)

    order = model.Order(
        customer_name=cmd.customer_name.strip(),
        product_name=cmd.product_name.strip(),
        quantity=cmd.quantity,
        price=price,
        customer_email=_optional(cmd.customer_email),
        customer_phone=_optional(cmd.customer_phone),
    )
    with uow:
        uow.orders.add(order)
        uow.commit()
        order.record_creation()

    logger.info("Commande %s créée", order.id)
    return order


def change_order_status(
    cmd: commands.ChangeOrderStatus,
    uow: AbstractUnitOfWork,
) -> model.Order:
    """
    Fait passer une commande à un nouveau statut.

    Lève NotFoundError si la commande n'existe pas,
    InvalidTransitionError (sans rien modifier) si la transition est interdite.
    """
    requested = _parse_status(cmd.status)
    with uow:
        order = uow.orders.get(cmd.order_id)
        if order is None:
            raise NotFoundError(cmd.order_id)
        previous = order.status
        order.change_status(requested)
        uow.commit()

    logger.info(
        "Statut de la commande %s : %s -> %s",
        order.id, previous.value, requested.value,
    )
    return order


# --- Event Handlers ---


def send_order_notification(
    event: events.OrderEvent,
    dispatcher: NotificationDispatcher,
) -> None:
    """Confie l'événement au dispatcher, sans attendre les livraisons."""
    units = dispatcher.dispatch(event)
    logger.debug(
        "%s pour la commande %s : %d livraison(s) planifiée(s)",
        event.event_type, event.order_id, len(units),
    )
