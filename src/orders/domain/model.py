"""
Modèle de domaine pour le cycle de vie des commandes.

Ce module contient l'entité Order et la machine à états de son statut.
Une commande naît CREATED puis passe, une seule fois, vers l'un des
deux états terminaux CANCELLED ou COMPLETED.
"""

from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional

from orders.domain import events

PRICE_SCALE = Decimal("0.01")
# Numeric(19, 2) : au plus 17 chiffres avant la virgule
MAX_PRICE = Decimal(10) ** 17


class OrderStatus(str, enum.Enum):
    CREATED = "CREATED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.CREATED: frozenset({OrderStatus.CANCELLED, OrderStatus.COMPLETED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.COMPLETED: frozenset(),
}

_STATUS_MESSAGES = {
    OrderStatus.COMPLETED: "Votre commande a été finalisée avec succès",
    OrderStatus.CANCELLED: "Votre commande a été annulée",
}

CREATED_MESSAGE = "Votre commande a été créée avec succès"


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    """
    Règle de transition, fonction pure de (statut courant, statut demandé).

    Seules CREATED -> CANCELLED et CREATED -> COMPLETED sont permises :
    pas de sortie d'un état terminal, pas d'auto-transition,
    pas de retour vers CREATED.
    """
    return requested in _TRANSITIONS[current]


def status_message(status: OrderStatus) -> str:
    return _STATUS_MESSAGES.get(
        status, f"Le statut de votre commande est maintenant {status.value}"
    )


class InvalidTransitionError(Exception):
    """Levée quand un changement de statut viole la machine à états."""

    def __init__(self, current: OrderStatus, requested: OrderStatus):
        super().__init__(
            f"Transition impossible de {current.value} vers {requested.value}"
        )
        self.current = current
        self.requested = requested


class Order:
    """
    Agrégat racine représentant une commande.

    L'identifiant est attribué par le store à la première sauvegarde.
    Le statut ne change que via change_status(), qui applique la règle
    de transition et émet les événements du domaine.
    """

    def __init__(
        self,
        customer_name: str,
        product_name: str,
        quantity: int,
        price: Decimal,
        customer_email: Optional[str] = None,
        customer_phone: Optional[str] = None,
        status: OrderStatus = OrderStatus.CREATED,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        id: Optional[int] = None,
    ):
        now = datetime.now()
        self.id = id
        self.customer_name = customer_name
        self.product_name = product_name
        self.quantity = quantity
        self.price = Decimal(price).quantize(PRICE_SCALE)
        self.customer_email = customer_email
        self.customer_phone = customer_phone
        self.status = status
        self.created_at = created_at or now
        self.updated_at = updated_at or self.created_at
        self.events: list[events.Event] = []

    def __repr__(self) -> str:
        return f"<Order {self.id} {self.status.value}>"

    @property
    def total_value(self) -> Decimal:
        """Prix unitaire x quantité, calculé à la demande."""
        return self.price * self.quantity

    def record_creation(self) -> None:
        """Émet OrderCreated ; appelé une fois l'identifiant attribué par le store."""
        self.events.append(
            events.OrderCreated(**self._snapshot(), message=CREATED_MESSAGE)
        )

    def change_status(self, requested: OrderStatus) -> None:
        """
        Applique une transition de statut.

        Lève InvalidTransitionError sans rien modifier si la transition
        est interdite. Sinon met à jour le statut et updated_at, puis
        émet OrderStatusChanged avec l'ancien statut.
        """
        previous = self.status
        if not can_transition(previous, requested):
            raise InvalidTransitionError(previous, requested)

        self.status = requested
        # updated_at ne recule jamais, même si l'horloge est ajustée
        self.updated_at = max(datetime.now(), self.updated_at)
        self.events.append(
            events.OrderStatusChanged(
                **self._snapshot(),
                message=status_message(requested),
                old_status=previous.value,
            )
        )

    def _snapshot(self) -> dict:
        return dict(
            order_id=self.id,
            customer_name=self.customer_name,
            customer_email=self.customer_email,
            customer_phone=self.customer_phone,
            product_name=self.product_name,
            quantity=self.quantity,
            price=self.price,
            total_value=self.total_value,
            status=self.status.value,
            timestamp=self.updated_at,
        )
