"""
Events du domaine.

Les events représentent des faits qui se sont produits dans le système.
Ils sont immuables et nommés au passé (quelque chose s'est passé).

Les events de commande transportent une copie des champs notifiables :
ils sont partagés en lecture seule par toutes les livraisons
concurrentes d'une même notification.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import ClassVar, Optional


class Event:
    """Classe de base pour tous les events du domaine."""
    pass


@dataclass(frozen=True)
class OrderEvent(Event):
    """Instantané d'une commande au moment de la mutation qui l'a déclenché."""

    event_type: ClassVar[str] = ""

    order_id: int
    customer_name: str
    customer_email: Optional[str]
    customer_phone: Optional[str]
    product_name: str
    quantity: int
    price: Decimal
    total_value: Decimal
    status: str
    message: str
    timestamp: datetime


@dataclass(frozen=True)
class OrderCreated(OrderEvent):
    """Une commande a été créée."""

    event_type: ClassVar[str] = "ORDER_CREATED"


@dataclass(frozen=True)
class OrderStatusChanged(OrderEvent):
    """Le statut d'une commande a changé."""

    event_type: ClassVar[str] = "ORDER_STATUS_CHANGED"

    old_status: str
