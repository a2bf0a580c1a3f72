"""
Commands du domaine.

Les commands représentent des intentions : quelque chose que
le système doit faire. Contrairement aux events (faits passés),
les commands sont des demandes qui peuvent échouer.
"""

from dataclasses import dataclass
from typing import Any, Optional


class Command:
    """Classe de base pour toutes les commands."""
    pass


@dataclass(frozen=True)
class CreateOrder(Command):
    """Demande de création d'une commande."""

    customer_name: str
    product_name: str
    quantity: Any
    price: Any
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None


@dataclass(frozen=True)
class ChangeOrderStatus(Command):
    """Demande de changement de statut d'une commande."""

    order_id: int
    status: Any
