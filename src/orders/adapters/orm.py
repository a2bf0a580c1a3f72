"""
Mapping ORM avec SQLAlchemy (classical mapping).

On définit la table séparément, puis on mappe la classe du domaine
sur cette table. Le modèle de domaine reste ainsi ignorant de la
persistance (persistence ignorance).
"""

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    event,
    inspect,
)
from sqlalchemy.orm import registry

from orders.domain import model

metadata = MetaData()
mapper_registry = registry(metadata=metadata)

# --- Définition des tables ---

orders = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_name", String(255), nullable=False),
    Column("product_name", String(255), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price", Numeric(19, 2), nullable=False),
    Column("status", Enum(model.OrderStatus, name="order_status"), nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    Column("customer_email", String(255), nullable=True),
    Column("customer_phone", String(64), nullable=True),
)


def start_mappers() -> None:
    """
    Configure le mapping entre la classe Order et la table orders.

    Sans effet si le mapping est déjà en place (l'API et les tests
    peuvent tous deux démarrer les mappers).
    """
    if inspect(model.Order, raiseerr=False) is not None:
        return
    mapper_registry.map_imperatively(model.Order, orders)
    event.listen(model.Order, "load", receive_load)


def receive_load(order: model.Order, _: object) -> None:
    """Initialise la liste d'événements quand une Order est chargée depuis la BDD."""
    order.events = []
