"""
Pattern Repository.

Le repository fournit une abstraction sur la couche de persistance
(le store des commandes). Il expose une interface de type collection
(add, get) qui masque les détails de l'accès aux données.

L'identifiant d'une commande est attribué par le store à la
première sauvegarde.
"""

from __future__ import annotations

import abc

from sqlalchemy.orm import Session

from orders.domain import model


class AbstractRepository(abc.ABC):
    """
    Interface abstraite du repository.

    Le pattern Template Method est utilisé : les méthodes publiques
    (add, get) gèrent le tracking via `seen`, puis délèguent
    aux méthodes abstraites préfixées _ que les sous-classes implémentent.
    """

    seen: set[model.Order]

    def __init__(self) -> None:
        # `seen` trace tous les agrégats consultés pendant la transaction,
        # ce qui permet au Unit of Work de collecter leurs événements.
        self.seen: set[model.Order] = set()

    def add(self, order: model.Order) -> None:
        """Ajoute une commande au repository et la marque comme vue."""
        self._add(order)
        self.seen.add(order)

    def get(self, order_id: int) -> model.Order | None:
        """Récupère une commande par son identifiant et la marque comme vue."""
        order = self._get(order_id)
        if order:
            self.seen.add(order)
        return order

    @abc.abstractmethod
    def _add(self, order: model.Order) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def _get(self, order_id: int) -> model.Order | None:
        raise NotImplementedError


class SqlAlchemyRepository(AbstractRepository):
    """Implémentation concrète du repository avec SQLAlchemy."""

    def __init__(self, session: Session):
        super().__init__()
        self.session = session

    def _add(self, order: model.Order) -> None:
        self.session.add(order)

    def _get(self, order_id: int) -> model.Order | None:
        return self.session.get(model.Order, order_id)
