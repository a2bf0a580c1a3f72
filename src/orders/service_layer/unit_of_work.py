"""
Pattern Unit of Work.

Le Unit of Work (UoW) gère la notion de transaction atomique.
Il coordonne l'écriture en base de données et la collecte
des événements émis par les agrégats au cours de la transaction.

Le UoW agit comme un context manager :
    with uow:
        # ... opérations sur le repository ...
        uow.commit()
"""

from __future__ import annotations

import abc
import threading

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from orders import config
from orders.adapters import repository

DEFAULT_ENGINE = create_engine(config.get_database_uri())

# expire_on_commit=False : la commande retournée à l'appelant reste
# lisible après la fermeture de la session.
DEFAULT_SESSION_FACTORY = sessionmaker(bind=DEFAULT_ENGINE, expire_on_commit=False)


class AbstractUnitOfWork(abc.ABC):
    """
    Interface abstraite du Unit of Work.

    Fournit un repository `orders` et gère commit/rollback.
    Le rollback est automatique si commit() n'est pas appelé
    (grâce au __exit__ du context manager).
    """

    orders: repository.AbstractRepository

    def __enter__(self) -> AbstractUnitOfWork:
        return self

    def __exit__(self, *args: object) -> None:
        self.rollback()

    def commit(self) -> None:
        self._commit()

    def collect_new_events(self):
        """
        Collecte tous les événements émis par les commandes vues
        pendant cette transaction, pour les passer au message bus.
        """
        for order in self.orders.seen:
            while order.events:
                yield order.events.pop(0)

    @abc.abstractmethod
    def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    Implémentation concrète du UoW avec SQLAlchemy.

    Crée une session à l'entrée du context manager,
    la ferme à la sortie. Rollback automatique si pas de commit.

    Une même instance est partagée par les threads du serveur HTTP :
    la session et le repository sont donc propres à chaque thread.
    """

    def __init__(self, session_factory: sessionmaker = DEFAULT_SESSION_FACTORY):
        self.session_factory = session_factory
        self._local = threading.local()

    @property
    def session(self) -> Session:
        return self._local.session

    @property
    def orders(self) -> repository.SqlAlchemyRepository:
        return self._local.orders

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        session = self.session_factory()
        self._local.session = session
        self._local.orders = repository.SqlAlchemyRepository(session)
        return super().__enter__()

    def __exit__(self, *args: object) -> None:
        super().__exit__(*args)
        self.session.close()

    def _commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
