"""
Tests d'intégration du Repository et du Unit of Work avec SQLite en mémoire.

Ces tests vérifient que le mapping ORM fonctionne correctement :
- Sauvegarder et recharger une commande (identifiant attribué par le store)
- Le prix garde son échelle et le statut son type énuméré
- Un changement de statut survit à un aller-retour en BDD
- La vue de lecture retourne la commande avec sa valeur totale
- Un même Unit of Work sert plusieurs threads sans mélanger leurs sessions
"""

import threading
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from orders.adapters import orm, repository
from orders.domain import commands
from orders.domain.model import Order, OrderStatus
from orders.service_layer import bootstrap, unit_of_work
from orders.views import views


@pytest.fixture
def session_factory():
    """Crée une base SQLite en mémoire avec les tables."""
    engine = create_engine("sqlite://")
    orm.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


class EventRecorder:
    """Dispatcher en mémoire, partagé entre threads."""

    def __init__(self) -> None:
        self.dispatched = []
        self._lock = threading.Lock()

    def dispatch(self, event) -> list:
        with self._lock:
            self.dispatched.append(event)
        return []


def une_commande(**kwargs) -> Order:
    valeurs = dict(
        customer_name="Alice Martin",
        product_name="Ordinateur portable",
        quantity=2,
        price=Decimal("999.99"),
        customer_email="alice@example.com",
    )
    valeurs.update(kwargs)
    return Order(**valeurs)


class TestSqlAlchemyRepository:
    def test_sauvegarder_et_recharger_une_commande(self, session_factory):
        session = session_factory()
        repo = repository.SqlAlchemyRepository(session)
        commande = une_commande()

        repo.add(commande)
        session.commit()

        assert commande.id is not None
        session.expunge_all()
        rechargée = repo.get(commande.id)
        assert rechargée is not commande
        assert rechargée.customer_name == "Alice Martin"
        assert rechargée.price == Decimal("999.99")
        assert rechargée.total_value == Decimal("1999.98")
        assert rechargée.status is OrderStatus.CREATED
        assert rechargée.customer_phone is None

    def test_identifiants_distincts(self, session_factory):
        session = session_factory()
        repo = repository.SqlAlchemyRepository(session)
        première, seconde = une_commande(), une_commande(customer_name="Bob")

        repo.add(première)
        repo.add(seconde)
        session.commit()

        assert première.id != seconde.id

    def test_get_retourne_none_si_inexistante(self, session_factory):
        repo = repository.SqlAlchemyRepository(session_factory())

        assert repo.get(999) is None

    def test_commande_rechargée_sans_événements(self, session_factory):
        session = session_factory()
        repo = repository.SqlAlchemyRepository(session)
        commande = une_commande()
        repo.add(commande)
        session.commit()
        session.expunge_all()

        rechargée = repo.get(commande.id)

        assert rechargée.events == []

    def test_seen_trace_les_agrégats(self, session_factory):
        session = session_factory()
        repo = repository.SqlAlchemyRepository(session)
        commande = une_commande()

        repo.add(commande)
        session.commit()

        assert commande in repo.seen
        repo2 = repository.SqlAlchemyRepository(session)
        repo2.get(commande.id)
        assert len(repo2.seen) == 1


class TestSqlAlchemyUnitOfWork:
    def test_changement_de_statut_persisté(self, session_factory):
        uow = unit_of_work.SqlAlchemyUnitOfWork(session_factory)
        with uow:
            commande = une_commande()
            uow.orders.add(commande)
            uow.commit()
        order_id = commande.id

        with uow:
            uow.orders.get(order_id).change_status(OrderStatus.COMPLETED)
            uow.commit()

        with uow:
            assert uow.orders.get(order_id).status is OrderStatus.COMPLETED

    def test_rollback_sans_commit(self, session_factory):
        uow = unit_of_work.SqlAlchemyUnitOfWork(session_factory)
        with uow:
            commande = une_commande()
            uow.orders.add(commande)
            uow.commit()
        order_id = commande.id

        with uow:
            uow.orders.get(order_id).change_status(OrderStatus.CANCELLED)

        with uow:
            assert uow.orders.get(order_id).status is OrderStatus.CREATED

    def test_collecte_les_événements_des_commandes_vues(self, session_factory):
        uow = unit_of_work.SqlAlchemyUnitOfWork(session_factory)
        with uow:
            commande = une_commande()
            uow.orders.add(commande)
            uow.commit()
            commande.record_creation()

        [événement] = list(uow.collect_new_events())

        assert événement.order_id == commande.id
        assert list(uow.collect_new_events()) == []


class TestViews:
    def test_lire_une_commande(self, session_factory):
        uow = unit_of_work.SqlAlchemyUnitOfWork(session_factory)
        with uow:
            commande = une_commande(customer_phone="+33600000000")
            uow.orders.add(commande)
            uow.commit()

        data = views.order(commande.id, uow)

        assert data["id"] == commande.id
        assert data["status"] is OrderStatus.CREATED
        assert data["customer_phone"] == "+33600000000"
        assert data["total_value"] == Decimal("1999.98")

    def test_commande_inexistante(self, session_factory):
        uow = unit_of_work.SqlAlchemyUnitOfWork(session_factory)

        assert views.order(42, uow) is None


class TestAccèsConcurrents:
    def test_créations_concurrentes_sur_un_même_bus(self, tmp_path):
        """Plusieurs threads partagent le bus, comme les threads du serveur HTTP."""
        engine = create_engine(
            f"sqlite:///{tmp_path / 'orders.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        orm.metadata.create_all(engine)
        uow = unit_of_work.SqlAlchemyUnitOfWork(sessionmaker(bind=engine, expire_on_commit=False))
        dispatcher = EventRecorder()
        bus = bootstrap.bootstrap(start_orm=False, uow=uow, dispatcher=dispatcher)
        erreurs: list[Exception] = []
        créées: list[int] = []
        verrou = threading.Lock()

        def client(n: int) -> None:
            try:
                for i in range(10):
                    [commande] = bus.handle(commands.CreateOrder(
                        customer_name=f"Client {n}-{i}",
                        product_name="Lampe",
                        quantity=1,
                        price="10.00",
                        customer_email="client@example.com",
                    ))
                    lue = views.order(commande.id, uow)
                    assert lue["customer_name"] == f"Client {n}-{i}"
                    with verrou:
                        créées.append(commande.id)
            except Exception as e:
                with verrou:
                    erreurs.append(e)

        threads = [threading.Thread(target=client, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert erreurs == []
        assert len(set(créées)) == 40
        assert sorted(e.order_id for e in dispatcher.dispatched) == sorted(créées)
        with engine.connect() as connection:
            assert connection.execute(select(func.count()).select_from(orm.orders)).scalar() == 40
