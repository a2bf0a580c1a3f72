"""
Bootstrap : assemblage de l'application (Composition Root).

Ce module construit le message bus avec toutes ses dépendances.
C'est ici que la configuration est lue, une seule fois, puis
transmise par référence au dispatcher, au pool et aux canaux.

C'est le seul endroit de l'application qui connaît les
implémentations concrètes de chaque abstraction.
"""

from __future__ import annotations

from typing import Any

from orders import config
from orders.adapters import notifications, orm
from orders.domain import commands, events
from orders.service_layer import handlers, messagebus, unit_of_work
from orders.service_layer.dispatcher import NotificationDispatcher
from orders.service_layer.worker_pool import BoundedWorkerPool


def bootstrap(
    start_orm: bool = True,
    uow: unit_of_work.AbstractUnitOfWork | None = None,
    dispatcher: NotificationDispatcher | None = None,
    **extra_dependencies: Any,
) -> messagebus.MessageBus:
    """
    Construit et retourne un MessageBus configuré.

    En production, utilise les implémentations concrètes.
    En test, on injecte des fakes via les paramètres.
    """
    if start_orm:
        orm.start_mappers()

    if uow is None:
        orm.metadata.create_all(unit_of_work.DEFAULT_ENGINE)
        uow = unit_of_work.SqlAlchemyUnitOfWork()

    if dispatcher is None:
        dispatcher = build_dispatcher()

    dependencies: dict[str, Any] = {
        "dispatcher": dispatcher,
        **extra_dependencies,
    }

    return messagebus.MessageBus(
        uow=uow,
        event_handlers=EVENT_HANDLERS,
        command_handlers=COMMAND_HANDLERS,
        dependencies=dependencies,
    )


def build_dispatcher() -> NotificationDispatcher:
    """Dispatcher de production : canaux HTTP et pool borné issus de l'environnement."""
    settings = config.get_worker_pool_settings()
    pool = BoundedWorkerPool(
        min_workers=settings.min_workers,
        max_workers=settings.max_workers,
        queue_capacity=settings.queue_capacity,
        keep_alive=settings.keep_alive,
    )
    channels = notifications.build_channels(config.get_channel_configs())
    return NotificationDispatcher(channels, pool)


# --- Routage des messages vers les handlers ---

EVENT_HANDLERS: dict[type[events.Event], list] = {
    events.OrderCreated: [handlers.send_order_notification],
    events.OrderStatusChanged: [handlers.send_order_notification],
}

COMMAND_HANDLERS: dict[type[commands.Command], Any] = {
    commands.CreateOrder: handlers.create_order,
    commands.ChangeOrderStatus: handlers.change_order_status,
}
