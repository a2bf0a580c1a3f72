"""
Dispatcher de notifications.

Pour un événement de commande, le dispatcher sélectionne les canaux
actifs et applicables, puis planifie une unité de livraison par canal
dans le pool de workers. dispatch() retourne immédiatement : l'appelant
(le message bus, donc la requête HTTP) n'attend jamais une livraison.

Les canaux sont indépendants : chaque unité a sa propre boucle de
réessai et tourne sur son propre worker.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable

from orders.adapters.notifications import AbstractNotificationChannel
from orders.domain import events
from orders.service_layer.delivery import DeliveryUnit
from orders.service_layer.worker_pool import BoundedWorkerPool

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(
        self,
        channels: Iterable[AbstractNotificationChannel],
        pool: BoundedWorkerPool,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.channels = list(channels)
        self.pool = pool
        self._sleep = sleep

    def dispatch(self, event: events.OrderEvent) -> list[DeliveryUnit]:
        """
        Planifie la livraison de `event` sur tous les canaux concernés.

        Un canal désactivé, ou sans coordonnée de contact dans l'événement,
        est ignoré : aucune tentative n'est faite. Une unité rejetée par
        le pool (file pleine) est loggée comme notification perdue.
        Retourne les unités effectivement planifiées.
        """
        scheduled: list[DeliveryUnit] = []
        for channel in self.channels:
            if not channel.config.enabled:
                logger.debug("Canal %s désactivé, ignoré", channel.name)
                continue
            if not channel.applies_to(event):
                logger.debug(
                    "Canal %s sans contact pour la commande %s, ignoré",
                    channel.name, event.order_id,
                )
                continue

            unit = DeliveryUnit(channel, event, channel.config.retry, sleep=self._sleep)
            if self.pool.submit(unit.run):
                scheduled.append(unit)
            else:
                logger.error(
                    "Notification %s perdue pour la commande %s via %s : file de livraison pleine",
                    event.event_type, event.order_id, channel.name,
                )
        return scheduled

    def shutdown(self, wait: bool = True) -> None:
        self.pool.shutdown(wait=wait)
        for channel in self.channels:
            channel.close()
