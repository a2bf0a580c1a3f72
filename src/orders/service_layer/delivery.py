"""
Unité de livraison : un événement, un canal, une boucle de réessai.

Machine à états d'une unité :

    PENDING -> ATTEMPTING -> SUCCEEDED
                          -> WAITING_RETRY -> ATTEMPTING (boucle)
                          -> FAILED

Un échec transitoire est réessayé jusqu'à max_attempts avec un
backoff exponentiel ; un échec définitif termine l'unité après une
seule tentative. L'échec d'une unité est loggé, jamais propagé.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Callable, Optional

from orders.adapters.notifications import (
    AbstractNotificationChannel,
    DeliveryResult,
    Outcome,
)
from orders.config import RetryPolicy
from orders.domain import events

logger = logging.getLogger(__name__)


class DeliveryState(enum.Enum):
    PENDING = "PENDING"
    ATTEMPTING = "ATTEMPTING"
    WAITING_RETRY = "WAITING_RETRY"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


TERMINAL_STATES = frozenset({DeliveryState.SUCCEEDED, DeliveryState.FAILED})


class ChannelDeliveryFailure(Exception):
    """Échec terminal d'une livraison ; observé via les logs uniquement."""

    def __init__(self, channel: str, order_id: int, attempts: int, detail: str):
        super().__init__(
            f"Livraison {channel} abandonnée pour la commande {order_id}"
            f" après {attempts} tentative(s) : {detail}"
        )
        self.channel = channel
        self.order_id = order_id
        self.attempts = attempts
        self.detail = detail


class DeliveryUnit:
    """
    Livraison indépendante d'un événement à travers un canal.

    `attempts` et `delays` gardent la trace du déroulé ; `wait()`
    permet d'attendre l'état terminal depuis un autre thread.
    """

    def __init__(
        self,
        channel: AbstractNotificationChannel,
        event: events.OrderEvent,
        policy: RetryPolicy,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.channel = channel
        self.event = event
        self.policy = policy
        self.state = DeliveryState.PENDING
        self.attempts = 0
        self.delays: list[float] = []
        self.failure: Optional[ChannelDeliveryFailure] = None
        self._sleep = sleep
        self._done = threading.Event()

    def __repr__(self) -> str:
        return f"<DeliveryUnit {self.channel.name} order={self.event.order_id} {self.state.value}>"

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)

    def run(self) -> DeliveryState:
        try:
            while True:
                self.state = DeliveryState.ATTEMPTING
                self.attempts += 1
                result = self._attempt()

                if result.succeeded:
                    self.state = DeliveryState.SUCCEEDED
                    logger.info(
                        "Notification %s livrée via %s pour la commande %s (tentative %d)",
                        self.event.event_type, self.channel.name,
                        self.event.order_id, self.attempts,
                    )
                    return self.state

                if (
                    result.outcome is Outcome.PERMANENT_FAILURE
                    or self.attempts >= self.policy.max_attempts
                ):
                    self._fail(result)
                    return self.state

                delay = self.policy.delay_for(self.attempts)
                self.state = DeliveryState.WAITING_RETRY
                logger.warning(
                    "Échec transitoire %s pour la commande %s (tentative %d/%d, %s) ; "
                    "nouvel essai dans %.1f s",
                    self.channel.name, self.event.order_id, self.attempts,
                    self.policy.max_attempts, result.detail, delay,
                )
                self.delays.append(delay)
                self._sleep(delay)
        finally:
            self._done.set()

    def _attempt(self) -> DeliveryResult:
        try:
            return self.channel.send(self.event)
        except Exception as e:
            logger.exception(
                "Erreur inattendue du canal %s pour la commande %s",
                self.channel.name, self.event.order_id,
            )
            return DeliveryResult(Outcome.TRANSIENT_FAILURE, f"{type(e).__name__}: {e}")

    def _fail(self, result: DeliveryResult) -> None:
        self.state = DeliveryState.FAILED
        self.failure = ChannelDeliveryFailure(
            self.channel.name, self.event.order_id, self.attempts, result.detail
        )
        logger.error("%s", self.failure)
