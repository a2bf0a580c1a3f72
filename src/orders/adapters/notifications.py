"""
Adapter pour les canaux de notification.

Un canal livre un événement de commande vers un endpoint externe
(service d'email, passerelle SMS...). Contrat d'un canal :

- applies_to(event) : le canal est-il pertinent pour cet événement ?
  (l'email exige un email client, le SMS un téléphone)
- send(event) : UNE tentative de livraison, dont le résultat est
  classé en succès, échec transitoire ou échec définitif.

La boucle de réessai appartient au dispatcher, pas au canal.
"""

from __future__ import annotations

import abc
import enum
import logging
from dataclasses import dataclass

import httpx

from orders.config import ChannelConfig
from orders.domain import events

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    SUCCESS = "success"
    TRANSIENT_FAILURE = "transient_failure"
    PERMANENT_FAILURE = "permanent_failure"


@dataclass(frozen=True)
class DeliveryResult:
    outcome: Outcome
    detail: str = ""

    @property
    def succeeded(self) -> bool:
        return self.outcome is Outcome.SUCCESS


class AbstractNotificationChannel(abc.ABC):
    """
    Interface abstraite d'un canal de notification.

    Le champ de contact (customer_email, customer_phone...) vient de la
    configuration : un nouveau canal HTTP ne demande donc aucun code.
    """

    def __init__(self, config: ChannelConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    def applies_to(self, event: events.OrderEvent) -> bool:
        contact = getattr(event, self.config.contact_field, None)
        return bool(contact and contact.strip())

    @abc.abstractmethod
    def send(self, event: events.OrderEvent) -> DeliveryResult:
        raise NotImplementedError

    def close(self) -> None:
        pass


class HttpNotificationChannel(AbstractNotificationChannel):
    """Canal qui POST l'événement en JSON vers l'URL configurée."""

    def __init__(self, config: ChannelConfig, client: httpx.Client | None = None):
        super().__init__(config)
        self.client = client or httpx.Client(timeout=httpx.Timeout(config.timeout))

    def send(self, event: events.OrderEvent) -> DeliveryResult:
        logger.debug(
            "Envoi %s vers %s pour la commande %s",
            event.event_type, self.name, event.order_id,
        )
        try:
            response = self.client.post(self.config.url, json=build_payload(event))
        except httpx.TransportError as e:
            # Connexion refusée ou timeout : échec transitoire
            return DeliveryResult(Outcome.TRANSIENT_FAILURE, f"{type(e).__name__}: {e}")

        if response.is_success:
            return DeliveryResult(Outcome.SUCCESS)
        detail = f"HTTP {response.status_code}"
        if response.is_server_error:
            return DeliveryResult(Outcome.TRANSIENT_FAILURE, detail)
        return DeliveryResult(Outcome.PERMANENT_FAILURE, detail)

    def close(self) -> None:
        self.client.close()


def build_payload(event: events.OrderEvent) -> dict:
    """
    Sérialise un événement dans le format attendu par les services externes.

    Les montants sont transmis en chaînes, à leur échelle exacte (999.99).
    """
    payload = {
        "orderId": event.order_id,
        "customerName": event.customer_name,
        "customerEmail": event.customer_email,
        "customerPhone": event.customer_phone,
        "productName": event.product_name,
        "quantity": event.quantity,
        "price": str(event.price),
        "totalValue": str(event.total_value),
        "status": event.status,
        "eventType": event.event_type,
        "message": event.message,
        "timestamp": event.timestamp.isoformat(),
    }
    if isinstance(event, events.OrderStatusChanged):
        payload["oldStatus"] = event.old_status
    return payload


def build_channels(configs) -> list[AbstractNotificationChannel]:
    return [HttpNotificationChannel(config) for config in configs]
