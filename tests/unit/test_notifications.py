"""
Tests du canal HTTP.

Le transport httpx est remplacé par un MockTransport : aucune
connexion réseau, mais le vrai client, la vraie sérialisation
et la vraie classification des réponses.
"""

import json
from datetime import datetime
from decimal import Decimal

import httpx
import pytest

from orders.adapters.notifications import (
    HttpNotificationChannel,
    Outcome,
    build_channels,
    build_payload,
)
from orders.config import ChannelConfig
from orders.domain import events


def config_email() -> ChannelConfig:
    return ChannelConfig(name="email", url="http://email.test/notify", contact_field="customer_email")


def canal_avec(handler) -> HttpNotificationChannel:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpNotificationChannel(config_email(), client=client)


def commande_créée(**kwargs) -> events.OrderCreated:
    valeurs = dict(
        order_id=12,
        customer_name="Alice Martin",
        customer_email="alice@example.com",
        customer_phone=None,
        product_name="Ordinateur portable",
        quantity=2,
        price=Decimal("999.99"),
        total_value=Decimal("1999.98"),
        status="CREATED",
        message="Votre commande a été créée avec succès",
        timestamp=datetime(2024, 3, 1, 9, 30),
    )
    valeurs.update(kwargs)
    return events.OrderCreated(**valeurs)


def statut_changé() -> events.OrderStatusChanged:
    return events.OrderStatusChanged(
        order_id=12,
        customer_name="Alice Martin",
        customer_email="alice@example.com",
        customer_phone="+33600000000",
        product_name="Ordinateur portable",
        quantity=2,
        price=Decimal("999.99"),
        total_value=Decimal("1999.98"),
        status="COMPLETED",
        message="Votre commande a été finalisée avec succès",
        timestamp=datetime(2024, 3, 2, 10, 0),
        old_status="CREATED",
    )


class TestPayload:
    def test_champs_de_création(self):
        payload = build_payload(commande_créée())

        assert payload == {
            "orderId": 12,
            "customerName": "Alice Martin",
            "customerEmail": "alice@example.com",
            "customerPhone": None,
            "productName": "Ordinateur portable",
            "quantity": 2,
            "price": "999.99",
            "totalValue": "1999.98",
            "status": "CREATED",
            "eventType": "ORDER_CREATED",
            "message": "Votre commande a été créée avec succès",
            "timestamp": "2024-03-01T09:30:00",
        }

    def test_changement_de_statut_porte_old_status(self):
        payload = build_payload(statut_changé())

        assert payload["eventType"] == "ORDER_STATUS_CHANGED"
        assert payload["oldStatus"] == "CREATED"
        assert payload["status"] == "COMPLETED"


class TestHttpNotificationChannel:
    def test_post_json_vers_l_url_configurée(self):
        requêtes = []

        def handler(request):
            requêtes.append(request)
            return httpx.Response(200)

        résultat = canal_avec(handler).send(commande_créée())

        assert résultat.outcome is Outcome.SUCCESS
        [requête] = requêtes
        assert requête.method == "POST"
        assert str(requête.url) == "http://email.test/notify"
        assert json.loads(requête.content)["orderId"] == 12

    @pytest.mark.parametrize("status, attendu", [
        (200, Outcome.SUCCESS),
        (202, Outcome.SUCCESS),
        (500, Outcome.TRANSIENT_FAILURE),
        (503, Outcome.TRANSIENT_FAILURE),
        (400, Outcome.PERMANENT_FAILURE),
        (404, Outcome.PERMANENT_FAILURE),
        (422, Outcome.PERMANENT_FAILURE),
    ])
    def test_classification_des_réponses(self, status, attendu):
        résultat = canal_avec(lambda request: httpx.Response(status)).send(commande_créée())

        assert résultat.outcome is attendu

    @pytest.mark.parametrize("erreur", [
        httpx.ConnectError("connexion refusée"),
        httpx.ReadTimeout("trop lent"),
        httpx.ConnectTimeout("trop lent"),
    ])
    def test_erreurs_de_transport_transitoires(self, erreur):
        def handler(request):
            raise erreur

        résultat = canal_avec(handler).send(commande_créée())

        assert résultat.outcome is Outcome.TRANSIENT_FAILURE
        assert type(erreur).__name__ in résultat.detail


class TestApplicabilité:
    def test_email_requiert_un_email(self):
        canal = canal_avec(lambda request: httpx.Response(200))

        assert canal.applies_to(commande_créée())
        assert not canal.applies_to(commande_créée(customer_email=None))
        assert not canal.applies_to(commande_créée(customer_email="  "))

    def test_sms_requiert_un_téléphone(self):
        sms = HttpNotificationChannel(
            ChannelConfig(name="sms", url="http://sms.test", contact_field="customer_phone")
        )
        try:
            assert not sms.applies_to(commande_créée())
            assert sms.applies_to(statut_changé())
        finally:
            sms.close()

    def test_build_channels_un_canal_par_configuration(self):
        canaux = build_channels([
            config_email(),
            ChannelConfig(name="sms", url="http://sms.test", contact_field="customer_phone"),
        ])
        try:
            assert [c.name for c in canaux] == ["email", "sms"]
        finally:
            for canal in canaux:
                canal.close()
