"""
Configuration de l'application.

Toute la configuration est lue depuis les variables d'environnement,
une seule fois au démarrage (dans bootstrap), et figée dans des
dataclasses immuables transmises par référence au dispatcher et
aux canaux. Il n'existe aucun chemin de modification à l'exécution.

Ajouter un canal de notification est un simple changement de
configuration : l'ajouter à NOTIFICATION_CHANNELS et lui donner
une URL et un champ de contact.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_CONTACT_FIELDS = {
    "email": "customer_email",
    "sms": "customer_phone",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class RetryPolicy:
    """
    Politique de réessai d'une livraison.

    Le délai avant la tentative n+1 vaut base_delay * multiplier ** (n - 1),
    soit 1 s, 2 s, 4 s... avec les valeurs par défaut.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts doit être >= 1 : {self.max_attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay doit être >= 0 : {self.base_delay}")
        if self.multiplier < 1:
            raise ValueError(f"multiplier doit être >= 1 : {self.multiplier}")

    def delay_for(self, attempt: int) -> float:
        """Délai (en secondes) à attendre après l'échec de la tentative `attempt`."""
        return self.base_delay * self.multiplier ** (attempt - 1)


@dataclass(frozen=True)
class ChannelConfig:
    name: str
    url: str
    contact_field: str
    enabled: bool = True
    retry: RetryPolicy = RetryPolicy()
    timeout: float = 5.0


@dataclass(frozen=True)
class WorkerPoolSettings:
    min_workers: int = 2
    max_workers: int = 5
    queue_capacity: int = 100
    keep_alive: float = 60.0

    def __post_init__(self) -> None:
        if self.min_workers < 1 or self.max_workers < self.min_workers:
            raise ValueError(
                f"Bornes de workers invalides : min={self.min_workers}, max={self.max_workers}"
            )
        if self.queue_capacity < 1:
            raise ValueError(f"queue_capacity doit être >= 1 : {self.queue_capacity}")


def get_database_uri() -> str:
    return os.environ.get("ORDERS_DATABASE_URI", "sqlite:///orders.db")


def get_log_level() -> str:
    return os.environ.get("ORDERS_LOG_LEVEL", "INFO").upper()


def get_worker_pool_settings() -> WorkerPoolSettings:
    return WorkerPoolSettings(
        min_workers=int(os.environ.get("NOTIFICATION_POOL_MIN_WORKERS", 2)),
        max_workers=int(os.environ.get("NOTIFICATION_POOL_MAX_WORKERS", 5)),
        queue_capacity=int(os.environ.get("NOTIFICATION_POOL_QUEUE_CAPACITY", 100)),
    )


def get_channel_configs() -> tuple[ChannelConfig, ...]:
    """
    Construit la configuration de chaque canal listé dans NOTIFICATION_CHANNELS.

    Chaque paramètre de réessai peut être surchargé par canal
    (NOTIFICATION_SMS_MAX_ATTEMPTS...) et se rabat sinon sur la
    valeur globale (NOTIFICATION_RETRY_MAX_ATTEMPTS...).
    """
    names = [
        name.strip().lower()
        for name in os.environ.get("NOTIFICATION_CHANNELS", "email,sms").split(",")
        if name.strip()
    ]
    timeout = float(os.environ.get("NOTIFICATION_TIMEOUT_SECONDS", 5))
    return tuple(_channel_config(name, timeout) for name in names)


def _channel_config(name: str, timeout: float) -> ChannelConfig:
    prefix = f"NOTIFICATION_{name.upper()}_"

    contact_field = os.environ.get(prefix + "CONTACT_FIELD", DEFAULT_CONTACT_FIELDS.get(name))
    if not contact_field:
        raise ValueError(f"Aucun champ de contact configuré pour le canal {name!r}")

    retry = RetryPolicy(
        max_attempts=int(_channel_setting(prefix, "MAX_ATTEMPTS", "NOTIFICATION_RETRY_MAX_ATTEMPTS", 3)),
        base_delay=float(_channel_setting(prefix, "DELAY_MS", "NOTIFICATION_RETRY_DELAY_MS", 1000)) / 1000,
        multiplier=float(_channel_setting(prefix, "MULTIPLIER", "NOTIFICATION_RETRY_MULTIPLIER", 2)),
    )
    return ChannelConfig(
        name=name,
        url=os.environ.get(prefix + "URL", f"http://localhost:8089/{name}"),
        contact_field=contact_field,
        enabled=_as_bool(os.environ.get(prefix + "ENABLED", "true")),
        retry=retry,
        timeout=timeout,
    )


def _channel_setting(prefix: str, key: str, global_key: str, default):
    return os.environ.get(prefix + key, os.environ.get(global_key, default))


def _as_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Valeur booléenne invalide : {value!r}")
