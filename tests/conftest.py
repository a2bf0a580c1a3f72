"""
Configuration partagée pour les tests.

Le mapping ORM est démarré une seule fois pour toute la session de tests.
La base par défaut pointe vers SQLite en mémoire, pour que l'import de
l'application Flask ne crée aucun fichier.
"""

import os

os.environ.setdefault("ORDERS_DATABASE_URI", "sqlite://")

import pytest  # noqa: E402

from orders.adapters import orm  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def mappers():
    """Démarre le mapping ORM une fois pour toute la session."""
    orm.start_mappers()
