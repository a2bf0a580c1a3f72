"""
Configuration centralisée du logging.

Chaque module utilise son propre logger (logging.getLogger(__name__)) ;
ce module installe une seule fois le format et la sortie communs.
Le nom du thread apparaît dans le format : les livraisons de
notifications s'exécutent dans les workers du pool.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(threadName)s] - %(name)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure le logging global : sortie standard, format unique."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Réduire la verbosité du client HTTP
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
