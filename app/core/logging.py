# app/core/logging.py
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configura o logging raiz uma única vez (uvicorn mantém os próprios handlers)."""
    logging.basicConfig(level=(level or "INFO").upper(), format=LOG_FORMAT)
    # httpx loga cada request em INFO; só interessa em debug
    logging.getLogger("httpx").setLevel(logging.WARNING)
