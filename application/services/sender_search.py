# application/services/sender_search.py
from __future__ import annotations
import logging
from typing import Protocol

from domain.errors import SearchError

logger = logging.getLogger(__name__)


class SearchableSession(Protocol):
    def search(self, criteria: list[str]) -> list[int]: ...


def build_sender_criteria(sender: str) -> list[str]:
    # IMAPClient se encarga de entrecomillar el valor
    return ["OR", "FROM", sender, "TO", sender]


def search(session: SearchableSession, sender: str) -> list[int]:
    """UIDs de los correos FROM o TO `sender`, en el orden que da el servidor."""
    sender = (sender or "").strip()
    if not sender:
        raise SearchError("Remitente vacío: no se puede buscar")
    logger.info("Buscando correos de/para %s…", sender)
    uids = session.search(build_sender_criteria(sender))
    logger.info("Encontrados %d correos de/para %s", len(uids), sender)
    return uids
