# domain/errors.py
from __future__ import annotations


class ImageFetcherError(Exception):
    """Raíz de todos los errores propios de la descarga."""


# ───────── fatales ─────────
class ConfigError(ImageFetcherError):
    """Configuración ausente, mal formada o imposible de guardar."""


class ServerConnectionError(ImageFetcherError):
    """Fallo de socket/TLS al abrir la conexión IMAP."""


class AuthError(ImageFetcherError):
    """El servidor rechazó las credenciales."""


class MailboxError(ImageFetcherError):
    """No hay ningún buzón seleccionable."""


class SearchError(ImageFetcherError):
    """La búsqueda IMAP falló o devolvió una respuesta no válida."""


class SessionLostError(ImageFetcherError):
    """La conexión quedó inutilizable a mitad de la descarga."""


# ───────── recuperables (por correo) ─────────
class MessageError(ImageFetcherError):
    stage = "fetch"

    def __init__(self, uid: int, detail: str) -> None:
        super().__init__(f"UID={uid}: {detail}")
        self.uid = uid
        self.detail = detail


class FetchError(MessageError):
    stage = "fetch"


class ParseError(MessageError):
    stage = "parse"


class WriteError(MessageError):
    stage = "write"
