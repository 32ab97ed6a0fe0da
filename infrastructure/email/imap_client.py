# infrastructure/email/imap_client.py
from __future__ import annotations
import logging
import queue
import threading
from typing import Iterable

from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientAbortError, IMAPClientError, LoginError

from config.settings import Settings
from domain.errors import (
    AuthError,
    FetchError,
    ImageFetcherError,
    MailboxError,
    SearchError,
    ServerConnectionError,
    SessionLostError,
)
from domain.models import MailConfig

logger = logging.getLogger(__name__)

ALL_MAIL_FLAG = b"\\all"
ALL_MAIL_NAMES = ("all mail", "[gmail]/all mail", "[google mail]/all mail")


class IMAPSession:
    """
    Conexión IMAP autenticada y ligada a un buzón seleccionado (solo lectura).
    IMAPClient no es thread-safe: cada comando pasa por un lock propio.
    """

    def __init__(self, host: str, port: int, user: str, password: str, ssl: bool = True, timeout: float | None = None) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.ssl = ssl
        self.timeout = timeout
        self.client: IMAPClient | None = None
        self.mailbox: str | None = None
        self._lock = threading.Lock()

    def __enter__(self) -> "IMAPSession":
        if self.client is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        try:
            self.client = IMAPClient(self.host, port=self.port, ssl=self.ssl, timeout=self.timeout)
        except (OSError, IMAPClientError) as e:
            raise ServerConnectionError(f"No se pudo conectar a {self.host}:{self.port}: {e}") from e
        try:
            self.client.login(self.user, self.password)
        except LoginError as e:
            self._shutdown()
            raise AuthError(f"Credenciales rechazadas para {self.user}: {e}") from e
        except (OSError, IMAPClientError) as e:
            self._shutdown()
            raise ServerConnectionError(f"Conexión perdida durante el login: {e}") from e
        logger.info("Conectado a %s como %s", self.host, self.user)

    def close(self) -> None:
        try:
            if self.client:
                self.client.logout()
        except Exception:
            logger.exception("Error cerrando IMAP")
        finally:
            self.client = None

    def _shutdown(self) -> None:
        try:
            if self.client:
                self.client.shutdown()
        except OSError:
            logger.debug("Socket ya cerrado", exc_info=True)
        finally:
            self.client = None

    # ───────── buzones ─────────
    def list_mailboxes(self) -> list[tuple[tuple[bytes, ...], str]]:
        assert self.client
        try:
            folders = self.client.list_folders()
        except (OSError, IMAPClientError) as e:
            raise MailboxError(f"No se pudieron listar los buzones: {e}") from e
        return [(tuple(flags or ()), name) for flags, _delim, name in folders]

    def find_all_mail(self, mailboxes: Iterable[tuple[tuple[bytes, ...], str]]) -> str | None:
        mailboxes = list(mailboxes)
        for flags, name in mailboxes:
            if any(_as_bytes(f).lower() == ALL_MAIL_FLAG for f in flags):
                return name
        for _flags, name in mailboxes:
            if name.lower() in ALL_MAIL_NAMES:
                return name
        return None

    def select_mailbox(self, preferred: str = "", fallback: str = "INBOX", detect: bool = True) -> str:
        """
        Selecciona (solo lectura) el buzón con todo el correo:
        1) `preferred` si viene configurado, 2) el que tenga el flag \\All
        o se llame "All Mail" (si `detect`), 3) `fallback`. Si nada funciona -> MailboxError.
        """
        assert self.client
        mailboxes = self.list_mailboxes()
        logger.info("Buzones disponibles: %s", ", ".join(name for _, name in mailboxes) or "-")

        candidates: list[str] = []
        if preferred:
            candidates.append(preferred)
        detected = self.find_all_mail(mailboxes) if detect else None
        if detected and detected not in candidates:
            candidates.append(detected)
        if fallback and fallback not in candidates:
            candidates.append(fallback)

        for name in candidates:
            try:
                self.client.select_folder(name, readonly=True)
            except (IMAPClientAbortError, OSError) as e:
                raise ServerConnectionError(f"Conexión perdida seleccionando '{name}': {e}") from e
            except IMAPClientError as e:
                logger.warning("No se pudo seleccionar '%s': %s", name, e)
                continue
            if name == fallback and name not in (preferred, detected):
                logger.warning("No hay carpeta All Mail; se usa '%s'", name)
            self.mailbox = name
            logger.info("Buzón seleccionado: %s", name)
            return name
        raise MailboxError(f"Ningún buzón seleccionable (probados: {', '.join(candidates) or '-'})")

    # ───────── búsqueda / descarga ─────────
    def search(self, criteria: list[str]) -> list[int]:
        assert self.client
        with self._lock:
            try:
                uids = self.client.search(criteria)
            except (OSError, IMAPClientError) as e:
                raise SearchError(f"Búsqueda {criteria} fallida: {e}") from e
        try:
            return [int(u) for u in uids]
        except (TypeError, ValueError) as e:
            raise SearchError(f"Respuesta de búsqueda no válida: {uids!r}") from e

    def fetch_raw(self, uid: int) -> bytes:
        assert self.client
        with self._lock:
            try:
                resp = self.client.fetch([uid], ["RFC822"])
            except (IMAPClientAbortError, OSError) as e:
                raise SessionLostError(f"Conexión perdida al descargar UID={uid}: {e}") from e
            except IMAPClientError as e:
                raise FetchError(uid, str(e)) from e
        data = resp.get(uid)
        raw = data.get(b"RFC822") if data else None
        if not isinstance(raw, bytes):
            raise FetchError(uid, "el servidor no devolvió el cuerpo del mensaje")
        return raw


class IMAPSessionPool:
    """
    Varias conexiones sobre el mismo buzón con la misma interfaz fetch_raw.
    Cada descarga toma una conexión libre y la devuelve al terminar.
    """

    def __init__(self, sessions: list[IMAPSession]) -> None:
        if not sessions:
            raise ValueError("IMAPSessionPool necesita al menos una sesión")
        self.sessions = sessions
        self._idle: queue.Queue[IMAPSession] = queue.Queue()
        for s in sessions:
            self._idle.put(s)

    def __enter__(self) -> "IMAPSessionPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def fetch_raw(self, uid: int) -> bytes:
        session = self._idle.get()
        try:
            return session.fetch_raw(uid)
        finally:
            self._idle.put(session)

    def close(self) -> None:
        for s in self.sessions:
            s.close()


def connect(cfg: MailConfig, settings: Settings, mailbox: str | None = None) -> IMAPSession:
    """
    Abre TLS + login + selección de buzón. `mailbox` fuerza un nombre exacto
    (conexiones extra sobre el buzón ya elegido por la principal).
    """
    session = IMAPSession(
        cfg.server,
        settings.IMAP_PORT,
        cfg.email,
        cfg.password,
        ssl=settings.IMAP_SSL,
        timeout=settings.IMAP_TIMEOUT,
    )
    session.open()
    try:
        if mailbox:
            session.select_mailbox(preferred=mailbox, fallback="", detect=False)
        else:
            session.select_mailbox(preferred=settings.IMAP_MAILBOX, fallback=settings.IMAP_FALLBACK_MAILBOX)
    except ImageFetcherError:
        session.close()
        raise
    return session


def _as_bytes(flag: bytes | str) -> bytes:
    return flag if isinstance(flag, bytes) else str(flag).encode()
