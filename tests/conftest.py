"""
Shared helpers: MIME message builder and a fake IMAP session.

The fake session stands in for IMAPSession everywhere the code takes the
session as an argument (search stage, batch stage, controller connector).
"""

import threading
from email.message import EmailMessage

from domain.errors import FetchError, SessionLostError


JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00fake-jpeg-body\xff\xd9"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png-body"


def make_message(
    uid: int = 1,
    attachments: list | None = None,
    text: str = "Hola, te mando las fotos.",
    sender: str = "remitente@example.com",
) -> bytes:
    """
    Build raw RFC822 bytes. `attachments` is a list of
    (filename_or_None, data, content_type[, content_id]) tuples.
    """
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = "yo@example.com"
    msg["Subject"] = f"Correo {uid}"
    msg.set_content(text)
    for att in attachments or []:
        filename, data, ctype = att[:3]
        cid = att[3] if len(att) > 3 else None
        maintype, subtype = ctype.split("/")
        kwargs = {}
        if filename:
            kwargs["filename"] = filename
        if cid:
            kwargs["cid"] = cid
        msg.add_attachment(data, maintype=maintype, subtype=subtype, **kwargs)
    return msg.as_bytes()


class FakeSession:
    """In-memory replacement for IMAPSession (search + fetch_raw + context manager)."""

    def __init__(self, messages: dict, failing=(), lost=(), mailbox: str = "[Gmail]/All Mail"):
        self.messages = dict(messages)
        self.failing = set(failing)
        self.lost = set(lost)
        self.mailbox = mailbox
        self.fetched: list[int] = []
        self.searches: list[list[str]] = []
        self.closed = False
        self._lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        self.closed = True

    def search(self, criteria):
        self.searches.append(criteria)
        return sorted(set(self.messages) | self.failing | self.lost)

    def fetch_raw(self, uid):
        with self._lock:
            self.fetched.append(uid)
        if uid in self.lost:
            raise SessionLostError(f"connection reset while fetching UID={uid}")
        if uid in self.failing:
            raise FetchError(uid, "simulated transport error")
        return self.messages[uid]

