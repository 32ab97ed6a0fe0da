# config/settings.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import os
from dotenv import load_dotenv

load_dotenv()

@dataclass(frozen=True)
class Settings:
    # Fichero con email/password/sender/server/download_dir (se pide por consola si no existe)
    MAIL_CONFIG_PATH: str = os.getenv("MAIL_CONFIG_PATH", "mail_config.env")

    # IMAP
    IMAP_PORT: int = int(os.getenv("IMAP_PORT", 993))
    IMAP_SSL: bool = os.getenv("IMAP_SSL", "true").lower() == "true"
    IMAP_TIMEOUT: float = float(os.getenv("IMAP_TIMEOUT", 30))
    # Vacío = autodetectar la carpeta "All Mail" (flag \All de RFC 6154)
    IMAP_MAILBOX: str = os.getenv("IMAP_MAILBOX", "")
    IMAP_FALLBACK_MAILBOX: str = os.getenv("IMAP_FALLBACK_MAILBOX", "INBOX")

    # Descarga
    BATCH_SIZE: int = int(os.getenv("BATCH_SIZE", 10))
    FETCH_CONNECTIONS: int = int(os.getenv("FETCH_CONNECTIONS", 1))
    IMAGE_TYPES: str = os.getenv("IMAGE_TYPES", "image/jpeg,image/jpg")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # ───────── helpers ─────────
    def image_types(self) -> tuple[str, ...]:
        return tuple(t.strip().lower() for t in self.IMAGE_TYPES.split(",") if t.strip())

    def mail_config_path(self) -> Path:
        return Path(self.MAIL_CONFIG_PATH)

    def batch_size(self) -> int:
        return max(1, self.BATCH_SIZE)

    def fetch_connections(self) -> int:
        # nunca más conexiones que huecos en un lote
        return max(1, min(self.FETCH_CONNECTIONS, self.batch_size()))
