# interface_adapters/controllers/download_controller.py
from __future__ import annotations
import contextlib
import logging
from typing import Callable

from application.services.sender_search import search
from application.use_cases.extract_images_usecase import ExtractImagesUseCase
from config.mail_config_loader import Prompt, console_prompt, load_or_prompt, secret_console_prompt
from config.settings import Settings
from domain.errors import ConfigError, ImageFetcherError
from domain.models import ExtractionSummary, MailConfig
from infrastructure.email.imap_client import IMAPSession, IMAPSessionPool, connect
from infrastructure.filesystem.storage import ImageStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1

Connector = Callable[..., IMAPSession]


class DownloadController:
    def __init__(
        self,
        settings: Settings,
        *,
        prompt: Prompt = console_prompt,
        secret_prompt: Prompt = secret_console_prompt,
        connector: Connector = connect,
    ) -> None:
        self.settings = settings
        self.prompt = prompt
        self.secret_prompt = secret_prompt
        self.connector = connector

    # ───────────────────────── ejecución ─────────────────────────
    def run(self) -> int:
        st = self.settings
        try:
            cfg = load_or_prompt(st.mail_config_path(), self.prompt, self.secret_prompt)
            storage = self._prepare_storage(cfg)
            uc = ExtractImagesUseCase(storage=storage, batch_size=st.batch_size(), allowed_types=st.image_types())

            with self.connector(cfg, st) as session:
                uids = search(session, cfg.sender)
                if not uids:
                    logger.info("Sin correos de/para %s.", cfg.sender)
                with self._fetcher(cfg, session) as fetcher:
                    summary = uc.extract_all(fetcher, uids)
        except ImageFetcherError as e:
            logger.error("%s: %s", type(e).__name__, e)
            return EXIT_FATAL

        self._report(summary)
        return EXIT_FATAL if summary.aborted else EXIT_OK

    def _prepare_storage(self, cfg: MailConfig) -> ImageStore:
        try:
            return ImageStore(cfg.download_dir)
        except OSError as e:
            raise ConfigError(f"No se pudo crear la carpeta de descarga {cfg.download_dir}: {e}") from e

    def _fetcher(self, cfg: MailConfig, session: IMAPSession):
        n = self.settings.fetch_connections()
        if n <= 1:
            return contextlib.nullcontext(session)

        extras: list[IMAPSession] = []
        for _ in range(n - 1):
            try:
                extras.append(self.connector(cfg, self.settings, mailbox=session.mailbox))
            except ImageFetcherError as e:
                logger.warning("Conexión extra no disponible (%s); se sigue con %d", e, len(extras) + 1)
                break
        logger.info("Descargando con %d conexiones en paralelo", len(extras) + 1)
        return IMAPSessionPool([session, *extras])

    # ───────────────────────── informe ─────────────────────────
    def _report(self, summary: ExtractionSummary) -> None:
        logger.info(
            "Correos: %d encontrados, %d procesados en %d lotes | Imágenes guardadas: %d, ya existentes: %d | Errores: %d",
            summary.messages_total,
            summary.messages_processed,
            summary.batches,
            summary.downloaded,
            summary.skipped_existing,
            len(summary.failures),
        )
        for f in summary.failures:
            logger.warning("  UID=%s [%s] %s", f.uid, f.stage, f.detail)
