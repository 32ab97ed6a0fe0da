# main.py
# Punto de entrada: config -> conexión IMAP -> búsqueda por remitente -> descarga de JPEG
from __future__ import annotations
import logging
import sys
from config.settings import Settings
from interface_adapters.controllers.download_controller import DownloadController

logger = logging.getLogger(__name__)


def main() -> None:
    settings = Settings()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    logger.info("=== Descarga de imágenes IMAP ===")
    logger.info("Config=%s lote=%d conexiones=%d", settings.MAIL_CONFIG_PATH, settings.batch_size(), settings.fetch_connections())
    sys.exit(DownloadController(settings=settings).run())


if __name__ == "__main__":
    main()
