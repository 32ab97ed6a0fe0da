# infrastructure/filesystem/storage.py
from __future__ import annotations
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class ImageStore:
    """
    Carpeta de descarga. Nunca sobrescribe: si el nombre ya existe, save_bytes
    devuelve None y el fichero original queda intacto.
    """

    def __init__(self, base: Path) -> None:
        self.base = Path(base).expanduser().resolve()
        self.base.mkdir(parents=True, exist_ok=True)

    def save_bytes(self, name: str, data: bytes) -> Path | None:
        fp = self.base / safe_name(name)
        try:
            # "xb" = creación exclusiva, también entre hilos
            f = fp.open("xb")
        except FileExistsError:
            logger.info("Ya existe, se omite: %s", fp.name)
            return None
        try:
            with f:
                f.write(data)
        except OSError:
            fp.unlink(missing_ok=True)
            raise
        logger.info("Guardado: %s", fp)
        return fp


def safe_name(name: str) -> str:
    # solo el nombre base: nada de rutas relativas/absolutas que vengan en el correo
    base = Path(name.replace("\\", "/")).name.strip()
    if base in ("", ".", ".."):
        return "adjunto"
    return base
