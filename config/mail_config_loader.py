# config/mail_config_loader.py
"""
Carga de la configuración de usuario (email, password, remitente, servidor y carpeta
de descarga) desde un fichero estilo .env. Si el fichero no existe se pregunta por
consola y se guarda el resultado.

Formato:
    EMAIL='yo@example.com'
    PASSWORD='...'
    SENDER='remitente@example.com'
    SERVER='imap.gmail.com'
    DOWNLOAD_DIR='./downloaded_images'
"""
from __future__ import annotations
import getpass
import io
import logging
from pathlib import Path
from typing import Callable

from dotenv import set_key
from dotenv.parser import parse_stream

from domain.errors import ConfigError
from domain.models import MailConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("mail_config.env")
DEFAULT_SERVER = "imap.gmail.com"
DEFAULT_DOWNLOAD_DIR = "./downloaded_images"

# clave en fichero -> campo de MailConfig (en orden de pregunta)
FIELDS: tuple[tuple[str, str], ...] = (
    ("EMAIL", "email"),
    ("PASSWORD", "password"),
    ("SENDER", "sender"),
    ("SERVER", "server"),
    ("DOWNLOAD_DIR", "download_dir"),
)

Prompt = Callable[[str, "str | None"], str]


def console_prompt(label: str, default: str | None = None) -> str:
    suffix = f" [{default}]" if default else ""
    answer = input(f"{label}{suffix}: ").strip()
    return answer or (default or "")


def secret_console_prompt(label: str, default: str | None = None) -> str:
    # la contraseña se guarda tal cual, espacios incluidos
    return getpass.getpass(f"{label}: ") or (default or "")


def _clean(key: str, value: str) -> str:
    return value if key == "PASSWORD" else value.strip()


def read_config(path: Path) -> MailConfig:
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ConfigError(f"{path}: no es texto UTF-8 ({e})") from e
    except OSError as e:
        raise ConfigError(f"No se pudo leer {path}: {e}") from e

    values: dict[str, str] = {}
    for binding in parse_stream(io.StringIO(text)):
        if binding.error:
            raise ConfigError(
                f"{path}:{binding.original.line}: línea mal formada: {binding.original.string.strip()!r}"
            )
        if binding.key is not None:
            values[binding.key.upper()] = binding.value or ""

    missing = [key for key, _ in FIELDS if not _clean(key, values.get(key, ""))]
    if missing:
        raise ConfigError(f"{path}: faltan o están vacíos: {', '.join(missing)}")

    data = {attr: _clean(key, values[key]) for key, attr in FIELDS}
    return MailConfig(**{**data, "download_dir": Path(data["download_dir"])})


def save_config(cfg: MailConfig, path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
        for key, attr in FIELDS:
            set_key(str(path), key, str(getattr(cfg, attr)), quote_mode="always")
    except OSError as e:
        raise ConfigError(f"No se pudo guardar la configuración en {path}: {e}") from e


def prompt_config(prompt: Prompt = console_prompt, secret_prompt: Prompt = secret_console_prompt) -> MailConfig:
    labels = {
        "email": ("Introduce tu email", None, prompt),
        "password": ("Introduce tu contraseña", None, secret_prompt),
        "sender": ("Introduce el email del remitente", None, prompt),
        "server": ("Introduce el servidor IMAP", DEFAULT_SERVER, prompt),
        "download_dir": ("Introduce la carpeta de descarga", DEFAULT_DOWNLOAD_DIR, prompt),
    }
    data: dict[str, str] = {}
    for _, attr in FIELDS:
        label, default, ask = labels[attr]
        answer = ""
        while not answer:
            answer = _clean(attr.upper(), ask(label, default) or "")
        data[attr] = answer
    return MailConfig(**{**data, "download_dir": Path(data["download_dir"])})


def load_or_prompt(
    path: Path | None = None,
    prompt: Prompt = console_prompt,
    secret_prompt: Prompt = secret_console_prompt,
) -> MailConfig:
    """
    Devuelve la configuración guardada en `path` o, si el fichero no existe, la pide
    por consola y la guarda. Un fichero existente pero mal formado es ConfigError:
    no se vuelve a preguntar ni se repara.
    """
    path = Path(path or DEFAULT_CONFIG_PATH)
    if path.exists():
        cfg = read_config(path)
        logger.info("Configuración cargada de %s", path)
        return cfg

    logger.info("No existe %s; se pide la configuración por consola", path)
    cfg = prompt_config(prompt, secret_prompt)
    save_config(cfg, path)
    logger.info("Configuración guardada en %s", path)
    return cfg

