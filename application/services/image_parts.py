# application/services/image_parts.py
from __future__ import annotations
import logging
from typing import Iterable

import pyzmail

from domain.errors import ParseError
from domain.models import ImageAttachment

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_TYPES = ("image/jpeg", "image/jpg")


def attachment_name(uid: int, index: int, filename: str | None, content_id: str | None) -> str:
    """
    Nombre para guardar la parte: el declarado en el correo; si no hay, uno basado
    en el Content-ID; si tampoco, "<uid>_<n>.jpg".
    """
    if filename and filename.strip():
        return filename.strip()
    cid = (content_id or "").strip().strip("<>")
    if cid:
        return f"image_{cid}.jpg"
    return f"{uid}_{index}.jpg"


def extract_images(uid: int, raw: bytes, allowed_types: Iterable[str] = DEFAULT_IMAGE_TYPES) -> list[ImageAttachment]:
    allowed = {t.lower() for t in allowed_types}
    try:
        msg = pyzmail.PyzMessage.factory(raw)
        parts = msg.mailparts
    except Exception as e:
        raise ParseError(uid, f"MIME no interpretable: {e}") from e

    images: list[ImageAttachment] = []
    for part in parts:
        ctype = (part.type or "").lower()
        if ctype not in allowed:
            continue
        payload = part.get_payload()
        if not isinstance(payload, bytes):
            raise ParseError(uid, f"parte {ctype} sin contenido decodificable")
        name = attachment_name(uid, len(images) + 1, part.filename, part.content_id)
        logger.info("UID=%s: imagen encontrada %s (%s, %d bytes)", uid, name, ctype, len(payload))
        images.append(ImageAttachment(uid=uid, filename=name, content=payload, content_type=ctype))

    if not images:
        logger.debug("UID=%s: %d partes, ninguna imagen", uid, len(parts))
    return images
