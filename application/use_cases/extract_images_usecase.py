# application/use_cases/extract_images_usecase.py
from __future__ import annotations
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, Protocol, Sequence

from application.services.image_parts import DEFAULT_IMAGE_TYPES, extract_images
from domain.errors import MessageError, SessionLostError, WriteError
from domain.models import ExtractionSummary, MessageFailure
from infrastructure.filesystem.storage import ImageStore
from utils.batching import chunked

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


class FetchingSession(Protocol):
    def fetch_raw(self, uid: int) -> bytes: ...


class ExtractImagesUseCase:
    """
    Descarga por lotes: los lotes van en serie; dentro de un lote se lanzan todas
    las descargas a la vez (máx. `batch_size` hilos) y se espera a que terminen
    antes de interpretar los correos y guardar las imágenes.
    """

    def __init__(
        self,
        *,
        storage: ImageStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        allowed_types: Iterable[str] = DEFAULT_IMAGE_TYPES,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size debe ser >= 1 (recibido {batch_size})")
        self.storage = storage
        self.batch_size = batch_size
        self.allowed_types = tuple(t.lower() for t in allowed_types)

    def extract_all(self, session: FetchingSession, ids: Sequence[int]) -> ExtractionSummary:
        summary = ExtractionSummary(messages_total=len(ids))
        lost = threading.Event()

        for batch in chunked(ids, self.batch_size):
            if lost.is_set():
                break
            summary.batches += 1
            logger.info("Lote %d: %d correos (UID %s..%s)", summary.batches, len(batch), batch[0], batch[-1])
            for uid, raw in self._fetch_batch(session, batch, summary, lost):
                self._extract_one(uid, raw, summary)

        if summary.aborted:
            logger.error(
                "Descarga interrumpida: %s (%d de %d correos procesados)",
                summary.fatal_error, summary.messages_processed, summary.messages_total,
            )
        return summary

    # ───────── fetch (fan-out / fan-in) ─────────
    def _fetch_batch(
        self,
        session: FetchingSession,
        batch: list[int],
        summary: ExtractionSummary,
        lost: threading.Event,
    ) -> list[tuple[int, bytes]]:
        fetched: dict[int, bytes] = {}

        def fetch(uid: int) -> bytes | None:
            if lost.is_set():
                return None
            return session.fetch_raw(uid)

        with ThreadPoolExecutor(max_workers=len(batch), thread_name_prefix="fetch") as pool:
            futures = {pool.submit(fetch, uid): uid for uid in batch}
            for fut in as_completed(futures):
                uid = futures[fut]
                if fut.cancelled():
                    continue
                try:
                    raw = fut.result()
                except SessionLostError as e:
                    if not lost.is_set():
                        lost.set()
                        summary.aborted = True
                        summary.fatal_error = str(e)
                    for other in futures:
                        other.cancel()
                    continue
                except MessageError as e:
                    self._record(summary, e)
                    continue
                except Exception as e:
                    logger.exception("Error inesperado descargando UID=%s", uid)
                    summary.failures.append(MessageFailure(uid=uid, stage="fetch", detail=str(e)))
                    continue
                if raw is not None:
                    fetched[uid] = raw

        # mismo orden que el lote, aunque las descargas acaben en cualquier orden
        return [(uid, fetched[uid]) for uid in batch if uid in fetched]

    # ───────── parse + guardar ─────────
    def _extract_one(self, uid: int, raw: bytes, summary: ExtractionSummary) -> None:
        try:
            images = extract_images(uid, raw, self.allowed_types)
        except MessageError as e:
            self._record(summary, e)
            return
        summary.messages_processed += 1

        for img in images:
            try:
                saved = self.storage.save_bytes(img.filename, img.content)
            except OSError as e:
                self._record(summary, WriteError(uid, f"{img.filename}: {e}"))
                continue
            if saved is None:
                summary.skipped_existing += 1
            else:
                summary.downloaded += 1

    @staticmethod
    def _record(summary: ExtractionSummary, err: MessageError) -> None:
        logger.warning("Error en UID=%s (%s): %s", err.uid, err.stage, err.detail)
        summary.failures.append(MessageFailure(uid=err.uid, stage=err.stage, detail=err.detail))


def extract_all(
    session: FetchingSession,
    ids: Sequence[int],
    download_dir: Path,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    allowed_types: Iterable[str] = DEFAULT_IMAGE_TYPES,
) -> ExtractionSummary:
    uc = ExtractImagesUseCase(storage=ImageStore(download_dir), batch_size=batch_size, allowed_types=allowed_types)
    return uc.extract_all(session, ids)
