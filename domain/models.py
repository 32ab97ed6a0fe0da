# domain/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

FailureStage = Literal["fetch", "parse", "write"]


@dataclass(frozen=True)
class MailConfig:
    email: str
    password: str
    sender: str
    server: str
    download_dir: Path


@dataclass
class ImageAttachment:
    uid: int
    filename: str
    content: bytes
    content_type: str


@dataclass
class MessageFailure:
    uid: int
    stage: FailureStage
    detail: str


@dataclass
class ExtractionSummary:
    messages_total: int = 0
    messages_processed: int = 0
    downloaded: int = 0
    skipped_existing: int = 0
    batches: int = 0
    failures: list[MessageFailure] = field(default_factory=list)
    aborted: bool = False
    fatal_error: str | None = None
