# utils/batching.py
from __future__ import annotations
from typing import Iterator, Sequence, TypeVar

T = TypeVar("T")


def chunked(seq: Sequence[T], size: int) -> Iterator[list[T]]:
    """Trocea `seq` en listas consecutivas de `size` elementos (la última puede ser menor)."""
    if size < 1:
        raise ValueError(f"size debe ser >= 1 (recibido {size})")
    for i in range(0, len(seq), size):
        yield list(seq[i : i + size])
