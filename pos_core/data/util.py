from __future__ import annotations

from typing import Literal

from .backends.memory_backend import InMemoryStore
from .seed_data import seed_store


def get_store(kind: Literal["memory", "demo"] = "memory") -> InMemoryStore:
    if kind == "memory":
        # Empty store; the caller loads a snapshot or upserts products
        return InMemoryStore()
    if kind == "demo":
        return seed_store()
    raise ValueError(f"Unknown store kind: {kind}")
