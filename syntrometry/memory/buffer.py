"""syntrometry/memory/buffer.py

Bounded FIFO memory of past belief embeddings.

Invariants
----------
- len(buffer) <= capacity at all times.
- Insertion order is eviction order: pushing onto a full buffer drops the
  oldest entry and returns it to the caller.
- Entries own copies of their embeddings; callers can mutate the arrays they
  pushed without touching the buffer.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable, Iterator, List, Optional

import numpy as np


@dataclass(frozen=True, eq=False)
class MemoryEntry:
    """One remembered belief embedding with its wall-clock timestamp (ms)."""

    embedding: np.ndarray
    timestamp: float = field(default_factory=lambda: time.time() * 1000.0)


class MemoryBuffer:
    """Capacity-bounded, oldest-evicted-first collection of MemoryEntry."""

    def __init__(self, capacity: int, entries: Optional[Iterable[MemoryEntry]] = None) -> None:
        if int(capacity) <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = int(capacity)
        self._entries: Deque[MemoryEntry] = deque(maxlen=self.capacity)
        for entry in entries or ():
            self.push(entry.embedding, timestamp=entry.timestamp)

    def push(self, embedding: np.ndarray, *, timestamp: Optional[float] = None) -> Optional[MemoryEntry]:
        """Append a copy of `embedding`; return the evicted entry, if any."""
        evicted = self._entries[0] if len(self._entries) == self.capacity else None
        vec = np.array(embedding, dtype=float).reshape(-1)
        if timestamp is None:
            entry = MemoryEntry(embedding=vec)
        else:
            entry = MemoryEntry(embedding=vec, timestamp=float(timestamp))
        self._entries.append(entry)
        return evicted

    def embeddings(self) -> List[np.ndarray]:
        return [entry.embedding for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[MemoryEntry]:
        return iter(self._entries)

    def __getitem__(self, idx: int) -> MemoryEntry:
        return self._entries[idx]

    def __repr__(self) -> str:
        return f"MemoryBuffer(len={len(self)}, capacity={self.capacity})"
