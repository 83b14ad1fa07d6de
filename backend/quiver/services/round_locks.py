"""Round Locks: serializes mutations of a single round within this process.

Invariants:
    - One asyncio.Lock per round id; mutations of different rounds never wait on each other
    - An entry lives only while some task holds or waits for it; the registry is
      empty whenever no round is being mutated

Design Decisions:
    - Module-level dict: single-process uvicorn; across processes the row lock taken by
      RoundRepository.find_for_update() provides the same ordering
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator
from uuid import UUID


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


_round_locks: dict[UUID, _LockEntry] = {}


@asynccontextmanager
async def round_lock(round_id: UUID) -> AsyncIterator[None]:
    """Hold the lock guarding load-mutate-save of one round."""
    entry = _round_locks.get(round_id)
    if entry is None:
        entry = _round_locks[round_id] = _LockEntry()
    entry.users += 1
    try:
        async with entry.lock:
            yield
    finally:
        entry.users -= 1
        if entry.users == 0 and _round_locks.get(round_id) is entry:
            del _round_locks[round_id]
