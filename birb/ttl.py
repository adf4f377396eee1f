"""Time-to-live bookkeeping for cached entries."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable


class CacheIdentifier(Enum):
    """Names of the caches the datastore keeps."""

    BLOG = "blog"


@dataclass(frozen=True)
class TTLData:
    """Durations in seconds: ``base`` lifetime, ``addition`` per read, ``cap`` from now."""

    cap: float
    addition: float
    base: float
    clock: Callable[[], float] = field(default=time.monotonic, compare=False, repr=False)

    def __post_init__(self) -> None:
        for name in ("cap", "addition", "base"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    def ttl(self) -> "TTL":
        """Start a TTL expiring ``base`` seconds from now."""
        return TTL(self)


class TTL:
    """An expiration that each read pushes back, up to a cap."""

    def __init__(self, data: TTLData) -> None:
        self.data = data
        self.expiration = data.clock() + data.base

    def read(self) -> None:
        """Extend the expiration by ``addition``, never past now plus ``cap``."""
        extended = self.expiration + self.data.addition
        cap = self.data.clock() + self.data.cap
        self.expiration = min(cap, extended)

    def expired(self) -> bool:
        return self.expiration <= self.data.clock()