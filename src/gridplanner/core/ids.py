"""Injectable id factories.

An id factory is any callable taking a prefix (``"room"``, ``"wall"``, ...)
and returning a fresh id. Tests use :class:`CounterIdFactory` to get
deterministic ids.
"""

from __future__ import annotations

import itertools
import uuid
from typing import Callable, Dict

IdFactory = Callable[[str], str]


class CounterIdFactory:
    """Monotonic ``<prefix>-<n>`` ids, counted per prefix."""

    def __init__(self, start: int = 1):
        self._start = start
        self._counters: Dict[str, itertools.count] = {}

    def __call__(self, prefix: str) -> str:
        counter = self._counters.setdefault(prefix, itertools.count(self._start))
        return f"{prefix}-{next(counter)}"


class UuidIdFactory:
    """Random ``<prefix>-<uuid4 hex>`` ids."""

    def __call__(self, prefix: str) -> str:
        return f"{prefix}-{uuid.uuid4().hex}"
