"""In-process call counters."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict


@dataclass
class Counter:
    name: str
    value: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def inc(self, amount: int = 1) -> None:
        with self._lock:
            self.value += amount


class MetricsRegistry:
    def __init__(self) -> None:
        self.counters: Dict[str, Counter] = {}
        self._lock = threading.Lock()

    def counter(self, name: str) -> Counter:
        with self._lock:
            if name not in self.counters:
                self.counters[name] = Counter(name=name)
            return self.counters[name]

    def snapshot(self) -> Dict[str, int]:
        """Return the current counter values as a plain dictionary."""

        return {name: counter.value for name, counter in sorted(self.counters.items())}
