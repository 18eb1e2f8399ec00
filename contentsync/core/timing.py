"""
Timed sections for human-readable timing output.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional


class Timings:
    """Collects elapsed times of named sections, in start order."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sections: list[tuple[str, float]] = []

    def add(self, label: str, elapsed: float) -> None:
        with self._lock:
            self._sections.append((label, elapsed))

    @property
    def sections(self) -> list[tuple[str, float]]:
        with self._lock:
            return list(self._sections)

    def total(self, label: str) -> float:
        return sum(elapsed for name, elapsed in self.sections if name == label)

    def report_lines(self) -> list[str]:
        return [f"{label}: {elapsed:.3f}s" for label, elapsed in self.sections]

    def log_report(self) -> None:
        for line in self.report_lines():
            logging.info(line)


@contextmanager
def measure_time(label: str, timings: Optional[Timings] = None) -> Iterator[None]:
    """Time the enclosed block, logging and optionally recording it."""
    logging.debug(f"{label}...")
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logging.debug(f"{label} took {elapsed:.3f}s")
        if timings is not None:
            timings.add(label, elapsed)
