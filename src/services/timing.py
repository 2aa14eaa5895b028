"""Timing of pipeline stages."""

import time
from contextlib import contextmanager
from typing import Generator


class StageTimer:
    """
    Accumulates per-stage durations for a single pipeline run.

    Example:
        timer = StageTimer()
        with timer.stage("fetch"):
            html = await fetcher.fetch(url)
        timer.total_ms
    """

    def __init__(self) -> None:
        self._started = time.perf_counter()
        self.stages: dict[str, float] = {}

    @contextmanager
    def stage(self, name: str) -> Generator[None, None, None]:
        """Time one named stage; durations of repeated names are summed."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self.stages[name] = self.stages.get(name, 0.0) + elapsed_ms

    @property
    def total_ms(self) -> float:
        """Milliseconds since the timer was created."""
        return (time.perf_counter() - self._started) * 1000
