from __future__ import annotations

"""Cooperative per-query time budget."""

import time
from dataclasses import dataclass, field


class QueryTimeoutError(RuntimeError):
    """Raised when a query exceeds its wall-clock budget."""

    def __init__(self, stage: str, elapsed: float) -> None:
        super().__init__(f"query budget exhausted during {stage} after {elapsed:.3f}s")
        self.stage = stage
        self.elapsed = elapsed


@dataclass
class Deadline:
    """Monotonic budget that stages poll between units of work.

    A ``budget`` of ``None`` or ``<= 0`` never expires.
    """

    budget: float | None
    started: float = field(default_factory=time.monotonic)

    @classmethod
    def unbounded(cls) -> Deadline:
        return cls(budget=None)

    def elapsed(self) -> float:
        return time.monotonic() - self.started

    def expired(self) -> bool:
        if self.budget is None or self.budget <= 0:
            return False
        return self.elapsed() >= self.budget

    def check(self, stage: str) -> None:
        if self.expired():
            raise QueryTimeoutError(stage, self.elapsed())
