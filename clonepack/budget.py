"""Per-file and aggregate byte budgets for admitted files."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from .constants import KIB, MAX_FILE_SIZE, MAX_TOTAL_SIZE
from .models import ClassifiedEntry, SkipReason


@dataclass
class BudgetState:
    """Running byte count for a single pipeline run.

    ``total_admitted_bytes`` only grows while a run is in progress; a new run
    starts from a fresh state.
    """

    per_file_limit: int = MAX_FILE_SIZE
    total_limit: int = MAX_TOTAL_SIZE
    total_admitted_bytes: int = 0

    @property
    def remaining(self) -> int:
        return max(self.total_limit - self.total_admitted_bytes, 0)


@dataclass(frozen=True)
class BudgetDecision:
    """Outcome of :meth:`BudgetAllocator.try_admit`."""

    admitted: bool
    size: int
    reason: Optional[SkipReason] = None
    detail: str = ""


def encoded_size(text: str) -> int:
    """Byte length of ``text`` once encoded as UTF-8."""
    return len(text.encode("utf-8"))


def format_kib(size: int) -> str:
    return f"{math.floor(size / KIB + 0.5)}KB"


class BudgetAllocator:
    """Admits text entries while both ceilings hold."""

    def __init__(self, state: BudgetState | None = None) -> None:
        self.state = state if state is not None else BudgetState()

    def try_admit(self, classified: ClassifiedEntry) -> BudgetDecision:
        if not classified.is_text or classified.content is None:
            raise ValueError(f"Only text entries can be budgeted: {classified.path}")

        size = encoded_size(classified.content)
        if size > self.state.per_file_limit:
            return BudgetDecision(
                admitted=False,
                size=size,
                reason=SkipReason.TOO_LARGE,
                detail=f"too large: {format_kib(size)}",
            )
        if self.state.total_admitted_bytes + size > self.state.total_limit:
            return BudgetDecision(
                admitted=False,
                size=size,
                reason=SkipReason.BUDGET_EXCEEDED,
                detail="would exceed total size limit",
            )

        self.state.total_admitted_bytes += size
        return BudgetDecision(admitted=True, size=size)


__all__ = ["BudgetAllocator", "BudgetDecision", "BudgetState", "encoded_size"]
