"""Append-only record of every path left out of an artifact."""

from __future__ import annotations

from typing import Dict, Iterator, List

from .models import SkipReason, SkipRecord, count_reasons


class SkipLedger:
    """Keeps skip records in the order they were encountered."""

    def __init__(self) -> None:
        self._records: List[SkipRecord] = []

    def record(self, path: str, reason: SkipReason, detail: str = "") -> SkipRecord:
        entry = SkipRecord(path=path, reason=reason, detail=detail)
        self._records.append(entry)
        return entry

    def all(self) -> List[SkipRecord]:
        return list(self._records)

    def counts(self) -> Dict[str, int]:
        return count_reasons(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[SkipRecord]:
        return iter(list(self._records))

    def __bool__(self) -> bool:
        return bool(self._records)


__all__ = ["SkipLedger"]
