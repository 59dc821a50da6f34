"""Core data models shared across clonepack components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union


class DeclaredEncoding(str, Enum):
    """Encoding reported by the clone collaborator for a file's payload."""

    UTF8 = "utf8"
    BINARY = "binary"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> "DeclaredEncoding":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower().replace("-", "")
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.UNKNOWN


class SkipReason(str, Enum):
    """Why a path did not make it into the artifact."""

    FILTERED = "filtered"
    BINARY = "binary"
    DECODE_ERROR = "decode-error"
    TOO_LARGE = "too-large"
    BUDGET_EXCEEDED = "budget-exceeded"


@dataclass(frozen=True)
class RawEntry:
    """One file handed over by the clone collaborator."""

    path: str
    data: Union[bytes, str]
    declared_encoding: DeclaredEncoding = DeclaredEncoding.UNKNOWN


@dataclass(frozen=True)
class ClassifiedEntry:
    """A raw entry after the text/binary decision."""

    entry: RawEntry
    is_text: bool
    content: Optional[str] = None
    reason: Optional[SkipReason] = None
    detail: str = ""

    @property
    def path(self) -> str:
        return self.entry.path


@dataclass(frozen=True)
class SkipRecord:
    """A rejected path and the human-readable explanation."""

    path: str
    reason: SkipReason
    detail: str

    def describe(self) -> str:
        return f"{self.path} ({self.detail})" if self.detail else self.path


@dataclass(frozen=True)
class AdmittedFile:
    """A decoded text file that fits the size budget."""

    path: str
    content: str
    size: int


@dataclass
class PipelineResult:
    """Everything one pipeline run hands back to its caller."""

    artifact: str
    files: List[AdmittedFile]
    skip_records: List[SkipRecord]
    total_bytes: int
    commands_message: Optional[str] = None
    skip_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def admitted_paths(self) -> List[str]:
        return [file.path for file in self.files]


EntryPayload = Union[bytes, str, Tuple[Union[bytes, str], object], Mapping[str, object]]


def entries_from_mapping(mapping: Mapping[str, EntryPayload]) -> List[RawEntry]:
    """Convert a ``path -> payload`` mapping into entries, keeping iteration order.

    A payload is raw ``bytes``/``str``, a ``(data, encoding)`` pair or a
    mapping with ``data`` and ``encoding`` keys.
    """
    entries: List[RawEntry] = []
    for path, payload in mapping.items():
        if isinstance(payload, Mapping):
            data = payload.get("data")
            encoding = payload.get("encoding")
        elif isinstance(payload, tuple):
            data, encoding = payload
        else:
            data, encoding = payload, None
        if encoding is None:
            encoding = DeclaredEncoding.UTF8 if isinstance(data, str) else DeclaredEncoding.UNKNOWN
        entries.append(
            RawEntry(path=path, data=data, declared_encoding=DeclaredEncoding.parse(encoding))  # type: ignore[arg-type]
        )
    return entries


def count_reasons(records: Iterable[SkipRecord]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for record in records:
        counts[record.reason.value] = counts.get(record.reason.value, 0) + 1
    return counts
