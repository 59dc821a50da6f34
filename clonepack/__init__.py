"""Package a cloned source tree into a single size-bounded chat artifact."""

from .models import (
    AdmittedFile,
    DeclaredEncoding,
    PipelineResult,
    RawEntry,
    SkipReason,
    SkipRecord,
)
from .orchestrator import MalformedEntryError, Orchestrator

__all__ = [
    "AdmittedFile",
    "DeclaredEncoding",
    "MalformedEntryError",
    "Orchestrator",
    "PipelineResult",
    "RawEntry",
    "SkipReason",
    "SkipRecord",
]
