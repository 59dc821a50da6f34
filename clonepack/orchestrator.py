"""Pipeline orchestration for turning a cloned tree into an artifact."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Generator, List, Optional, Protocol, Sequence

from .budget import BudgetAllocator, BudgetState
from .classifier import ContentClassifier
from .config import PackConfig
from .ignore import IgnoreRuleSet, compile_rules, normalize_path
from .ledger import SkipLedger
from .logging import get_logger
from .models import AdmittedFile, ClassifiedEntry, PipelineResult, RawEntry, SkipReason
from .serializer import ArtifactSerializer


class MalformedEntryError(ValueError):
    """Raised when the clone collaborator hands over an unusable entry."""


class CommandDetector(Protocol):
    """Inspects admitted files and proposes setup/run commands."""

    def detect(self, files: Sequence[AdmittedFile]) -> Optional[str]:
        ...


class Orchestrator:
    """Runs filter, classifier and budget over an entry set, then serializes.

    The ignore rules, classifier and serializer are built once and reused
    across runs; budget and ledger state is fresh for every :meth:`run`.
    """

    def __init__(
        self,
        config: PackConfig | None = None,
        *,
        rules: IgnoreRuleSet | None = None,
        classifier: ContentClassifier | None = None,
        serializer: ArtifactSerializer | None = None,
        command_detector: CommandDetector | None = None,
    ) -> None:
        self.config = config or PackConfig()
        self.rules = rules or compile_rules(self.config.ignore_patterns)
        self.classifier = classifier or ContentClassifier(self.config.allowed_extensions)
        self.serializer = serializer or ArtifactSerializer(
            artifact_id=self.config.artifact.id, title=self.config.artifact.title
        )
        self.command_detector = command_detector
        self.logger = get_logger("orchestrator")

    def new_budget(self) -> BudgetState:
        return BudgetState(
            per_file_limit=self.config.limits.max_file_size,
            total_limit=self.config.limits.max_total_size,
        )

    def run(
        self,
        entries: Sequence[RawEntry],
        source_label: str,
        destination_label: str,
    ) -> PipelineResult:
        """Package ``entries`` in the order given and return the artifact."""
        entries = [self._validate(entry) for entry in entries]
        self.logger.info("Packing %d entries from %s", len(entries), source_label)

        budget = BudgetAllocator(self.new_budget())
        ledger = SkipLedger()
        admitted: List[AdmittedFile] = []

        excluded = [self.rules.should_exclude(entry.path) for entry in entries]
        classified_entries = self._classify_all(
            [entry for entry, skip in zip(entries, excluded) if not skip]
        )

        for entry, skip in zip(entries, excluded):
            if skip:
                ledger.record(entry.path, SkipReason.FILTERED, "filtered")
                continue

            classified = next(classified_entries)
            if not classified.is_text:
                reason = classified.reason or SkipReason.DECODE_ERROR
                ledger.record(classified.path, reason, classified.detail)
                self.logger.debug("Skipping %s: %s", classified.path, classified.detail)
                continue

            decision = budget.try_admit(classified)
            if not decision.admitted:
                reason = decision.reason or SkipReason.BUDGET_EXCEEDED
                ledger.record(classified.path, reason, decision.detail)
                self.logger.debug("Skipping %s: %s", classified.path, decision.detail)
                continue

            admitted.append(
                AdmittedFile(path=classified.path, content=classified.content or "", size=decision.size)
            )
        classified_entries.close()

        records = ledger.all()
        artifact = self.serializer.serialize(
            [(file.path, file.content) for file in admitted],
            records,
            source_label,
            destination_label,
        )

        commands_message = None
        if self.command_detector is not None:
            commands_message = self.command_detector.detect(admitted)

        counts = ledger.counts()
        self.logger.info(
            "Admitted %d files (%d bytes), skipped %d",
            len(admitted),
            budget.state.total_admitted_bytes,
            len(records),
        )
        for reason, count in sorted(counts.items()):
            self.logger.info("  %s: %d", reason, count)

        return PipelineResult(
            artifact=artifact,
            files=admitted,
            skip_records=records,
            total_bytes=budget.state.total_admitted_bytes,
            commands_message=commands_message,
            skip_counts=counts,
        )

    def _classify_all(self, entries: Sequence[RawEntry]) -> Generator[ClassifiedEntry, None, None]:
        workers = max(self.config.classify_workers, 1)
        if workers == 1 or len(entries) < 2:
            for entry in entries:
                yield self.classifier.classify(entry)
            return
        # ``map`` yields in submission order, so budgeting stays deterministic.
        with ThreadPoolExecutor(max_workers=workers) as executor:
            yield from executor.map(self.classifier.classify, entries)

    @staticmethod
    def _validate(entry: object) -> RawEntry:
        if not isinstance(entry, RawEntry):
            raise MalformedEntryError(f"Expected RawEntry, got {type(entry).__name__}")
        normalized = normalize_path(entry.path) if isinstance(entry.path, str) else ""
        if not normalized:
            raise MalformedEntryError("Entry is missing a path")
        if not isinstance(entry.data, (bytes, bytearray, str)):
            raise MalformedEntryError(f"Entry {entry.path} has unsupported data type {type(entry.data).__name__}")
        if normalized == entry.path:
            return entry
        return RawEntry(path=normalized, data=entry.data, declared_encoding=entry.declared_encoding)


__all__ = ["CommandDetector", "MalformedEntryError", "Orchestrator"]
