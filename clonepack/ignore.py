"""Gitignore-style path exclusion compiled once per pipeline run."""

from __future__ import annotations

import re
from dataclasses import dataclass
from fnmatch import translate
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

# ``None`` stands for a ``**`` segment.
SegmentMatcher = Optional[Pattern[str]]


def normalize_path(path: str) -> str:
    """Return ``path`` with forward slashes and no leading ``./`` or ``/``."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.lstrip("/")


@dataclass(frozen=True)
class IgnoreRule:
    """Represents one compiled ignore pattern."""

    pattern: str
    segments: Tuple[SegmentMatcher, ...]
    directory_only: bool
    negate: bool

    def matches(self, parts: Sequence[str], is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        return _match_segments(self.segments, parts, 0, 0)


def _match_segments(
    segments: Sequence[SegmentMatcher], parts: Sequence[str], seg_index: int, part_index: int
) -> bool:
    while seg_index < len(segments):
        matcher = segments[seg_index]
        if matcher is None:
            # Collapse runs of ``**``; they behave like a single one.
            while seg_index < len(segments) and segments[seg_index] is None:
                seg_index += 1
            if seg_index == len(segments):
                return True
            for start in range(part_index, len(parts)):
                if _match_segments(segments, parts, seg_index, start):
                    return True
            return False
        if part_index >= len(parts) or matcher.match(parts[part_index]) is None:
            return False
        seg_index += 1
        part_index += 1
    return part_index == len(parts)


def _compile_segment(segment: str) -> SegmentMatcher:
    if segment == "**":
        return None
    return re.compile(translate(segment))


def _build_ignore_rule(pattern: str) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern or pattern.startswith("#"):
        return None

    negate = pattern.startswith("!")
    if negate:
        pattern = pattern[1:]
    original = pattern

    directory_only = pattern.endswith("/")
    pattern = pattern.rstrip("/")

    anchored = pattern.startswith("/")
    pattern = pattern.lstrip("/")
    if not pattern:
        return None

    raw_segments = [segment for segment in pattern.split("/") if segment]
    if not anchored and len(raw_segments) == 1:
        # A bare name matches at any depth.
        raw_segments = ["**", *raw_segments]
    elif len(raw_segments) > 1 and raw_segments[-1] == "**":
        # ``dir/**`` covers what is inside ``dir``, not a file named ``dir``.
        raw_segments[-1:] = ["*", "**"]

    return IgnoreRule(
        pattern=original,
        segments=tuple(_compile_segment(segment) for segment in raw_segments),
        directory_only=directory_only,
        negate=negate,
    )


class IgnoreRuleSet:
    """An immutable, ordered collection of compiled ignore rules.

    Evaluation follows gitignore semantics: the last matching rule wins, a
    ``!`` rule re-includes, and nothing below an excluded directory can be
    re-included.
    """

    def __init__(self, rules: Iterable[IgnoreRule]) -> None:
        self._rules: Tuple[IgnoreRule, ...] = tuple(rules)

    @property
    def rules(self) -> Tuple[IgnoreRule, ...]:
        return self._rules

    @property
    def patterns(self) -> List[str]:
        return [("!" if rule.negate else "") + rule.pattern for rule in self._rules]

    def __len__(self) -> int:
        return len(self._rules)

    def should_exclude(self, path: str) -> bool:
        """Return True when ``path`` (a file) is excluded by the rule set."""
        parts = [part for part in normalize_path(path).split("/") if part]
        if not parts or not self._rules:
            return False
        for depth in range(1, len(parts)):
            if self._evaluate(parts[:depth], is_dir=True):
                return True
        return self._evaluate(parts, is_dir=False)

    def _evaluate(self, parts: Sequence[str], *, is_dir: bool) -> bool:
        ignored = False
        for rule in self._rules:
            if rule.matches(parts, is_dir):
                ignored = not rule.negate
        return ignored


def compile_rules(patterns: Iterable[str]) -> IgnoreRuleSet:
    """Compile ``patterns`` into a reusable rule set."""
    rules: List[IgnoreRule] = []
    for pattern in patterns:
        rule = _build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return IgnoreRuleSet(rules)


__all__ = ["IgnoreRule", "IgnoreRuleSet", "compile_rules", "normalize_path"]
