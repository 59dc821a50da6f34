"""Render admitted files and skip records into one delimited artifact."""

from __future__ import annotations

import html
import re
from typing import List, Sequence, Tuple

from .constants import ACTION_TAG, ARTIFACT_ID, ARTIFACT_TAG, ARTIFACT_TITLE
from .models import SkipRecord

_TAG_NAMES = f"{ARTIFACT_TAG}|{ACTION_TAG}"

# ``<`` or ``</`` followed by any run of backslashes and a delimiter tag name.
_ESCAPE_RE = re.compile(rf"<(/?)(\\*)({_TAG_NAMES})", re.IGNORECASE)
_UNESCAPE_RE = re.compile(rf"<(/?)\\(\\*)({_TAG_NAMES})", re.IGNORECASE)

_ARTIFACT_OPEN_RE = re.compile(rf"<{ARTIFACT_TAG}\b[^>]*>")

_ACTION_RE = re.compile(
    rf'<{ACTION_TAG} type="file" filePath="([^"]*)">\n(.*?)\n</{ACTION_TAG}>',
    re.DOTALL,
)


def escape_content(text: str) -> str:
    """Stuff one backslash into every delimiter tag opener.

    The result never contains ``<boltAction``/``<boltArtifact`` (or their
    closing forms) and :func:`unescape_content` reverses it exactly.
    """
    return _ESCAPE_RE.sub(lambda match: f"<{match.group(1)}\\{match.group(2)}{match.group(3)}", text)


def unescape_content(text: str) -> str:
    """Inverse of :func:`escape_content`."""
    return _UNESCAPE_RE.sub(lambda match: f"<{match.group(1)}{match.group(2)}{match.group(3)}", text)


def escape_attribute(value: str) -> str:
    return html.escape(value, quote=True)


def unescape_attribute(value: str) -> str:
    return html.unescape(value)


class ArtifactSerializer:
    """Builds the artifact text embedded in the imported conversation."""

    def __init__(self, artifact_id: str = ARTIFACT_ID, title: str = ARTIFACT_TITLE) -> None:
        self.artifact_id = artifact_id
        self.title = title

    def serialize(
        self,
        admitted: Sequence[Tuple[str, str]],
        skipped: Sequence[SkipRecord],
        source_label: str,
        destination_label: str,
    ) -> str:
        header = f"Cloning the repo {source_label} into {destination_label}"
        lines: List[str] = [escape_content(header)]

        if skipped:
            lines.append("")
            lines.append(f"Skipped files ({len(skipped)}):")
            for record in skipped:
                lines.append(escape_content(f"- {record.describe()}"))

        lines.append("")
        lines.append(self._artifact_open())
        for path, content in admitted:
            lines.append(self._action_open(path))
            lines.append(escape_content(content))
            lines.append(f"</{ACTION_TAG}>")
        lines.append(f"</{ARTIFACT_TAG}>")
        return "\n".join(lines)

    def extract(self, artifact: str) -> List[Tuple[str, str]]:
        """Return the ``(path, content)`` pairs embedded in ``artifact``."""
        # Any artifact id or title is accepted.
        opener = _ARTIFACT_OPEN_RE.search(artifact)
        if opener is None:
            return []
        body_start = opener.end()
        end = artifact.find(f"</{ARTIFACT_TAG}>", body_start)
        body = artifact[body_start:] if end == -1 else artifact[body_start:end]

        files: List[Tuple[str, str]] = []
        for match in _ACTION_RE.finditer(body):
            files.append((unescape_attribute(match.group(1)), unescape_content(match.group(2))))
        return files

    def _artifact_open(self) -> str:
        return (
            f'<{ARTIFACT_TAG} id="{escape_attribute(self.artifact_id)}" '
            f'title="{escape_attribute(self.title)}" type="bundled">'
        )

    def _action_open(self, path: str) -> str:
        return f'<{ACTION_TAG} type="file" filePath="{escape_attribute(path)}">'


__all__ = [
    "ArtifactSerializer",
    "escape_attribute",
    "escape_content",
    "unescape_attribute",
    "unescape_content",
]
