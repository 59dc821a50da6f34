"""Text/binary classification for raw clone entries."""

from __future__ import annotations

from typing import Iterable, Optional

from .constants import DEFAULT_TEXT_EXTENSIONS
from .models import ClassifiedEntry, DeclaredEncoding, RawEntry, SkipReason


def _normalise_extension(value: str) -> str:
    return value.strip().lstrip(".").lower()


def extension_of(path: str) -> Optional[str]:
    """Return the lower-cased text after the last dot of the basename."""
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in name:
        return None
    suffix = name.rsplit(".", 1)[1]
    return suffix.lower() or None


class ContentClassifier:
    """Decides whether an entry is text and decodes it when it is.

    Never raises for content problems; those come back as a
    :class:`ClassifiedEntry` with ``is_text=False`` and a skip reason.
    """

    def __init__(self, text_extensions: Iterable[str] | None = None) -> None:
        source = DEFAULT_TEXT_EXTENSIONS if text_extensions is None else text_extensions
        self.text_extensions = frozenset(
            ext for ext in (_normalise_extension(item) for item in source) if ext
        )

    def is_allowlisted(self, path: str) -> bool:
        extension = extension_of(path)
        return extension is not None and extension in self.text_extensions

    def classify(self, entry: RawEntry) -> ClassifiedEntry:
        if self.is_allowlisted(entry.path):
            return self._decode(entry)
        if entry.declared_encoding is DeclaredEncoding.BINARY:
            return ClassifiedEntry(
                entry=entry,
                is_text=False,
                reason=SkipReason.BINARY,
                detail="binary",
            )
        return self._decode(entry)

    def _decode(self, entry: RawEntry) -> ClassifiedEntry:
        data = entry.data
        if isinstance(data, str):
            text = data
            try:
                text.encode("utf-8")
            except UnicodeEncodeError as exc:
                return ClassifiedEntry(
                    entry=entry,
                    is_text=False,
                    reason=SkipReason.DECODE_ERROR,
                    detail=f"error: {exc.reason} at character {exc.start}",
                )
        else:
            try:
                text = bytes(data).decode("utf-8")
            except UnicodeDecodeError as exc:
                return ClassifiedEntry(
                    entry=entry,
                    is_text=False,
                    reason=SkipReason.DECODE_ERROR,
                    detail=f"error: {exc.reason} at byte {exc.start}",
                )
        if not text:
            return ClassifiedEntry(
                entry=entry,
                is_text=False,
                reason=SkipReason.DECODE_ERROR,
                detail="empty content",
            )
        return ClassifiedEntry(entry=entry, is_text=True, content=text)


__all__ = ["ContentClassifier", "extension_of"]
