"""Tests for clonepack.classifier."""

from __future__ import annotations

from clonepack.classifier import ContentClassifier, extension_of
from clonepack.models import DeclaredEncoding, RawEntry, SkipReason


def test_allowlisted_extension_decodes_even_when_declared_binary() -> None:
    entry = RawEntry("src/app.ts", "export {}".encode("utf-8"), DeclaredEncoding.BINARY)

    classified = ContentClassifier().classify(entry)

    assert classified.is_text is True
    assert classified.content == "export {}"
    assert classified.reason is None


def test_declared_utf8_string_is_reused_without_decoding() -> None:
    text = "# Title\n"
    entry = RawEntry("README.md", text, DeclaredEncoding.UTF8)

    classified = ContentClassifier().classify(entry)

    assert classified.content is text


def test_binary_declared_file_is_skipped_without_decoding() -> None:
    # Valid UTF-8 on purpose: a decode attempt would have succeeded.
    entry = RawEntry("logo.png", b"plain bytes", DeclaredEncoding.BINARY)

    classified = ContentClassifier().classify(entry)

    assert classified.is_text is False
    assert classified.content is None
    assert classified.reason is SkipReason.BINARY


def test_unknown_extension_with_text_bytes_is_decoded() -> None:
    entry = RawEntry("Makefile", b"all:\n\techo hi\n", DeclaredEncoding.UNKNOWN)

    classified = ContentClassifier().classify(entry)

    assert classified.is_text is True
    assert classified.content == "all:\n\techo hi\n"


def test_invalid_utf8_is_decode_error_not_binary() -> None:
    entry = RawEntry("notes.txt", b"\xff\xfe\xfa broken", DeclaredEncoding.UNKNOWN)

    classified = ContentClassifier().classify(entry)

    assert classified.is_text is False
    assert classified.reason is SkipReason.DECODE_ERROR
    assert classified.detail.startswith("error:")


def test_empty_content_is_decode_error() -> None:
    classified = ContentClassifier().classify(RawEntry("empty.md", b"", DeclaredEncoding.UTF8))

    assert classified.is_text is False
    assert classified.reason is SkipReason.DECODE_ERROR
    assert classified.detail == "empty content"


def test_extension_match_is_case_insensitive() -> None:
    classifier = ContentClassifier()

    assert classifier.is_allowlisted("docs/GUIDE.MD")
    assert not classifier.is_allowlisted("image.PNG")


def test_custom_allowlist_accepts_dotted_entries() -> None:
    classifier = ContentClassifier([".proto", "GRADLE"])

    assert classifier.is_allowlisted("api/service.proto")
    assert classifier.is_allowlisted("build.gradle")
    assert not classifier.is_allowlisted("src/app.ts")


def test_extension_of_handles_dotless_and_nested_names() -> None:
    assert extension_of("Dockerfile") is None
    assert extension_of("a.b/c") is None
    assert extension_of("src/archive.tar.gz") == "gz"
    assert extension_of("trailing.") is None


def test_str_payload_with_lone_surrogate_is_decode_error() -> None:
    entry = RawEntry("bad.md", "x\ud800y", DeclaredEncoding.UTF8)

    classified = ContentClassifier().classify(entry)

    assert classified.is_text is False
    assert classified.reason is SkipReason.DECODE_ERROR
    assert classified.detail == "error: surrogates not allowed at character 1"
