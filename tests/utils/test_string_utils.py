from __future__ import annotations

import hashlib

import pytest

from utils.string_utils import StringUtils


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, ""),
        ("text", "text"),
        (12, "12"),
        ("  keep  ", "  keep  "),
    ],
)
def test_ensure_str(value: object, expected: str) -> None:
    assert StringUtils.ensure_str(value) == expected  # type: ignore[arg-type]


def test_generate_text_digest_is_sixteen_hex_chars() -> None:
    digest: str = StringUtils.generate_text_digest("Hello")

    assert len(digest) == 16
    assert digest == hashlib.blake2b(b"Hello", digest_size=8).hexdigest()


def test_generate_text_digest_is_stable() -> None:
    assert StringUtils.generate_text_digest("hello") == StringUtils.generate_text_digest("hello")


def test_generate_text_digest_normalizes_to_nfc() -> None:
    composed = "caf\u00e9"
    decomposed = "cafe\u0301"

    assert composed != decomposed
    assert StringUtils.generate_text_digest(composed) == StringUtils.generate_text_digest(decomposed)


def test_generate_text_digest_differs_for_different_text() -> None:
    assert StringUtils.generate_text_digest("hello") != StringUtils.generate_text_digest("Hello")
