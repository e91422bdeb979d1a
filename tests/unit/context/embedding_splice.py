"""Unit tests for splitting input text around an image placeholder."""

from __future__ import annotations

from kvsession.context.splice import splice
from tests.helpers.tokenizer import WordTokenizer
from tests.config.tokenizer import SENTINEL_ID


def test_splice_single_marker() -> None:
    tokenizer = WordTokenizer()
    text = "Describe <image> briefly"

    result = splice(text, "<image>", tokenizer, add_sentinel=True, handles=["img"])

    pre = tokenizer.tokenize("Describe ", add_sentinel=True)
    assert result.boundary == len(pre)
    assert len(result.tokens) == len(tokenizer.tokenize("Describe  briefly", add_sentinel=True))
    assert result.tokens[0] == SENTINEL_ID
    assert [record.position for record in result.insertions] == [len(pre)]
    assert result.insertions[0].handle == "img"


def test_splice_post_segment_has_no_sentinel() -> None:
    tokenizer = WordTokenizer()

    result = splice("<image> briefly", "<image>", tokenizer, add_sentinel=True, handles=["img"])

    assert result.tokens == [SENTINEL_ID, tokenizer.id_of(" briefly")]
    assert result.insertions[0].position == 1


def test_splice_offset_makes_positions_absolute() -> None:
    tokenizer = WordTokenizer()

    result = splice("Describe <image>", "<image>", tokenizer, add_sentinel=False, handles=["a", "b"], offset=7)

    assert [record.position for record in result.insertions] == [8, 8]
    assert [record.handle for record in result.insertions] == ["a", "b"]


def test_splice_without_marker_is_one_segment() -> None:
    tokenizer = WordTokenizer()

    result = splice("Hello world", "<image>", tokenizer, add_sentinel=True, handles=["img"])

    assert result.tokens == tokenizer.tokenize("Hello world", add_sentinel=True)
    assert result.insertions == []
    assert result.boundary is None


def test_splice_only_first_marker() -> None:
    tokenizer = WordTokenizer()

    result = splice("a <image> b <image>", "<image>", tokenizer, add_sentinel=False, handles=["img"])

    assert len(result.insertions) == 1
    assert tokenizer.decode(result.tokens).endswith("<image>")
