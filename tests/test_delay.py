"""Tests for typing delay estimation."""

import pytest

from chatrelay.messenger.delay import MILLIS_PER_WORD, estimate_delay


def test_two_words():
    assert estimate_delay("No bell!") == pytest.approx(2 * (60000 / 450))


def test_empty_text_is_zero():
    assert estimate_delay("") == 0


def test_single_word():
    assert estimate_delay("Yo") == pytest.approx(MILLIS_PER_WORD)


def test_scales_linearly_with_word_count():
    one = estimate_delay("word")
    ten = estimate_delay(" ".join(["word"] * 10))
    assert ten == pytest.approx(10 * one)


def test_splits_on_single_spaces_only():
    # Two spaces produce an empty word between them
    assert estimate_delay("a  b") == pytest.approx(3 * MILLIS_PER_WORD)


def test_long_text_is_not_clamped():
    text = " ".join(["word"] * 4500)
    assert estimate_delay(text) == pytest.approx(600_000)
