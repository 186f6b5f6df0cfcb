"""Typing delay estimation."""

# Words per minute the simulated typist manages
WORDS_PER_MINUTE = 450

MILLIS_PER_WORD = (60 * 1000) / WORDS_PER_MINUTE


def estimate_delay(text: str) -> float:
    """Return how long typing ``text`` takes, in milliseconds.

    Words are counted by splitting on single spaces. Empty text takes no
    time. The result is not clamped, so long texts give long delays.
    """
    if not text:
        return 0.0
    return len(text.split(" ")) * MILLIS_PER_WORD
