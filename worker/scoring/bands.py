"""Color bands shared by every score that gets rendered or compared."""

import math
from enum import StrEnum


class ScoreColor(StrEnum):
    GREEN = "green"
    LIME = "lime"
    YELLOW = "yellow"
    ORANGE = "orange"
    RED = "red"


# Lower bound (inclusive) of each band, highest first
BAND_THRESHOLDS: tuple[tuple[int, ScoreColor], ...] = (
    (90, ScoreColor.GREEN),
    (70, ScoreColor.LIME),
    (50, ScoreColor.YELLOW),
    (30, ScoreColor.ORANGE),
)


def score_color(score: float) -> ScoreColor:
    """Map a 0-100 score to its color band."""
    for threshold, color in BAND_THRESHOLDS:
        if score >= threshold:
            return color
    return ScoreColor.RED


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def clamp_score(value: float) -> int:
    """Round and clamp a raw rubric total into [0, 100]."""
    return max(0, min(100, round_half_up(value)))
