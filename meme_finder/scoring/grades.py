"""Letter grades for 0-100 heuristic scores."""
from __future__ import annotations

import math
from typing import Sequence

# (minimum score, grade), highest first
SAFETY_BREAKPOINTS: tuple[tuple[float, str], ...] = (
    (80, "A"),
    (65, "B"),
    (50, "C"),
    (35, "D"),
)

RUN_POTENTIAL_BREAKPOINTS: tuple[tuple[float, str], ...] = (
    (75, "A"),
    (60, "B"),
    (45, "C"),
    (30, "D"),
)


def grade_for(score: float, breakpoints: Sequence[tuple[float, str]]) -> str:
    """Map a score to its letter grade; anything below the last breakpoint is F."""
    for minimum, grade in breakpoints:
        if score >= minimum:
            return grade
    return "F"


def clamp_score(score: float) -> float:
    return max(0, min(100, score))


def round_half_up(x: float) -> int:
    """Nearest integer, halves toward +inf (-0.5 -> 0, 2.5 -> 3)."""
    return math.floor(x + 0.5)
