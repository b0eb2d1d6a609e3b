"""Level formula and progress computation.

Level L starts at ``(L - 1)^2 * 100`` XP, so level 2 starts at 100,
level 3 at 400, level 4 at 900, and so on. All functions are pure.
"""

from __future__ import annotations

import math

XP_PER_LEVEL_UNIT = 100


def xp_for_level(level: int) -> int:
    """Total XP at which ``level`` begins. Level 1 begins at 0."""
    if level < 1:
        msg = f"level must be >= 1, got {level}"
        raise ValueError(msg)
    return (level - 1) ** 2 * XP_PER_LEVEL_UNIT


def level_for_xp(xp: int) -> int:
    """Level reached with ``xp`` total experience.

    ``floor(sqrt(max(0, xp) / 100)) + 1``, computed with integer square
    root so exact boundaries (xp == xp_for_level(L)) land on L.
    """
    units = max(0, xp) // XP_PER_LEVEL_UNIT
    return max(1, math.isqrt(units) + 1)


def progress_to_next_level(xp: int) -> float:
    """Fraction of the current level already earned, in [0, 1)."""
    current = level_for_xp(xp)
    floor_xp = xp_for_level(current)
    span = max(1, xp_for_level(current + 1) - floor_xp)
    return (xp - floor_xp) / span


def compute_level(total_xp: int) -> dict:
    """Compute level info from total XP for summary displays."""
    level = level_for_xp(total_xp)
    floor_xp = xp_for_level(level)
    return {
        "level": level,
        "xp_into_level": max(0, total_xp) - floor_xp,
        "xp_for_level": max(1, xp_for_level(level + 1) - floor_xp),
        "next_level": level + 1,
        "progress": progress_to_next_level(total_xp),
    }
