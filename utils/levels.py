from typing import List, Tuple

from models.progress import LevelTitle

# (title, minimum total XP); bands are contiguous and non-overlapping
LEVEL_BANDS: List[Tuple[LevelTitle, int]] = [
    (LevelTitle.NOVICE, 0),
    (LevelTitle.APPRENTICE, 500),
    (LevelTitle.JOURNEYMAN, 2000),
    (LevelTitle.EXPERT, 5000),
    (LevelTitle.MASTER, 10000),
    (LevelTitle.SAGE, 20000),
]


def title_for_xp(total_xp: int) -> LevelTitle:
    title = LEVEL_BANDS[0][0]
    for band_title, min_xp in LEVEL_BANDS:
        if total_xp >= min_xp:
            title = band_title
    return title


def level_for_xp(total_xp: int) -> int:
    """Numeric level, non-decreasing in total XP."""
    if total_xp < 500:
        return 1
    if total_xp < 1000:
        return 2
    if total_xp < 2000:
        return 3
    if total_xp < 5000:
        return 4 + (total_xp - 2000) // 1000
    if total_xp < 10000:
        return 7 + (total_xp - 5000) // 1500
    return 10 + (total_xp - 10000) // 2000


def xp_to_next_title(total_xp: int) -> int:
    """XP still needed to reach the next band; 0 once at the top band."""
    for _, min_xp in LEVEL_BANDS:
        if min_xp > total_xp:
            return min_xp - total_xp
    return 0
