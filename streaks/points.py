"""
Points, levels and streak milestones.

Pure functions; the only state they read is their arguments.
"""
from typing import Any, Dict

BASE_POINTS = 10
STREAK_BONUS_PER_DAY = 5
MAX_STREAK_BONUS = 50
POINTS_PER_LEVEL = 500

MILESTONES = [
    {'days': 7, 'reward': 50, 'name': '1 Week Warrior'},
    {'days': 30, 'reward': 200, 'name': 'Monthly Master'},
    {'days': 100, 'reward': 1000, 'name': 'Century Champion'},
    {'days': 365, 'reward': 5000, 'name': 'Year-Long Legend'},
]

MILESTONE_BONUSES = {m['days']: m['reward'] for m in MILESTONES}

ANNUAL_MILESTONE_NAME = 'Annual Achievement'
ANNUAL_MILESTONE_REWARD = 5000


def milestone_bonus(streak: int) -> int:
    return MILESTONE_BONUSES.get(streak, 0)


def is_milestone(streak: int) -> bool:
    return streak in MILESTONE_BONUSES


def check_in_points(streak: int) -> int:
    """Points for a verified check-in that brought the streak to ``streak``."""
    streak = max(streak, 0)
    return BASE_POINTS + min(streak * STREAK_BONUS_PER_DAY, MAX_STREAK_BONUS) + milestone_bonus(streak)


def level_for_points(total_points: int) -> int:
    return max(total_points, 0) // POINTS_PER_LEVEL + 1


def points_for_next_level(level: int) -> int:
    return level * POINTS_PER_LEVEL


def level_progress(total_points: int) -> int:
    """Percent (0-100) of the way through the current level."""
    into_level = max(total_points, 0) % POINTS_PER_LEVEL
    return round(into_level / POINTS_PER_LEVEL * 100)


def next_milestone(current_streak: int) -> Dict[str, Any]:
    for milestone in MILESTONES:
        if current_streak < milestone['days']:
            return {**milestone, 'daysRemaining': milestone['days'] - current_streak}

    days = (current_streak // 365 + 1) * 365
    return {
        'days': days,
        'reward': ANNUAL_MILESTONE_REWARD,
        'name': ANNUAL_MILESTONE_NAME,
        'daysRemaining': days - current_streak,
    }
