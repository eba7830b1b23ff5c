"""XP, level and streak bookkeeping for rooms."""

import logging
from datetime import datetime

from src.core.config import constants
from src.domain.room import Room


logger = logging.getLogger(__name__)


def level_for_xp(total_xp: int) -> int:
    """Level = floor(total_xp / 100) + 1, never below 1."""
    return max(total_xp // constants.XP_PER_LEVEL + 1, 1)


def xp_to_next_level(total_xp: int) -> int:
    """XP still needed to reach the next level, never negative."""
    return max(level_for_xp(total_xp) * constants.XP_PER_LEVEL - total_xp, 0)


def record_activity(room: Room, *, now: datetime) -> None:
    """Update the day-granularity streak and stamp last_activity_date.

    Same calendar day as the last activity: unchanged. Exactly one day later: +1.
    Anything else (including no prior activity): reset to 1.
    """
    if room.last_activity_date is None:
        room.streak = 1
    else:
        last = room.last_activity_date
        if now.tzinfo is not None and last.tzinfo is not None:
            last = last.astimezone(now.tzinfo)
        days_between = (now.date() - last.date()).days
        if days_between == 0:
            pass
        elif days_between == 1:
            room.streak += 1
        else:
            room.streak = 1

    room.last_activity_date = now


def grant_xp(room: Room, amount: int, *, now: datetime) -> None:
    """Add newly earned XP and record activity; no-op for zero."""
    if amount <= 0:
        return
    previous_level = level_for_xp(room.total_xp)
    room.total_xp += amount
    record_activity(room, now=now)

    new_level = level_for_xp(room.total_xp)
    logger.info(
        "room_xp_granted",
        extra={
            "room_id": room.id,
            "gained_xp": amount,
            "total_xp": room.total_xp,
            "streak": room.streak,
            "level_up": new_level > previous_level,
        },
    )
