"""
Leaderboard Ranking

Entries are sorted by score, highest first. Tied scores share a rank and
the next distinct score skips the tie group: scores [100, 100, 90] rank as
[1, 1, 3]. Within a tie, input order is kept.

Ranks are recomputed on every call over the whole population, then
truncated, so a truncated board still shows true population ranks.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar, Union
import logging

from fitplay.config import LEADERBOARD_LIMIT, USER_RANK_WINDOW
from fitplay.models.profile import UserProfile

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RankedEntry:
    """One ranked row"""
    rank: int
    user_id: str
    score: float
    data: Dict[str, Any] = field(default_factory=dict)


def rank_by(items: Iterable[T], score: Callable[[T], float]) -> List[tuple]:
    """
    Rank arbitrary items by a score function

    Returns:
        List of (rank, item) pairs, best first
    """
    ordered = sorted(items, key=score, reverse=True)  # sorted() is stable

    ranked = []
    previous_score = None
    current_rank = 0
    for position, item in enumerate(ordered, start=1):
        item_score = score(item)
        if item_score != previous_score:
            current_rank = position
            previous_score = item_score
        ranked.append((current_rank, item))

    return ranked


UserLike = Union[UserProfile, Mapping[str, Any]]


def _user_row(user: UserLike) -> Dict[str, Any]:
    if isinstance(user, UserProfile):
        return {
            "id": user.id,
            "display_name": user.display_name,
            "total_points": user.total_points,
            "workout_count": user.workout_count,
            "level": user.level,
        }
    row = dict(user)
    row.setdefault("total_points", 0)
    return row


def build_leaderboard(
    users: Iterable[UserLike],
    limit: Optional[int] = None
) -> List[RankedEntry]:
    """
    Rank users by total points

    Args:
        users: Profiles or mappings with 'id' and 'total_points'
        limit: Rows to keep after ranking (defaults to LEADERBOARD_LIMIT)

    Returns:
        Ranked entries, best first, at most `limit` rows
    """
    limit = LEADERBOARD_LIMIT if limit is None else limit
    rows = [_user_row(u) for u in users]

    ranked = [
        RankedEntry(rank=r, user_id=str(row["id"]), score=row["total_points"], data=row)
        for r, row in rank_by(rows, lambda row: row["total_points"])
    ]

    logger.debug(f"Leaderboard built over {len(ranked)} users, limit {limit}")
    return ranked[:max(limit, 0)]


def get_user_rank(
    user_id: str,
    users: Iterable[UserLike],
    limit: Optional[int] = None
) -> Optional[int]:
    """
    A user's rank within the top-N window

    Args:
        user_id: User to look up
        users: Whole population
        limit: Window size (defaults to USER_RANK_WINDOW)

    Returns:
        Rank, or None when the user is outside the window
    """
    limit = USER_RANK_WINDOW if limit is None else limit
    for entry in build_leaderboard(users, limit):
        if entry.user_id == str(user_id):
            return entry.rank
    return None


def ranks_of(entries: Sequence[RankedEntry]) -> List[int]:
    """Rank column of a board"""
    return [e.rank for e in entries]
