"""Rank ordering and the adjacency rule.

Two different predicates are built on this module and must stay separate:

- ``RankHierarchy.is_at_least`` is the plain ordering used when a member
  physically joins a forum.
- ``RankHierarchy.is_adjacent`` reads the explicit adjacency table used by
  ``MemberProfile.can_access_forum``: a member sees forums of their own rank
  and of the rank directly above or below.
"""

from typing import Any

from rankgate.modules.community.domain.enums import Rank
from rankgate.modules.community.domain.errors import InvalidRankError

RANK_ORDER: tuple[Rank, ...] = (
    Rank.NEWBIE_VILLAGE,
    Rank.DISTINGUISHED_PETTY,
    Rank.QUASI_WEALTHY_VIP,
    Rank.LIFE_WINNER_S,
    Rank.EARTH_OL_GRADUATE,
)

# Member rank -> forum ranks the member may access
ADJACENT_RANKS: dict[Rank, frozenset[Rank]] = {
    Rank.EARTH_OL_GRADUATE: frozenset({Rank.EARTH_OL_GRADUATE, Rank.LIFE_WINNER_S}),
    Rank.LIFE_WINNER_S: frozenset(
        {Rank.EARTH_OL_GRADUATE, Rank.LIFE_WINNER_S, Rank.QUASI_WEALTHY_VIP}
    ),
    Rank.QUASI_WEALTHY_VIP: frozenset(
        {Rank.LIFE_WINNER_S, Rank.QUASI_WEALTHY_VIP, Rank.DISTINGUISHED_PETTY}
    ),
    Rank.DISTINGUISHED_PETTY: frozenset(
        {Rank.QUASI_WEALTHY_VIP, Rank.DISTINGUISHED_PETTY, Rank.NEWBIE_VILLAGE}
    ),
    Rank.NEWBIE_VILLAGE: frozenset({Rank.DISTINGUISHED_PETTY, Rank.NEWBIE_VILLAGE}),
}

_LEVELS: dict[Rank, int] = {rank: index for index, rank in enumerate(RANK_ORDER)}


class RankHierarchy:
    """Static operations over the five ranks."""

    @staticmethod
    def parse(value: Any, field: str = "rank") -> Rank:
        """
        Coerce a Rank or its string name.

        Raises:
            InvalidRankError: If ``value`` is not a recognised rank
        """
        if isinstance(value, Rank):
            return value
        if isinstance(value, str):
            try:
                return Rank(value.strip())
            except ValueError:
                pass
        raise InvalidRankError(value, field=field)

    @staticmethod
    def level(rank: Rank | str) -> int:
        """Zero-based position of ``rank``, lowest first."""
        return _LEVELS[RankHierarchy.parse(rank)]

    @staticmethod
    def is_at_least(rank: Rank | str, minimum: Rank | str) -> bool:
        return RankHierarchy.level(rank) >= RankHierarchy.level(minimum)

    @staticmethod
    def adjacent_ranks(rank: Rank | str) -> frozenset[Rank]:
        return ADJACENT_RANKS[RankHierarchy.parse(rank)]

    @staticmethod
    def is_adjacent(member_rank: Rank | str, forum_rank: Rank | str) -> bool:
        forum_rank = RankHierarchy.parse(forum_rank, field="forum_rank")
        return forum_rank in RankHierarchy.adjacent_ranks(member_rank)

    @staticmethod
    def all_ranks() -> tuple[Rank, ...]:
        return RANK_ORDER
