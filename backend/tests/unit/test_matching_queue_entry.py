"""Tests for the daily match queue entry."""

import pytest

from rankgate.modules.community.domain.entities import MatchingQueueEntry
from rankgate.modules.community.domain.enums import Rank
from rankgate.modules.community.domain.errors import InvalidArgumentError


class TestMatchingQueueEntry:
    def test_join(self):
        entry = MatchingQueueEntry.join("m1", Rank.LIFE_WINNER_S, ttl_ms=600, now=1_000)

        assert entry.joined_at == 1_000
        assert entry.expires_at == 1_600
        assert entry.rank is Rank.LIFE_WINNER_S

    def test_is_expired_at_expiry_time(self):
        entry = MatchingQueueEntry.join("m1", Rank.LIFE_WINNER_S, ttl_ms=600, now=1_000)

        assert not entry.is_expired(1_599)
        assert entry.is_expired(1_600)

    @pytest.mark.parametrize("member_id, ttl_ms", [("", 600), ("m1", 0)])
    def test_join_validates(self, member_id, ttl_ms):
        with pytest.raises(InvalidArgumentError):
            MatchingQueueEntry.join(member_id, Rank.NEWBIE_VILLAGE, ttl_ms=ttl_ms, now=1_000)
