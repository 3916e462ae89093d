"""Tests for the Forum aggregate."""

from itertools import product

import pytest

from rankgate.modules.community.domain.aggregates import Forum
from rankgate.modules.community.domain.enums import ForumStatus, Rank
from rankgate.modules.community.domain.errors import (
    AlreadyArchivedError,
    ArchivedForumError,
    InvalidArgumentError,
    InvalidRankError,
    NegativeCountError,
)
from rankgate.modules.community.domain.events import ForumArchived
from rankgate.modules.community.domain.value_objects import RankHierarchy
from tests.factories import make_forum, stored_forum


class TestForumCreation:
    def test_create_produces_active_empty_forum(self):
        forum = Forum.create(
            required_rank="NEWBIE_VILLAGE",
            tlk_channel_id="forum-1",
            capacity=5,
            creator_id="member-1",
            description="Salary adventurers",
        )

        assert forum.status == ForumStatus.ACTIVE
        assert forum.member_count == 0
        assert forum.version == 1
        assert forum.created_at == forum.updated_at
        assert forum.required_rank is Rank.NEWBIE_VILLAGE
        assert forum.display_name == Rank.NEWBIE_VILLAGE.forum_name
        assert forum.available_slots == 5

    @pytest.mark.parametrize(
        "kwargs, field",
        [
            ({"tlk_channel_id": ""}, "tlk_channel_id"),
            ({"capacity": 0}, "capacity"),
            ({"capacity": -1}, "capacity"),
            ({"capacity": True}, "capacity"),
            ({"capacity": 2.5}, "capacity"),
            ({"creator_id": " "}, "creator_id"),
        ],
    )
    def test_create_validates_fields(self, kwargs, field):
        params = {
            "required_rank": Rank.NEWBIE_VILLAGE,
            "tlk_channel_id": "forum-1",
            "capacity": 5,
            "creator_id": "member-1",
        }
        params.update(kwargs)

        with pytest.raises(InvalidArgumentError) as exc_info:
            Forum.create(**params)

        assert exc_info.value.field == field

    def test_create_rejects_unknown_rank(self):
        with pytest.raises(InvalidRankError) as exc_info:
            Forum.create("SILVER", "forum-1", 5, "member-1")

        assert exc_info.value.field == "required_rank"


class TestForumAdmission:
    """The hard "at least" admission check."""

    @pytest.mark.parametrize("member_rank, forum_rank", list(product(Rank, Rank)))
    def test_active_forum_admits_equal_or_higher_ranks(self, member_rank, forum_rank):
        forum = make_forum(required_rank=forum_rank)

        assert forum.can_member_access(member_rank) == RankHierarchy.is_at_least(
            member_rank, forum_rank
        )

    def test_full_forum_rejects_everyone(self):
        forum = stored_forum(required_rank=Rank.NEWBIE_VILLAGE, capacity=2, member_count=2)

        assert forum.is_full()
        assert not any(forum.can_member_access(rank) for rank in Rank)

    def test_archived_forum_rejects_everyone(self):
        forum = stored_forum(status=ForumStatus.ARCHIVED)

        assert not any(forum.can_member_access(rank) for rank in Rank)

    def test_invalid_member_rank_raises(self):
        with pytest.raises(InvalidRankError):
            make_forum().can_member_access("UNKNOWN")

    def test_admission_differs_from_member_adjacency(self):
        """Top rank may enter the bottom forum although it is not adjacent."""
        forum = make_forum(required_rank=Rank.NEWBIE_VILLAGE)

        assert forum.can_member_access(Rank.EARTH_OL_GRADUATE)
        assert not RankHierarchy.is_adjacent(Rank.EARTH_OL_GRADUATE, Rank.NEWBIE_VILLAGE)


class TestMemberCount:
    def test_capacity_one_forum_fills_and_still_accepts_increment(self):
        forum = make_forum(required_rank=Rank.NEWBIE_VILLAGE, capacity=1)

        forum.increment_member_count()
        assert forum.is_full()
        assert not forum.can_member_access(Rank.NEWBIE_VILLAGE)

        forum.increment_member_count()
        assert forum.member_count == 2
        assert forum.is_full()
        assert forum.available_slots == 0
        assert forum.version == 3

    def test_decrement_at_zero_fails(self):
        forum = make_forum()

        with pytest.raises(NegativeCountError):
            forum.decrement_member_count()

        assert forum.member_count == 0
        assert forum.version == 1

    def test_increment_then_decrement(self):
        forum = make_forum()
        forum.increment_member_count()
        before = forum.updated_at

        forum.decrement_member_count()

        assert forum.member_count == 0
        assert forum.version == 3
        assert forum.updated_at >= before


class TestArchive:
    def test_archive_emits_event(self):
        forum = make_forum()

        forum.archive()

        assert forum.status == ForumStatus.ARCHIVED
        assert not forum.is_active()
        assert forum.version == 2
        events = forum.drain_events()
        assert len(events) == 1
        assert isinstance(events[0], ForumArchived)
        assert events[0].forum_id == forum.id

    def test_archived_forum_rejects_count_changes_and_second_archive(self):
        forum = make_forum()
        forum.archive()

        with pytest.raises(ArchivedForumError):
            forum.increment_member_count()
        with pytest.raises(ArchivedForumError):
            forum.decrement_member_count()
        with pytest.raises(AlreadyArchivedError):
            forum.archive()

        assert forum.version == 2
        assert forum.member_count == 0
