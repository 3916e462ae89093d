"""Tests for the MemberProfile aggregate."""

from itertools import product

import pytest

from rankgate.modules.community.domain.aggregates import MemberProfile
from rankgate.modules.community.domain.enums import MemberStatus, Rank
from rankgate.modules.community.domain.errors import (
    AlreadyVerifiedError,
    InvalidArgumentError,
    InvalidRankError,
)
from rankgate.modules.community.domain.events import MemberProfileUpdated, MemberVerified
from rankgate.modules.community.domain.value_objects import RankHierarchy
from tests.factories import make_member, make_verified_member


class TestMemberCreation:
    """Creating a member on first login."""

    def test_create_produces_general_member_at_version_one(self):
        member = MemberProfile.create(oidc_subject_id="sub-1", nickname="Alice")

        assert member.status == MemberStatus.GENERAL
        assert member.version == 1
        assert member.created_at == member.updated_at
        assert member.linked_vc_did is None
        assert member.derived_rank is None
        assert member.is_new
        assert member.get_events() == []

    def test_create_keeps_optional_fields(self):
        member = MemberProfile.create("sub-1", "Alice", gender="F", interests="hiking")

        assert member.gender == "F"
        assert member.interests == "hiking"

    @pytest.mark.parametrize(
        "oidc_subject_id, nickname, field",
        [
            ("", "Alice", "oidc_subject_id"),
            ("   ", "Alice", "oidc_subject_id"),
            ("sub-1", "", "nickname"),
            ("sub-1", "\t", "nickname"),
        ],
    )
    def test_create_rejects_blank_fields(self, oidc_subject_id, nickname, field):
        with pytest.raises(InvalidArgumentError) as exc_info:
            MemberProfile.create(oidc_subject_id=oidc_subject_id, nickname=nickname)

        assert exc_info.value.field == field


class TestRankCardVerification:
    """One-shot verification with a Rank Card."""

    def test_unverified_member_cannot_access_any_forum(self):
        member = MemberProfile.create("sub-1", "Alice")

        assert not member.can_access_forum(Rank.QUASI_WEALTHY_VIP)
        assert not any(member.can_access_forum(rank) for rank in Rank)

    def test_verify_links_did_and_rank(self):
        member = MemberProfile.create("sub-1", "Alice")

        member.verify_with_rank_card("did:example:1", Rank.LIFE_WINNER_S)

        assert member.status == MemberStatus.VERIFIED
        assert member.is_verified
        assert member.version == 2
        assert member.linked_vc_did == "did:example:1"
        assert member.derived_rank is Rank.LIFE_WINNER_S
        assert member.can_access_forum(Rank.EARTH_OL_GRADUATE)
        assert not member.can_access_forum(Rank.DISTINGUISHED_PETTY)

    def test_verify_emits_member_verified_event(self):
        member = MemberProfile.create("sub-1", "Alice")

        member.verify_with_rank_card("did:example:1", "LIFE_WINNER_S")

        events = member.drain_events()
        assert len(events) == 1
        event = events[0]
        assert isinstance(event, MemberVerified)
        assert event.member_id == member.id
        assert event.did == "did:example:1"
        assert event.rank == "LIFE_WINNER_S"
        assert event.verified_at == member.updated_at
        assert event.metadata.aggregate_version == 2
        assert member.drain_events() == []

    def test_second_verification_fails_and_keeps_first_result(self):
        member = MemberProfile.create("sub-1", "Alice")
        member.verify_with_rank_card("did:example:1", Rank.LIFE_WINNER_S)
        updated_at = member.updated_at

        with pytest.raises(AlreadyVerifiedError):
            member.verify_with_rank_card("did:example:2", Rank.NEWBIE_VILLAGE)

        assert member.linked_vc_did == "did:example:1"
        assert member.derived_rank is Rank.LIFE_WINNER_S
        assert member.version == 2
        assert member.updated_at == updated_at
        assert len(member.get_events()) == 1

    @pytest.mark.parametrize("rank", ["", "   ", None])
    def test_empty_rank_is_invalid_argument(self, rank):
        member = MemberProfile.create("sub-1", "Alice")

        with pytest.raises(InvalidArgumentError) as exc_info:
            member.verify_with_rank_card("did:example:1", rank)

        assert exc_info.value.field == "rank"
        assert member.status == MemberStatus.GENERAL
        assert member.version == 1

    def test_unknown_rank_is_invalid_rank(self):
        member = MemberProfile.create("sub-1", "Alice")

        with pytest.raises(InvalidRankError):
            member.verify_with_rank_card("did:example:1", "DIAMOND")

        assert member.status == MemberStatus.GENERAL
        assert member.get_events() == []

    def test_blank_did_is_rejected(self):
        member = MemberProfile.create("sub-1", "Alice")

        with pytest.raises(InvalidArgumentError) as exc_info:
            member.verify_with_rank_card(" ", Rank.NEWBIE_VILLAGE)

        assert exc_info.value.field == "did"

    def test_invalid_forum_rank_fails_even_when_unverified(self):
        member = MemberProfile.create("sub-1", "Alice")

        with pytest.raises(InvalidRankError):
            member.can_access_forum("UNKNOWN")

    @pytest.mark.parametrize("member_rank, forum_rank", list(product(Rank, Rank)))
    def test_access_follows_adjacency_table(self, member_rank, forum_rank):
        member = make_verified_member(rank=member_rank)

        assert member.can_access_forum(forum_rank) == (
            forum_rank in RankHierarchy.adjacent_ranks(member_rank)
        )


class TestProfileUpdate:
    """Replacing gender and interests."""

    def test_update_increments_version_and_emits_event(self):
        member = make_member()
        before = member.updated_at

        member.update_profile("F", "chess")

        assert member.gender == "F"
        assert member.interests == "chess"
        assert member.version == 2
        assert member.updated_at >= before
        events = member.drain_events()
        assert len(events) == 1
        assert isinstance(events[0], MemberProfileUpdated)
        assert events[0].oidc_subject_id == member.oidc_subject_id

    def test_update_is_repeatable(self):
        member = make_member()

        member.update_profile("F", "chess")
        member.update_profile("M", "go")

        assert member.version == 3
        assert member.interests == "go"
        assert len(member.get_events()) == 2

    @pytest.mark.parametrize("gender, interests", [("", "chess"), ("F", ""), (" ", " ")])
    def test_update_rejects_blank_values(self, gender, interests):
        member = make_member(gender="X", interests="reading")

        with pytest.raises(InvalidArgumentError):
            member.update_profile(gender, interests)

        assert member.gender == "X"
        assert member.interests == "reading"
        assert member.version == 1
