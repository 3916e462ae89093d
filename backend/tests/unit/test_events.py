"""Tests for domain events and their outbox representation."""

from datetime import datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from rankgate.core.errors import ValidationError
from rankgate.core.events.outbox import OutboxEvent, OutboxEventModel
from rankgate.modules.community.domain.events import ForumArchived, MemberVerified
from tests.factories import make_member


@pytest.fixture
def verified_event():
    member = make_member()
    member.verify_with_rank_card("did:example:1", "NEWBIE_VILLAGE")
    return member.drain_events()[0]


class TestDomainEvents:
    def test_metadata_is_filled_from_aggregate(self, verified_event):
        assert verified_event.event_type == "MemberVerified"
        assert verified_event.metadata.aggregate_type == "MemberProfile"
        assert verified_event.aggregate_id == verified_event.member_id
        assert isinstance(verified_event.timestamp, datetime)
        assert verified_event.timestamp.tzinfo is not None

    def test_payload_contains_public_fields_only(self, verified_event):
        payload = verified_event.payload()

        assert payload["did"] == "did:example:1"
        assert payload["rank"] == "NEWBIE_VILLAGE"
        assert "metadata" not in payload

    def test_missing_required_field_fails_validation(self):
        with pytest.raises(ValidationError):
            ForumArchived(forum_id="", archived_at=0, aggregate_id="f1")

    def test_events_get_unique_ids(self):
        first = MemberVerified("m1", "did:1", "NEWBIE_VILLAGE", 1, aggregate_id="m1")
        second = MemberVerified("m1", "did:1", "NEWBIE_VILLAGE", 1, aggregate_id="m1")

        assert first.event_id != second.event_id


class TestOutboxEvent:
    def test_from_domain_event(self, verified_event):
        outbox_event = OutboxEvent.from_domain_event(verified_event)

        assert outbox_event.id == verified_event.event_id
        assert outbox_event.aggregate_id == verified_event.aggregate_id
        assert outbox_event.event_type == "MemberVerified"
        assert outbox_event.event_data["payload"]["did"] == "did:example:1"
        assert not outbox_event.is_processed()
        assert outbox_event.can_retry()

    def test_outbox_event_is_immutable(self, verified_event):
        outbox_event = OutboxEvent.from_domain_event(verified_event)

        with pytest.raises(PydanticValidationError):
            outbox_event.retry_count = 5

    def test_model_round_trip_keeps_fields(self, verified_event):
        outbox_event = OutboxEvent.from_domain_event(verified_event)

        restored = OutboxEventModel.from_outbox_event(outbox_event).to_outbox_event()

        assert restored == outbox_event
