"""Integration tests for the forum repository on SQLite."""

import pytest

from rankgate.core.infrastructure.repository import (
    OptimisticLockError,
    UniqueConstraintError,
)
from rankgate.modules.community.domain.enums import ForumStatus, Rank
from tests.factories import make_forum


async def _store(uow_factory, *forums):
    async with uow_factory() as uow:
        for forum in forums:
            await uow.forums.save(forum)
    return forums[0] if len(forums) == 1 else forums


class TestConcurrentWrites:
    """Two writers racing on the same forum."""

    @pytest.mark.asyncio
    async def test_second_writer_gets_lock_error(self, uow_factory):
        forum = await _store(uow_factory, make_forum(capacity=10))

        async with uow_factory() as uow:
            first = await uow.forums.find_by_id(forum.id)
        async with uow_factory() as uow:
            second = await uow.forums.find_by_id(forum.id)

        first.increment_member_count()
        async with uow_factory() as uow:
            await uow.forums.save(first)

        second.increment_member_count()
        with pytest.raises(OptimisticLockError) as exc_info:
            async with uow_factory() as uow:
                await uow.forums.save(second)

        assert exc_info.value.retryable
        async with uow_factory() as uow:
            stored = await uow.forums.find_by_id(forum.id)
        assert stored.member_count == 1
        assert stored.version == 2

    @pytest.mark.asyncio
    async def test_reload_and_retry_succeeds(self, uow_factory):
        forum = await _store(uow_factory, make_forum())
        async with uow_factory() as uow:
            stale = await uow.forums.find_by_id(forum.id)

        async with uow_factory() as uow:
            fresh = await uow.forums.find_by_id(forum.id)
            fresh.increment_member_count()
            await uow.forums.save(fresh)

        stale.increment_member_count()
        with pytest.raises(OptimisticLockError):
            async with uow_factory() as uow:
                await uow.forums.save(stale)

        async with uow_factory() as uow:
            retried = await uow.forums.find_by_id(forum.id)
            retried.increment_member_count()
            await uow.forums.save(retried)

        async with uow_factory() as uow:
            assert (await uow.forums.find_by_id(forum.id)).member_count == 2


class TestEvents:
    """Events reach the outbox in the same transaction as the row."""

    @pytest.mark.asyncio
    async def test_archive_writes_outbox_event(self, uow_factory):
        forum = await _store(uow_factory, make_forum())

        async with uow_factory() as uow:
            loaded = await uow.forums.find_by_id(forum.id)
            loaded.archive()
            await uow.forums.save(loaded)

        async with uow_factory() as uow:
            events = await uow.outbox.list_unprocessed()
            stored = await uow.forums.find_by_id(forum.id)

        archived = [e for e in events if e.event_type == "ForumArchived"]
        assert len(archived) == 1
        assert archived[0].aggregate_id == forum.id
        assert archived[0].aggregate_type == "Forum"
        assert stored.status == ForumStatus.ARCHIVED

    @pytest.mark.asyncio
    async def test_failed_write_leaves_no_event(self, uow_factory):
        forum = await _store(uow_factory, make_forum())
        async with uow_factory() as uow:
            stale = await uow.forums.find_by_id(forum.id)
        async with uow_factory() as uow:
            fresh = await uow.forums.find_by_id(forum.id)
            fresh.increment_member_count()
            await uow.forums.save(fresh)

        stale.archive()
        with pytest.raises(OptimisticLockError):
            async with uow_factory() as uow:
                await uow.forums.save(stale)

        async with uow_factory() as uow:
            events = await uow.outbox.list_unprocessed()
        assert not [e for e in events if e.event_type == "ForumArchived"]


class TestQueries:
    """Forum finders."""

    @pytest.mark.asyncio
    async def test_duplicate_channel_rejected(self, uow_factory):
        await _store(uow_factory, make_forum(tlk_channel_id="forum-shared"))

        with pytest.raises(UniqueConstraintError) as exc_info:
            async with uow_factory() as uow:
                await uow.forums.save(make_forum(tlk_channel_id="forum-shared"))

        assert exc_info.value.field_name == "tlk_channel_id"

    @pytest.mark.asyncio
    async def test_find_accessible_uses_adjacency(self, uow_factory):
        newbie = make_forum(required_rank=Rank.NEWBIE_VILLAGE)
        petty = make_forum(required_rank=Rank.DISTINGUISHED_PETTY)
        vip = make_forum(required_rank=Rank.QUASI_WEALTHY_VIP)
        winner = make_forum(required_rank=Rank.LIFE_WINNER_S)
        graduate = make_forum(required_rank=Rank.EARTH_OL_GRADUATE)
        await _store(uow_factory, graduate, winner, vip, petty, newbie)

        async with uow_factory() as uow:
            accessible = await uow.forums.find_accessible_forums(Rank.QUASI_WEALTHY_VIP)

        assert [f.id for f in accessible] == [petty.id, vip.id, winner.id]

    @pytest.mark.asyncio
    async def test_find_accessible_skips_full_and_archived(self, uow_factory):
        open_forum = make_forum(required_rank=Rank.QUASI_WEALTHY_VIP, capacity=5)
        full_forum = make_forum(required_rank=Rank.QUASI_WEALTHY_VIP, capacity=1)
        full_forum.increment_member_count()
        archived_forum = make_forum(required_rank=Rank.QUASI_WEALTHY_VIP)
        archived_forum.archive()
        await _store(uow_factory, open_forum, full_forum, archived_forum)

        async with uow_factory() as uow:
            accessible = await uow.forums.find_accessible_forums(Rank.QUASI_WEALTHY_VIP)
            by_rank = await uow.forums.find_by_required_rank(Rank.QUASI_WEALTHY_VIP)
            active = await uow.forums.find_active_forums()

        assert [f.id for f in accessible] == [open_forum.id]
        assert {f.id for f in by_rank} == {open_forum.id, full_forum.id}
        assert {f.id for f in active} == {open_forum.id, full_forum.id}

    @pytest.mark.asyncio
    async def test_find_by_channel(self, uow_factory):
        forum = await _store(uow_factory, make_forum(tlk_channel_id="forum-lookup"))

        async with uow_factory() as uow:
            found = await uow.forums.find_by_tlk_channel_id("forum-lookup")
            assert await uow.forums.exists_by_tlk_channel_id("forum-lookup")
            assert not await uow.forums.exists_by_tlk_channel_id("forum-missing")

        assert found.id == forum.id
        assert found.required_rank == Rank.QUASI_WEALTHY_VIP
