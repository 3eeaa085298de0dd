import asyncio

import pytest

from draft_bot.database import InMemoryDriver
from draft_bot.errors import (
    AnnouncementError,
    InvalidParameterError,
    NoActiveSessionError,
    OwnershipMismatchError,
)
from draft_bot.models import DraftServer, Resolver, SessionTemplateCache


class RecordingDriver(InMemoryDriver):
    def __init__(self, events):
        super().__init__()
        self.events = events

    async def create_session(self, server_id, session_id, defaults, overrides=None, owner_id=None):
        self.events.append(("create", session_id))
        return await super().create_session(server_id, session_id, defaults, overrides, owner_id)

    async def delete_session_from_database(self, server_id, session_id):
        self.events.append(("drop", session_id))
        await super().delete_session_from_database(server_id, session_id)


def test_create_session_adds_owner_and_reacts(server, notifier, resolver):
    async def scenario():
        session = await server.create_session("owner")
        owner = await resolver.resolve_user("owner")
        return session, owner

    session, owner = asyncio.run(scenario())

    assert session.session_id == "1000"
    assert session.name == "Olivia's Session"
    assert session.owner_id == "owner"
    assert session.confirmed == ("owner",)
    assert owner.created_session_id == "1000"
    assert notifier.reactions == [("1000", "🌟")]
    assert "Olivia's Session" in notifier.edits["1000"]


def test_second_create_closes_first_session_before_creating(notifier, sessions_cfg):
    driver = RecordingDriver(notifier.events)
    server = DraftServer(Resolver("g", driver, notifier), sessions_cfg)

    async def scenario():
        first = await server.create_session("owner")
        await first.add_player("alice")
        notifier.events.clear()
        second = await server.create_session("owner")
        return first, second

    first, second = asyncio.run(scenario())

    assert first.closed
    cancel_dm = ("dm", "alice", "Olivia's Session has been cancelled")
    order = notifier.events
    assert order.index(cancel_dm) < order.index(("drop", first.session_id))
    assert order.index(("drop", first.session_id)) < order.index(("post", second.session_id))
    assert order.index(("post", second.session_id)) < order.index(("create", second.session_id))


def test_create_unowned_session(server, notifier):
    session = asyncio.run(server.create_session(None, overrides={"description": "Friday"}))

    assert session.owner_id is None
    assert session.name == "New Session"
    assert session.confirmed == ()
    assert "Friday" in notifier.edits[session.session_id]


def test_create_session_from_template(resolver, sessions_cfg):
    templates = SessionTemplateCache(
        {"_common": {"cube": {"name": "Cube Draft", "capacity": 4}}}
    )
    server = DraftServer(resolver, sessions_cfg, templates=templates)

    session = asyncio.run(server.create_session("owner", "cube"))

    assert session.name == "Cube Draft"
    assert session.capacity == 4


def test_unknown_template_is_rejected_before_posting(server, notifier):
    with pytest.raises(InvalidParameterError):
        asyncio.run(server.create_session("owner", "missing"))

    assert notifier.posted == []


def test_failed_announcement_raises(server, notifier):
    notifier.fail_post = True

    with pytest.raises(AnnouncementError):
        asyncio.run(server.create_session("owner"))


def test_start_owned_session(server, notifier, resolver):
    async def scenario():
        session = await server.create_session("owner")
        await session.add_player("alice")
        await server.start_session_owned_by_user("owner")
        return session, await resolver.resolve_user("owner")

    session, owner = asyncio.run(scenario())

    assert session.closed
    assert owner.created_session_id is None
    assert notifier.dms_to("alice")[-1].startswith("Olivia's Session has started!")


def test_close_without_session_fails(server):
    with pytest.raises(NoActiveSessionError):
        asyncio.run(server.close_session_owned_by_user("nobody"))


def test_ownership_mismatch_is_reported(server, resolver):
    async def scenario():
        await server.create_session("owner")
        alice = await resolver.resolve_user("alice")
        await alice.set_created_session_id("1000")
        await server.close_session_owned_by_user("alice")

    with pytest.raises(OwnershipMismatchError):
        asyncio.run(scenario())


def test_close_by_id_clears_owner_link(server, resolver, notifier):
    async def scenario():
        session = await server.create_session("owner")
        await server.close_session(session.session_id)
        return await resolver.resolve_user("owner")

    owner = asyncio.run(scenario())

    assert owner.created_session_id is None
    assert notifier.deleted == ["1000"]


def test_stale_owner_link_is_cleared_on_create(server, resolver, driver):
    async def scenario():
        await server.create_session("owner")
        await driver.delete_session_from_database(resolver.server_id, "1000")
        resolver.forget_session("1000")
        return await server.create_session("owner")

    session = asyncio.run(scenario())

    assert session.session_id == "1001"


def test_lookups_are_best_effort(server):
    async def scenario():
        missing = await server.get_session_from_announcement_message("nope")
        no_owner = await server.get_session_from_user("nobody")
        joined = await server.join("nope", "alice")
        left = await server.leave("nope", "alice")
        return missing, no_owner, joined, left

    assert asyncio.run(scenario()) == (None, None, False, False)


def test_join_and_leave_by_announcement(server):
    async def scenario():
        session = await server.create_session("owner")
        joined = await server.join(session.session_id, "alice")
        after_join = session.confirmed
        left = await server.leave(session.session_id, "alice")
        return joined, after_join, left, session.confirmed

    joined, after_join, left, after_leave = asyncio.run(scenario())

    assert joined and left
    assert after_join == ("owner", "alice")
    assert after_leave == ("owner",)


def test_broadcast_requires_owned_session(server, notifier):
    async def scenario():
        with pytest.raises(NoActiveSessionError):
            await server.broadcast("owner", "hi")
        session = await server.create_session("owner")
        await session.add_player("alice")
        return await server.broadcast("owner", "hi")

    assert asyncio.run(scenario()) == 1


def test_transfer_ownership(server, resolver):
    async def scenario():
        await server.create_session("owner")
        session = await server.transfer_ownership("owner", "alice")
        return session, await resolver.resolve_user("alice")

    session, alice = asyncio.run(scenario())

    assert session.owner_id == "alice"
    assert alice.created_session_id == session.session_id
