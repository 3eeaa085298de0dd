import pytest


@pytest.mark.asyncio
async def test_display_name_falls_back(resolver):
    alice = await resolver.resolve_user("alice")
    ghost = await resolver.resolve_user("ghost")

    assert alice.display_name == "Alice"
    assert ghost.display_name == "<UNKNOWN USER>"


@pytest.mark.asyncio
async def test_list_sessions_reports_positions_and_skips_missing(
    make_session, driver, resolver, notifier
):
    cube = await make_session("s1", capacity=1, name="Cube")
    await cube.add_player("bob")
    await cube.add_player("alice")
    chaos = await make_session("s2", name="Chaos")
    await chaos.add_player("alice")

    view = await driver.get_or_create_user_view(resolver.server_id, "alice")
    await view.added_to_session("gone")
    alice = await resolver.resolve_user("alice")
    notifier.dms.clear()

    await alice.list_sessions()

    [text] = notifier.dms_to("alice")
    assert text.startswith("**Sessions you are confirmed for:**")
    assert "**Chaos**" in text
    assert "You are in position 1 of 1" in text
    assert "gone" not in text


@pytest.mark.asyncio
async def test_print_owned_session_info(make_session, resolver, notifier):
    session = await make_session(owner_id="owner", capacity=1)
    await session.add_player("owner")
    await session.add_player("bob")
    owner = await resolver.resolve_user("owner")
    await owner.set_created_session_id(session.session_id)

    await owner.print_owned_session_info()
    nobody = await resolver.resolve_user("alice")
    await nobody.print_owned_session_info()

    info = notifier.dms_to("owner")[-1]
    assert "Joined:\n- Olivia" in info
    assert "Waitlist:\n- Bob" in info
    assert notifier.dms_to("alice") == ["Cannot send info - you haven't created a session"]


@pytest.mark.asyncio
async def test_failed_dm_is_reported(resolver, notifier):
    notifier.undeliverable.add("alice")
    alice = await resolver.resolve_user("alice")

    assert await alice.send_dm("hi") is False
    assert await alice.send_dm("") is False


@pytest.mark.asyncio
async def test_session_closed_picks_message_by_outcome(make_session, resolver, notifier):
    session = await make_session(capacity=1, name="Cube", template_url="https://x")
    await session.add_player("alice")
    await session.add_player("bob")
    alice = await resolver.resolve_user("alice")
    bob = await resolver.resolve_user("bob")

    await alice.session_closed(session, started=True, waitlisted=False)
    await bob.session_closed(session, started=True, waitlisted=True)

    assert notifier.dms_to("alice")[-1] == "Cube has started! Join here: https://x"
    assert notifier.dms_to("bob")[-1] == "Cube has started, but you were on the waitlist"
    assert alice.joined_session_ids == ()
    assert bob.waitlisted_session_ids == ()
