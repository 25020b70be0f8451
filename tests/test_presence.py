"""
Unit tests for typing presence: debounce expiry, dedup and shared names.
A short window keeps the timer-based tests fast.
"""

# pylint: disable=redefined-outer-name

import asyncio

import pytest

from src.services.presence import TypingPresence
from src.services.registry import SessionRegistry

WINDOW = 0.05


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def events():
    return []


@pytest.fixture
def presence(registry, events):
    return TypingPresence(registry, on_change=events.append, window=WINDOW)


@pytest.mark.asyncio
async def test_signal_true_adds_name(registry, presence, events):
    session = registry.join("c1", "alice")

    presence.signal(session, True)

    assert session.is_typing is True
    assert session.last_typing_signal_at is not None
    assert presence.typing_names() == ["alice"]
    assert len(events) == 1
    assert events[0].name == "alice"
    assert events[0].is_typing is True
    assert events[0].names == ["alice"]


@pytest.mark.asyncio
async def test_rapid_signals_broadcast_once(registry, presence, events):
    """Keystroke-rate true signals within the window produce one change event."""
    session = registry.join("c1", "alice")

    for _ in range(20):
        presence.signal(session, True)

    assert len(events) == 1


@pytest.mark.asyncio
async def test_typing_expires_without_refresh(registry, presence, events):
    session = registry.join("c1", "alice")
    presence.signal(session, True)

    await asyncio.sleep(WINDOW * 3)

    assert session.is_typing is False
    assert session.expiry is None
    assert presence.typing_names() == []
    assert [(e.name, e.is_typing) for e in events] == [("alice", True), ("alice", False)]
    assert events[-1].names == []


@pytest.mark.asyncio
async def test_refresh_postpones_expiry(registry, presence, events):
    session = registry.join("c1", "alice")
    presence.signal(session, True)

    for _ in range(6):
        await asyncio.sleep(WINDOW / 5)
        presence.signal(session, True)

    # Total elapsed is well past one window, but every signal rearmed the timer.
    assert session.is_typing is True
    assert len(events) == 1


@pytest.mark.asyncio
async def test_explicit_false_takes_immediate_effect(registry, presence, events):
    session = registry.join("c1", "alice")
    presence.signal(session, True)

    presence.signal(session, False)

    assert session.is_typing is False
    assert session.expiry is None
    assert [(e.name, e.is_typing) for e in events] == [("alice", True), ("alice", False)]

    await asyncio.sleep(WINDOW * 2)
    assert len(events) == 2


@pytest.mark.asyncio
async def test_false_when_not_typing_is_silent(registry, presence, events):
    session = registry.join("c1", "alice")
    presence.signal(session, False)
    assert not events


@pytest.mark.asyncio
async def test_shared_name_leaves_only_when_all_stop(registry, presence, events):
    first = registry.join("c1", "alice")
    second = registry.join("c2", "alice")

    presence.signal(first, True)
    presence.signal(second, True)
    assert len(events) == 1

    presence.signal(first, False)
    assert presence.typing_names() == ["alice"]
    assert len(events) == 1

    presence.signal(second, False)
    assert presence.typing_names() == []
    assert len(events) == 2
    assert events[-1].is_typing is False


@pytest.mark.asyncio
async def test_full_set_is_carried_on_each_change(registry, presence, events):
    alice = registry.join("c1", "alice")
    bob = registry.join("c2", "bob")

    presence.signal(bob, True)
    presence.signal(alice, True)

    assert events[-1].name == "alice"
    assert events[-1].names == ["alice", "bob"]


@pytest.mark.asyncio
async def test_discard_removes_and_cancels_timer(registry, presence, events):
    session = registry.join("c1", "alice")
    presence.signal(session, True)

    registry.remove("c1")
    presence.discard(session)

    assert presence.typing_names() == []
    assert session.expiry is None
    assert len(events) == 2

    await asyncio.sleep(WINDOW * 3)
    assert len(events) == 2


@pytest.mark.asyncio
async def test_refresh_after_rename(registry, presence, events):
    session = registry.join("c1", "alice")
    presence.signal(session, True)

    registry.join("c1", "alicia")
    presence.refresh()

    assert presence.typing_names() == ["alicia"]
    assert [(e.name, e.is_typing) for e in events[1:]] == [("alice", False), ("alicia", True)]
