"""Tests for HistorySynchronizer fetch, delete and refresh."""

import asyncio

import httpx
import pytest

from chatcore.errors import NoTokenError, ServerError, TransportError
from chatcore.history.synchronizer import HistorySynchronizer
from chatcore.session.manager import SessionManager


@pytest.fixture
def sessions(api, store):
    return SessionManager(api, store)


@pytest.fixture
def history(api, sessions):
    return HistorySynchronizer(api, sessions)


async def _fetched(sessions, history):
    await sessions.login("a@b.com", "pw")
    await history.fetch()
    return history


@pytest.mark.asyncio
async def test_fetch_replaces_list_in_server_order(sessions, history):
    await _fetched(sessions, history)

    assert [e.history_id for e in history.entries] == [9, 7]
    assert history.get(7).chat[0].user == "hello"
    assert history.is_loading is False


@pytest.mark.asyncio
async def test_fetch_empty_history(sessions, history, service):
    service.chat_history = []
    await sessions.login("a@b.com", "pw")

    assert await history.fetch() == []
    assert history.entries == []


@pytest.mark.asyncio
async def test_fetch_drops_duplicate_ids(sessions, history, service):
    service.chat_history.append({"history_id": 9, "chat": []})

    await _fetched(sessions, history)

    assert [e.history_id for e in history.entries] == [9, 7]


@pytest.mark.asyncio
async def test_fetch_failure_keeps_previous_list(sessions, history, service):
    await _fetched(sessions, history)
    service.fail("GET", "/history", httpx.ConnectError)

    with pytest.raises(TransportError):
        await history.fetch()

    assert [e.history_id for e in history.entries] == [9, 7]


@pytest.mark.asyncio
async def test_fetch_without_session(history, service):
    with pytest.raises(NoTokenError):
        await history.fetch()

    assert service.requests == []


@pytest.mark.asyncio
async def test_delete_removes_only_confirmed_entry(sessions, history, service):
    await _fetched(sessions, history)

    await history.delete(7)

    assert [e.history_id for e in history.entries] == [9]
    assert service.calls("DELETE", "/delete_chat/7")


@pytest.mark.asyncio
async def test_unconfirmed_delete_keeps_entry(sessions, history, service):
    await _fetched(sessions, history)
    before = history.get(7)
    service.respond("DELETE", "/delete_chat/7", json_body={"success": False})

    with pytest.raises(ServerError, match="Failed to delete chat"):
        await history.delete(7)

    assert history.get(7) == before
    assert len(history.entries) == 2


@pytest.mark.asyncio
async def test_unconfirmed_delete_uses_server_error_text(sessions, history, service):
    await _fetched(sessions, history)
    service.respond("DELETE", "/delete_chat/9", json_body={"success": False, "error": "Chat is locked"})

    with pytest.raises(ServerError, match="Chat is locked"):
        await history.delete(9)


@pytest.mark.asyncio
async def test_delete_transport_failure_keeps_list(sessions, history, service):
    await _fetched(sessions, history)
    service.fail("DELETE", "/delete_chat/7")

    with pytest.raises(TransportError):
        await history.delete(7)

    assert [e.history_id for e in history.entries] == [9, 7]


@pytest.mark.asyncio
async def test_request_refresh_fetches_once_per_signal(sessions, history, service):
    await sessions.login("a@b.com", "pw")

    assert await history.request_refresh(1) is True
    assert await history.request_refresh(1) is False
    assert await history.request_refresh(2) is True

    assert len(service.calls("GET", "/history")) == 2


@pytest.mark.asyncio
async def test_results_after_close_are_dropped(sessions, history, service):
    await _fetched(sessions, history)
    history.close()
    service.chat_history = []

    await history.fetch()
    await history.delete(9)

    assert [e.history_id for e in history.entries] == [9, 7]


@pytest.mark.asyncio
async def test_fetch_in_flight_during_delete_does_not_restore_entry(sessions, history, service):
    """A list requested before a confirmed delete must not bring the entry back."""
    await _fetched(sessions, history)
    stale_list = [dict(c) for c in service.chat_history]
    release = asyncio.Event()

    async def held_history(request):
        await release.wait()
        return httpx.Response(200, json={"chat_history": stale_list})

    service.overrides[("GET", "/history")] = held_history

    refresh = asyncio.create_task(history.request_refresh("t1"))
    await asyncio.sleep(0)
    await history.delete(7)
    assert [e.history_id for e in history.entries] == [9]

    release.set()
    await refresh

    assert [e.history_id for e in history.entries] == [9]
