# tests/services/test_chat_service.py

import uuid
from datetime import timedelta

import pytest
import pytest_asyncio

from tests.fakes import T0
from wecollab.auth import AuthUser
from wecollab.middleware.error_handler import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


@pytest_asyncio.fixture
async def dashboard_id(dashboard_service, alice, bob):
    created = await dashboard_service.create_dashboard(alice, "Team")
    await dashboard_service.join_dashboard(bob, created["invite_code"], created["otp"])
    return created["dashboard"]["id"]


@pytest.mark.asyncio
async def test_send_and_list(chat_service, feed, dashboard_id, alice, bob):
    sent = await chat_service.send_message(alice, dashboard_id, "  hello team  ")
    await chat_service.send_message(bob, dashboard_id, "hi")

    assert sent["message"] == "hello team"
    assert sent["display_name"] == "Alice"
    assert feed.events[-1][:3] == (f"chat:{dashboard_id}", "INSERT", "chat_messages")

    history = await chat_service.list_messages(bob, dashboard_id)
    assert [m["message"] for m in history] == ["hello team", "hi"]


@pytest.mark.asyncio
async def test_list_returns_latest_page_oldest_first(chat_service, dashboard_id, alice):
    for n in range(5):
        await chat_service.send_message(alice, dashboard_id, f"m{n}")
    page = await chat_service.list_messages(alice, dashboard_id, limit=3)
    assert [m["message"] for m in page] == ["m2", "m3", "m4"]

    with pytest.raises(ValidationError):
        await chat_service.list_messages(alice, dashboard_id, limit=0)


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "x" * 2001])
async def test_send_rejects_bad_messages(chat_service, dashboard_id, alice, text):
    with pytest.raises(ValidationError):
        await chat_service.send_message(alice, dashboard_id, text)


@pytest.mark.asyncio
async def test_non_member_cannot_chat(chat_service, dashboard_id):
    stranger = AuthUser(id=uuid.uuid4(), email="mallory@example.com")
    with pytest.raises(PermissionDeniedError):
        await chat_service.send_message(stranger, dashboard_id, "let me in")
    with pytest.raises(PermissionDeniedError):
        await chat_service.list_messages(stranger, dashboard_id)
    with pytest.raises(NotFoundError):
        await chat_service.list_messages(stranger, uuid.uuid4())


@pytest.mark.asyncio
async def test_delete_own_message_only(chat_service, feed, clock, dashboard_id, alice, bob):
    sent = await chat_service.send_message(alice, dashboard_id, "oops")

    with pytest.raises(PermissionDeniedError):
        await chat_service.delete_message(bob, sent["id"])

    await chat_service.delete_message(alice, sent["id"])
    channel, event, _, record = feed.events[-1]
    assert (channel, event) == (f"chat:{dashboard_id}", "UPDATE")
    assert record["deleted_at"] == clock.now
    assert await chat_service.list_messages(alice, dashboard_id) == []

    with pytest.raises(NotFoundError):
        await chat_service.delete_message(alice, sent["id"])


@pytest.mark.asyncio
async def test_unread_count(chat_service, chat_repo, dashboard_id, alice, bob):
    chat_repo.messages.clear()
    await chat_repo.insert(dashboard_id, bob.id, "old", created_at=T0 - timedelta(hours=1))
    await chat_repo.insert(dashboard_id, bob.id, "new", created_at=T0 + timedelta(minutes=5))
    await chat_repo.insert(dashboard_id, alice.id, "mine", created_at=T0 + timedelta(minutes=6))

    assert await chat_service.unread_count(alice, dashboard_id) == 2
    assert await chat_service.unread_count(alice, dashboard_id, since=T0) == 1
    assert await chat_service.unread_count(bob, dashboard_id, since=T0) == 1
