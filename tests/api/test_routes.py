# tests/api/test_routes.py
# HTTP and websocket surface with services wired to in-memory fakes

import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from starlette.websockets import WebSocketDisconnect

from tests.fakes import FakeFeed
from wecollab.auth import AuthUser
from wecollab.config import settings
from wecollab.main import app
from wecollab.realtime.feed import get_feed
from wecollab.routers import chat, dashboards, invites, profiles, realtime, timers


def make_token(user, **claims) -> str:
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "aud": "authenticated",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
        **claims,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth(user) -> dict:
    return {"Authorization": f"Bearer {make_token(user)}"}


@pytest.fixture
def relay_feed() -> FakeFeed:
    return FakeFeed(payloads=['{"event": "INSERT", "table": "chat_messages"}'])


@pytest.fixture
def client(profile_service, dashboard_service, invite_service, timer_service, chat_service,
           dashboards_repo, relay_feed):
    app.dependency_overrides[profiles.get_service] = lambda: profile_service
    app.dependency_overrides[dashboards.get_service] = lambda: dashboard_service
    app.dependency_overrides[invites.get_service] = lambda: invite_service
    app.dependency_overrides[timers.get_service] = lambda: timer_service
    app.dependency_overrides[chat.get_service] = lambda: chat_service
    app.dependency_overrides[realtime.get_repository] = lambda: dashboards_repo
    app.dependency_overrides[get_feed] = lambda: relay_feed
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def team(client, alice, bob):
    created = client.post("/api/dashboards", json={"name": "Team"}, headers=auth(alice)).json()
    client.post(
        "/api/dashboards/join",
        json={"invite_code": created["invite_code"], "otp": created["otp"]},
        headers=auth(bob),
    )
    return created


def test_liveness_and_metrics(client):
    assert client.get("/health/live").json() == {"status": "alive"}
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "request_count" in response.text


def test_missing_token_is_401(client):
    response = client.get("/api/profiles/me")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_bad_tokens_are_401(client, alice):
    expired = make_token(alice, exp=datetime.now(timezone.utc) - timedelta(minutes=1))
    wrong_aud = make_token(alice, aud="someone-else")
    for token in (expired, wrong_aud, "garbage"):
        response = client.get("/api/profiles/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


def test_profile_roundtrip(client, alice):
    response = client.get("/api/profiles/me", headers=auth(alice))
    assert response.status_code == 200
    assert response.json()["display_name"] == "Alice"

    response = client.put("/api/profiles/me/theme", json={"theme_mode": "dark", "theme_color": "theme-blue"},
                          headers=auth(alice))
    assert response.status_code == 200
    assert response.json()["theme_mode"] == "dark"


def test_body_validation_is_422(client, alice):
    response = client.post("/api/dashboards", json={}, headers=auth(alice))
    assert response.status_code == 422
    body = response.json()["error"]
    assert body["code"] == "VALIDATION_ERROR"
    assert body["details"]["errors"]


def test_create_and_list_dashboards(client, team, alice, bob):
    assert len(team["invite_code"]) == 8
    assert len(team["otp"]) == 6
    assert team["dashboard"]["max_users"] == 4

    listed = client.get("/api/dashboards", headers=auth(bob)).json()
    assert len(listed) == 1
    assert listed[0]["role"] == "member"
    assert [m["display_name"] for m in listed[0]["dashboard"]["members"]] == ["Alice", "Bob"]

    detail = client.get(f"/api/dashboards/{team['dashboard']['id']}", headers=auth(alice)).json()
    assert [w["title"] for w in detail["widgets"]] == [
        "System Design", "Leetcode", "Behavioral", "Job Applications",
    ]


def test_join_errors(client, team, bob):
    response = client.post("/api/dashboards/join", json={"invite_code": "ZZZZ9999", "otp": "000000"},
                           headers=auth(bob))
    assert response.status_code == 404

    response = client.post(
        "/api/dashboards/join",
        json={"invite_code": team["invite_code"], "otp": team["otp"]},
        headers=auth(bob),
    )
    assert response.status_code == 409
    assert response.json()["error"]["message"] == "You are already a member of this dashboard"


def test_non_owner_cannot_delete(client, team, bob):
    response = client.delete(f"/api/dashboards/{team['dashboard']['id']}", headers=auth(bob))
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


def test_invite_flow(client, team, alice, notifier):
    carol = AuthUser(id=uuid.uuid4(), email="carol@example.com")
    dashboard_id = team["dashboard"]["id"]

    response = client.post(f"/api/dashboards/{dashboard_id}/invites", json={"email": "Carol@Example.com"},
                           headers=auth(alice))
    assert response.status_code == 201
    invite_id = response.json()["id"]
    assert len(notifier.sent) == 1

    mine = client.get("/api/invites", headers=auth(carol)).json()
    assert [i["id"] for i in mine] == [invite_id]

    accepted = client.post(f"/api/invites/{invite_id}/accept", headers=auth(carol))
    assert accepted.status_code == 200
    assert accepted.json()["id"] == dashboard_id


def test_timer_flow(client, team, alice, clock):
    widget_id = client.get(
        f"/api/dashboards/{team['dashboard']['id']}/widgets", headers=auth(alice)
    ).json()[0]["id"]

    started = client.post(f"/api/widgets/{widget_id}/timer/start", headers=auth(alice))
    assert started.json()["status"] == "running"

    clock.advance(120)
    stopped = client.post(f"/api/widgets/{widget_id}/timer/stop", json={"note": "two sum"},
                          headers=auth(alice)).json()
    assert stopped["recorded_seconds"] == 120
    assert stopped["session"]["note"] == "two sum"

    board = client.get(f"/api/widgets/{widget_id}/leaderboard?period=week", headers=auth(alice)).json()
    assert board[0]["total_seconds"] == 120

    response = client.get(f"/api/widgets/{widget_id}/leaderboard?period=decade", headers=auth(alice))
    assert response.status_code == 422


def test_pause_idle_timer_conflicts(client, team, alice):
    widget_id = client.get(
        f"/api/dashboards/{team['dashboard']['id']}/widgets", headers=auth(alice)
    ).json()[0]["id"]
    response = client.post(f"/api/widgets/{widget_id}/timer/pause", headers=auth(alice))
    assert response.status_code == 409


def test_chat_flow(client, team, alice, bob):
    dashboard_id = team["dashboard"]["id"]
    sent = client.post(f"/api/dashboards/{dashboard_id}/messages", json={"message": "hello"},
                       headers=auth(alice))
    assert sent.status_code == 201

    unread = client.get(f"/api/dashboards/{dashboard_id}/messages/unread", headers=auth(bob)).json()
    assert unread["unread"] == 1

    response = client.delete(f"/api/messages/{sent.json()['id']}", headers=auth(bob))
    assert response.status_code == 403
    response = client.delete(f"/api/messages/{sent.json()['id']}", headers=auth(alice))
    assert response.json()["success"] is True


def test_realtime_relays_events(client, team, alice):
    channel = f"chat:{team['dashboard']['id']}"
    with client.websocket_connect(f"/api/realtime/{channel}?token={make_token(alice)}") as ws:
        assert ws.receive_json()["table"] == "chat_messages"


def test_realtime_rejects_bad_token_and_strangers(client, team):
    channel = f"chat:{team['dashboard']['id']}"
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"/api/realtime/{channel}?token=garbage"):
            pass
    assert exc.value.code == 4401

    stranger = AuthUser(id=uuid.uuid4(), email="mallory@example.com")
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"/api/realtime/{channel}?token={make_token(stranger)}"):
            pass
    assert exc.value.code == 4403


def test_realtime_closes_when_feed_fails(client, team, alice):
    app.dependency_overrides[get_feed] = lambda: FakeFeed(error=ConnectionError("broker down"))
    channel = f"chat:{team['dashboard']['id']}"
    with client.websocket_connect(f"/api/realtime/{channel}?token={make_token(alice)}") as ws:
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_text()
    assert exc.value.code == 1011


def test_realtime_closes_when_member_removed(client, team, alice, bob):
    dashboard_id = team["dashboard"]["id"]
    removed = {"event": "DELETE", "table": "dashboard_members",
               "record": {"dashboard_id": dashboard_id, "user_id": str(bob.id)}}
    chat_event = '{"event": "INSERT", "table": "chat_messages"}'
    app.dependency_overrides[get_feed] = lambda: FakeFeed(channels={
        f"chat:{dashboard_id}": [chat_event],
        f"dashboard:{dashboard_id}": [json.dumps(removed)],
    })
    channel = f"chat:{dashboard_id}"

    with client.websocket_connect(f"/api/realtime/{channel}?token={make_token(bob)}") as ws:
        with pytest.raises(WebSocketDisconnect) as exc:
            while True:
                ws.receive_text()
    assert exc.value.code == 4403

    # another member's removal leaves alice subscribed
    with client.websocket_connect(f"/api/realtime/{channel}?token={make_token(alice)}") as ws:
        assert ws.receive_json()["table"] == "chat_messages"


def test_realtime_closes_when_dashboard_deleted(client, team, alice):
    dashboard_id = team["dashboard"]["id"]
    deleted = json.dumps({"event": "DELETE", "table": "dashboards", "record": {"id": dashboard_id}})
    app.dependency_overrides[get_feed] = lambda: FakeFeed(channels={f"dashboard:{dashboard_id}": [deleted]})

    with client.websocket_connect(f"/api/realtime/chat:{dashboard_id}?token={make_token(alice)}") as ws:
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_text()
    assert exc.value.code == 4403
