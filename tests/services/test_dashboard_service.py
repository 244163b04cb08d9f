# tests/services/test_dashboard_service.py

import uuid

import pytest

from wecollab.auth import AuthUser
from wecollab.constants import DEFAULT_WIDGETS
from wecollab.middleware.error_handler import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


def _user(name):
    return AuthUser(id=uuid.uuid4(), email=f"{name}@example.com")


@pytest.mark.asyncio
async def test_create_adds_owner_and_default_widgets(dashboard_service, dashboards_repo, alice):
    created = await dashboard_service.create_dashboard(alice, "  Interview prep  ")
    dashboard = created["dashboard"]

    assert dashboard["name"] == "Interview prep"
    assert len(created["invite_code"]) == 8
    assert len(created["otp"]) == 6
    assert dashboard["max_users"] == 4

    membership = await dashboards_repo.get_membership(dashboard["id"], alice.id)
    assert membership["role"] == "owner"
    widgets = await dashboards_repo.list_widgets(dashboard["id"])
    assert [(w["title"], w["position"]) for w in widgets] == DEFAULT_WIDGETS


@pytest.mark.asyncio
async def test_create_retries_on_invite_code_collision(dashboard_service, dashboards_repo, alice):
    dashboards_repo.fail_next_codes = 2
    created = await dashboard_service.create_dashboard(alice, "Team")
    assert created["dashboard"]["invite_code"] == created["invite_code"]


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   ", "x" * 101])
async def test_create_rejects_bad_names(dashboard_service, alice, name):
    with pytest.raises(ValidationError):
        await dashboard_service.create_dashboard(alice, name)


@pytest.mark.asyncio
async def test_join_with_code_and_otp(dashboard_service, dashboards_repo, feed, alice, bob):
    created = await dashboard_service.create_dashboard(alice, "Team")
    joined = await dashboard_service.join_dashboard(bob, created["invite_code"].lower(), created["otp"])

    assert joined["id"] == created["dashboard"]["id"]
    membership = await dashboards_repo.get_membership(joined["id"], bob.id)
    assert membership["role"] == "member"
    assert feed.channels() == [f"dashboard:{joined['id']}"]


@pytest.mark.asyncio
async def test_join_errors_in_order(dashboard_service, alice, bob):
    created = await dashboard_service.create_dashboard(alice, "Team")

    with pytest.raises(NotFoundError, match="Invalid invite code"):
        await dashboard_service.join_dashboard(bob, "NOPE0000", created["otp"])
    with pytest.raises(ValidationError, match="Invalid one-time password"):
        await dashboard_service.join_dashboard(bob, created["invite_code"], "000000x")
    with pytest.raises(ConflictError, match="You are already a member of this dashboard"):
        await dashboard_service.join_dashboard(alice, created["invite_code"], created["otp"])


@pytest.mark.asyncio
async def test_join_full_dashboard(dashboard_service, alice):
    created = await dashboard_service.create_dashboard(alice, "Team")
    for n in range(3):
        await dashboard_service.join_dashboard(_user(f"m{n}"), created["invite_code"], created["otp"])

    with pytest.raises(ConflictError, match=r"Dashboard is full \(maximum 4 members\)"):
        await dashboard_service.join_dashboard(_user("late"), created["invite_code"], created["otp"])


@pytest.mark.asyncio
async def test_join_accepts_pending_email_invite(dashboard_service, invites_repo, alice, bob):
    created = await dashboard_service.create_dashboard(alice, "Team")
    dashboard_id = created["dashboard"]["id"]
    invite = await invites_repo.create(dashboard_id, bob.email, alice.id, created["dashboard"]["created_at"])

    await dashboard_service.join_dashboard(bob, created["invite_code"], created["otp"])

    assert (await invites_repo.get(invite["id"]))["status"] == "accepted"


@pytest.mark.asyncio
async def test_list_user_dashboards_includes_members(dashboard_service, alice, bob):
    created = await dashboard_service.create_dashboard(alice, "Team")
    await dashboard_service.join_dashboard(bob, created["invite_code"], created["otp"])

    listed = await dashboard_service.list_user_dashboards(bob)
    assert len(listed) == 1
    entry = listed[0]
    assert entry["role"] == "member"
    assert entry["dashboard"]["name"] == "Team"
    assert [m["display_name"] for m in entry["dashboard"]["members"]] == ["Alice", "Bob"]


@pytest.mark.asyncio
async def test_get_dashboard_requires_membership(dashboard_service, alice, bob):
    created = await dashboard_service.create_dashboard(alice, "Team")
    dashboard_id = created["dashboard"]["id"]

    detail = await dashboard_service.get_dashboard(alice, dashboard_id)
    assert len(detail["widgets"]) == 4
    assert len(detail["members"]) == 1

    with pytest.raises(PermissionDeniedError):
        await dashboard_service.get_dashboard(bob, dashboard_id)
    with pytest.raises(NotFoundError):
        await dashboard_service.get_dashboard(alice, uuid.uuid4())


@pytest.mark.asyncio
async def test_only_owner_renames_and_deletes(dashboard_service, dashboards_repo, alice, bob):
    created = await dashboard_service.create_dashboard(alice, "Team")
    dashboard_id = created["dashboard"]["id"]
    await dashboard_service.join_dashboard(bob, created["invite_code"], created["otp"])

    with pytest.raises(PermissionDeniedError, match="Only the owner can update the dashboard name"):
        await dashboard_service.rename_dashboard(bob, dashboard_id, "Mine")
    with pytest.raises(PermissionDeniedError, match="Only the owner can delete the dashboard"):
        await dashboard_service.delete_dashboard(bob, dashboard_id)

    renamed = await dashboard_service.rename_dashboard(alice, dashboard_id, " Renamed ")
    assert renamed["name"] == "Renamed"

    await dashboard_service.delete_dashboard(alice, dashboard_id)
    assert await dashboards_repo.get(dashboard_id) is None
    assert await dashboards_repo.get_membership(dashboard_id, bob.id) is None


@pytest.mark.asyncio
async def test_leave(dashboard_service, dashboards_repo, alice, bob):
    created = await dashboard_service.create_dashboard(alice, "Team")
    dashboard_id = created["dashboard"]["id"]
    await dashboard_service.join_dashboard(bob, created["invite_code"], created["otp"])

    with pytest.raises(ConflictError):
        await dashboard_service.leave_dashboard(alice, dashboard_id)

    await dashboard_service.leave_dashboard(bob, dashboard_id)
    assert await dashboards_repo.get_membership(dashboard_id, bob.id) is None

    with pytest.raises(PermissionDeniedError):
        await dashboard_service.leave_dashboard(bob, dashboard_id)


@pytest.mark.asyncio
async def test_remove_member(dashboard_service, dashboards_repo, alice, bob):
    created = await dashboard_service.create_dashboard(alice, "Team")
    dashboard_id = created["dashboard"]["id"]
    await dashboard_service.join_dashboard(bob, created["invite_code"], created["otp"])

    with pytest.raises(PermissionDeniedError):
        await dashboard_service.remove_member(bob, dashboard_id, alice.id)
    with pytest.raises(ConflictError):
        await dashboard_service.remove_member(alice, dashboard_id, alice.id)

    await dashboard_service.remove_member(alice, dashboard_id, bob.id)
    assert len(await dashboards_repo.list_members([dashboard_id])) == 1

    with pytest.raises(NotFoundError):
        await dashboard_service.remove_member(alice, dashboard_id, bob.id)


@pytest.mark.asyncio
async def test_regenerate_credentials_invalidates_old_pair(dashboard_service, alice, bob):
    created = await dashboard_service.create_dashboard(alice, "Team")
    dashboard_id = created["dashboard"]["id"]

    fresh = await dashboard_service.regenerate_credentials(alice, dashboard_id)
    assert fresh["invite_code"] != created["invite_code"]

    with pytest.raises(NotFoundError):
        await dashboard_service.join_dashboard(bob, created["invite_code"], created["otp"])
    await dashboard_service.join_dashboard(bob, fresh["invite_code"], fresh["otp"])

    with pytest.raises(PermissionDeniedError):
        await dashboard_service.regenerate_credentials(bob, dashboard_id)


@pytest.mark.asyncio
async def test_list_widgets_requires_membership(dashboard_service, alice, bob):
    created = await dashboard_service.create_dashboard(alice, "Team")
    widgets = await dashboard_service.list_widgets(alice, created["dashboard"]["id"])
    assert [w["position"] for w in widgets] == [0, 1, 2, 3]

    with pytest.raises(PermissionDeniedError):
        await dashboard_service.list_widgets(bob, created["dashboard"]["id"])
