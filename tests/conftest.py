# tests/conftest.py
# Test environment: settings are read at import time, so env goes first.

import os
import uuid

os.environ.setdefault("TRACING_ENABLED", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("JWT_AUDIENCE", "authenticated")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402

from tests.fakes import (  # noqa: E402
    FakeCache,
    FakeChatRepository,
    FakeDashboardRepository,
    FakeFeed,
    FakeInviteRepository,
    FakeNotifier,
    FakeProfileRepository,
    FakeTimerRepository,
    FrozenClock,
)
from wecollab.auth import AuthUser  # noqa: E402
from wecollab.services.chat_service import ChatService  # noqa: E402
from wecollab.services.dashboard_service import DashboardService  # noqa: E402
from wecollab.services.invite_service import InviteService  # noqa: E402
from wecollab.services.profile_service import ProfileService  # noqa: E402
from wecollab.services.timer_service import TimerService  # noqa: E402


def make_user(name: str) -> AuthUser:
    return AuthUser(id=uuid.uuid4(), email=f"{name.lower()}@example.com")


@pytest.fixture
def alice() -> AuthUser:
    return make_user("Alice")


@pytest.fixture
def bob() -> AuthUser:
    return make_user("Bob")


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def profiles(alice, bob) -> FakeProfileRepository:
    repo = FakeProfileRepository()
    repo.add(alice.id, "Alice", alice.email)
    repo.add(bob.id, "Bob", bob.email)
    return repo


@pytest.fixture
def dashboards_repo(profiles) -> FakeDashboardRepository:
    return FakeDashboardRepository(profiles)


@pytest.fixture
def invites_repo(dashboards_repo) -> FakeInviteRepository:
    return FakeInviteRepository(dashboards_repo)


@pytest.fixture
def timers_repo(profiles) -> FakeTimerRepository:
    return FakeTimerRepository(profiles)


@pytest.fixture
def chat_repo(profiles) -> FakeChatRepository:
    return FakeChatRepository(profiles)


@pytest.fixture
def feed() -> FakeFeed:
    return FakeFeed()


@pytest.fixture
def cache() -> FakeCache:
    return FakeCache()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def profile_service(profiles) -> ProfileService:
    return ProfileService(repository=profiles)


@pytest.fixture
def dashboard_service(dashboards_repo, invites_repo, feed) -> DashboardService:
    return DashboardService(repository=dashboards_repo, invites=invites_repo, feed=feed)


@pytest.fixture
def invite_service(invites_repo, dashboards_repo, dashboard_service, feed, notifier) -> InviteService:
    return InviteService(
        repository=invites_repo,
        dashboards=dashboards_repo,
        memberships=dashboard_service,
        feed=feed,
        notify=notifier,
        ttl_days=7,
    )


@pytest.fixture
def timer_service(timers_repo, dashboards_repo, feed, cache, clock) -> TimerService:
    return TimerService(
        repository=timers_repo, dashboards=dashboards_repo, feed=feed, cache=cache, clock=clock
    )


@pytest.fixture
def chat_service(chat_repo, dashboards_repo, feed, clock) -> ChatService:
    return ChatService(repository=chat_repo, dashboards=dashboards_repo, feed=feed, clock=clock)
