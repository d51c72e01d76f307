import time

import fakeredis
import pytest
from fastapi.testclient import TestClient

from chat_backend.core.database import get_db
from chat_backend.core.security import create_access_token
from chat_backend.core.store import Store
from chat_backend.main import app
from chat_backend.repositories.user_repo import UserRepository
from chat_backend.services.chat_service import ChatService
from chat_backend.services.friend_service import FriendService
from chat_backend.services.notification_service import Notifier, get_notifier


class RecordingBroker:
    """Stands in for the Pusher client and remembers every trigger."""

    def __init__(self):
        self.events = []
        self.calls = 0

    def trigger(self, channels, event_name, data):
        self.calls += 1
        for channel in [channels] if isinstance(channels, str) else channels:
            self.events.append((channel, event_name, data))

    def named(self, event_name):
        return [e for e in self.events if e[1] == event_name]


class SlowBroker(RecordingBroker):
    def __init__(self, delay):
        super().__init__()
        self.delay = delay

    def trigger(self, channels, event_name, data):
        time.sleep(self.delay)
        super().trigger(channels, event_name, data)


class FailingBroker:
    def trigger(self, channel, event_name, data):
        raise ConnectionError("broker unavailable")


class FakeClock:
    """Strictly increasing epoch milliseconds."""

    def __init__(self, start=1_700_000_000_000, step=1):
        self.now = start
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


@pytest.fixture
def redis_client():
    server = fakeredis.FakeServer()
    return fakeredis.FakeRedis(server=server, decode_responses=True)


@pytest.fixture
def store(redis_client):
    return Store(redis_client)


@pytest.fixture
def broker():
    return RecordingBroker()


@pytest.fixture
def notifier(broker):
    return Notifier(broker)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def user_repo(store):
    return UserRepository(store)


@pytest.fixture
def alice(user_repo):
    return user_repo.create_user("Alice", "alice@example.com")


@pytest.fixture
def bob(user_repo):
    return user_repo.create_user("Bob", "bob@example.com")


@pytest.fixture
def carol(user_repo):
    return user_repo.create_user("Carol", "carol@example.com")


@pytest.fixture
def dave(user_repo):
    return user_repo.create_user("Dave", "dave@example.com")


@pytest.fixture
def friends(store, notifier):
    return FriendService(store, notifier)


@pytest.fixture
def chats(store, notifier, clock):
    return ChatService(store, notifier, clock=clock)


@pytest.fixture
def befriend(friends):
    def _befriend(a, b):
        friends.send_request(a.id, b.email)
        friends.accept_request(b.id, a.id)
    return _befriend


@pytest.fixture
def client(store, notifier):
    def _get_db():
        yield store

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()


def auth_header(user):
    token = create_access_token({"id": user.id, "email": user.email, "name": user.name})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth():
    return auth_header


@pytest.fixture
def failing_notifier():
    return Notifier(FailingBroker())


@pytest.fixture
def slow_broker():
    return SlowBroker(delay=0.2)
