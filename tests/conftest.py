import os
import sys
import pytest

# Ensure the project root (containing the `blocker` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from blocker import create_app, socketio
from blocker.coordinator.link import CoordinatorLink
from blocker.services.timers import TimerTick


API_KEY = 'test-key'
START_MS = 1_700_000_000_000


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    API_KEY = API_KEY
    MAX_USERS = 10
    MAX_LENGTH = 3600
    APP_ID = 730
    GAME_TYPE = 519
    HELLO_INTERVAL_SEC = 1.0
    BLOCK_INTERVAL_SEC = 2.5
    LOGGING = True
    LOG_LEVEL = 'DEBUG'


class FakeClock:
    def __init__(self, now=START_MS):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += int(seconds * 1000)


class ManualTimer:
    """Timer that only ticks when a test calls ``fire``."""

    def __init__(self, name, interval, on_tick):
        self.name = name
        self.interval = interval
        self._on_tick = on_tick
        self.generation = 0
        self.active = False
        self.starts = 0

    def is_current(self, generation):
        return self.active and generation == self.generation

    def start(self):
        self.generation += 1
        self.active = True
        self.starts += 1

    def stop(self):
        if self.active:
            self.generation += 1
            self.active = False

    def fire(self):
        if self.active:
            self._on_tick(TimerTick(self.name, self.generation))


class FakeLink(CoordinatorLink):
    def __init__(self):
        super().__init__()
        self.sent = []
        self.playing = []
        self.license_requests = []
        self.license_error = None
        self.fail_for = set()

    def connect(self):
        pass

    def request_license(self, app_id):
        self.license_requests.append(app_id)
        if self.license_error:
            raise self.license_error

    def declare_playing(self, app_ids):
        self.playing.append(list(app_ids))

    def send(self, app_id, message):
        account_ids = getattr(message, 'account_ids', [])
        if any(a in self.fail_for for a in account_ids):
            raise ConnectionError('send failed')
        self.sent.append((app_id, message))

    def fire(self, event):
        self._emit(event)

    def sent_of(self, cls):
        return [m for _, m in self.sent if isinstance(m, cls)]


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def link():
    return FakeLink()


@pytest.fixture()
def terminated():
    return []


@pytest.fixture()
def flask_app(link, clock, terminated):
    application = create_app(
        TestConfig,
        link=link,
        timer_factory=ManualTimer,
        clock=clock,
        terminate=terminated.append,
    )
    with application.app_context():
        yield application


@pytest.fixture()
def registry(flask_app):
    return flask_app.extensions['blocker.registry']


@pytest.fixture()
def session(flask_app):
    return flask_app.extensions['blocker.session']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws',
        auth={'key': API_KEY},
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
