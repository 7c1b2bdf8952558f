import os
import sys
import pytest

# Ensure the backend root (containing the `compsync` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from compsync import create_app, db, socketio
from compsync.services.rounds.descriptor import RoundDescriptor


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    ROUND_LEAD_MS = 3000
    DEFAULT_CLIMBING_MS = 300000
    DEFAULT_PREPARATION_MS = 60000
    ADMIN_PIN = None
    CORS_ORIGINS = []


class PinConfig(TestConfig):
    ADMIN_PIN = '4321'


def _make_app(config_class):
    application = create_app(config_class)
    with application.app_context():
        # Ensure models are imported so tables are created
        import compsync.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def flask_app():
    yield from _make_app(TestConfig)


@pytest.fixture()
def pin_app():
    yield from _make_app(PinConfig)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms
        return self.now


@pytest.fixture()
def clock():
    return FakeClock(1_700_000_000_000)


def make_descriptor(start_time=1_700_000_000_000, climbing=300000, preparation=60000,
                    preparation_enabled=False, stopped=False, recurring=False):
    return RoundDescriptor(
        start_time=start_time,
        climbing_duration_ms=climbing,
        preparation_duration_ms=preparation,
        preparation_enabled=preparation_enabled,
        stopped=stopped,
        recurring=recurring,
        updated_at=start_time - 3000,
    )
