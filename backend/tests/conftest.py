import os
import sys
import pytest

# Ensure the backend root (containing the `gamemaster` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from gamemaster import create_app, db, socketio
from gamemaster.services.rooms import EXTENSION_KEY


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = '*'
    ROOM_COUNT = 5
    DEFAULT_ROOM_DURATION_SEC = 3600
    DEFAULT_FREE_HINTS = 3
    HINT_PENALTY_SEC = 120
    TICK_INTERVAL_SEC = 1.0
    OBLIGATORY_LANGUAGES = ['es', 'en']
    DEFAULT_LANGUAGE = 'es'


class RecordingEmitter:
    """Stands in for the SocketIO server; records every emit."""

    def __init__(self):
        self.events = []

    def emit(self, event, data=None, to=None, namespace=None, **kwargs):
        self.events.append({'name': event, 'data': data, 'to': to, 'namespace': namespace})

    def named(self, name):
        return [e for e in self.events if e['name'] == name]

    def clear(self):
        self.events.clear()


@pytest.fixture()
def emitter():
    return RecordingEmitter()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import gamemaster.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def services(flask_app):
    return flask_app.extensions[EXTENSION_KEY]


@pytest.fixture()
def coordinator(services):
    services['coordinator'].load()
    return services['coordinator']


@pytest.fixture()
def recorder(services, emitter):
    """Capture broadcasts instead of sending them over Socket.IO."""
    services['router'].emitter = emitter
    return emitter


def _sio_client(flask_app):
    return socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )


@pytest.fixture()
def sio_client(flask_app):
    test_client = _sio_client(flask_app)
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def sio_factory(flask_app):
    """Create extra Socket.IO clients; all are disconnected on teardown."""
    created = []

    def factory():
        test_client = _sio_client(flask_app)
        created.append(test_client)
        return test_client

    yield factory
    for test_client in created:
        try:
            test_client.disconnect(namespace='/ws')
        except Exception:
            pass
