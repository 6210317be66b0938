import os, sys, pytest
# Ensure backend directory is on path so 'repairdesk' and 'tests' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from repairdesk import create_app, get_db
from repairdesk.models.user import Base
# Import all model modules to ensure tables are registered before create_all
import repairdesk.models.order  # noqa: F401
import repairdesk.models.audit  # noqa: F401
import repairdesk.models.catalog  # noqa: F401


class RecordingGateway:
    """SMS gateway double that records every message, or raises when ``fail`` is set."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, phone, template_code, params):
        if self.fail:
            raise ConnectionError('gateway unreachable')
        self.sent.append((phone, template_code, dict(params)))
        return True

    def templates(self):
        return [t for _, t, _ in self.sent]


@pytest.fixture(scope='session', autouse=True)
def app_instance(tmp_path_factory):
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app({
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'JWT_SECRET_KEY': 'test-secret-key-with-at-least-32-bytes!',
        'SMS_BACKEND': 'log',
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp('uploads')),
    })
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app

@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance

@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()

@pytest.fixture()
def sms(app_instance, monkeypatch):
    gateway = RecordingGateway()
    monkeypatch.setitem(app_instance.extensions, 'sms_gateway', gateway)
    return gateway
