# tests/conftest.py

import io
from collections import namedtuple

import pandas as pd
import pytest

from config import Config

# Stand-in for Partner rows in tests that don't need a database
PartnerRef = namedtuple('PartnerRef', ['id', 'name', 'contract_total', 'is_flex_fund'])


class ConfigForTests(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    ADMIN_EMAIL = 'admin@example.com'
    ADMIN_PASSWORD = 'admin-password'


@pytest.fixture
def registry():
    return [
        PartnerRef('p-nike', 'Nike', 5000000.0, False),
        PartnerRef('p-gatorade', 'Gatorade', 3000000.0, False),
        PartnerRef('p-ea', 'EA Sports', 0.0, True),
    ]


@pytest.fixture
def app_with_db(tmp_path):
    """
    Creates a new app instance with an in-memory database, seeded with the
    default settings, the admin user and the sample partners, and yields it
    within an application context.
    """
    from partner_tracker import create_app, db
    from partner_tracker.seed import seed_data
    from partner_tracker.settings import TrackerSettings

    config_class = type('UploadConfig', (ConfigForTests,), {'UPLOAD_FOLDER': str(tmp_path / 'uploads')})
    app = create_app(config_class)

    with app.app_context():
        db.create_all()
        TrackerSettings.reset()
        seed_data()
        yield app  # The tests will run here
        db.session.remove()
        db.drop_all()
    TrackerSettings.reset()


@pytest.fixture
def client(app_with_db):
    return app_with_db.test_client()


@pytest.fixture
def login():
    """Returns a function that logs a test client in and returns the response."""
    def _login(test_client, email, password):
        return test_client.post('/api/login', json={'email': email, 'password': password})
    return _login


@pytest.fixture
def admin_client(client, login):
    response = login(client, 'admin@example.com', 'admin-password')
    assert response.status_code == 200
    return client


@pytest.fixture
def make_user(app_with_db):
    """Creates a user directly in the database."""
    from partner_tracker import db
    from partner_tracker.models import User

    def _make_user(email, password='secret-password', is_admin=False, is_full_admin=False, partner_id=None):
        user = User(email=email, name=email.split('@')[0], is_admin=is_admin,
                    is_full_admin=is_full_admin, partner_id=partner_id)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def workbook_bytes():
    """Returns a function that writes {sheet name: rows} to .xlsx bytes."""
    def _workbook_bytes(sheets):
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            for sheet_name, rows in sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
        return buffer.getvalue()
    return _workbook_bytes
