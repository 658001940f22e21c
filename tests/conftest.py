"""
Shared fixtures - in-memory SQLite app, test client and signed-in users
"""

import pytest
from config.settings import config
from database.db_manager import get_db_manager
from database.models import db
from web.app import create_app

PASSWORD = 'secret-pass'


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setattr(config, 'LOG_FILE_PATH', str(tmp_path / 'logs'))

    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'SECRET_KEY': 'test-secret'
    })

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_manager():
    return get_db_manager()


def make_profile(app, email, role, username=None):
    """Create an account and return its id"""
    with app.app_context():
        profile = get_db_manager().create_profile(email, username or email.split('@')[0], PASSWORD, role)
        return profile.id


def sign_in(client, email):
    return client.post('/auth/login', data={'email': email, 'password': PASSWORD})


@pytest.fixture
def owner_id(app):
    return make_profile(app, 'owner@campus.test', config.ROLE_MESS_OWNER, 'Ravi')


@pytest.fixture
def student_id(app):
    return make_profile(app, 'student@campus.test', config.ROLE_STUDENT, 'Priya')


@pytest.fixture
def owner_client(client, owner_id):
    sign_in(client, 'owner@campus.test')
    return client


@pytest.fixture
def student_client(client, student_id):
    sign_in(client, 'student@campus.test')
    return client


@pytest.fixture
def owner_mess_id(app, owner_id, db_manager):
    with app.app_context():
        return db_manager.create_default_mess(owner_id).id
