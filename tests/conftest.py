import pytest

from ballotbox import create_app, create_store, db
from ballotbox.config import TestingConfig


@pytest.fixture
def app():
    """Flask app on a private in-memory database with the schema created."""
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def store(app):
    return create_store(app)


@pytest.fixture
def election(store):
    """Three voters (A, B, C) and two candidates (X, Y)."""
    store.add_candidate({'id': 1, 'number': 1, 'chairman_name': 'X', 'motto': 'first'})
    store.add_candidate({'id': 2, 'number': 2, 'chairman_name': 'Y', 'motto': 'second'})
    store.add_voter({'id': 1, 'username': 'voter_a', 'name': 'A', 'class': 'diknas'})
    store.add_voter({'id': 2, 'username': 'voter_b', 'name': 'B', 'class': 'diknas'})
    store.add_voter({'id': 3, 'username': 'voter_c', 'name': 'C', 'class': 'tahfidz'})
    return store


@pytest.fixture
def seeded(store):
    """Store loaded with the reference voters, candidates and admins."""
    store.initialize_sample_data()
    return store


@pytest.fixture
def client(app, seeded):
    return app.test_client()
