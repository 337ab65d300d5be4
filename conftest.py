"""
conftest.py - Shared pytest fixtures
Snippet Catalog

Every test gets its own temporary SQLite database.
"""

import pytest

from app import create_app


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / 'snippets-test.db')


@pytest.fixture
def app(db_path):
    """App with the sample catalog seeded and no cosmetic refresh delay."""
    app = create_app({
        'DATABASE': db_path,
        'TESTING': True,
        'SEED_DATA': True,
        'PREVIEW_REFRESH_DELAY_MS': 0,
    })
    with app.app_context():
        yield app


@pytest.fixture
def empty_app(db_path):
    """App with an empty catalog."""
    app = create_app({
        'DATABASE': db_path,
        'TESTING': True,
        'SEED_DATA': False,
        'PREVIEW_REFRESH_DELAY_MS': 0,
    })
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()
