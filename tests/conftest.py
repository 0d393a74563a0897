"""
Shared fixtures for newsdesk tests.

Run with: pytest tests -v
Install with: pip install -e ".[dev]"
"""

import os
import shutil
import tempfile

import pytest
from flask import Flask

from newsdesk import Newsdesk


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="newsdesk-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def app(tmp_db_dir):
    """Flask app with the news module registered against temp databases."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir
    app.config["NEWS_DB"] = os.path.join(tmp_db_dir, "news.db")
    app.config["LOGS_DB"] = os.path.join(tmp_db_dir, "app_logs.db")
    Newsdesk(app)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    """Test client whose session belongs to a logged-in admin."""
    with client.session_transaction() as sess:
        sess["admin_id"] = 1
        sess["admin_email"] = "admin@example.com"
    return client
