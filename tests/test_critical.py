"""
Critical Integration Tests for newsdesk
=======================================

Focused tests covering the integration points most likely to break.
Run with: pytest tests/test_critical.py -v
"""

import os
import shutil
import sqlite3
import tempfile
from unittest.mock import patch

from flask import Flask

from newsdesk import Newsdesk
from newsdesk.core import LoggingService


# ---------------------------------------------------------------------------
# 1. Extension initialisation -- Newsdesk(app) does not raise
# ---------------------------------------------------------------------------

def test_extension_initialisation(app):
    """Newsdesk(app) boots without errors and stores itself on the app."""
    ext = app.extensions["newsdesk"]

    assert isinstance(ext, Newsdesk)
    assert ext.get_registered_modules() == ["news"]


# ---------------------------------------------------------------------------
# 2. Config resolution -- DB paths default inside DB_DIR
# ---------------------------------------------------------------------------

def test_config_defaults_inside_db_dir(tmp_db_dir):
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir

    Newsdesk(app)

    assert app.config["NEWS_DB"] == os.path.join(tmp_db_dir, "news.db")
    assert app.config["LOGS_DB"] == os.path.join(tmp_db_dir, "app_logs.db")


# ---------------------------------------------------------------------------
# 3. Database directory creation and schema
# ---------------------------------------------------------------------------

def test_database_dir_and_table_created():
    d = tempfile.mkdtemp(prefix="newsdesk-dbtest-")
    target = os.path.join(d, "sub", "databases")

    try:
        app = Flask(__name__)
        app.config["TESTING"] = True
        app.config["SECRET_KEY"] = "test-secret"
        app.config["DB_DIR"] = target

        Newsdesk(app)

        assert os.path.isdir(target), f"DB_DIR was not created at {target}"
        with sqlite3.connect(app.config["NEWS_DB"]) as conn:
            columns = [row[1] for row in conn.execute("PRAGMA table_info(news)")]
        assert columns == ["id", "slug", "title", "content", "created_at", "updated_at"]
    finally:
        shutil.rmtree(d, ignore_errors=True)


# ---------------------------------------------------------------------------
# 4. Feature flags -- disabled modules are not registered
# ---------------------------------------------------------------------------

def test_disabled_news_feature(tmp_db_dir):
    app = Flask(__name__)
    app.config["DB_DIR"] = tmp_db_dir

    ext = Newsdesk(app, {"features": {"news": False}})

    assert ext.get_registered_modules() == []
    rules = [rule.rule for rule in app.url_map.iter_rules()]
    assert not any(r.startswith("/admin/news") for r in rules)


# ---------------------------------------------------------------------------
# 5. Blueprint routes -- page routes are registered
# ---------------------------------------------------------------------------

def test_page_routes_registered(app):
    rules = {rule.rule for rule in app.url_map.iter_rules()}

    for expected in ("/admin/news/", "/admin/news/create", "/admin/news/<int:record_id>/edit"):
        assert expected in rules, f"{expected} missing. Routes: {sorted(rules)}"


# ---------------------------------------------------------------------------
# 6. Template context -- newsdesk_config is injected
# ---------------------------------------------------------------------------

def test_template_context_injection(app):
    with app.test_request_context("/"):
        ctx = {}
        for func in app.template_context_processors[None]:
            ctx.update(func())

        assert "newsdesk_config" in ctx
        assert isinstance(ctx["newsdesk_config"], dict)


# ---------------------------------------------------------------------------
# 7. Persistent logging -- admin actions land in app_logs
# ---------------------------------------------------------------------------

def test_admin_actions_are_logged(admin_client):
    admin_client.get("/admin/news/create")
    admin_client.post("/admin/news/form/update", json={"updates": {"title": "Logged"}})
    admin_client.post("/admin/news/form/submit")

    with admin_client.application.app_context():
        logs = LoggingService.get_recent_logs(source="news")

    assert logs, "expected at least one news log entry"
    assert logs[0]["message"] == "User action: news_created"
    assert logs[0]["level"] == "INFO"
    assert logs[0]["user_id"] == "1"
    assert logs[0]["request_path"] == "/admin/news/form/submit"


def test_log_cleanup_keeps_recent_entries(app):
    with app.app_context():
        LoggingService.info("system", "fresh entry")

        deleted = LoggingService.cleanup_old_logs(days_to_keep=30)

        assert deleted == 0
        messages = [log["message"] for log in LoggingService.get_recent_logs(source="system")]
        assert "fresh entry" in messages


# ---------------------------------------------------------------------------
# 8. Unexpected store failures -- 500 with a traceback log entry
# ---------------------------------------------------------------------------

def test_store_failure_on_submit_is_logged(admin_client):
    admin_client.get("/admin/news/create")
    admin_client.post("/admin/news/form/update", json={"updates": {"title": "Doomed"}})

    with patch("newsdesk.modules.news.routes.create_news", side_effect=RuntimeError("disk full")):
        response = admin_client.post("/admin/news/form/submit")

    assert response.status_code == 500
    assert response.get_json() == {"error": "disk full"}

    with admin_client.application.app_context():
        logs = LoggingService.get_recent_logs(source="news")
    assert logs[0]["level"] == "ERROR"
    assert logs[0]["message"] == "Exception occurred: RuntimeError"
    assert "disk full" in logs[0]["details"]
