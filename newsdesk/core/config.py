import os
from dotenv import load_dotenv

load_dotenv(override=True)

class Config:
    """
    Base configuration for the newsdesk module.
    Projects should provide database paths via environment variables.
    """
    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')

    # Get DB_DIR from environment, or use a default if not set
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))

    # Database paths - use environment variables or fallback to DB_DIR
    NEWS_DB = os.getenv('NEWS_DB', os.path.join(DB_DIR, "news.db"))
    LOGS_DB = os.getenv('LOGS_DB', os.path.join(DB_DIR, "app_logs.db"))

    # Table names
    NEWS_TABLE = os.getenv('NEWS_TABLE_NAME', "news")
    LOGS_TABLE = "app_logs"


def get_config_value(key, default=None):
    """Get configuration value: Flask app config first, then Config, then env var"""
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val:
            return val
    except RuntimeError:
        pass
    val = getattr(Config, key, None)
    if val:
        return val
    return os.getenv(key, default)
