"""
Newsdesk - News admin resource for Flask
========================================

A pluggable admin module that manages news items:
- Create/edit forms with a slug that follows the title
- Block-based content (headings, paragraphs)
- Searchable, sortable listing with bulk delete

Usage:
    from flask import Flask
    from newsdesk import Newsdesk

    app = Flask(__name__)
    Newsdesk(app)
"""

import logging
import os

from .core.config import Config

__version__ = '0.1.0'

logger = logging.getLogger(__name__)

DEFAULT_FEATURES = {
    'news': True,
}


class Newsdesk:
    """Flask extension that configures databases and registers module blueprints"""

    def __init__(self, app=None, config=None):
        self._config = dict(config or {})
        self._registered = []
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self._apply_config_defaults(app)
        self._setup_database_dir(app)
        self._register_modules(app)

        app.extensions['newsdesk'] = self

        @app.context_processor
        def inject_newsdesk_config():
            return {'newsdesk_config': self._config}

    @property
    def features(self):
        features = dict(DEFAULT_FEATURES)
        features.update(self._config.get('features', {}))
        return features

    def _apply_config_defaults(self, app):
        """Fill in DB paths the host app didn't set: DB_DIR first, then files inside it"""
        db_dir = app.config.get('DB_DIR') or self._config.get('db_dir') or Config.DB_DIR
        app.config['DB_DIR'] = db_dir
        app.config.setdefault('NEWS_DB', os.path.join(db_dir, 'news.db'))
        app.config.setdefault('LOGS_DB', os.path.join(db_dir, 'app_logs.db'))
        if not app.config.get('SECRET_KEY') and Config.SECRET_KEY:
            app.config['SECRET_KEY'] = Config.SECRET_KEY

    def _setup_database_dir(self, app):
        db_dir = app.config['DB_DIR']
        os.makedirs(db_dir, exist_ok=True)
        logger.debug(f"Database directory ready: {db_dir}")

    def _register_modules(self, app):
        features = self.features

        if features.get('news'):
            from .modules.news import news_bp
            from .modules.news.models import init_news_db
            app.register_blueprint(news_bp)
            with app.app_context():
                init_news_db()
            self._registered.append('news')

        logger.info(f"Newsdesk modules registered: {', '.join(self._registered) or 'none'}")

    def get_registered_modules(self):
        return list(self._registered)


__all__ = ['Newsdesk', 'Config']
