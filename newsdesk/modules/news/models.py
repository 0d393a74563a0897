"""
News Models
===========

sqlite record store for news items and their in-progress form drafts. Both
tables live in NEWS_DB; content blocks are stored as a JSON array.
"""

import json
import logging

from newsdesk.core import Config, Database, get_config_value
from .resource import SEARCHABLE_COLUMNS, SORTABLE_COLUMNS

logger = logging.getLogger(__name__)

TABLE = Config.NEWS_TABLE
FORMS_TABLE = f'{TABLE}_forms'


def _db_log(level, message, details=None):
    """Log to the framework's persistent DB logger"""
    try:
        from newsdesk.core import db_log
        db_log(level, 'news', message, details)
    except Exception as e:
        logger.debug(f"db_log unavailable: {e}")


def get_db_config():
    """Get the database path from app config, Config or environment"""
    return get_config_value('NEWS_DB', 'news.db')


def init_news_db():
    """Create the news and form draft tables if they don't exist"""
    news_db = get_db_config()
    try:
        Database.ensure_dir(news_db)
        with Database.connect(news_db) as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                CREATE TABLE IF NOT EXISTS {TABLE} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    slug TEXT NOT NULL UNIQUE,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL DEFAULT '[]',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')
            cursor.execute(f'CREATE INDEX IF NOT EXISTS idx_{TABLE}_created ON {TABLE}(created_at)')

            # In-progress edits, one row per mounted form
            cursor.execute(f'''
                CREATE TABLE IF NOT EXISTS {FORMS_TABLE} (
                    token TEXT PRIMARY KEY,
                    record_id INTEGER,
                    data TEXT NOT NULL DEFAULT '{{}}',
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')
            conn.commit()
    except Exception as e:
        logger.error(f"Error initializing news database: {e}")
        _db_log('error', 'Failed to init news DB', {'error': str(e)})
        raise


def _row_to_dict(row):
    """Convert a sqlite3.Row to a dict with parsed content JSON"""
    d = dict(row)
    if isinstance(d.get('content'), str):
        try:
            d['content'] = json.loads(d['content'])
        except (json.JSONDecodeError, TypeError):
            d['content'] = []
    return d


def get_news(news_id):
    """Get a single news item by ID"""
    try:
        with Database.connect(get_db_config()) as conn:
            cursor = conn.cursor()
            cursor.execute(f'SELECT * FROM {TABLE} WHERE id = ?', (news_id,))
            row = cursor.fetchone()
            return _row_to_dict(row) if row else None
    except Exception as e:
        logger.error(f"Error getting news {news_id}: {e}")
        return None


def get_news_by_slug(slug):
    try:
        with Database.connect(get_db_config()) as conn:
            cursor = conn.cursor()
            cursor.execute(f'SELECT * FROM {TABLE} WHERE slug = ?', (slug,))
            row = cursor.fetchone()
            return _row_to_dict(row) if row else None
    except Exception as e:
        logger.error(f"Error getting news by slug {slug}: {e}")
        return None


def _escape_like(term):
    return term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def list_news(search=None, sort=None, direction='desc'):
    """List news items for the admin table.

    ``search`` is a case-insensitive substring match over the searchable
    columns. ``sort`` must name a sortable column, otherwise the list is
    ordered by newest first.
    """
    if sort not in SORTABLE_COLUMNS:
        sort, direction = 'created_at', 'desc'
    direction = 'ASC' if str(direction).lower() == 'asc' else 'DESC'

    query = f'SELECT * FROM {TABLE}'
    params = []
    if search and search.strip():
        pattern = f'%{_escape_like(search.strip())}%'
        query += ' WHERE ' + ' OR '.join(f"{col} LIKE ? ESCAPE '\\'" for col in SEARCHABLE_COLUMNS)
        params.extend([pattern] * len(SEARCHABLE_COLUMNS))
    query += f' ORDER BY {sort} {direction}, id {direction}'

    try:
        with Database.connect(get_db_config()) as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [_row_to_dict(row) for row in cursor.fetchall()]
    except Exception as e:
        logger.error(f"Error listing news: {e}")
        _db_log('error', 'Error listing news', {'error': str(e)})
        return []


def slug_exists(slug, exclude_id=None):
    """Check whether another news item already uses this slug"""
    with Database.connect(get_db_config()) as conn:
        cursor = conn.cursor()
        if exclude_id is None:
            cursor.execute(f'SELECT id FROM {TABLE} WHERE slug = ?', (slug,))
        else:
            cursor.execute(f'SELECT id FROM {TABLE} WHERE slug = ? AND id != ?', (slug, exclude_id))
        return cursor.fetchone() is not None


def create_news(data):
    """Create a news item. Returns the stored record."""
    try:
        with Database.connect(get_db_config()) as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                INSERT INTO {TABLE} (slug, title, content)
                VALUES (?, ?, ?)
            ''', (
                data['slug'],
                data['title'],
                json.dumps(data.get('content') or [])
            ))
            conn.commit()
            news_id = cursor.lastrowid
        logger.info(f"Created news {news_id}: {data['slug']}")
        return get_news(news_id)
    except Exception as e:
        logger.error(f"Error creating news: {e}")
        _db_log('error', 'Error creating news', {'error': str(e), 'slug': data.get('slug')})
        raise


def update_news(news_id, data):
    """Update an existing news item. Returns False if it doesn't exist."""
    try:
        with Database.connect(get_db_config()) as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                UPDATE {TABLE}
                SET slug = ?, title = ?, content = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
            ''', (
                data['slug'],
                data['title'],
                json.dumps(data.get('content') or []),
                news_id
            ))
            conn.commit()
            updated = cursor.rowcount > 0
        if updated:
            logger.info(f"Updated news {news_id}: {data['slug']}")
        return updated
    except Exception as e:
        logger.error(f"Error updating news {news_id}: {e}")
        _db_log('error', f'Error updating news {news_id}', {'error': str(e)})
        raise


def delete_news(news_id):
    """Delete a news item. Returns False if it doesn't exist."""
    try:
        with Database.connect(get_db_config()) as conn:
            cursor = conn.cursor()
            cursor.execute(f'DELETE FROM {TABLE} WHERE id = ?', (news_id,))
            conn.commit()
            return cursor.rowcount > 0
    except Exception as e:
        logger.error(f"Error deleting news {news_id}: {e}")
        _db_log('error', f'Error deleting news {news_id}', {'error': str(e)})
        raise


def save_form_draft(token, payload):
    """Store the in-progress form for ``token``, replacing any earlier draft"""
    try:
        with Database.connect(get_db_config()) as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                INSERT OR REPLACE INTO {FORMS_TABLE} (token, record_id, data, updated_at)
                VALUES (?, ?, ?, CURRENT_TIMESTAMP)
            ''', (
                token,
                payload.get('record_id'),
                json.dumps(payload.get('data') or {})
            ))
            conn.commit()
    except Exception as e:
        logger.error(f"Error saving form draft {token}: {e}")
        _db_log('error', 'Error saving form draft', {'error': str(e), 'token': token})
        raise


def load_form_draft(token):
    """Get the stored form for ``token`` as ``{'record_id', 'data'}``, or None"""
    with Database.connect(get_db_config()) as conn:
        cursor = conn.cursor()
        cursor.execute(f'SELECT record_id, data FROM {FORMS_TABLE} WHERE token = ?', (token,))
        row = cursor.fetchone()
    if not row:
        return None
    try:
        data = json.loads(row['data'])
    except (json.JSONDecodeError, TypeError):
        data = {}
    return {'record_id': row['record_id'], 'data': data}


def delete_form_draft(token):
    with Database.connect(get_db_config()) as conn:
        conn.execute(f'DELETE FROM {FORMS_TABLE} WHERE token = ?', (token,))
        conn.commit()


def bulk_delete_news(news_ids):
    """Delete several news items in one transaction. Returns the number deleted."""
    news_ids = [int(i) for i in news_ids]
    if not news_ids:
        return 0
    placeholders = ', '.join('?' for _ in news_ids)
    try:
        with Database.connect(get_db_config()) as conn:
            cursor = conn.cursor()
            cursor.execute(f'DELETE FROM {TABLE} WHERE id IN ({placeholders})', news_ids)
            conn.commit()
            return cursor.rowcount
    except Exception as e:
        logger.error(f"Error bulk deleting news: {e}")
        _db_log('error', 'Error bulk deleting news', {'error': str(e), 'ids': news_ids})
        raise
