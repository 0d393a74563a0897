"""
News Admin Routes
=================

JSON endpoints behind the News admin pages. The create and edit pages mount a
FormState as a server-side draft; the admin's session only carries the
draft's token. The editor posts each interaction as one batch to
``/form/update`` and finally calls ``/form/submit``.
"""

import logging
import sqlite3
import uuid
from flask import request, jsonify, session

from newsdesk.core import LoggingService
from . import news_bp
from .blocks import normalize_blocks, to_builder_state
from .models import (
    init_news_db, get_news, get_news_by_slug, list_news, create_news, update_news,
    delete_news, bulk_delete_news, slug_exists,
    save_form_draft, load_form_draft, delete_form_draft
)
from .resource import get_schema, validate_form, slug_taken_error
from .slug_sync import FormState, SlugSync, FORM_FIELDS

logger = logging.getLogger(__name__)

FORM_SESSION_KEY = 'news_form'

# Livewire-style property paths ("data.title") are accepted for form fields
_FIELD_PREFIX = 'data.'


def _db_log(level, message, details=None):
    """Log to the framework's persistent DB logger"""
    try:
        from newsdesk.core import db_log
        db_log(level, 'news', message, details)
    except Exception as e:
        logger.debug(f"db_log unavailable: {e}")


def _auth_required():
    return jsonify({'error': 'Authentication required'}), 401


def _load_form():
    mounted = session.get(FORM_SESSION_KEY)
    if not mounted or not mounted.get('token'):
        return None
    payload = load_form_draft(mounted['token'])
    if payload is None:
        return None
    return FormState.from_dict(payload)


def _store_form(state):
    mounted = session.get(FORM_SESSION_KEY) or {}
    token = mounted.get('token') or uuid.uuid4().hex
    save_form_draft(token, state.to_dict())
    session[FORM_SESSION_KEY] = {'token': token, 'record_id': state.record_id}


def _mount_form(state):
    """Replace whatever form is in progress with a fresh draft"""
    _discard_form()
    _store_form(state)


def _discard_form():
    mounted = session.pop(FORM_SESSION_KEY, None)
    if mounted and mounted.get('token'):
        delete_form_draft(mounted['token'])


def _form_response(state):
    return {
        'record_id': state.record_id,
        'data': dict(state.data),
        'builder': [to_builder_state(b) for b in normalize_blocks(state.get('content'))],
        'slug_tracking': state.is_tracking,
    }


def _coerce_value(field, value):
    if field == 'content':
        return normalize_blocks(value)
    return '' if value is None else str(value)


def _parse_updates(raw_updates):
    """Turn the request's updates into an ordered list of (field, value).

    Raises ValueError for malformed payloads or unknown fields.
    """
    if isinstance(raw_updates, dict):
        pairs = list(raw_updates.items())
    elif isinstance(raw_updates, list):
        pairs = []
        for item in raw_updates:
            if not isinstance(item, (list, tuple)) or len(item) != 2:
                raise ValueError('Each update must be a [field, value] pair')
            pairs.append((item[0], item[1]))
    else:
        raise ValueError('updates must be an object or a list of [field, value] pairs')

    changes = []
    for field, value in pairs:
        if not isinstance(field, str):
            raise ValueError(f'Invalid field name: {field!r}')
        if field.startswith(_FIELD_PREFIX):
            field = field[len(_FIELD_PREFIX):]
        if field not in FORM_FIELDS:
            raise ValueError(f'Unknown field: {field}')
        changes.append((field, _coerce_value(field, value)))
    return changes


@news_bp.before_request
def ensure_news_db():
    init_news_db()


# ===== Pages =====

@news_bp.route('/', methods=['GET'])
def index():
    """List news for the admin table"""
    if 'admin_id' not in session:
        return _auth_required()

    try:
        records = list_news(
            search=request.args.get('search'),
            sort=request.args.get('sort'),
            direction=request.args.get('direction', 'desc')
        )
        return jsonify({'records': records, 'table': get_schema()['table']})
    except Exception as e:
        logger.error(f"Error listing news: {e}")
        return jsonify({'error': str(e)}), 500


@news_bp.route('/create', methods=['GET'])
def create_page():
    """Mount an empty form for a new news item"""
    if 'admin_id' not in session:
        return _auth_required()

    state = FormState()
    _mount_form(state)
    return jsonify({'form': _form_response(state)})


@news_bp.route('/<int:record_id>/edit', methods=['GET'])
def edit_page(record_id):
    """Mount a form hydrated from a stored news item"""
    if 'admin_id' not in session:
        return _auth_required()

    record = get_news(record_id)
    if not record:
        return jsonify({'error': 'News not found'}), 404

    state = FormState.from_record(record)
    _mount_form(state)
    return jsonify({'form': _form_response(state)})


# ===== Form =====

@news_bp.route('/form', methods=['GET'])
def get_form():
    if 'admin_id' not in session:
        return _auth_required()

    state = _load_form()
    if state is None:
        return jsonify({'error': 'No form in progress'}), 404
    return jsonify({'form': _form_response(state)})


@news_bp.route('/form/update', methods=['POST'])
def update_form():
    """Apply one batch of field changes to the mounted form"""
    if 'admin_id' not in session:
        return _auth_required()

    state = _load_form()
    if state is None:
        return jsonify({'error': 'No form in progress'}), 404

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or 'updates' not in data:
        return jsonify({'error': 'No updates provided'}), 400

    try:
        changes = _parse_updates(data['updates'])
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    state = SlugSync(state).apply_update(changes)
    _store_form(state)
    return jsonify({'form': _form_response(state)})


@news_bp.route('/form/submit', methods=['POST'])
def submit_form():
    """Validate the mounted form and create or update the news item"""
    if 'admin_id' not in session:
        return _auth_required()

    state = _load_form()
    if state is None:
        return jsonify({'error': 'No form in progress'}), 404

    form_data = {
        'title': state.get('title') or '',
        'slug': state.get('slug') or '',
        'content': normalize_blocks(state.get('content')),
    }

    try:
        errors = validate_form(form_data, state.record_id, slug_exists)
        if errors:
            return jsonify({
                'error': 'Validation failed',
                'errors': [e.to_dict() for e in errors]
            }), 422

        if state.record_id is None:
            record = create_news(form_data)
            status_code = 201
            action = 'news_created'
        else:
            if not update_news(state.record_id, form_data):
                _discard_form()
                return jsonify({'error': 'News not found'}), 404
            record = get_news(state.record_id)
            status_code = 200
            action = 'news_updated'

        _discard_form()
        _db_log('info', f'User action: {action}', {'id': record['id'], 'slug': record['slug']})
        return jsonify({'success': True, 'record': record}), status_code

    except sqlite3.IntegrityError as e:
        # Another submit took the slug after validation ran
        logger.warning(f"Slug conflict submitting news form: {e}")
        return jsonify({
            'error': 'Validation failed',
            'errors': [slug_taken_error().to_dict()]
        }), 422

    except Exception as e:
        logger.error(f"Error submitting news form: {e}")
        LoggingService.log_error_with_traceback('news', e, {'record_id': state.record_id})
        return jsonify({'error': str(e)}), 500


# ===== API =====

@news_bp.route('/api/schema', methods=['GET'])
def schema():
    if 'admin_id' not in session:
        return _auth_required()
    return jsonify(get_schema())


@news_bp.route('/api/news/<int:record_id>', methods=['GET'])
def get_record(record_id):
    if 'admin_id' not in session:
        return _auth_required()

    record = get_news(record_id)
    if record:
        return jsonify(record)
    return jsonify({'error': 'News not found'}), 404


@news_bp.route('/api/news/slug/<slug>', methods=['GET'])
def get_record_by_slug(slug):
    if 'admin_id' not in session:
        return _auth_required()

    record = get_news_by_slug(slug)
    if record:
        return jsonify(record)
    return jsonify({'error': 'News not found'}), 404


@news_bp.route('/api/news/<int:record_id>', methods=['DELETE'])
def delete_record(record_id):
    if 'admin_id' not in session:
        return _auth_required()

    try:
        if delete_news(record_id):
            _db_log('info', 'User action: news_deleted', {'id': record_id})
            return jsonify({'success': True})
        return jsonify({'error': 'News not found'}), 404
    except Exception as e:
        logger.error(f"Error deleting news: {e}")
        return jsonify({'error': str(e)}), 500


@news_bp.route('/api/news/bulk-delete', methods=['POST'])
def bulk_delete():
    """Delete every selected row of the admin table"""
    if 'admin_id' not in session:
        return _auth_required()

    data = request.get_json(silent=True) or {}
    ids = data.get('ids')
    if not isinstance(ids, list) or not all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
        return jsonify({'error': 'ids must be a list of integers'}), 400

    try:
        deleted = bulk_delete_news(ids)
        _db_log('info', 'User action: news_bulk_deleted', {'ids': ids, 'deleted': deleted})
        return jsonify({'success': True, 'deleted': deleted})
    except Exception as e:
        logger.error(f"Error bulk deleting news: {e}")
        return jsonify({'error': str(e)}), 500
