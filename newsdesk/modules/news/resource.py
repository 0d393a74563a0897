"""
News Resource
=============

Declarative description of the News admin resource: the edit form, the
listing table and the page routes. Renderers consume this as plain data via
``GET /admin/news/api/schema``.
"""

from .blocks import HEADING, PARAGRAPH, HEADING_LEVELS, validate_blocks
from .exceptions import ValidationError

MAX_LENGTH = 255

FORM_SCHEMA = [
    {
        'name': 'slug',
        'type': 'text',
        'required': True,
        'max_length': MAX_LENGTH,
    },
    {
        'name': 'title',
        'type': 'text',
        'required': True,
        'max_length': MAX_LENGTH,
        # Sent on blur; each flush arrives as one batch that re-derives the slug
        'live': 'blur',
        'derives': 'slug',
    },
    {
        'name': 'content',
        'type': 'builder',
        'required': False,
        'blocks': [
            {
                'name': HEADING,
                'columns': 2,
                'schema': [
                    {'name': 'content', 'type': 'text', 'label': 'Heading', 'required': True},
                    {'name': 'level', 'type': 'select', 'options': HEADING_LEVELS, 'required': True},
                ],
            },
            {
                'name': PARAGRAPH,
                'schema': [
                    {'name': 'content', 'type': 'textarea', 'label': 'Paragraph', 'required': True},
                ],
            },
        ],
    },
]

TABLE_COLUMNS = [
    {'name': 'slug', 'type': 'text', 'searchable': True},
    {'name': 'title', 'type': 'text', 'searchable': True},
    {'name': 'created_at', 'type': 'datetime', 'sortable': True,
     'toggleable': True, 'hidden_by_default': True},
    {'name': 'updated_at', 'type': 'datetime', 'sortable': True,
     'toggleable': True, 'hidden_by_default': True},
]

SEARCHABLE_COLUMNS = tuple(c['name'] for c in TABLE_COLUMNS if c.get('searchable'))
SORTABLE_COLUMNS = tuple(c['name'] for c in TABLE_COLUMNS if c.get('sortable'))

TABLE_ACTIONS = ['edit']
TABLE_BULK_ACTIONS = ['delete']

PAGES = {
    'index': '/',
    'create': '/create',
    'edit': '/<record>/edit',
}


def get_schema():
    return {
        'form': FORM_SCHEMA,
        'table': {
            'columns': TABLE_COLUMNS,
            'actions': TABLE_ACTIONS,
            'bulk_actions': TABLE_BULK_ACTIONS,
            'default_sort': {'column': 'created_at', 'direction': 'desc'},
        },
        'pages': PAGES,
    }


def _validate_text(data, field):
    value = data.get(field)
    if value is None or not str(value).strip():
        return ValidationError(field, f'The {field} field is required.')
    if len(str(value)) > MAX_LENGTH:
        return ValidationError(field, f'The {field} field must not be greater than {MAX_LENGTH} characters.')
    return None


def slug_taken_error():
    return ValidationError('slug', 'The slug has already been taken.')


def validate_form(data, record_id=None, slug_exists=None):
    """Validate a submitted form.

    Args:
        data: Form field values (title, slug, normalised content blocks)
        record_id: Id of the record being edited, None when creating
        slug_exists: Optional callable(slug, exclude_id) used to enforce unique slugs

    Returns:
        List of ValidationError, empty when the form is valid
    """
    errors = []
    for field in ('slug', 'title'):
        error = _validate_text(data, field)
        if error:
            errors.append(error)

    errors.extend(validate_blocks(data.get('content') or []))

    slug = data.get('slug')
    if slug_exists and not any(e.field == 'slug' for e in errors):
        if slug_exists(slug, record_id):
            errors.append(slug_taken_error())

    return errors
