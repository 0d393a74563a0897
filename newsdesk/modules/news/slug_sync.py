"""
Slug Sync
=========

Keeps a news item's ``slug`` following its ``title`` until an editor changes
the slug by hand.

The form collaborator delivers edits as batches (one or more field changes
that belong to the same interaction, e.g. a lazy builder field flushed
together with the title). The previous title is captured once per batch,
before any field of the batch is applied, so the divergence check always
compares against the title the editor actually saw.

This module has no Flask or database dependencies.
"""

import re
import unicodedata

SLUG_SEPARATOR = '-'

FORM_FIELDS = ('title', 'slug', 'content')

_NON_ALNUM = re.compile(r'[^a-z0-9]+')

# Same replacement the admin panel's slugger applies before stripping symbols
_DICTIONARY = {'@': 'at'}


def slugify(text):
    """Create a URL-friendly slug.

    Transliterates to ASCII, lower-cases, collapses every run of
    non-alphanumeric characters into a single hyphen and trims hyphens from
    both ends. Total: ``None`` and ``''`` both give ``''``.
    """
    if text is None:
        return ''
    text = str(text)

    for symbol, word in _DICTIONARY.items():
        text = text.replace(symbol, f'{SLUG_SEPARATOR}{word}{SLUG_SEPARATOR}')

    text = unicodedata.normalize('NFKD', text).encode('ascii', 'ignore').decode('ascii')
    text = _NON_ALNUM.sub(SLUG_SEPARATOR, text.lower())
    return text.strip(SLUG_SEPARATOR)


class FormState:
    """Field values of one in-progress news edit.

    ``record_id`` is ``None`` for the create flow and the stored record's id
    for the edit flow.
    """

    def __init__(self, data=None, record_id=None):
        self.data = {'title': '', 'slug': '', 'content': []}
        if data:
            self.data.update(data)
        self.record_id = record_id

    def get(self, field, default=None):
        return self.data.get(field, default)

    def set(self, field, value):
        self.data[field] = value

    def __getitem__(self, field):
        return self.data[field]

    def __eq__(self, other):
        if not isinstance(other, FormState):
            return NotImplemented
        return self.data == other.data and self.record_id == other.record_id

    def __repr__(self):
        return f"FormState(record_id={self.record_id!r}, data={self.data!r})"

    @property
    def is_tracking(self):
        """True while the slug still matches the slug derived from the title"""
        return (self.get('slug') or '') == slugify(self.get('title'))

    def to_dict(self):
        return {'record_id': self.record_id, 'data': dict(self.data)}

    @classmethod
    def from_dict(cls, payload):
        payload = payload or {}
        return cls(payload.get('data'), payload.get('record_id'))

    @classmethod
    def from_record(cls, record):
        """Hydrate a form from a stored news record (edit flow)"""
        data = {field: record.get(field) for field in FORM_FIELDS}
        data['title'] = data['title'] or ''
        data['slug'] = data['slug'] or ''
        data['content'] = data['content'] or []
        return cls(data, record.get('id'))


def _iter_changes(pending_changes):
    """Yield (field, value) pairs in batch order.

    Accepts a mapping or an ordered sequence of pairs; the latter allows the
    same field to appear twice, in which case the last assignment wins.
    """
    if pending_changes is None:
        return
    if hasattr(pending_changes, 'items'):
        yield from pending_changes.items()
    else:
        for field, value in pending_changes:
            yield field, value


class SlugSync:
    """Batch-update hook that keeps ``slug`` derived from ``title``."""

    def __init__(self, state=None):
        self.state = state if state is not None else FormState()
        self.previous_title = self.state.get('title') or ''

    def apply_update(self, pending_changes):
        """Apply one batch of field changes atomically and return the state.

        The title and slug are snapshotted once, before any change is applied.
        When the batch sets ``title`` and the snapshot slug equals
        ``slugify(previous_title)``, the slug is re-derived from the new title.
        A slug assigned explicitly in the same batch always wins.
        """
        changes = list(_iter_changes(pending_changes))

        self.previous_title = self.state.get('title') or ''
        snapshot_slug = self.state.get('slug') or ''
        tracking = snapshot_slug == slugify(self.previous_title)
        explicit_slug = any(field == 'slug' for field, _ in changes)

        for field, value in changes:
            self.state.set(field, value)
            if field == 'title' and tracking and not explicit_slug:
                self.state.set('slug', slugify(value))

        return self.state
