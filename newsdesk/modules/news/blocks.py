"""
Content Blocks
==============

News content is an ordered list of blocks:

    {'kind': 'heading', 'text': 'Intro', 'level': 2}
    {'kind': 'paragraph', 'text': 'Lorem ipsum'}

The builder field in the admin form posts its own shape, which is accepted
too and normalised on the way in:

    {'type': 'heading', 'data': {'content': 'Intro', 'level': 'h2'}}
"""

import re

from .exceptions import ValidationError

HEADING = 'heading'
PARAGRAPH = 'paragraph'
BLOCK_KINDS = (HEADING, PARAGRAPH)

HEADING_LEVELS = {f'h{n}': f'Heading {n}' for n in range(1, 7)}

# Labels used by the form for each block's text input
TEXT_LABELS = {HEADING: 'Heading', PARAGRAPH: 'Paragraph'}

_LEVEL_PATTERN = re.compile(r'^\s*[hH]?(\d+)\s*$')


def parse_level(value):
    """Turn 2, '2' or 'h2' into 2. Anything unparseable gives None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = _LEVEL_PATTERN.match(str(value))
    if match:
        return int(match.group(1))
    return None


def normalize_block(raw):
    """Normalise one block from either accepted shape. Never raises."""
    if not isinstance(raw, dict):
        return {'kind': '', 'text': ''}

    kind = raw.get('kind') or raw.get('type') or ''
    data = raw.get('data') if isinstance(raw.get('data'), dict) else raw

    text = data.get('text')
    if text is None:
        text = data.get('content')
    if text is None:
        text = ''
    elif not isinstance(text, str):
        text = str(text)

    block = {'kind': kind, 'text': text}
    if kind == HEADING:
        block['level'] = parse_level(data.get('level'))
    return block


def normalize_blocks(raw_blocks):
    if raw_blocks is None:
        return []
    if isinstance(raw_blocks, dict):
        # Builder state keyed by item uuid
        raw_blocks = list(raw_blocks.values())
    if not isinstance(raw_blocks, (list, tuple)):
        return [normalize_block(raw_blocks)]
    return [normalize_block(raw) for raw in raw_blocks]


def validate_blocks(blocks, field='content'):
    """Return a list of ValidationError for a normalised block list"""
    errors = []
    if not isinstance(blocks, list):
        return [ValidationError(field, f'The {field} field must be a list of blocks.')]

    for index, block in enumerate(blocks):
        path = f'{field}.{index}'
        kind = block.get('kind')

        if kind not in BLOCK_KINDS:
            errors.append(ValidationError(
                f'{path}.kind', f"Unknown block type '{kind}'. Expected one of: {', '.join(BLOCK_KINDS)}."
            ))
            continue

        if not (block.get('text') or '').strip():
            label = TEXT_LABELS[kind].lower()
            errors.append(ValidationError(f'{path}.text', f'The {label} field is required.'))

        if kind == HEADING:
            level = block.get('level')
            if level is None:
                errors.append(ValidationError(f'{path}.level', 'The level field is required.'))
            elif not 1 <= level <= 6:
                errors.append(ValidationError(f'{path}.level', 'The selected level is invalid.'))

    return errors


def to_builder_state(block):
    """Convert a normalised block back to the builder field's shape"""
    data = {'content': block.get('text', '')}
    if block.get('kind') == HEADING:
        level = block.get('level')
        data['level'] = f'h{level}' if level is not None else None
    return {'type': block.get('kind'), 'data': data}
