"""
Resource declaration and form validation tests
==============================================
"""

from newsdesk.modules.news.resource import (
    MAX_LENGTH, SEARCHABLE_COLUMNS, SORTABLE_COLUMNS, get_schema, validate_form
)


def _fields(errors):
    return sorted(e.field for e in errors)


def test_table_declares_searchable_and_sortable_columns():
    assert SEARCHABLE_COLUMNS == ("slug", "title")
    assert SORTABLE_COLUMNS == ("created_at", "updated_at")


def test_schema_lists_form_table_and_pages():
    schema = get_schema()

    assert [f["name"] for f in schema["form"]] == ["slug", "title", "content"]
    builder = schema["form"][2]
    assert [b["name"] for b in builder["blocks"]] == ["heading", "paragraph"]
    assert schema["table"]["bulk_actions"] == ["delete"]
    assert schema["pages"] == {"index": "/", "create": "/create", "edit": "/<record>/edit"}

    hidden = [c["name"] for c in schema["table"]["columns"] if c.get("hidden_by_default")]
    assert hidden == ["created_at", "updated_at"]


def test_valid_form():
    data = {
        "title": "Hello",
        "slug": "hello",
        "content": [{"kind": "paragraph", "text": "Body"}],
    }

    assert validate_form(data) == []


def test_required_fields():
    errors = validate_form({"title": "  ", "slug": "", "content": []})

    assert _fields(errors) == ["slug", "title"]


def test_max_length():
    long_value = "x" * (MAX_LENGTH + 1)

    errors = validate_form({"title": long_value, "slug": long_value, "content": []})

    assert _fields(errors) == ["slug", "title"]
    assert all("255" in e.reason for e in errors)


def test_block_errors_are_included():
    data = {"title": "Hello", "slug": "hello", "content": [{"kind": "paragraph", "text": ""}]}

    assert _fields(validate_form(data)) == ["content.0.text"]


def test_slug_must_be_unique_except_for_edited_record():
    seen = []

    def slug_exists(slug, exclude_id):
        seen.append((slug, exclude_id))
        return slug == "taken" and exclude_id != 5

    taken = {"title": "T", "slug": "taken", "content": []}

    assert _fields(validate_form(taken, None, slug_exists)) == ["slug"]
    assert validate_form(taken, 5, slug_exists) == []
    assert seen == [("taken", None), ("taken", 5)]


def test_uniqueness_not_checked_when_slug_already_invalid():
    def slug_exists(slug, exclude_id):
        raise AssertionError("should not be called")

    errors = validate_form({"title": "T", "slug": "", "content": []}, None, slug_exists)

    assert _fields(errors) == ["slug"]
