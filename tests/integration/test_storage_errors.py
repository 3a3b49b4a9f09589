from core.database.errors import columns_to_strip, is_unique_violation, missing_columns
from core.models.news import OPTIONAL_COLUMNS

from conftest import FakeBackendError


def test_postgres_missing_column_is_named():
    error = FakeBackendError('column "youtube_url" of relation "tv_news" does not exist', code="42703")

    assert missing_columns(error) == ["youtube_url"]
    assert columns_to_strip(error, OPTIONAL_COLUMNS) == ["youtube_url"]


def test_postgrest_schema_cache_message_is_named():
    error = FakeBackendError("Could not find the 'news_body' column of 'tv_news' in the schema cache")

    assert columns_to_strip(error, OPTIONAL_COLUMNS) == ["news_body"]


def test_code_without_a_column_strips_every_optional_column():
    error = FakeBackendError("schema mismatch", code="PGRST204")

    assert missing_columns(error) == []
    assert columns_to_strip(error, OPTIONAL_COLUMNS) == list(OPTIONAL_COLUMNS)


def test_unrelated_errors_are_not_schema_mismatches():
    error = FakeBackendError("permission denied for table tv_news", code="42501")

    assert missing_columns(error) is None
    assert columns_to_strip(error, OPTIONAL_COLUMNS) is None


def test_unique_violation_by_code_or_message():
    assert is_unique_violation(FakeBackendError("conflict", code="23505"))
    assert is_unique_violation(FakeBackendError('duplicate key value violates unique constraint "pk"'))
    assert not is_unique_violation(FakeBackendError("timeout"))
