import pytest

from core.config import ConfigManager, get_config, reset_config
from core.container import get_container, reset_container
from core.models.news import Category

from conftest import FakeSession


@pytest.fixture
def fresh_globals():
    reset_config()
    reset_container()
    yield
    reset_config()
    reset_container()


def test_pipeline_settings_come_from_environment(monkeypatch):
    monkeypatch.setenv("JUDGE_CONCURRENCY", "3")
    monkeypatch.setenv("NEWS_RETENTION_HOURS", "24")
    monkeypatch.setenv("NEWS_RETENTION_HOURS_TV", "6")
    monkeypatch.setenv("ATTACH_VIDEO", "no")

    pipeline = ConfigManager().get_config().pipeline

    assert pipeline.judge_concurrency == 3
    assert pipeline.retention_for(Category.TV) == 6
    assert pipeline.retention_for(Category.BOLLYWOOD) == 24
    assert pipeline.attach_video is False


def test_judge_concurrency_must_be_positive(monkeypatch):
    monkeypatch.setenv("JUDGE_CONCURRENCY", "0")

    with pytest.raises(ValueError, match="JUDGE_CONCURRENCY must be at least 1"):
        ConfigManager().get_config()


def test_default_container_passes_judge_concurrency_to_image_resolver(monkeypatch, fresh_globals):
    monkeypatch.setenv("JUDGE_CONCURRENCY", "2")

    resolver = get_container().get('image_resolver', session=FakeSession(), judge=None)

    assert get_config().pipeline.judge_concurrency == 2
    assert resolver.judge_concurrency == 2
