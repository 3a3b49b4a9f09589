import sys
from datetime import datetime, timedelta, timezone
from itertools import count
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

# Also add the project root to handle absolute imports
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from core.config import ApplicationConfig, Config, DatabaseConfig, IntegrationConfig, PipelineConfig  # noqa: E402
from core.container import Container  # noqa: E402
from core.enrichment import ImageResolver  # noqa: E402
from core.exceptions import GenerationError, JudgeUnavailableError, StorageOperationError  # noqa: E402
from core.models.news import Category, NewsRecord, PushSubscription  # noqa: E402
from integrations.notification_formatter import NotificationFormatter  # noqa: E402
from integrations.push_notifier import PushNotifier  # noqa: E402
from integrations.youtube_client import VideoResult  # noqa: E402


class FakeBackendError(Exception):
    """Mimics a PostgREST APIError (message + code)."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class FakeNewsStore:
    def __init__(self) -> None:
        self.records: Dict[Category, List[NewsRecord]] = {category: [] for category in Category}
        self.subscriptions: Dict[str, PushSubscription] = {}
        self.insert_errors: List[Exception] = []
        self.inserted_rows: List[List[Dict[str, Any]]] = []
        self.fail_delete_older = False
        self.fail_latest = False
        self.deleted_ids: List[str] = []
        self.deleted_endpoints: List[str] = []
        self.body_updates: List[Dict[str, Any]] = []
        self.closed = 0
        self._ids = count(1)

    def add(self, category: Category, subject_name: str, headline: str, body: Optional[str] = None,
            created_at: Optional[datetime] = None, image_url: str = "https://example.com/a.jpg") -> NewsRecord:
        record = NewsRecord(
            category=category,
            subject_name=subject_name,
            headline=headline,
            body=body,
            image_url=image_url,
            created_at=created_at or datetime.now(timezone.utc),
            id=str(next(self._ids)),
        )
        self.records[category].append(record)
        return record

    async def latest(self, category: Category, limit: int = 15) -> List[NewsRecord]:
        if self.fail_latest:
            raise StorageOperationError("select", category.table_name, FakeBackendError("connection refused"))
        ordered = sorted(self.records[category], key=lambda r: r.created_at, reverse=True)
        return ordered[:limit]

    async def get_by_id(self, category: Category, record_id: str) -> Optional[NewsRecord]:
        return next((r for r in self.records[category] if r.id == record_id), None)

    async def find_by_content(self, category: Category, subject_name: str, headline: str) -> Optional[NewsRecord]:
        return next(
            (r for r in self.records[category] if r.subject_name == subject_name and r.headline == headline),
            None,
        )

    async def insert_rows(self, category: Category, rows: List[Dict[str, Any]]) -> int:
        if self.insert_errors:
            raise StorageOperationError("insert", category.table_name, self.insert_errors.pop(0))
        self.inserted_rows.append([dict(row) for row in rows])
        for row in rows:
            record = NewsRecord.from_row(category, dict(row, id=next(self._ids)))
            self.records[category].append(record)
        return len(rows)

    async def delete_older_than(self, category: Category, cutoff: datetime) -> int:
        if self.fail_delete_older:
            raise StorageOperationError("delete", category.table_name, FakeBackendError("timeout"))
        before = len(self.records[category])
        self.records[category] = [r for r in self.records[category] if r.created_at >= cutoff]
        return before - len(self.records[category])

    async def delete_by_id(self, category: Category, record_id: str) -> int:
        before = len(self.records[category])
        self.records[category] = [r for r in self.records[category] if r.id != record_id]
        self.deleted_ids.append(record_id)
        return before - len(self.records[category])

    async def update_body(self, category: Category, record_id: str, body: str) -> int:
        self.body_updates.append({"category": category, "id": record_id, "body": body})
        for record in self.records[category]:
            if record.id == record_id:
                record.body = body
                return 1
        return 0

    async def upsert_subscription(self, subscription: PushSubscription) -> None:
        self.subscriptions[subscription.endpoint] = subscription

    async def list_subscriptions(self) -> List[PushSubscription]:
        return list(self.subscriptions.values())

    async def delete_subscription(self, endpoint: str) -> None:
        self.deleted_endpoints.append(endpoint)
        self.subscriptions.pop(endpoint, None)

    async def close(self) -> None:
        self.closed += 1


class FakeJudge:
    def __init__(self, same_event: bool = True,
                 relevant: Optional[Callable[[str, str], bool]] = None,
                 duplicates_response: str = "[]",
                 unavailable: bool = False) -> None:
        self.same_event = same_event
        self.relevant = relevant or (lambda filename, subject: True)
        self.duplicates_response = duplicates_response
        self.unavailable = unavailable
        self.calls: Dict[str, List[Any]] = {"same_event": [], "relevant": [], "duplicates": []}
        self.closed = False

    def _check(self) -> None:
        if self.unavailable:
            raise JudgeUnavailableError("judge offline")

    async def is_same_event(self, query: str, title: str) -> bool:
        self.calls["same_event"].append((query, title))
        self._check()
        return self.same_event

    async def is_relevant_image(self, filename: str, subject: str) -> bool:
        self.calls["relevant"].append((filename, subject))
        self._check()
        return self.relevant(filename, subject)

    async def find_duplicates(self, items: List[Dict[str, Any]]) -> str:
        self.calls["duplicates"].append(items)
        self._check()
        return self.duplicates_response

    async def close(self) -> None:
        self.closed = True


class FakeGenerator:
    def __init__(self, responses: Optional[Dict[str, Any]] = None,
                 chunks: Optional[List[str]] = None,
                 stream_error: Optional[Exception] = None) -> None:
        self.responses = responses or {}
        self.chunks = chunks or []
        self.stream_error = stream_error
        self.prompts: List[Dict[str, str]] = []

    async def generate(self, prompt: str, category: str) -> str:
        self.prompts.append({"prompt": prompt, "category": category})
        response = self.responses.get(category, "")
        if isinstance(response, Exception):
            raise response
        return response

    async def stream(self, prompt: str, category: Optional[str] = None):
        self.prompts.append({"prompt": prompt, "category": category})
        for chunk in self.chunks:
            yield chunk
        if self.stream_error is not None:
            raise self.stream_error


class FakeImageSearch:
    def __init__(self, results: Optional[Dict[str, List[str]]] = None, error: Optional[Exception] = None) -> None:
        self.results = results or {}
        self.error = error
        self.queries: List[str] = []

    async def search_images(self, query: str) -> List[str]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.results.get(query, []))


class FakeVideoSearch:
    def __init__(self, result: Optional[VideoResult] = None, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.queries: List[str] = []

    async def search_first(self, query: str) -> Optional[VideoResult]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.result


class FakeSession:
    def __init__(self) -> None:
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class FakeWebPushResponse:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        self.text = ""


def make_news_text(count_: int, prefix: str = "Star") -> str:
    return "\n".join(
        f"{prefix} {index} - announces brand new project with acclaimed director number {index}"
        for index in range(1, count_ + 1)
    )


@pytest.fixture
def news_store() -> FakeNewsStore:
    return FakeNewsStore()


@pytest.fixture
def fake_judge_factory():
    def _factory(**kwargs) -> FakeJudge:
        return FakeJudge(**kwargs)

    return _factory


@pytest.fixture
def pipeline_settings() -> PipelineConfig:
    return PipelineConfig(retention_hours=48)


@pytest.fixture
def test_config() -> Config:
    return Config(
        database=DatabaseConfig(supabase_url="https://db.example.supabase.co", supabase_service_key="service-key"),
        integrations=IntegrationConfig(
            gemini_api_key="gemini-key",
            youtube_api_key="youtube-key",
            judge_api_key="judge-key",
            vapid_public_key="vapid-public",
            vapid_private_key="vapid-private",
        ),
        pipeline=PipelineConfig(),
        app=ApplicationConfig(),
        environment="test",
    )


@pytest.fixture
def app_services(news_store, test_config):
    """Container wired to fakes, plus handles on the fakes for assertions."""
    services: Dict[str, Any] = {
        "store": news_store,
        "judge": FakeJudge(),
        "generator": FakeGenerator(),
        "image_search": FakeImageSearch(),
        "video_search": FakeVideoSearch(),
        "push_calls": [],
        "push_statuses": {},
        "sessions": [],
    }

    def fake_webpush(**kwargs):
        from pywebpush import WebPushException
        services["push_calls"].append(kwargs)
        status = services["push_statuses"].get(kwargs["subscription_info"]["endpoint"])
        if status is not None:
            raise WebPushException("Push failed", response=FakeWebPushResponse(status))

    async def open_store():
        return news_store

    def create_session():
        session = FakeSession()
        services["sessions"].append(session)
        return session

    container = Container()
    container.register_instance('config', test_config)
    container.register_instance('notification_formatter', NotificationFormatter())
    container.register_factory('http_session', create_session)
    container.register_factory('store', open_store)
    container.register_factory('judge', lambda session, prefer_proxy=False: services["judge"])
    container.register_factory('generator', lambda session: services["generator"])
    container.register_factory('youtube_client', lambda session: services["video_search"])
    container.register_factory(
        'image_resolver',
        lambda session, judge=None: ImageResolver(services["image_search"], judge=judge),
    )
    container.register_factory('video_matcher', lambda session, judge=None: None)
    container.register_factory(
        'push_notifier',
        lambda: PushNotifier(
            test_config.integrations.vapid_public_key,
            test_config.integrations.vapid_private_key,
            sender=fake_webpush,
        ),
    )
    services["container"] = container
    return services


@pytest.fixture
def old_timestamp() -> datetime:
    return datetime.now(timezone.utc) - timedelta(hours=72)


@pytest.fixture
def generation_error() -> GenerationError:
    return GenerationError("tv", 3, Exception("503 Service Unavailable"))
