import json

import pytest
from pywebpush import WebPushException

from core.exceptions import ConfigurationError, ValidationError
from core.models.news import Category, NewsRecord, PushSubscription
from integrations.notification_formatter import NotificationFormatter
from integrations.push_notifier import PushNotifier, get_top_stories, parse_subscription

from conftest import FakeWebPushResponse


def _record(category, name, headline, image_url=""):
    return NewsRecord(category=category, subject_name=name, headline=headline, image_url=image_url)


class RecordingSender:
    def __init__(self, statuses=None):
        self.statuses = statuses or {}
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        status = self.statuses.get(kwargs["subscription_info"]["endpoint"])
        if isinstance(status, Exception):
            raise status
        if status is not None:
            raise WebPushException("Push failed", response=FakeWebPushResponse(status))


def _notifier(sender):
    return PushNotifier("public-key", "private-key", sender=sender)


def test_payload_blocks_follow_body_order():
    stories = {
        Category.TV: _record(Category.TV, "Hina Khan", "Signs new show"),
        Category.BOLLYWOOD: _record(Category.BOLLYWOOD, "Shah Rukh Khan", "Announces film"),
        Category.HOLLYWOOD: _record(Category.HOLLYWOOD, "Emma Stone", "Wins award"),
    }

    payload = NotificationFormatter().format_push_payload(stories)

    assert payload["body"] == (
        "🎬 Bollywood\n• Shah Rukh Khan — Announces film\n\n"
        "🌟 Hollywood\n• Emma Stone — Wins award\n\n"
        "📺 TV\n• Hina Khan — Signs new show"
    )
    assert payload["url"] == "/"
    assert payload["tag"] == "paparazzi-daily"
    assert payload["actions"] == [{"action": "open", "title": "Open App"}]


def test_image_prefers_tv_over_hollywood_when_bollywood_has_none():
    stories = {
        Category.BOLLYWOOD: _record(Category.BOLLYWOOD, "Shah Rukh Khan", "Announces film"),
        Category.TV: _record(Category.TV, "Hina Khan", "Signs new show", image_url="https://img/tv.jpg"),
        Category.HOLLYWOOD: _record(Category.HOLLYWOOD, "Emma Stone", "Wins award", image_url="https://img/hw.jpg"),
    }

    assert NotificationFormatter().format_push_payload(stories)["image"] == "https://img/tv.jpg"


def test_empty_stories_use_fallback_body_without_image():
    payload = NotificationFormatter().format_push_payload({category: None for category in Category})

    assert payload["body"] == NotificationFormatter.FALLBACK_BODY
    assert "image" not in payload


def test_parse_subscription_requires_endpoint():
    with pytest.raises(ValidationError):
        parse_subscription({"subscription": {"keys": {"auth": "a"}}})
    with pytest.raises(ValidationError):
        parse_subscription(None)

    subscription = parse_subscription({
        "subscription": {"endpoint": "https://push.example/1", "keys": {"p256dh": "k", "auth": "a"}},
        "userAgent": "Firefox",
    })
    assert subscription.endpoint == "https://push.example/1"
    assert subscription.user_agent == "Firefox"
    assert subscription.keys == {"p256dh": "k", "auth": "a"}


def test_missing_vapid_keys_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        PushNotifier(None, "private-key")
    with pytest.raises(ConfigurationError):
        PushNotifier("public-key", "")


@pytest.mark.asyncio
async def test_broadcast_counts_and_prunes_gone_subscriptions(news_store):
    for endpoint in ("https://push.example/ok", "https://push.example/gone", "https://push.example/busy"):
        await news_store.upsert_subscription(PushSubscription(endpoint=endpoint, keys={"auth": "a"}))
    sender = RecordingSender({"https://push.example/gone": 410, "https://push.example/busy": 503})

    result = await _notifier(sender).broadcast(news_store, {"title": "Hi"})

    assert result.sent == 1
    assert result.failed == 2
    assert result.pruned == 1
    assert news_store.deleted_endpoints == ["https://push.example/gone"]
    assert set(news_store.subscriptions) == {"https://push.example/ok", "https://push.example/busy"}
    assert json.loads(sender.calls[0]["data"]) == {"title": "Hi"}
    assert sender.calls[0]["headers"] == {"Urgency": "high"}
    assert sender.calls[0]["ttl"] == 3600

    summary = result.to_dict()
    assert summary["message"] == "Push notifications sent"
    assert (summary["sent"], summary["failed"]) == (1, 2)


@pytest.mark.asyncio
async def test_one_malformed_subscription_does_not_abort_the_broadcast(news_store):
    await news_store.upsert_subscription(PushSubscription(endpoint="https://push.example/bad", keys={"p256dh": "x"}))
    await news_store.upsert_subscription(PushSubscription(endpoint="https://push.example/ok", keys={"auth": "a"}))
    sender = RecordingSender({"https://push.example/bad": ValueError("Could not deserialize key data")})

    result = await _notifier(sender).broadcast(news_store, {"title": "Hi"})

    endpoints = [call["subscription_info"]["endpoint"] for call in sender.calls]
    assert endpoints == ["https://push.example/bad", "https://push.example/ok"]
    assert (result.sent, result.failed, result.pruned) == (1, 1, 0)
    assert result.deliveries[0].error == "Could not deserialize key data"
    assert news_store.deleted_endpoints == []


@pytest.mark.asyncio
async def test_newsletter_uses_latest_story_per_category(news_store):
    news_store.add(Category.BOLLYWOOD, "Shah Rukh Khan", "Announces film")
    await news_store.upsert_subscription(PushSubscription(endpoint="https://push.example/1"))
    sender = RecordingSender()

    result = await _notifier(sender).send_newsletter(news_store)

    assert result.sent == 1
    payload = json.loads(sender.calls[0]["data"])
    assert payload["body"] == "🎬 Bollywood\n• Shah Rukh Khan — Announces film"
    assert payload["image"] == "https://example.com/a.jpg"


@pytest.mark.asyncio
async def test_top_stories_tolerate_storage_failures(news_store):
    news_store.fail_latest = True

    stories = await get_top_stories(news_store)

    assert stories == {category: None for category in Category}
