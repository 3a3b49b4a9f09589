import pytest

from core.content import ContentExpander
from core.exceptions import UpstreamTimeoutError
from core.models.events import DoneEvent, ErrorEvent, TextEvent, to_sse
from core.models.news import Category

from conftest import FakeGenerator


async def _collect(stream):
    return [event async for event in stream]


def test_sse_frames():
    assert to_sse(TextEvent("Hi")) == 'data: {"text": "Hi"}\n\n'
    assert to_sse(DoneEvent()) == 'data: {"done": true}\n\n'
    assert to_sse(ErrorEvent("boom")) == 'data: {"error": "boom"}\n\n'


@pytest.mark.asyncio
async def test_streams_chunks_then_done_and_persists_concatenation(news_store):
    record = news_store.add(Category.BOLLYWOOD, "Shah Rukh Khan", "Announces new project")
    generator = FakeGenerator(chunks=["Shah Rukh ", "Khan has ", "announced a film."])
    expander = ContentExpander(generator, store=news_store)

    events = await _collect(expander.expand(Category.BOLLYWOOD, "Shah Rukh Khan", "Announces new project"))
    await expander.wait_for_pending_writes()

    assert events == [
        TextEvent("Shah Rukh "),
        TextEvent("Khan has "),
        TextEvent("announced a film."),
        DoneEvent(),
    ]
    assert news_store.body_updates == [
        {"category": Category.BOLLYWOOD, "id": record.id, "body": "Shah Rukh Khan has announced a film."}
    ]


@pytest.mark.asyncio
async def test_substantial_stored_body_is_served_without_generation(news_store):
    body = " ".join(["word"] * 120)
    record = news_store.add(Category.TV, "Hina Khan", "Signs new show", body=body)
    generator = FakeGenerator(chunks=["never used"])
    expander = ContentExpander(generator, store=news_store)

    events = await _collect(expander.expand(Category.TV, "Hina Khan", "Signs new show", record_id=record.id))

    assert events == [TextEvent(body), DoneEvent()]
    assert generator.prompts == []


@pytest.mark.asyncio
async def test_short_stored_body_is_regenerated(news_store):
    news_store.add(Category.TV, "Hina Khan", "Signs new show", body="Too short to reuse.")
    generator = FakeGenerator(chunks=["A fresh ", "body."])
    expander = ContentExpander(generator, store=news_store)

    events = await _collect(expander.expand(Category.TV, "Hina Khan", "Signs new show"))

    assert events[-1] == DoneEvent()
    assert len(generator.prompts) == 1
    assert "Hina Khan" in generator.prompts[0]["prompt"]


@pytest.mark.asyncio
async def test_force_regenerates_even_with_cached_body(news_store):
    record = news_store.add(Category.TV, "Hina Khan", "Signs new show", body=" ".join(["word"] * 120))
    generator = FakeGenerator(chunks=["Regenerated."])
    expander = ContentExpander(generator, store=news_store)

    events = await _collect(
        expander.expand(Category.TV, "Hina Khan", "Signs new show", record_id=record.id, force=True)
    )
    await expander.wait_for_pending_writes()

    assert events == [TextEvent("Regenerated."), DoneEvent()]
    assert news_store.body_updates[-1]["body"] == "Regenerated."


@pytest.mark.asyncio
async def test_stream_error_emits_single_error_event_and_persists_nothing(news_store):
    news_store.add(Category.HOLLYWOOD, "Emma Stone", "Launches production company")
    generator = FakeGenerator(chunks=["Partial "], stream_error=UpstreamTimeoutError("gemini", 20))
    expander = ContentExpander(generator, store=news_store)

    events = await _collect(expander.expand(Category.HOLLYWOOD, "Emma Stone", "Launches production company"))
    await expander.wait_for_pending_writes()

    assert events[0] == TextEvent("Partial ")
    assert isinstance(events[-1], ErrorEvent)
    assert "timed out" in events[-1].error
    assert not any(isinstance(event, DoneEvent) for event in events)
    assert news_store.body_updates == []


@pytest.mark.asyncio
async def test_unknown_record_streams_without_persisting(news_store):
    generator = FakeGenerator(chunks=["Some text."])
    expander = ContentExpander(generator, store=news_store)

    events = await _collect(expander.expand(Category.HOLLYWOOD, "Nobody", "Unknown headline"))
    await expander.wait_for_pending_writes()

    assert events == [TextEvent("Some text."), DoneEvent()]
    assert news_store.body_updates == []


@pytest.mark.asyncio
async def test_works_without_a_store():
    expander = ContentExpander(FakeGenerator(chunks=["Only streamed."]), store=None)

    events = await _collect(expander.expand(Category.TV, "Karan Johar", "Hosts a new chat show"))

    assert events == [TextEvent("Only streamed."), DoneEvent()]
