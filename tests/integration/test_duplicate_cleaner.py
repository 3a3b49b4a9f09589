import json

import pytest

from core.deduplication import DuplicateCleaner, build_payload, to_duplicate_pair
from core.models.news import Category


def _seed(store):
    first = store.add(Category.BOLLYWOOD, "Deepika Padukone", "Wins Best Actress at film festival")
    second = store.add(Category.BOLLYWOOD, "Deepika Padukone", "Bags Best Actress trophy at festival")
    third = store.add(Category.BOLLYWOOD, "Ranveer Singh", "Launches fashion line")
    return first, second, third


def test_pair_key_aliases():
    assert to_duplicate_pair({"deleteId": 5, "keepId": 2}).delete_id == "5"
    assert to_duplicate_pair({"deleteid": "5", "keepid": "2", "reason": "same"}).keep_id == "2"
    assert to_duplicate_pair({"delete_id": ""}) is None
    assert to_duplicate_pair({"keep_id": "2"}) is None


def test_payload_uses_subject_as_title_and_headline_as_body(news_store):
    record = news_store.add(Category.TV, "Hina Khan", "Signs new daily soap")
    assert build_payload([record]) == [{"id": record.id, "title": "Hina Khan", "body": "Signs new daily soap"}]


@pytest.mark.asyncio
async def test_deletes_the_member_named_by_the_judge(news_store, fake_judge_factory):
    first, second, third = _seed(news_store)
    judge = fake_judge_factory(duplicates_response=json.dumps(
        {"duplicates": [{"delete_id": second.id, "keep_id": first.id, "reason": "Same award"}]}
    ))

    result = await DuplicateCleaner(news_store, judge).clean_category(Category.BOLLYWOOD)

    assert result.checked == 3
    assert result.pairs == 1
    assert result.deleted == [second.id]
    assert [r.id for r in news_store.records[Category.BOLLYWOOD]] == [first.id, third.id]
    assert len(judge.calls["duplicates"][0]) == 3


@pytest.mark.asyncio
async def test_unknown_repeated_and_self_referencing_ids_are_skipped(news_store, fake_judge_factory):
    first, second, _ = _seed(news_store)
    judge = fake_judge_factory(duplicates_response=json.dumps([
        {"delete_id": "999", "keep_id": first.id},
        {"delete_id": first.id, "keep_id": first.id},
        {"delete_id": second.id, "keep_id": first.id},
        {"deleteId": second.id, "keepId": first.id},
    ]))

    result = await DuplicateCleaner(news_store, judge).clean_category(Category.BOLLYWOOD)

    assert result.pairs == 4
    assert result.deleted == [second.id]
    assert news_store.deleted_ids == [second.id]


@pytest.mark.asyncio
async def test_unparseable_judge_output_deletes_nothing(news_store, fake_judge_factory):
    _seed(news_store)
    judge = fake_judge_factory(duplicates_response="I could not find any duplicates.")

    result = await DuplicateCleaner(news_store, judge).clean_category(Category.BOLLYWOOD)

    assert result.deleted == []
    assert result.errors == []


@pytest.mark.asyncio
async def test_empty_category_skips_the_judge(news_store, fake_judge_factory):
    judge = fake_judge_factory()

    result = await DuplicateCleaner(news_store, judge).clean_category(Category.TV)

    assert result.checked == 0
    assert judge.calls["duplicates"] == []


@pytest.mark.asyncio
async def test_batch_is_limited_to_most_recent_rows(news_store, fake_judge_factory):
    for index in range(25):
        news_store.add(Category.HOLLYWOOD, f"Star {index}", f"Headline {index}")
    judge = fake_judge_factory()

    await DuplicateCleaner(news_store, judge, batch_size=20).clean_category(Category.HOLLYWOOD)

    assert len(judge.calls["duplicates"][0]) == 20


@pytest.mark.asyncio
async def test_clean_all_isolates_category_failures(news_store, fake_judge_factory):
    _seed(news_store)
    judge = fake_judge_factory(unavailable=True)

    results = await DuplicateCleaner(news_store, judge).clean_all()

    assert [r.category for r in results] == ["bollywood", "tv", "hollywood"]
    assert results[0].errors == ["Judge unavailable: judge offline"]
    assert results[1].errors == []
    assert all(r.deleted == [] for r in results)
