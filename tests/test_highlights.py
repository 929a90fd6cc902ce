"""Tests for highlight aggregation and digest synthesis."""

import json

import pytest

from huddle.core.exceptions import DatabaseError, LLMError, SynthesisFailure
from huddle.models.intent import RequestIntent
from huddle.services.highlights import (
    NO_HIGHLIGHTS_REPLY,
    SYNTHESIS_APOLOGY,
    DigestEntry,
    HighlightAggregator,
    ResponseSynthesizer,
    serialize_grouping,
    window_start,
)

from .conftest import DAY, NOW, ScriptedLLM


@pytest.fixture
async def aggregator(store, cache) -> HighlightAggregator:
    store.add_user("U3", "Carol Diaz")
    await cache.warm(store)
    return HighlightAggregator(store, cache)


def test_window_start() -> None:
    assert window_start(NOW, 7) == NOW - 7 * DAY
    assert window_start(NOW, 0.5) == NOW - DAY // 2


def test_digest_entry_renders_iso_timestamp() -> None:
    entry = DigestEntry(text="Got a puppy", sent_at=0)
    assert entry.to_dict() == {"text": "Got a puppy", "timestamp": "1970-01-01T00:00:00+00:00"}


def test_serialize_grouping_is_json() -> None:
    grouping = {"Bob Stone": [DigestEntry(text="Hiked", sent_at=NOW)]}

    data = json.loads(serialize_grouping(grouping))

    assert list(data) == ["Bob Stone"]
    assert data["Bob Stone"][0]["text"] == "Hiked"


@pytest.mark.asyncio
async def test_aggregate_window_boundary(aggregator, store) -> None:
    """Test an 8-day-old highlight is outside 7 days and inside 14."""
    store.add_highlight("U2", "Started a new job", NOW - 8 * DAY)

    assert await aggregator.aggregate("U1", 7, NOW) == {}
    grouping = await aggregator.aggregate("U1", 14, NOW)
    assert grouping == {"Bob Stone": [DigestEntry("Started a new job", NOW - 8 * DAY)]}


@pytest.mark.asyncio
async def test_aggregate_includes_window_start_exactly(aggregator, store) -> None:
    store.add_highlight("U2", "Edge", NOW - 7 * DAY)

    grouping = await aggregator.aggregate("U1", 7, NOW)

    assert "Bob Stone" in grouping


@pytest.mark.asyncio
async def test_aggregate_excludes_requester(aggregator, store) -> None:
    """Test the requester's own highlights are left out."""
    store.add_highlight("U1", "My own news", NOW - DAY)
    store.add_highlight("U2", "Bob's news", NOW - DAY)

    grouping = await aggregator.aggregate("U1", 7, NOW)

    assert list(grouping) == ["Bob Stone"]


@pytest.mark.asyncio
async def test_aggregate_orders_entries_and_groups_by_first_appearance(aggregator, store) -> None:
    """Test authors and their entries are both ordered oldest first."""
    store.add_highlight("U3", "Carol later", NOW - 1 * DAY)
    store.add_highlight("U2", "Bob later", NOW - 2 * DAY)
    store.add_highlight("U3", "Carol first", NOW - 3 * DAY)

    grouping = await aggregator.aggregate("U1", 7, NOW)

    assert list(grouping) == ["Carol Diaz", "Bob Stone"]
    assert [e.text for e in grouping["Carol Diaz"]] == ["Carol first", "Carol later"]


@pytest.mark.asyncio
async def test_aggregate_drops_uncached_authors(aggregator, store) -> None:
    """Test highlights from authors missing in the cache are skipped."""
    store.add_highlight("U999", "Ghost", NOW - DAY)
    store.add_highlight("U2", "Real", NOW - DAY)

    grouping = await aggregator.aggregate("U1", 7, NOW)

    assert list(grouping) == ["Bob Stone"]


@pytest.mark.asyncio
async def test_aggregate_filters_by_name(aggregator, store) -> None:
    """Test names narrow the digest to matching users, case-insensitively."""
    store.add_highlight("U2", "Bob news", NOW - DAY)
    store.add_highlight("U3", "Carol news", NOW - DAY)

    grouping = await aggregator.aggregate("U1", 7, NOW, names=("carol",))

    assert list(grouping) == ["Carol Diaz"]


@pytest.mark.asyncio
async def test_aggregate_unmatched_names_cover_everyone(aggregator, store) -> None:
    store.add_highlight("U2", "Bob news", NOW - DAY)

    grouping = await aggregator.aggregate("U1", 7, NOW, names=("Priya",))

    assert list(grouping) == ["Bob Stone"]


@pytest.mark.asyncio
async def test_aggregate_store_failure_propagates(aggregator, store) -> None:
    store.fail.add("find_highlights")

    with pytest.raises(DatabaseError):
        await aggregator.aggregate("U1", 7, NOW)


def _synthesizer(aggregator: HighlightAggregator, summary: object) -> ResponseSynthesizer:
    return ResponseSynthesizer(ScriptedLLM(summary=summary), aggregator, clock=lambda: float(NOW))


@pytest.mark.asyncio
async def test_respond_returns_model_summary(aggregator, store) -> None:
    """Test the digest prompt carries the grouping and the question."""
    store.add_highlight("U2", "Adopted a cat", NOW - DAY)
    synthesizer = _synthesizer(aggregator, {"summary": "  Bob adopted a cat!  "})

    reply = await synthesizer.respond("U1", "How is everyone?", RequestIntent(lookback_days=7))

    assert reply == "Bob adopted a cat!"
    prompt = synthesizer._llm.prompts[0]
    assert "Bob Stone" in prompt
    assert "Adopted a cat" in prompt
    assert "How is everyone?" in prompt


@pytest.mark.asyncio
async def test_respond_includes_topic_in_prompt(aggregator, store) -> None:
    store.add_highlight("U2", "The concert was loud", NOW - DAY)
    synthesizer = _synthesizer(aggregator, {"summary": "Loud!"})

    await synthesizer.respond(
        "U1", "How was the concert?", RequestIntent(lookback_days=7, topic="the concert")
    )

    assert "specifically about: the concert" in synthesizer._llm.prompts[0]


@pytest.mark.asyncio
async def test_respond_without_highlights_skips_model(aggregator) -> None:
    """Test an empty window is answered without a model call."""
    synthesizer = _synthesizer(aggregator, {"summary": "unused"})

    reply = await synthesizer.respond("U1", "How is everyone?", RequestIntent(lookback_days=7))

    assert reply == NO_HIGHLIGHTS_REPLY
    assert synthesizer._llm.prompts == []


@pytest.mark.parametrize(
    "summary",
    [LLMError("rate limited"), "not json", {"summary": ""}, {"text": "wrong key"}],
)
@pytest.mark.asyncio
async def test_respond_apologizes_on_model_failure(aggregator, store, summary) -> None:
    """Test model errors and bad replies fall back to the apology."""
    store.add_highlight("U2", "Adopted a cat", NOW - DAY)
    synthesizer = _synthesizer(aggregator, summary)

    reply = await synthesizer.respond("U1", "How is everyone?", RequestIntent(lookback_days=7))

    assert reply == SYNTHESIS_APOLOGY


@pytest.mark.asyncio
async def test_synthesize_raises_synthesis_failure(aggregator) -> None:
    synthesizer = _synthesizer(aggregator, LLMError("down"))

    with pytest.raises(SynthesisFailure):
        await synthesizer.synthesize({"Bob Stone": [DigestEntry("x", NOW)]}, "hi", NOW)


@pytest.mark.asyncio
async def test_respond_propagates_store_failure(aggregator, store) -> None:
    """Test storage failures are not turned into an apology."""
    store.fail.add("find_highlights")
    synthesizer = _synthesizer(aggregator, {"summary": "unused"})

    with pytest.raises(DatabaseError):
        await synthesizer.respond("U1", "How is everyone?", RequestIntent(lookback_days=7))


def test_window_start_rounds_up_fractional_bound() -> None:
    """Test the bound never admits a second older than the window."""
    assert window_start(NOW, 0.00001) == NOW


@pytest.mark.asyncio
async def test_aggregate_fractional_lookback_excludes_older_second(aggregator, store) -> None:
    store.add_highlight("U2", "one second ago", NOW - 1)
    store.add_highlight("U2", "just now", NOW)

    grouping = await aggregator.aggregate("U1", 0.00001, NOW)

    assert [e.text for e in grouping["Bob Stone"]] == ["just now"]
