"""Highlight aggregation and digest synthesis.

Provides:
- HighlightAggregator: collects in-window highlights from other users,
  grouped by author display name, oldest first.
- ResponseSynthesizer: asks the model to turn that grouping into a short
  natural-language digest, and never fails the reply.
"""

import json
import logging
import math
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import ValidationError

from huddle.core.exceptions import LLMError, SynthesisFailure
from huddle.core.identity_cache import IdentityCache
from huddle.core.llm import CompletionClient
from huddle.db.store import Store
from huddle.models.identity import User
from huddle.models.intent import RequestIntent, SummaryPayload
from huddle.services.prompts import build_digest_prompt

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400

SYNTHESIS_APOLOGY = (
    "Sorry, I couldn't put together an update right now. Please try again in a little while."
)
NO_HIGHLIGHTS_REPLY = "No one has shared any updates in that time yet. Check back soon!"


@dataclass(frozen=True)
class DigestEntry:
    """One highlight as it appears in a digest."""

    text: str
    sent_at: int

    def to_dict(self) -> dict[str, str]:
        return {
            "text": self.text,
            "timestamp": datetime.fromtimestamp(self.sent_at, UTC).isoformat(),
        }


Grouping = dict[str, list[DigestEntry]]


def window_start(now: int, lookback_days: float) -> int:
    """First whole-second ``sent_at`` inside a lookback window ending at ``now``."""
    return math.ceil(now - lookback_days * SECONDS_PER_DAY)


def serialize_grouping(grouping: Grouping) -> str:
    """Render a grouping as the JSON embedded in the digest prompt."""
    return json.dumps(
        {name: [entry.to_dict() for entry in entries] for name, entries in grouping.items()},
        indent=2,
        ensure_ascii=False,
    )


def _name_matches(user: User, names: Sequence[str]) -> bool:
    full_name = user.display_name.casefold()
    tokens = set(full_name.split())
    for name in names:
        wanted = name.casefold()
        if wanted == full_name or wanted in tokens:
            return True
    return False


class HighlightAggregator:
    """Collects highlights in a time window, grouped by author name."""

    def __init__(self, store: Store, cache: IdentityCache) -> None:
        self._store = store
        self._cache = cache

    def _authors_named(self, names: Sequence[str]) -> list[str] | None:
        """Ids of cached users matching any of ``names``; None if nobody matches."""
        matched = [user.id for user in self._cache.users() if _name_matches(user, names)]
        if not matched:
            logger.info("No known users match %s; digest covers everyone", list(names))
            return None
        return matched

    async def aggregate(
        self,
        exclude_author_id: str,
        lookback_days: float,
        now: int,
        names: Sequence[str] | None = None,
    ) -> Grouping:
        """Group in-window highlights by author display name.

        A highlight is in the window when ``now - lookback_days*86400 <= sent_at``.
        The excluded author's own highlights are left out. Authors with no
        cached identity are dropped silently. When ``names`` matches at least
        one cached user only those authors are kept.

        Returns:
            Author name to entries, both ordered by time ascending.

        Raises:
            DatabaseError: If the highlight query fails.
        """
        author_ids = self._authors_named(names) if names else None
        highlights = await self._store.find_highlights(
            author_ids, window_start(now, lookback_days)
        )

        grouping: Grouping = {}
        dropped = 0
        for highlight in sorted(highlights, key=lambda h: h.sent_at):
            if highlight.author_id == exclude_author_id:
                continue
            author = self._cache.get(highlight.author_id)
            if not isinstance(author, User):
                dropped += 1
                continue
            grouping.setdefault(author.display_name, []).append(
                DigestEntry(text=highlight.text, sent_at=highlight.sent_at)
            )

        if dropped:
            logger.debug("Dropped %d highlights from authors missing in cache", dropped)
        return grouping


class ResponseSynthesizer:
    """Produces the digest reply for a request intent."""

    def __init__(
        self,
        llm: CompletionClient,
        aggregator: HighlightAggregator,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._llm = llm
        self._aggregator = aggregator
        self._clock = clock

    async def respond(self, sender_id: str, request_text: str, intent: RequestIntent) -> str:
        """Build the reply for ``request_text``.

        Storage failures propagate. Model failures are logged and answered
        with a fixed apology so the sender always gets a reply.
        """
        now = int(self._clock())
        grouping = await self._aggregator.aggregate(
            exclude_author_id=sender_id,
            lookback_days=intent.lookback_days,
            now=now,
            names=intent.names,
        )
        if not grouping:
            return NO_HIGHLIGHTS_REPLY

        try:
            return await self.synthesize(grouping, request_text, now, intent.topic)
        except SynthesisFailure as e:
            logger.warning("%s; replying with apology", e.message)
            return SYNTHESIS_APOLOGY

    async def synthesize(
        self, grouping: Grouping, request_text: str, now: int, topic: str | None = None
    ) -> str:
        """Ask the model for a digest of ``grouping``.

        Raises:
            SynthesisFailure: If the call fails or the reply is not ``{"summary": ...}``.
        """
        today = datetime.fromtimestamp(now, UTC).strftime("%A, %B %d, %Y")
        prompt = build_digest_prompt(
            today=today,
            highlights=serialize_grouping(grouping),
            message=request_text,
            topic=topic,
        )
        try:
            raw = await self._llm.complete(prompt, expect_json=True)
        except LLMError as e:
            raise SynthesisFailure(e.message) from e

        try:
            payload = SummaryPayload.model_validate_json(raw)
        except ValidationError as e:
            raise SynthesisFailure("reply does not match schema") from e

        summary = payload.summary.strip()
        if not summary:
            raise SynthesisFailure("empty summary")
        return summary
