"""Routing engine for inbound messages.

An exchange moves through received -> authorized -> classified -> handled
-> persisted -> responded. Identity and authorization errors abort before
any write. Model errors are recovered with fallback text. Storage errors
abort the exchange.
"""

import logging
import time
from collections.abc import Callable

from huddle.core.exceptions import (
    ClassifierFailure,
    DatabaseError,
    EmptyShareError,
    InvalidInputError,
    PersistenceError,
    UnknownSenderError,
)
from huddle.db.store import Store
from huddle.models.intent import (
    GeneralRequestIntent,
    Intent,
    RequestIntent,
    ShareIntent,
    UnrecognizedIntent,
)
from huddle.models.messages import Highlight, Message, MessageExchange
from huddle.services.classifier import IntentClassifier
from huddle.services.highlights import ResponseSynthesizer
from huddle.services.resolver import ParticipantKind, ParticipantResolver

logger = logging.getLogger(__name__)

SHARE_ACKNOWLEDGEMENT = "Thanks for sharing! I'll pass your update along."
GENERAL_REQUEST_REPLY = (
    "I'm best at keeping you in the loop with your circle. "
    "Share how you're doing, or ask how everyone else is doing!"
)
# Stored as the assistant row when the message could not be classified;
# the caller receives no message text for that exchange.
UNRECOGNIZED_FALLBACK = "Sorry, I didn't quite catch that."


class RoutingEngine:
    """Handles one inbound message end to end."""

    def __init__(
        self,
        store: Store,
        resolver: ParticipantResolver,
        classifier: IntentClassifier,
        synthesizer: ResponseSynthesizer,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._classifier = classifier
        self._synthesizer = synthesizer
        self._clock = clock

    async def handle_message(
        self, sender_id: str, participant_id: str, text: str
    ) -> MessageExchange:
        """Classify, handle and persist one message.

        Args:
            sender_id: Id of the user sending the message.
            participant_id: User or group the message is addressed to.
            text: Message text.

        Returns:
            The exchange with both stored message ids and the reply text.

        Raises:
            InvalidInputError: If any field is empty.
            UnknownSenderError: If the sender is not a known user.
            UnknownParticipantError: If the participant names nothing.
            UnauthorizedError: If the participant is a group the sender does not own.
            EmptyShareError: If a share carries only whitespace.
            PersistenceError: If the highlight or the message rows cannot be written.
        """
        sender_id = (sender_id or "").strip()
        participant_id = (participant_id or "").strip()
        for field, value in (
            ("senderId", sender_id),
            ("participantId", participant_id),
            ("text", text),
        ):
            if not value:
                raise InvalidInputError(f"{field} is required", field=field)

        sender = await self._resolver.resolve(sender_id)
        if sender.kind is not ParticipantKind.USER:
            raise UnknownSenderError(sender_id)
        await self._resolver.resolve_target(sender.user, participant_id)

        intent = await self._classify(text)
        sent_at = int(self._clock())
        reply = await self._dispatch(intent, sender_id, participant_id, text, sent_at)

        inbound, response = await self._persist(sender_id, participant_id, text, reply, sent_at)
        logger.info(
            "Handled %s from %s to %s",
            type(intent).__name__,
            sender_id,
            participant_id,
        )
        return MessageExchange(
            participant_id=participant_id,
            input_message_id=inbound.id or "",
            response_message_id=response.id or "",
            message=reply,
            is_from_user=False,
            sent_at=sent_at,
        )

    async def _classify(self, text: str) -> Intent:
        try:
            return await self._classifier.classify(text)
        except ClassifierFailure as e:
            logger.warning("%s; treating message as unrecognized", e.message)
            return UnrecognizedIntent()

    async def _dispatch(
        self,
        intent: Intent,
        sender_id: str,
        participant_id: str,
        text: str,
        sent_at: int,
    ) -> str | None:
        if isinstance(intent, ShareIntent):
            return await self._share(sender_id, participant_id, text, sent_at)
        if isinstance(intent, RequestIntent):
            try:
                return await self._synthesizer.respond(sender_id, text, intent)
            except DatabaseError as e:
                raise PersistenceError(f"Failed to read highlights: {e.message}") from e
        if isinstance(intent, GeneralRequestIntent):
            return GENERAL_REQUEST_REPLY
        return None

    async def _share(self, sender_id: str, participant_id: str, text: str, sent_at: int) -> str:
        if not text.strip():
            raise EmptyShareError()
        highlight = Highlight(
            author_id=sender_id,
            target_id=participant_id,
            text=text,
            sent_at=sent_at,
        )
        try:
            await self._store.insert_highlight(highlight)
        except DatabaseError as e:
            raise PersistenceError(f"Failed to store highlight: {e.message}") from e
        return SHARE_ACKNOWLEDGEMENT

    async def _persist(
        self,
        sender_id: str,
        participant_id: str,
        text: str,
        reply: str | None,
        sent_at: int,
    ) -> tuple[Message, Message]:
        rows = [
            Message(
                author_id=sender_id,
                participant_id=participant_id,
                text=text,
                is_from_user=True,
                sent_at=sent_at,
            ),
            Message(
                author_id=sender_id,
                participant_id=participant_id,
                text=reply if reply is not None else UNRECOGNIZED_FALLBACK,
                is_from_user=False,
                sent_at=sent_at,
            ),
        ]
        try:
            stored = await self._store.insert_messages(rows)
        except DatabaseError as e:
            raise PersistenceError(f"Failed to store messages: {e.message}") from e
        if len(stored) != 2 or not all(message.id for message in stored):
            raise PersistenceError("Store did not return ids for both messages")
        return stored[0], stored[1]
