"""Intent classification of inbound messages."""

import logging

from pydantic import ValidationError

from huddle.core.exceptions import ClassifierFailure, LLMError
from huddle.core.llm import CompletionClient
from huddle.models.intent import (
    ClassificationPayload,
    GeneralRequestIntent,
    Intent,
    RequestIntent,
    ShareIntent,
)
from huddle.services.prompts import build_classification_prompt

logger = logging.getLogger(__name__)


class IntentClassifier:
    """Turns free text into a share, request or general-request intent."""

    def __init__(self, llm: CompletionClient, default_lookback_days: float = 7) -> None:
        """Initialize the classifier.

        Args:
            llm: Completion client used for classification.
            default_lookback_days: Lookback for requests that name no period.
        """
        self._llm = llm
        self._default_lookback_days = default_lookback_days

    async def classify(self, message: str) -> Intent:
        """Classify ``message``.

        Raises:
            ClassifierFailure: If the model call fails or its reply does not
                match the classification schema.
        """
        prompt = build_classification_prompt(message)
        try:
            raw = await self._llm.complete(prompt, expect_json=True)
        except LLMError as e:
            raise ClassifierFailure(e.message) from e

        intent = self.parse(raw)
        logger.info("Classified message as %s", type(intent).__name__)
        return intent

    def parse(self, raw: str) -> Intent:
        """Validate a raw classification reply and build the intent.

        Raises:
            ClassifierFailure: If ``raw`` is not valid JSON or breaks the schema.
        """
        try:
            payload = ClassificationPayload.model_validate_json(raw)
        except ValidationError as e:
            raise ClassifierFailure(f"reply does not match schema: {e.error_count()} error(s)", raw) from e

        if payload.label == "share":
            return ShareIntent()
        if payload.label == "general_request":
            return GeneralRequestIntent()

        names = tuple(name.strip() for name in payload.names or [] if name.strip())
        topic = payload.request_topic.strip() if payload.request_topic else None
        return RequestIntent(
            lookback_days=payload.days if payload.days is not None else self._default_lookback_days,
            topic=topic or None,
            names=names or None,
        )
