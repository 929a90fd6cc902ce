"""Intent variants produced by the classifier.

``ClassificationPayload`` is the strict shape the model must return;
nothing outside the classifier sees unvalidated model output.
"""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ClassificationPayload(BaseModel):
    """JSON object returned by the classification prompt."""

    model_config = ConfigDict(extra="ignore")

    label: Literal["share", "request", "general_request"]
    names: list[str] | None = None
    request_topic: str | None = None
    # Finite and at most ten years; anything else fails classification
    days: float | None = Field(default=None, gt=0, le=3650, allow_inf_nan=False)


class SummaryPayload(BaseModel):
    """JSON object returned by the digest prompt."""

    model_config = ConfigDict(extra="ignore")

    summary: str = Field(..., min_length=1)


@dataclass(frozen=True)
class ShareIntent:
    """The sender is sharing a personal update."""


@dataclass(frozen=True)
class RequestIntent:
    """The sender wants a digest of others' recent updates."""

    lookback_days: float
    topic: str | None = None
    names: tuple[str, ...] | None = None


@dataclass(frozen=True)
class GeneralRequestIntent:
    """An open-ended question for the assistant."""


@dataclass(frozen=True)
class UnrecognizedIntent:
    """Classification failed; the exchange gets no reply text."""


Intent = ShareIntent | RequestIntent | GeneralRequestIntent | UnrecognizedIntent
