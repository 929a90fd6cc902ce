"""FastAPI dependencies wiring the services together."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from huddle.core.identity_cache import IdentityCache
from huddle.core.llm import CompletionClient
from huddle.db.store import Store
from huddle.services.classifier import IntentClassifier
from huddle.services.highlights import HighlightAggregator, ResponseSynthesizer
from huddle.services.history import MessageHistoryService
from huddle.services.identity import IdentityService
from huddle.services.resolver import ParticipantResolver
from huddle.services.routing import RoutingEngine

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Process-wide service graph sharing one store and one identity cache."""

    store: Store
    cache: IdentityCache
    resolver: ParticipantResolver
    identity: IdentityService
    routing: RoutingEngine
    history: MessageHistoryService


def build_services(
    store: Store,
    llm: CompletionClient,
    default_lookback_days: float,
    cache: IdentityCache | None = None,
    clock: Callable[[], float] = time.time,
) -> Services:
    """Construct the service graph around ``store`` and ``llm``.

    The cache is returned cold; the caller warms it before serving.
    """
    cache = cache if cache is not None else IdentityCache()
    resolver = ParticipantResolver(store, cache)
    synthesizer = ResponseSynthesizer(llm, HighlightAggregator(store, cache), clock=clock)
    routing = RoutingEngine(
        store,
        resolver,
        IntentClassifier(llm, default_lookback_days=default_lookback_days),
        synthesizer,
        clock=clock,
    )
    return Services(
        store=store,
        cache=cache,
        resolver=resolver,
        identity=IdentityService(store, cache, resolver, clock=clock),
        routing=routing,
        history=MessageHistoryService(store),
    )


def get_services(request: Request) -> Services:
    """Service graph attached to the application at startup."""
    return request.app.state.services  # type: ignore[no-any-return]


def get_routing_engine(services: Annotated[Services, Depends(get_services)]) -> RoutingEngine:
    return services.routing


def get_identity_service(
    services: Annotated[Services, Depends(get_services)],
) -> IdentityService:
    return services.identity


def get_history_service(
    services: Annotated[Services, Depends(get_services)],
) -> MessageHistoryService:
    return services.history


# Type aliases for dependency injection
RoutingEngineDep = Annotated[RoutingEngine, Depends(get_routing_engine)]
IdentityServiceDep = Annotated[IdentityService, Depends(get_identity_service)]
HistoryServiceDep = Annotated[MessageHistoryService, Depends(get_history_service)]
ServicesDep = Annotated[Services, Depends(get_services)]
