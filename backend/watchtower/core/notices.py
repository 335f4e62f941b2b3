"""Notice types and the event channel the engine publishes to."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from watchtower.core.registry import Location

logger = logging.getLogger(__name__)


class GeneralNotice(BaseModel):
    """Plain message for the user, e.g. a rejected report."""

    kind: Literal["general"] = "general"
    message: str


class OutOfBoundsNotice(BaseModel):
    """Raised once each time the user leaves the campus boundary."""

    kind: Literal["out_of_bounds"] = "out_of_bounds"
    message: str = "Your location is out of bounds."


Notice = Annotated[GeneralNotice | OutOfBoundsNotice, Field(discriminator="kind")]


@dataclass(frozen=True)
class NoticeEvent:
    user_id: str
    notice: GeneralNotice | OutOfBoundsNotice


@dataclass(frozen=True)
class LocationUpdatedEvent:
    location: Location


Event = NoticeEvent | LocationUpdatedEvent
Listener = Callable[[Event], Awaitable[None]]


class NoticeBus:
    """
    Fan-out of engine events to subscribers (WebSocket manager, tests).

    A failing listener is logged and does not affect the others.
    """

    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def publish(self, event: Event) -> None:
        if not self._listeners:
            return

        results = await asyncio.gather(
            *(listener(event) for listener in list(self._listeners)),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.warning(f"Notice listener failed: {result}")
