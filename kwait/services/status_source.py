#  Kube Wait - Status Event Source
#
#  Abstract interface for the collaborator that streams live status
#  snapshots for a watched set of resources, plus a bounded queue-backed
#  subscription that concrete sources publish into.
#
#  Depends on: models/resources.py, models/status.py, models/enums.py
#  Used by:    services/kube_source.py, services/waiter.py, tests/fakes.py

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from kwait.config import EVENT_QUEUE_SIZE
from kwait.models.enums import EventType
from kwait.models.resources import ResourceRef
from kwait.models.status import ResourceStatus


@dataclass(frozen=True)
class StatusEvent:
    ref: ResourceRef
    type: EventType
    status: ResourceStatus | None = None
    error: Exception | None = None


class Subscription(ABC):
    """A live stream of StatusEvents, used as an async context manager.

    Entering starts delivery, leaving stops it. Iterating yields events
    until the subscription is closed.
    """

    async def __aenter__(self) -> "Subscription":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def __aiter__(self):
        return self

    async def __anext__(self) -> StatusEvent:
        return await self.next_event()

    @abstractmethod
    async def start(self):
        ...

    @abstractmethod
    async def close(self):
        """Stop delivery. Must not block; it also runs during cancellation."""
        ...

    @abstractmethod
    async def next_event(self) -> StatusEvent:
        """Return the next event, or raise StopAsyncIteration once closed."""
        ...


class QueueSubscription(Subscription):
    """Subscription backed by a bounded asyncio.Queue.

    Producers call publish() on the event loop; a full queue applies
    backpressure to them. Events published after close() are dropped.
    """

    def __init__(self, resources: Sequence[ResourceRef], queue_size: int = EVENT_QUEUE_SIZE):
        self.resources = tuple(resources)
        self._queue: asyncio.Queue[StatusEvent] = asyncio.Queue(maxsize=queue_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self):
        pass

    async def close(self):
        self._closed = True

    async def publish(self, event: StatusEvent):
        if self._closed:
            return
        await self._queue.put(event)

    async def next_event(self) -> StatusEvent:
        if self._closed:
            raise StopAsyncIteration
        return await self._queue.get()


class StatusEventSource(ABC):
    """Streams status snapshots for exactly the resources it is given."""

    @abstractmethod
    def subscribe(self, resources: Sequence[ResourceRef]) -> Subscription:
        ...
