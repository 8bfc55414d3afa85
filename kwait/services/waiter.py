#  Kube Wait - Wait Coordinator
#
#  Drives a status subscription through the readiness policies until every
#  resource is ready, a resource fails for good, or the timeout fires.
#  All state mutation happens on the event loop, one event at a time.
#
#  Depends on: config.py, logging_config.py, services/readiness.py,
#              services/status_source.py, services/wait_state.py,
#              services/aggregator.py
#  Used by:    container.py

import asyncio
import logging
import uuid
from collections.abc import Sequence

from kwait.config import DEFAULT_TIMEOUT
from kwait.exceptions import ResourceFailedError, ResourceGoneError, SubscriptionError
from kwait.logging_config import set_wait_id, wait_id_var
from kwait.models.enums import EventType, ReadinessVerdict, WaitMode
from kwait.models.resources import ResourceRef, WaitRequest
from kwait.services.aggregator import aggregate
from kwait.services.readiness import PolicyRegistry
from kwait.services.status_source import StatusEvent, StatusEventSource, Subscription
from kwait.services.wait_state import WaitState

logger = logging.getLogger("kwait.waiter")


class Waiter:
    """Waits for a set of resources to become ready (or to be deleted).

    Each call owns its own subscription and WaitState, so concurrent calls
    on one Waiter are independent.
    """

    def __init__(self, source: StatusEventSource, policies: PolicyRegistry | None = None):
        self._source = source
        self._policies = policies or PolicyRegistry()

    async def wait(
        self,
        resources: Sequence[ResourceRef],
        timeout: float | None = None,
        wait_for_jobs: bool = False,
        paused_as_ready: bool = False,
    ) -> None:
        """Block until every resource is ready.

        Raises:
            WaitTimeoutError: the timeout fired; lists every resource not ready.
            ResourceFailedError: a resource failed for good or disappeared.
            SubscriptionError: the status source broke.
        """
        request = WaitRequest(
            resources=tuple(resources),
            timeout=DEFAULT_TIMEOUT if timeout is None else timeout,
            wait_for_jobs=wait_for_jobs,
            paused_as_ready=paused_as_ready,
        )
        await self._run(request, WaitMode.READY)

    async def wait_for_delete(self, resources: Sequence[ResourceRef], timeout: float | None = None) -> None:
        """Block until every resource has been deleted."""
        request = WaitRequest(
            resources=tuple(resources),
            timeout=DEFAULT_TIMEOUT if timeout is None else timeout,
        )
        await self._run(request, WaitMode.DELETE)

    async def _run(self, request: WaitRequest, mode: WaitMode):
        state = WaitState(request.resources, mode)
        if mode == WaitMode.READY and not request.wait_for_jobs:
            for ref in request.resources:
                if ref.is_batch_job:
                    state.exclude(ref, "Not waiting for Jobs")

        token = set_wait_id(uuid.uuid4().hex[:12])
        try:
            logger.info(
                "Waiting for %d resources to be %s (timeout %ss)",
                len(state), "deleted" if mode == WaitMode.DELETE else "ready", request.timeout,
            )
            if state.is_complete():
                logger.info("Nothing to wait for")
                return

            try:
                await asyncio.wait_for(self._watch(request, state), timeout=request.timeout)
            except asyncio.TimeoutError:
                error = aggregate(state)
                logger.warning(
                    "Timed out after %ss with %d of %d resources pending",
                    request.timeout, len(error.not_ready), len(state),
                )
                raise error from None
            logger.info("All %d resources are %s", len(state), "deleted" if mode == WaitMode.DELETE else "ready")
        finally:
            wait_id_var.reset(token)

    async def _watch(self, request: WaitRequest, state: WaitState):
        """Consume events until the state is complete.

        Cancelled by the timeout; leaving the async with closes the subscription.
        """
        subscription: Subscription
        async with self._source.subscribe(request.resources) as subscription:
            async for event in subscription:
                self._handle(event, request, state)
                if state.is_complete():
                    return
        raise SubscriptionError("Status event stream ended before the wait completed")

    def _handle(self, event: StatusEvent, request: WaitRequest, state: WaitState):
        ref = event.ref
        entry = state.get(ref)
        if entry is None:
            logger.debug("Ignoring event for unwatched resource %s", ref)
            return

        if event.type == EventType.ERROR:
            raise SubscriptionError(f"Status watch for {ref} failed: {event.error}") from event.error

        if state.mode == WaitMode.DELETE:
            if event.type == EventType.DELETED and state.mark_deleted(ref):
                logger.debug("%s deleted", ref)
            return

        if entry.terminal:
            return
        if event.type == EventType.DELETED:
            raise ResourceGoneError(ref)
        if event.status is None:
            return

        evaluation = self._policies.evaluate(ref.kind, event.status, request.flags)
        previous = entry.verdict
        if state.apply(ref, evaluation):
            logger.debug(
                "%s: %s -> %s (%s)", ref, previous.value, evaluation.verdict.value, evaluation.message,
            )
        if evaluation.verdict == ReadinessVerdict.FAILED and evaluation.terminal:
            raise ResourceFailedError(ref, f"{ref.kind} failed: {evaluation.message}")
