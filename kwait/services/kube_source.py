#  Kube Wait - Kubernetes Status Source
#
#  StatusEventSource backed by the kubernetes dynamic client. REST mappings
#  are resolved once per resource when a subscription starts; each resource
#  then gets a watch thread that reads the current object, watches it, and
#  publishes snapshots into the subscription's bounded queue.
#
#  Depends on: config.py, models/status.py, services/status_source.py
#  Used by:    container.py

import asyncio
import concurrent.futures
import logging
import socket
import threading
from collections.abc import Sequence

import urllib3
from kubernetes import watch
from kubernetes.client.rest import ApiException
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import NotFoundError, ResourceNotFoundError

from kwait.config import EVENT_QUEUE_SIZE, WATCH_TIMEOUT
from kwait.exceptions import SubscriptionError
from kwait.models.enums import EventType
from kwait.models.resources import ResourceRef
from kwait.models.status import parse_status
from kwait.services.status_source import QueueSubscription, StatusEvent, StatusEventSource

logger = logging.getLogger("kwait.kube_source")

HTTP_STATUS_GONE = 410

# How often a producer blocked on a full queue re-checks for unsubscribe
_PUBLISH_POLL_SECONDS = 0.5


def _interrupt(watcher: watch.Watch):
    """Stop a watcher and unblock a thread parked on its socket read.

    Watch.stop() only sets a flag checked between events, so the open
    response socket is shut down as well.
    """
    watcher.stop()
    resp = getattr(watcher, "_resp", None)
    sock = getattr(getattr(resp, "connection", None), "sock", None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass  # already shut down or never connected


class KubernetesSubscription(QueueSubscription):
    """One watch thread per resource feeding a shared bounded queue."""

    def __init__(
        self,
        client: DynamicClient,
        resources: Sequence[ResourceRef],
        queue_size: int = EVENT_QUEUE_SIZE,
        watch_timeout: int = WATCH_TIMEOUT,
    ):
        super().__init__(resources, queue_size)
        self._client = client
        self._watch_timeout = watch_timeout
        self._stopped = threading.Event()
        self._watchers: list[watch.Watch] = []
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None

    async def start(self):
        self._loop = asyncio.get_running_loop()
        apis = await asyncio.to_thread(self._resolve_all)
        for ref, api in zip(self.resources, apis):
            thread = threading.Thread(
                target=self._run_watch,
                args=(ref, api),
                name=f"kwait-watch-{ref.kind}-{ref.name}",
                daemon=True,
            )
            thread.start()
        logger.debug("Started %d watch threads", len(self.resources))

    async def close(self):
        self._stopped.set()
        with self._lock:
            for watcher in self._watchers:
                _interrupt(watcher)
            self._watchers.clear()
        await super().close()

    # ------------------------------------------------------------------
    # REST mapping
    # ------------------------------------------------------------------

    def _resolve_all(self) -> list:
        return [self._resolve(ref) for ref in self.resources]

    def _resolve(self, ref: ResourceRef):
        try:
            return self._client.resources.get(api_version=ref.api_version, kind=ref.kind)
        except ResourceNotFoundError as e:
            raise SubscriptionError(f"No REST mapping for {ref.api_version} {ref.kind}") from e
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise SubscriptionError(f"REST mapping for {ref.api_version} {ref.kind} failed: {e}") from e

    # ------------------------------------------------------------------
    # Watch threads
    # ------------------------------------------------------------------

    def _run_watch(self, ref: ResourceRef, api):
        try:
            self._watch_resource(ref, api)
        except Exception as e:
            if self._stopped.is_set():
                logger.debug("Watch for %s ended during close: %s", ref, e)
                return
            logger.error("Watch for %s failed: %s", ref, e)
            self._emit(StatusEvent(ref=ref, type=EventType.ERROR, error=e))

    def _watch_resource(self, ref: ResourceRef, api):
        namespace = ref.namespace or None
        while not self._stopped.is_set():
            try:
                obj = api.get(name=ref.name, namespace=namespace).to_dict()
            except NotFoundError:
                self._emit(StatusEvent(ref=ref, type=EventType.DELETED))
                return
            self._emit(StatusEvent(ref=ref, type=EventType.UPDATED, status=parse_status(obj)))

            watcher = watch.Watch()
            with self._lock:
                if self._stopped.is_set():
                    return
                self._watchers.append(watcher)
            try:
                for event in self._client.watch(
                    api,
                    namespace=namespace,
                    name=ref.name,
                    resource_version=(obj.get("metadata") or {}).get("resourceVersion"),
                    timeout=self._watch_timeout,
                    watcher=watcher,
                ):
                    if self._stopped.is_set():
                        return
                    etype = event.get("type")
                    raw = event.get("raw_object") or {}
                    if etype == "DELETED":
                        self._emit(StatusEvent(ref=ref, type=EventType.DELETED))
                        return
                    if etype == "ERROR":
                        if raw.get("code") == HTTP_STATUS_GONE:
                            break
                        raise ApiException(status=raw.get("code"), reason=raw.get("message"))
                    self._emit(StatusEvent(ref=ref, type=EventType.UPDATED, status=parse_status(raw)))
            except ApiException as e:
                if e.status != HTTP_STATUS_GONE:
                    raise
                logger.debug("Watch for %s expired, re-listing", ref)
            finally:
                watcher.stop()
                with self._lock:
                    if watcher in self._watchers:
                        self._watchers.remove(watcher)
            # Server-side timeout or 410: read the object again and re-watch

    def _emit(self, event: StatusEvent):
        """Publish from a watch thread, blocking while the queue is full."""
        if self._stopped.is_set() or self._loop is None:
            return
        future = asyncio.run_coroutine_threadsafe(self.publish(event), self._loop)
        while not self._stopped.is_set():
            try:
                future.result(timeout=_PUBLISH_POLL_SECONDS)
                return
            except concurrent.futures.TimeoutError:
                continue
        future.cancel()


class KubernetesStatusSource(StatusEventSource):
    def __init__(
        self,
        client: DynamicClient,
        queue_size: int = EVENT_QUEUE_SIZE,
        watch_timeout: int = WATCH_TIMEOUT,
    ):
        self._client = client
        self._queue_size = queue_size
        self._watch_timeout = watch_timeout

    def subscribe(self, resources: Sequence[ResourceRef]) -> KubernetesSubscription:
        return KubernetesSubscription(
            self._client,
            resources,
            queue_size=self._queue_size,
            watch_timeout=self._watch_timeout,
        )
