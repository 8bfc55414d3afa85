#  Kube Wait - Custom Exceptions
#
#  Typed exception hierarchy so callers can tell a timeout from a failed
#  resource or a broken watch without pattern-matching on message strings.
#
#  Depends on: models/resources.py
#  Used by:    services/waiter.py, services/aggregator.py, services/kube_source.py

from kwait.models.resources import ResourceRef


class WaitError(Exception):
    """Base exception for every way a wait call can fail."""


class NotReadyError(WaitError):
    """A resource was still not ready when the deadline fired."""

    def __init__(self, ref: ResourceRef, reason: str):
        self.ref = ref
        self.reason = reason
        super().__init__(f"{ref.name}: {reason}")


class DeadlineExceededError(WaitError):
    """The wait timeout elapsed."""

    def __init__(self):
        super().__init__("context deadline exceeded")


class ResourceFailedError(WaitError):
    """A resource reached a definitive failure; the wait stops early."""

    def __init__(self, ref: ResourceRef, message: str):
        self.ref = ref
        self.message = message
        super().__init__(f"{ref.name}: {message}")


class ResourceGoneError(ResourceFailedError):
    """A resource was deleted or could not be found."""

    def __init__(self, ref: ResourceRef):
        super().__init__(ref, f"{ref.kind} not found")


class SubscriptionError(WaitError):
    """The status event source failed."""


class WaitTimeoutError(WaitError):
    """Combined error: every not-ready resource followed by the deadline.

    Renders as the component messages joined by newlines, in order.
    """

    def __init__(self, errors: list[WaitError]):
        self.errors = tuple(errors)
        super().__init__("\n".join(str(e) for e in self.errors))

    @property
    def not_ready(self) -> list[NotReadyError]:
        return [e for e in self.errors if isinstance(e, NotReadyError)]
