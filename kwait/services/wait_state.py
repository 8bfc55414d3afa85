#  Kube Wait - Wait State
#
#  Per-resource verdict tracking for one wait call. Entries are created in
#  submission order, start InProgress, and never leave Ready or Failed once
#  they reach either.
#
#  Depends on: models/resources.py, models/enums.py, services/readiness.py
#  Used by:    services/waiter.py, services/aggregator.py

from dataclasses import dataclass

from kwait.models.enums import ReadinessVerdict, WaitMode
from kwait.models.resources import ResourceRef
from kwait.services.readiness import Evaluation, not_ready_reason

_TERMINAL = (ReadinessVerdict.READY, ReadinessVerdict.FAILED)


def pending_reason(kind: str, mode: WaitMode, verdict: ReadinessVerdict = ReadinessVerdict.IN_PROGRESS) -> str:
    if mode == WaitMode.DELETE:
        return f"{kind} not deleted, status: {verdict.value}"
    return not_ready_reason(kind, verdict)


@dataclass
class ResourceState:
    ref: ResourceRef
    verdict: ReadinessVerdict
    reason: str
    message: str = ""
    excluded: bool = False

    @property
    def terminal(self) -> bool:
        return self.verdict in _TERMINAL


class WaitState:
    """Latest verdict per resource. Owned by a single wait call."""

    def __init__(self, resources: tuple[ResourceRef, ...], mode: WaitMode = WaitMode.READY):
        self.mode = mode
        self._entries: dict[ResourceRef, ResourceState] = {
            ref: ResourceState(
                ref=ref,
                verdict=ReadinessVerdict.IN_PROGRESS,
                reason=pending_reason(ref.kind, mode),
            )
            for ref in resources
        }

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, ref: ResourceRef) -> ResourceState | None:
        return self._entries.get(ref)

    def entries(self) -> list[ResourceState]:
        return list(self._entries.values())

    def exclude(self, ref: ResourceRef, message: str):
        """Treat a resource as Ready without ever evaluating it."""
        entry = self._entries[ref]
        entry.verdict = ReadinessVerdict.READY
        entry.reason = ""
        entry.message = message
        entry.excluded = True

    def apply(self, ref: ResourceRef, evaluation: Evaluation) -> bool:
        """Record an evaluation. Returns True if the verdict changed.

        Terminal entries are left untouched.
        """
        entry = self._entries[ref]
        if entry.terminal:
            return False
        changed = entry.verdict != evaluation.verdict
        entry.verdict = evaluation.verdict
        entry.reason = evaluation.reason
        entry.message = evaluation.message
        return changed

    def mark_deleted(self, ref: ResourceRef) -> bool:
        entry = self._entries[ref]
        if entry.terminal:
            return False
        entry.verdict = ReadinessVerdict.READY
        entry.reason = ""
        entry.message = "Resource deleted"
        return True

    def is_complete(self) -> bool:
        return all(e.verdict == ReadinessVerdict.READY for e in self._entries.values())

    def pending(self) -> list[ResourceState]:
        """Entries that are not Ready, in submission order."""
        return [e for e in self._entries.values() if e.verdict != ReadinessVerdict.READY]
