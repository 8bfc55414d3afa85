#  Kube Wait - Readiness Policies
#
#  Per-kind rules mapping a status snapshot to Ready / InProgress / Failed.
#  Policies are pure: the same snapshot and flags always give the same result.
#  Kinds without a policy fall back to the aggregated status computation.
#
#  Depends on: models/status.py, models/resources.py, services/status_compute.py
#  Used by:    container.py, services/waiter.py

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from kwait.models.enums import ReadinessVerdict
from kwait.models.resources import WaitFlags
from kwait.models.status import DeploymentStatus, JobStatus, PodStatus, ResourceStatus
from kwait.services.status_compute import compute_status

logger = logging.getLogger("kwait.readiness")


def not_ready_reason(kind: str, verdict: ReadinessVerdict) -> str:
    return f"{kind} not ready, status: {verdict.value}"


@dataclass(frozen=True)
class Evaluation:
    """Result of one policy evaluation.

    reason is the text reported when the wait times out; message is the
    detail used in logs and fail-fast errors. terminal marks a failure the
    resource cannot recover from, which ends the wait immediately.
    """
    verdict: ReadinessVerdict
    reason: str = ""
    message: str = ""
    terminal: bool = False


def _result(kind: str, verdict: ReadinessVerdict, message: str = "", terminal: bool = False) -> Evaluation:
    reason = "" if verdict == ReadinessVerdict.READY else not_ready_reason(kind, verdict)
    return Evaluation(verdict=verdict, reason=reason, message=message, terminal=terminal)


class ReadinessPolicy(ABC):
    """Base class for kind-specific readiness rules."""

    @abstractmethod
    def evaluate(self, kind: str, status: ResourceStatus, flags: WaitFlags) -> Evaluation:
        ...


class GenericPolicy(ReadinessPolicy):
    def evaluate(self, kind, status, flags):
        verdict, message = compute_status(status)
        return _result(kind, verdict, message)


class PodPolicy(GenericPolicy):
    def evaluate(self, kind, status, flags):
        if not isinstance(status, PodStatus):
            return super().evaluate(kind, status, flags)
        phase = status.phase
        if phase == "Failed":
            return _result(kind, ReadinessVerdict.FAILED, "Pod phase is Failed", terminal=True)
        if status.is_true("Ready") and phase == "Running":
            return _result(kind, ReadinessVerdict.READY, "Pod is Ready")
        return _result(kind, ReadinessVerdict.IN_PROGRESS, f"Pod phase: {phase or 'not available'}")


class JobPolicy(GenericPolicy):
    def evaluate(self, kind, status, flags):
        # Only batch/v1 Jobs parse to JobStatus
        if not isinstance(status, JobStatus):
            return super().evaluate(kind, status, flags)
        if not flags.wait_for_jobs:
            return _result(kind, ReadinessVerdict.READY, "Not waiting for Jobs")

        failed = status.condition("Failed")
        if failed is not None and failed.status == "True":
            return _result(kind, ReadinessVerdict.FAILED, failed.message or "Job failed", terminal=True)
        if status.is_true("Complete"):
            return _result(kind, ReadinessVerdict.READY, "Job completed")

        succeeded, active = status.succeeded, status.active
        if succeeded >= 1 and active == 0:
            return _result(kind, ReadinessVerdict.READY, f"Job completed. succeeded: {succeeded}")
        return _result(
            kind,
            ReadinessVerdict.IN_PROGRESS,
            f"Job in progress. active: {active}, succeeded: {succeeded}",
        )


class DeploymentPolicy(GenericPolicy):
    def evaluate(self, kind, status, flags):
        # A paused rollout never converges on its own
        if flags.paused_as_ready and isinstance(status, DeploymentStatus) and status.paused:
            return _result(kind, ReadinessVerdict.READY, "Deployment is paused")
        return super().evaluate(kind, status, flags)


class PolicyRegistry:
    """Lookup table from kind to readiness policy, with a generic default.

    New kinds register here without any change to the wait coordinator.
    """

    def __init__(self, default: ReadinessPolicy | None = None):
        self._policies: dict[str, ReadinessPolicy] = {}
        self._default = default or GenericPolicy()
        self._register_defaults()

    def _register_defaults(self):
        self.register("Pod", PodPolicy())
        self.register("Job", JobPolicy())
        self.register("Deployment", DeploymentPolicy())

    def register(self, kind: str, policy: ReadinessPolicy):
        if kind in self._policies:
            logger.debug("Replacing readiness policy for kind %s", kind)
        self._policies[kind] = policy

    def get(self, kind: str) -> ReadinessPolicy:
        return self._policies.get(kind, self._default)

    def kinds(self) -> list[str]:
        return list(self._policies.keys())

    def evaluate(self, kind: str, status: ResourceStatus, flags: WaitFlags) -> Evaluation:
        return self.get(kind).evaluate(kind, status, flags)
