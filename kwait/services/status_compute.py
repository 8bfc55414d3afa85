#  Kube Wait - Aggregated Status Computation
#
#  Generic "is this resource current" computation used for every kind without
#  its own readiness policy. Checks deletion, generation drift and the
#  standard Stalled/Reconciling conditions, then kind-specific replica and
#  phase rules for the built-in workload kinds.
#
#  Depends on: models/status.py, models/enums.py
#  Used by:    services/readiness.py

from collections.abc import Callable

from kwait.models.enums import ReadinessVerdict
from kwait.models.status import (
    DaemonSetStatus,
    DeploymentStatus,
    PersistentVolumeClaimStatus,
    ReplicaSetStatus,
    ResourceStatus,
    ServiceStatus,
    StatefulSetStatus,
)

StatusResult = tuple[ReadinessVerdict, str]

_CURRENT: StatusResult = (ReadinessVerdict.READY, "Resource is current")


def _in_progress(message: str) -> StatusResult:
    return ReadinessVerdict.IN_PROGRESS, message


# ---------------------------------------------------------------------------
# Kind rules
# ---------------------------------------------------------------------------

def _deployment(status: DeploymentStatus) -> StatusResult:
    progressing = status.condition("Progressing")
    if progressing is not None and progressing.reason == "ProgressDeadlineExceeded":
        return ReadinessVerdict.FAILED, "Progress deadline exceeded"

    desired = status.replicas
    if status.updated_replicas < desired:
        return _in_progress(f"Updated: {status.updated_replicas}/{desired}")
    if status.status_replicas > status.updated_replicas:
        return _in_progress(f"Pending termination: {status.status_replicas - status.updated_replicas}")
    if status.available_replicas < status.updated_replicas:
        return _in_progress(f"Available: {status.available_replicas}/{status.updated_replicas}")
    if status.ready_replicas < desired:
        return _in_progress(f"Ready: {status.ready_replicas}/{desired}")

    available = status.condition("Available")
    if available is not None and available.status != "True":
        return _in_progress("Deployment not Available")
    return ReadinessVerdict.READY, f"Deployment is available. Replicas: {status.status_replicas}"


def _statefulset(status: StatefulSetStatus) -> StatusResult:
    # Pods are only replaced by hand with OnDelete, nothing to wait for
    if status.update_strategy == "OnDelete":
        return ReadinessVerdict.READY, "StatefulSet is using the OnDelete update strategy"

    desired = status.replicas
    if status.ready_replicas < desired:
        return _in_progress(f"Ready: {status.ready_replicas}/{desired}")
    if status.current_replicas < desired and status.updated_replicas < desired:
        return _in_progress(f"Updated: {status.updated_replicas}/{desired}")
    if status.update_revision and status.current_revision != status.update_revision:
        return _in_progress(f"Waiting for revision {status.update_revision} to roll out")
    return ReadinessVerdict.READY, f"All replicas scheduled as expected. Replicas: {desired}"


def _daemonset(status: DaemonSetStatus) -> StatusResult:
    desired = status.desired_number_scheduled
    if desired is None:
        return _in_progress("Missing .status.desiredNumberScheduled")
    if status.updated_number_scheduled < desired:
        return _in_progress(f"Updated: {status.updated_number_scheduled}/{desired}")
    if status.number_available < desired:
        return _in_progress(f"Available: {status.number_available}/{desired}")
    if status.number_ready < desired:
        return _in_progress(f"Ready: {status.number_ready}/{desired}")
    return ReadinessVerdict.READY, f"All replicas scheduled as expected. Replicas: {desired}"


def _replicaset(status: ReplicaSetStatus) -> StatusResult:
    if status.is_true("ReplicaFailure"):
        return _in_progress("Replica Failure condition. See Events for details")
    desired = status.replicas
    if status.available_replicas < desired:
        return _in_progress(f"Available: {status.available_replicas}/{desired}")
    if status.ready_replicas < desired:
        return _in_progress(f"Ready: {status.ready_replicas}/{desired}")
    return ReadinessVerdict.READY, f"ReplicaSet is available. Replicas: {desired}"


def _pvc(status: PersistentVolumeClaimStatus) -> StatusResult:
    if status.phase != "Bound":
        return _in_progress(f"PVC is not Bound. phase: {status.phase or 'unknown'}")
    return ReadinessVerdict.READY, "PVC is Bound"


def _service(status: ServiceStatus) -> StatusResult:
    if status.service_type == "LoadBalancer" and status.ingress_count == 0:
        return _in_progress("LoadBalancer has no ingress yet")
    return ReadinessVerdict.READY, "Service is ready"


_KIND_RULES: dict[type[ResourceStatus], Callable[..., StatusResult]] = {
    DeploymentStatus: _deployment,
    StatefulSetStatus: _statefulset,
    DaemonSetStatus: _daemonset,
    ReplicaSetStatus: _replicaset,
    PersistentVolumeClaimStatus: _pvc,
    ServiceStatus: _service,
}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def compute_status(status: ResourceStatus) -> StatusResult:
    """Compute the aggregated verdict and a short detail message."""
    if status.deleting:
        return _in_progress("Resource scheduled for deletion")

    if (
        status.generation is not None
        and status.observed_generation is not None
        and status.observed_generation != status.generation
    ):
        return _in_progress(
            f"{status.kind} generation is {status.generation}, "
            f"but latest observed generation is {status.observed_generation}"
        )

    stalled = status.condition("Stalled")
    if stalled is not None and stalled.status == "True":
        return ReadinessVerdict.FAILED, stalled.message or "Resource is stalled"
    reconciling = status.condition("Reconciling")
    if reconciling is not None and reconciling.status == "True":
        return _in_progress(reconciling.message or "Resource is reconciling")

    rule = _KIND_RULES.get(type(status))
    if rule is not None:
        return rule(status)
    return _CURRENT
