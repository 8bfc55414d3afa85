#  Kube Wait - Status Snapshots
#
#  Typed, immutable status documents parsed from live resource objects.
#  One model per kind the readiness rules know about, GenericStatus otherwise.
#
#  Depends on: (none)
#  Used by:    services/readiness.py, services/status_compute.py, services/kube_source.py

from pydantic import BaseModel, ConfigDict


def _dig(obj: dict, *path: str, default=None):
    """Walk nested dicts; missing keys and explicit nulls return default."""
    val = obj
    for key in path:
        if isinstance(val, dict) and key in val:
            val = val[key]
        else:
            return default
    return default if val is None else val


class Condition(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    status: str = "Unknown"
    reason: str = ""
    message: str = ""


class ResourceStatus(BaseModel):
    """Fields every kind shares. Subclasses add what their rules read."""

    model_config = ConfigDict(frozen=True)

    kind: str
    name: str = ""
    generation: int | None = None
    observed_generation: int | None = None
    deleting: bool = False
    conditions: tuple[Condition, ...] = ()

    @classmethod
    def from_object(cls, obj: dict) -> "ResourceStatus":
        conditions = tuple(
            Condition(
                type=str(c.get("type", "")),
                status="Unknown" if c.get("status") is None else str(c["status"]),
                reason=str(c.get("reason") or ""),
                message=str(c.get("message") or ""),
            )
            for c in _dig(obj, "status", "conditions", default=[])
            if isinstance(c, dict)
        )
        return cls(
            kind=obj.get("kind") or "",
            name=_dig(obj, "metadata", "name", default=""),
            generation=_dig(obj, "metadata", "generation"),
            observed_generation=_dig(obj, "status", "observedGeneration"),
            deleting=_dig(obj, "metadata", "deletionTimestamp") is not None,
            conditions=conditions,
            **cls._kind_fields(obj),
        )

    @classmethod
    def _kind_fields(cls, obj: dict) -> dict:
        return {}

    def condition(self, type_: str) -> Condition | None:
        for cond in self.conditions:
            if cond.type == type_:
                return cond
        return None

    def is_true(self, type_: str) -> bool:
        cond = self.condition(type_)
        return cond is not None and cond.status == "True"


class GenericStatus(ResourceStatus):
    pass


class PodStatus(ResourceStatus):
    phase: str = ""

    @classmethod
    def _kind_fields(cls, obj):
        return {"phase": _dig(obj, "status", "phase", default="")}


class JobStatus(ResourceStatus):
    succeeded: int = 0
    active: int = 0
    failed: int = 0

    @classmethod
    def _kind_fields(cls, obj):
        return {
            "succeeded": _dig(obj, "status", "succeeded", default=0),
            "active": _dig(obj, "status", "active", default=0),
            "failed": _dig(obj, "status", "failed", default=0),
        }


class DeploymentStatus(ResourceStatus):
    paused: bool = False
    replicas: int = 1                # spec.replicas, API default is 1
    status_replicas: int = 0
    updated_replicas: int = 0
    ready_replicas: int = 0
    available_replicas: int = 0

    @classmethod
    def _kind_fields(cls, obj):
        return {
            "paused": bool(_dig(obj, "spec", "paused", default=False)),
            "replicas": _dig(obj, "spec", "replicas", default=1),
            "status_replicas": _dig(obj, "status", "replicas", default=0),
            "updated_replicas": _dig(obj, "status", "updatedReplicas", default=0),
            "ready_replicas": _dig(obj, "status", "readyReplicas", default=0),
            "available_replicas": _dig(obj, "status", "availableReplicas", default=0),
        }


class StatefulSetStatus(ResourceStatus):
    replicas: int = 1
    update_strategy: str = "RollingUpdate"
    ready_replicas: int = 0
    current_replicas: int = 0
    updated_replicas: int = 0
    current_revision: str = ""
    update_revision: str = ""

    @classmethod
    def _kind_fields(cls, obj):
        return {
            "replicas": _dig(obj, "spec", "replicas", default=1),
            "update_strategy": _dig(obj, "spec", "updateStrategy", "type", default="RollingUpdate"),
            "ready_replicas": _dig(obj, "status", "readyReplicas", default=0),
            "current_replicas": _dig(obj, "status", "currentReplicas", default=0),
            "updated_replicas": _dig(obj, "status", "updatedReplicas", default=0),
            "current_revision": _dig(obj, "status", "currentRevision", default=""),
            "update_revision": _dig(obj, "status", "updateRevision", default=""),
        }


class DaemonSetStatus(ResourceStatus):
    desired_number_scheduled: int | None = None
    current_number_scheduled: int = 0
    updated_number_scheduled: int = 0
    number_available: int = 0
    number_ready: int = 0

    @classmethod
    def _kind_fields(cls, obj):
        return {
            "desired_number_scheduled": _dig(obj, "status", "desiredNumberScheduled"),
            "current_number_scheduled": _dig(obj, "status", "currentNumberScheduled", default=0),
            "updated_number_scheduled": _dig(obj, "status", "updatedNumberScheduled", default=0),
            "number_available": _dig(obj, "status", "numberAvailable", default=0),
            "number_ready": _dig(obj, "status", "numberReady", default=0),
        }


class ReplicaSetStatus(ResourceStatus):
    replicas: int = 1
    ready_replicas: int = 0
    available_replicas: int = 0

    @classmethod
    def _kind_fields(cls, obj):
        return {
            "replicas": _dig(obj, "spec", "replicas", default=1),
            "ready_replicas": _dig(obj, "status", "readyReplicas", default=0),
            "available_replicas": _dig(obj, "status", "availableReplicas", default=0),
        }


class PersistentVolumeClaimStatus(ResourceStatus):
    phase: str = ""

    @classmethod
    def _kind_fields(cls, obj):
        return {"phase": _dig(obj, "status", "phase", default="")}


class ServiceStatus(ResourceStatus):
    service_type: str = "ClusterIP"
    ingress_count: int = 0

    @classmethod
    def _kind_fields(cls, obj):
        return {
            "service_type": _dig(obj, "spec", "type", default="ClusterIP"),
            "ingress_count": len(_dig(obj, "status", "loadBalancer", "ingress", default=[])),
        }


# Keyed by (api group, kind) so a custom resource that reuses a built-in
# kind name is parsed as GenericStatus
STATUS_MODELS: dict[tuple[str, str], type[ResourceStatus]] = {
    ("", "Pod"): PodStatus,
    ("batch", "Job"): JobStatus,
    ("apps", "Deployment"): DeploymentStatus,
    ("apps", "StatefulSet"): StatefulSetStatus,
    ("apps", "DaemonSet"): DaemonSetStatus,
    ("apps", "ReplicaSet"): ReplicaSetStatus,
    ("", "PersistentVolumeClaim"): PersistentVolumeClaimStatus,
    ("", "Service"): ServiceStatus,
}


def parse_status(obj: dict) -> ResourceStatus:
    """Parse a live object into the status model for its group and kind."""
    group = (obj.get("apiVersion") or "").rpartition("/")[0]
    model = STATUS_MODELS.get((group, obj.get("kind") or ""), GenericStatus)
    return model.from_object(obj)
