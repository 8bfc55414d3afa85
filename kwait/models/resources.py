#  Kube Wait - Resource References
#
#  Immutable identifiers for the resources a wait call targets, and the
#  read-only request describing one wait call.
#
#  Depends on: (none)
#  Used by:    exceptions.py, services/*

from dataclasses import dataclass


@dataclass(frozen=True)
class ResourceRef:
    api_group: str
    version: str
    kind: str
    namespace: str
    name: str

    @property
    def api_version(self) -> str:
        """Group/version as written in a manifest ("v1" for the core group)."""
        if self.api_group:
            return f"{self.api_group}/{self.version}"
        return self.version

    @property
    def is_batch_job(self) -> bool:
        return self.api_group == "batch" and self.kind == "Job"

    @classmethod
    def from_object(cls, obj: dict) -> "ResourceRef":
        """Build a ref from a manifest or live object dict."""
        api_version = obj.get("apiVersion") or ""
        group, _, version = api_version.rpartition("/")
        metadata = obj.get("metadata") or {}
        if not obj.get("kind") or not metadata.get("name") or not version:
            raise ValueError(
                f"Object needs apiVersion, kind and metadata.name, got "
                f"apiVersion={api_version!r} kind={obj.get('kind')!r} name={metadata.get('name')!r}"
            )
        return cls(
            api_group=group,
            version=version,
            kind=obj["kind"],
            namespace=metadata.get("namespace") or "",
            name=metadata["name"],
        )

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.kind}/{self.namespace}/{self.name}"
        return f"{self.kind}/{self.name}"


@dataclass(frozen=True)
class WaitFlags:
    """Caller options that change how readiness is judged."""
    wait_for_jobs: bool = False
    paused_as_ready: bool = False


@dataclass(frozen=True)
class WaitRequest:
    resources: tuple[ResourceRef, ...]
    timeout: float
    wait_for_jobs: bool = False
    paused_as_ready: bool = False

    @property
    def flags(self) -> WaitFlags:
        return WaitFlags(wait_for_jobs=self.wait_for_jobs, paused_as_ready=self.paused_as_ready)

    def __post_init__(self):
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        seen: set[ResourceRef] = set()
        for ref in self.resources:
            if ref in seen:
                raise ValueError(f"Duplicate resource in wait request: {ref}")
            seen.add(ref)
