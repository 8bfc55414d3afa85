#  Kube Wait - Readiness Policy Tests
#
#  Tests for per-kind policies and the PolicyRegistry lookup table.
#
#  Depends on: kwait/services/readiness.py, kwait/models/status.py
#  Used by:    pytest

import pytest

from kwait.models.enums import ReadinessVerdict
from kwait.models.resources import WaitFlags
from kwait.models.status import parse_status
from kwait.services.readiness import (
    Evaluation,
    GenericPolicy,
    JobPolicy,
    PolicyRegistry,
    ReadinessPolicy,
)
from tests.fakes import JOB_COMPLETE, JOB_NO_STATUS, PAUSED_DEPLOYMENT, manifest, pod

WAIT_JOBS = WaitFlags(wait_for_jobs=True)
PAUSED_READY = WaitFlags(paused_as_ready=True)


def _evaluate(policies, obj, flags):
    return policies.evaluate(obj["kind"], parse_status(obj), flags)


# ---------------------------------------------------------------------------
# Pod
# ---------------------------------------------------------------------------

class TestPodPolicy:
    def test_ready_and_running(self, policies, default_flags):
        ev = _evaluate(policies, pod("p", ready=True), default_flags)
        assert ev.verdict == ReadinessVerdict.READY
        assert ev.reason == ""

    def test_no_status(self, policies, default_flags, pod_no_status):
        ev = _evaluate(policies, pod_no_status, default_flags)
        assert ev.verdict == ReadinessVerdict.IN_PROGRESS
        assert ev.reason == "Pod not ready, status: InProgress"
        assert not ev.terminal

    def test_ready_condition_but_pending_phase(self, policies, default_flags):
        obj = pod("p", ready=True, phase="Pending")
        assert _evaluate(policies, obj, default_flags).verdict == ReadinessVerdict.IN_PROGRESS

    def test_running_but_not_ready(self, policies, default_flags):
        obj = pod("p", phase="Running")
        assert _evaluate(policies, obj, default_flags).verdict == ReadinessVerdict.IN_PROGRESS

    def test_failed_phase_is_terminal(self, policies, default_flags):
        ev = _evaluate(policies, pod("p", phase="Failed"), default_flags)
        assert ev.verdict == ReadinessVerdict.FAILED
        assert ev.terminal
        assert ev.reason == "Pod not ready, status: Failed"


# ---------------------------------------------------------------------------
# Job
# ---------------------------------------------------------------------------

class TestJobPolicy:
    def test_ready_when_not_waiting_for_jobs(self, policies, default_flags, job_no_status):
        ev = _evaluate(policies, job_no_status, default_flags)
        assert ev.verdict == ReadinessVerdict.READY

    def test_failed_job_ready_when_not_waiting_for_jobs(self, policies, default_flags):
        failed = manifest(JOB_NO_STATUS, status={"conditions": [{"type": "Failed", "status": "True"}]})
        assert _evaluate(policies, failed, default_flags).verdict == ReadinessVerdict.READY

    def test_no_status_in_progress(self, policies, job_no_status):
        ev = _evaluate(policies, job_no_status, WAIT_JOBS)
        assert ev.verdict == ReadinessVerdict.IN_PROGRESS
        assert ev.reason == "Job not ready, status: InProgress"

    def test_complete_condition(self, policies):
        obj = manifest(JOB_NO_STATUS, status={"conditions": [{"type": "Complete", "status": "True"}]})
        assert _evaluate(policies, obj, WAIT_JOBS).verdict == ReadinessVerdict.READY

    def test_succeeded_counts(self, policies):
        obj = manifest(JOB_NO_STATUS, status={"succeeded": 1, "active": 0})
        assert _evaluate(policies, obj, WAIT_JOBS).verdict == ReadinessVerdict.READY

    def test_still_active(self, policies):
        obj = manifest(JOB_NO_STATUS, status={"succeeded": 1, "active": 1})
        assert _evaluate(policies, obj, WAIT_JOBS).verdict == ReadinessVerdict.IN_PROGRESS

    def test_complete_fixture(self, policies):
        assert _evaluate(policies, JOB_COMPLETE, WAIT_JOBS).verdict == ReadinessVerdict.READY

    def test_failed_condition_is_terminal(self, policies):
        obj = manifest(JOB_NO_STATUS, status={
            "conditions": [{"type": "Failed", "status": "True", "message": "BackoffLimitExceeded"}],
        })
        ev = _evaluate(policies, obj, WAIT_JOBS)
        assert ev.verdict == ReadinessVerdict.FAILED
        assert ev.terminal
        assert ev.message == "BackoffLimitExceeded"

    def test_failed_condition_false_ignored(self, policies):
        obj = manifest(JOB_NO_STATUS, status={"conditions": [{"type": "Failed", "status": "False"}]})
        assert _evaluate(policies, obj, WAIT_JOBS).verdict == ReadinessVerdict.IN_PROGRESS

    def test_custom_resource_job_uses_generic_computation(self, policies, default_flags):
        obj = {
            "apiVersion": "example.com/v1", "kind": "Job",
            "metadata": {"name": "j", "generation": 2}, "status": {"observedGeneration": 1},
        }
        ev = _evaluate(policies, obj, default_flags)
        assert ev.verdict == ReadinessVerdict.IN_PROGRESS
        assert ev.reason == "Job not ready, status: InProgress"


# ---------------------------------------------------------------------------
# Deployment
# ---------------------------------------------------------------------------

class TestDeploymentPolicy:
    def test_paused_ready_with_flag(self, policies, paused_deployment):
        assert _evaluate(policies, paused_deployment, PAUSED_READY).verdict == ReadinessVerdict.READY

    def test_paused_in_progress_without_flag(self, policies, default_flags, paused_deployment):
        ev = _evaluate(policies, paused_deployment, default_flags)
        assert ev.verdict == ReadinessVerdict.IN_PROGRESS
        assert ev.reason == "Deployment not ready, status: InProgress"

    def test_unpaused_uses_generic_computation(self, policies):
        obj = manifest(PAUSED_DEPLOYMENT, spec={"replicas": 2}, status={
            "observedGeneration": 1,
            "replicas": 2, "updatedReplicas": 2, "readyReplicas": 2, "availableReplicas": 2,
            "conditions": [{"type": "Available", "status": "True"}],
        })
        assert _evaluate(policies, obj, PAUSED_READY).verdict == ReadinessVerdict.READY


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("obj, flags", [
    (pod("p", ready=True), WaitFlags()),
    (JOB_NO_STATUS, WAIT_JOBS),
    (PAUSED_DEPLOYMENT, PAUSED_READY),
    (PAUSED_DEPLOYMENT, WaitFlags()),
])
def test_same_snapshot_same_evaluation(policies, obj, flags):
    status = parse_status(obj)
    first = policies.evaluate(obj["kind"], status, flags)
    second = policies.evaluate(obj["kind"], status, flags)
    assert first == second


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class _AlwaysReady(ReadinessPolicy):
    def evaluate(self, kind, status, flags):
        return Evaluation(verdict=ReadinessVerdict.READY)


class TestPolicyRegistry:
    def test_default_kinds(self, policies):
        assert set(policies.kinds()) == {"Pod", "Job", "Deployment"}
        assert isinstance(policies.get("Job"), JobPolicy)

    def test_unknown_kind_uses_generic(self, policies):
        assert isinstance(policies.get("ConfigMap"), GenericPolicy)

    def test_generic_configmap_is_ready(self, policies, default_flags):
        obj = {"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "cfg"}}
        assert _evaluate(policies, obj, default_flags).verdict == ReadinessVerdict.READY

    def test_register_new_kind(self, policies, default_flags):
        policies.register("StatefulSet", _AlwaysReady())
        obj = {"apiVersion": "apps/v1", "kind": "StatefulSet", "metadata": {"name": "db"}}
        assert _evaluate(policies, obj, default_flags).verdict == ReadinessVerdict.READY

    def test_custom_default(self, default_flags):
        registry = PolicyRegistry(default=_AlwaysReady())
        obj = {"apiVersion": "v1", "kind": "PersistentVolumeClaim", "metadata": {"name": "data"}}
        assert _evaluate(registry, obj, default_flags).verdict == ReadinessVerdict.READY
