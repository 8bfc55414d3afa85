#  Kube Wait - Test Fixtures
#
#  Shared fixtures for the test suite.
#  Waiters are built against the in-memory FakeStatusSource.
#
#  Depends on: kwait/services/waiter.py, tests/fakes.py
#  Used by:    all test files

import copy

import pytest

from kwait.models.resources import WaitFlags
from kwait.services.readiness import PolicyRegistry
from kwait.services.waiter import Waiter
from tests.fakes import (
    JOB_COMPLETE,
    JOB_NO_STATUS,
    PAUSED_DEPLOYMENT,
    POD_CURRENT,
    POD_NO_STATUS,
    FakeStatusSource,
)


# ---------------------------------------------------------------------------
# Manifests
# ---------------------------------------------------------------------------

@pytest.fixture
def pod_current():
    return copy.deepcopy(POD_CURRENT)


@pytest.fixture
def pod_no_status():
    return copy.deepcopy(POD_NO_STATUS)


@pytest.fixture
def job_no_status():
    return copy.deepcopy(JOB_NO_STATUS)


@pytest.fixture
def job_complete():
    return copy.deepcopy(JOB_COMPLETE)


@pytest.fixture
def paused_deployment():
    return copy.deepcopy(PAUSED_DEPLOYMENT)


# ---------------------------------------------------------------------------
# Policies & waiter
# ---------------------------------------------------------------------------

@pytest.fixture
def policies():
    return PolicyRegistry()


@pytest.fixture
def default_flags():
    return WaitFlags()


@pytest.fixture
def make_waiter(policies):
    """Build a (waiter, source) pair seeded with the given objects."""

    def _make(*objects, **source_kwargs):
        source = FakeStatusSource(objects, **source_kwargs)
        return Waiter(source=source, policies=policies), source

    return _make
