#  Kube Wait - Result Aggregator
#
#  Folds the final wait state into one combined timeout error.
#
#  Depends on: exceptions.py, services/wait_state.py
#  Used by:    services/waiter.py

from kwait.exceptions import DeadlineExceededError, NotReadyError, WaitError, WaitTimeoutError
from kwait.services.wait_state import WaitState


def aggregate(state: WaitState) -> WaitTimeoutError:
    """Build the timeout error: one entry per non-ready resource, then the deadline."""
    errors: list[WaitError] = [NotReadyError(entry.ref, entry.reason) for entry in state.pending()]
    errors.append(DeadlineExceededError())
    return WaitTimeoutError(errors)
