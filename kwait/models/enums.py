#  Kube Wait - Enums
#
#  Verdict and event type enumerations used across the system.
#
#  Depends on: (none)
#  Used by:    models/*, services/*

from enum import Enum


class ReadinessVerdict(str, Enum):
    READY = "Ready"
    IN_PROGRESS = "InProgress"
    FAILED = "Failed"


class EventType(str, Enum):
    UPDATED = "updated"      # New status snapshot for the resource
    DELETED = "deleted"      # Resource is gone or was never found
    ERROR = "error"          # Source failure, carries the exception


class WaitMode(str, Enum):
    READY = "ready"
    DELETE = "delete"
