#  Kube Wait - Configuration
#
#  Loads config.json and provides typed access to all settings.
#  Dot-notation path lookup: cfg("wait.default_timeout_sec")
#
#  Depends on: config.json (optional)
#  Used by:    container.py, services/waiter.py, services/kube_source.py

import json
import logging
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_PATH = Path(os.environ.get("KWAIT_CONFIG", PROJECT_ROOT / "config.json"))

# ---------------------------------------------------------------------------
# Load config
# ---------------------------------------------------------------------------

_config: dict = {}


def _load_config(path: Path | None = None):
    """Load configuration from JSON file (internal, called once at import time).

    Module-level constants below are snapshots from _config.
    """
    global _config
    config_path = path or CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}. "
            "Copy config.example.json to config.json."
        )
    with open(config_path) as f:
        _config = json.load(f)


# Defaults apply when no config file is present
if CONFIG_PATH.exists():
    _load_config()


def cfg(path: str, default=None):
    """Get a config value by dot-notation path.

    Example: cfg("kube.watch_timeout_sec") -> 30
    """
    keys = path.split(".")
    val = _config
    for key in keys:
        if isinstance(val, dict) and key in val:
            val = val[key]
        else:
            return default
    return val


# ---------------------------------------------------------------------------
# Convenience constants
# ---------------------------------------------------------------------------

# Wait
DEFAULT_TIMEOUT = cfg("wait.default_timeout_sec", 300)
EVENT_QUEUE_SIZE = cfg("wait.event_queue_size", 100)

# Kubernetes
KUBE_IN_CLUSTER = cfg("kube.in_cluster", False)
KUBE_CONTEXT: str | None = cfg("kube.context", None)
WATCH_TIMEOUT = cfg("kube.watch_timeout_sec", 30)

# Logging
LOG_LEVEL = cfg("logging.level", "INFO")
LOG_FORMAT = cfg("logging.format", "json")

_LOG_FORMATS = ("json", "text")


# ---------------------------------------------------------------------------
# Startup validation
# ---------------------------------------------------------------------------

def validate_config():
    """Validate config values. Call before building the container.

    Raises ConfigError for fatal issues, logs warnings for non-fatal ones.
    """
    _logger = logging.getLogger("kwait.config")

    # Fatal: timeouts must be positive
    for label, val in [("wait.default_timeout_sec", DEFAULT_TIMEOUT),
                       ("kube.watch_timeout_sec", WATCH_TIMEOUT)]:
        if isinstance(val, bool) or not isinstance(val, (int, float)) or val <= 0:
            raise ConfigError(f"{label} must be > 0, got {val}")

    # Fatal: the event queue must be bounded and non-empty
    if isinstance(EVENT_QUEUE_SIZE, bool) or not isinstance(EVENT_QUEUE_SIZE, int) or EVENT_QUEUE_SIZE < 1:
        raise ConfigError(f"wait.event_queue_size must be a positive integer, got {EVENT_QUEUE_SIZE}")

    if LOG_FORMAT not in _LOG_FORMATS:
        raise ConfigError(f"logging.format must be one of {_LOG_FORMATS}, got '{LOG_FORMAT}'")

    # Warning: context is ignored when running in-cluster
    if KUBE_IN_CLUSTER and KUBE_CONTEXT:
        _logger.warning(
            "kube.context '%s' is set but kube.in_cluster is true; the context is ignored",
            KUBE_CONTEXT,
        )

    # Warning: a watch timeout longer than the wait makes unsubscribe slow
    if WATCH_TIMEOUT > DEFAULT_TIMEOUT:
        _logger.warning(
            "kube.watch_timeout_sec (%s) exceeds wait.default_timeout_sec (%s); "
            "watch threads may outlive the wait",
            WATCH_TIMEOUT, DEFAULT_TIMEOUT,
        )


class ConfigError(Exception):
    """Raised when critical configuration is invalid."""
