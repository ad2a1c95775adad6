import os

DEFAULT_REFERENCE = "0.pool.ntp.org"
DEFAULT_TIMEOUT = 5.0
DEFAULT_DRIFT_TOLERANCE = 120.0


def _float_env(name, default):
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {value!r}")


def reference_server():
    return os.getenv("NTPCHECK_SERVER", "").strip() or DEFAULT_REFERENCE


def query_timeout():
    return _float_env("NTPCHECK_TIMEOUT", DEFAULT_TIMEOUT)


def drift_tolerance():
    return _float_env("NTPCHECK_DRIFT_TOLERANCE", DEFAULT_DRIFT_TOLERANCE)


def log_level():
    return os.getenv("NTPCHECK_LOG_LEVEL", "INFO").strip().upper() or "INFO"
