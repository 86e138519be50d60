"""Configuration loading from the persisted settings store and environment."""

import logging
import os
from collections.abc import Mapping

from PySide6.QtCore import QSettings

from inetmon.errors import InvalidConfig
from inetmon.models import MIN_INTERVAL_S, EngineConfig

logger = logging.getLogger(__name__)

ORGANIZATION = "inetmon"
APPLICATION = "InternetMonitor"

ENDPOINT_KEY = "endpoint"
INTERVAL_KEY = "checkInterval"

ENV_ENDPOINT = "INETMON_ENDPOINT"
ENV_INTERVAL = "INETMON_INTERVAL"
ENV_TIMEOUT = "INETMON_TIMEOUT"
ENV_MAX_RETRIES = "INETMON_MAX_RETRIES"


def default_settings() -> QSettings:
    """Settings store shared with the preferences UI."""
    return QSettings(ORGANIZATION, APPLICATION)


def load_config(
    settings: QSettings | None = None, environ: Mapping[str, str] | None = None
) -> EngineConfig:
    """Build an EngineConfig from stored settings, overridden by environment.

    Stored keys: "endpoint" (str) and "checkInterval" (seconds). Environment
    variables INETMON_ENDPOINT, INETMON_INTERVAL, INETMON_TIMEOUT and
    INETMON_MAX_RETRIES take precedence. Missing, non-positive or malformed
    values fall back to the defaults; malformed ones are logged.

    Examples:
        # Probe a different host every 10 seconds
        $ INETMON_ENDPOINT=example.com INETMON_INTERVAL=10 python -m inetmon
    """
    if settings is None:
        settings = default_settings()
    if environ is None:
        environ = os.environ

    config = EngineConfig()
    changes = {}

    endpoint = environ.get(ENV_ENDPOINT) or settings.value(ENDPOINT_KEY)
    if endpoint:
        changes["endpoint"] = str(endpoint).strip()

    interval = _positive_number(
        environ.get(ENV_INTERVAL) or settings.value(INTERVAL_KEY), "interval", float
    )
    if interval is not None:
        if interval < MIN_INTERVAL_S:
            logger.warning("Interval %.2fs below minimum, using %.1fs", interval, MIN_INTERVAL_S)
            interval = MIN_INTERVAL_S
        changes["interval_s"] = interval

    timeout = _positive_number(environ.get(ENV_TIMEOUT), "timeout", float)
    if timeout is not None:
        changes["timeout_s"] = timeout

    retries = environ.get(ENV_MAX_RETRIES)
    if retries:
        try:
            changes["max_retries"] = int(retries)
        except ValueError:
            logger.warning("Ignoring malformed %s=%r", ENV_MAX_RETRIES, retries)

    for field_name, value in changes.items():
        try:
            config = config.replace(**{field_name: value})
        except InvalidConfig as e:
            logger.warning("Ignoring configured %s: %s", field_name, e)

    logger.debug("Config loaded: %s", config)
    return config


def save_config(config: EngineConfig, settings: QSettings | None = None):
    """Persist the user-editable part of config (endpoint and interval)."""
    if settings is None:
        settings = default_settings()
    settings.setValue(ENDPOINT_KEY, config.endpoint)
    settings.setValue(INTERVAL_KEY, int(round(config.interval_s)))
    settings.sync()
    logger.debug("Config saved: endpoint=%s, interval=%.1fs", config.endpoint, config.interval_s)


def _positive_number(raw, name: str, kind):
    """Convert raw to kind; None for missing, non-positive or malformed values."""
    if raw is None or raw == "":
        return None
    try:
        value = kind(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed %s value: %r", name, raw)
        return None
    if value <= 0:
        return None
    return value
