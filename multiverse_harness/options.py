# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016

"""
Option classes for the in-process monitoring agent

Settings are resolved from three layers, highest priority first:

  - server   - settings handed back by the collector on ``connect``
  - manual   - overrides passed to ``MonitoringAgent.manual_start()``
  - defaults - documented defaults, themselves read from the environment

``reset_to_defaults()`` drops the server and manual layers again.
"""

import logging
import os
from typing import Any, Dict, Iterator

from multiverse_harness.log import logger
from multiverse_harness.util import is_truthy

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARN,
    "warning": logging.WARN,
    "error": logging.ERROR,
}


def default_settings() -> Dict[str, Any]:
    """
    The documented defaults, with environment variables applied on top.
    @return: dict of setting name to value
    """
    settings = {
        "host": os.environ.get("NEW_RELIC_HOST", "localhost"),
        "port": 80,
        "app_name": os.environ.get("NEW_RELIC_APP_NAME", "My Application"),
        "license_key": os.environ.get("NEW_RELIC_LICENSE_KEY", ""),
        "log_level": logging.WARN,
        "timeout": 5.0,
        "harvest_interval": 60,
        "sync_startup": False,
        "force_reconnect": False,
        "compressed_content_encoding": "gzip",
        "compression_threshold": 64 * 1024,
        "transaction_tracer.enabled": True,
        "error_collector.enabled": True,
        "analytic_events.enabled": True,
        "analytic_events.max_samples_stored": 1000,
    }

    if "NEW_RELIC_PORT" in os.environ:
        try:
            settings["port"] = int(os.environ["NEW_RELIC_PORT"])
        except ValueError:
            logger.warning(
                f"Couldn't parse NEW_RELIC_PORT env var: {os.environ['NEW_RELIC_PORT']}"
            )

    if "NEW_RELIC_TIMEOUT" in os.environ:
        try:
            settings["timeout"] = float(os.environ["NEW_RELIC_TIMEOUT"])
        except ValueError:
            logger.warning(
                f"Couldn't parse NEW_RELIC_TIMEOUT env var: {os.environ['NEW_RELIC_TIMEOUT']}"
            )

    if "NEW_RELIC_HARVEST_INTERVAL" in os.environ:
        try:
            settings["harvest_interval"] = int(
                os.environ["NEW_RELIC_HARVEST_INTERVAL"]
            )
        except ValueError:
            logger.warning(
                "Couldn't parse NEW_RELIC_HARVEST_INTERVAL env var: "
                f"{os.environ['NEW_RELIC_HARVEST_INTERVAL']}"
            )

    if "NEW_RELIC_LOG_LEVEL" in os.environ:
        level = os.environ["NEW_RELIC_LOG_LEVEL"].lower()
        if level in LOG_LEVELS:
            settings["log_level"] = LOG_LEVELS[level]
        else:
            logger.warning(f"Unknown NEW_RELIC_LOG_LEVEL value: {level}")

    if is_truthy(os.environ.get("NEW_RELIC_DEBUG", None)):
        settings["log_level"] = logging.DEBUG

    return settings


class StandardOptions(object):
    """The layered configuration of the monitoring agent"""

    def __init__(self, **kwds: Any) -> None:
        self._defaults = default_settings()
        self._manual = {}
        self._server = {}
        self.apply_manual(kwds)

    def __getitem__(self, key: str) -> Any:
        for layer in (self._server, self._manual, self._defaults):
            if key in layer:
                return layer[key]
        raise KeyError(key)

    def __contains__(self, key: str) -> bool:
        return key in self._server or key in self._manual or key in self._defaults

    def __iter__(self) -> Iterator[str]:
        return iter(self.to_dict())

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    def to_dict(self) -> Dict[str, Any]:
        settings = dict(self._defaults)
        settings.update(self._manual)
        settings.update(self._server)
        return settings

    def apply_manual(self, overrides: Dict[str, Any]) -> None:
        """
        Layer the overrides passed to manual_start() over the defaults.
        """
        for key in overrides:
            if key not in self._defaults:
                logger.debug(f"StandardOptions: unknown setting {key}")
        self._manual.update(overrides)

    def apply_server(self, settings: Dict[str, Any]) -> None:
        """
        Layer the settings handed back by the collector on connect.
        """
        self._server.update(settings or {})

    def reset_to_defaults(self) -> None:
        """
        Put the configuration back to its documented defaults.
        """
        self._manual = {}
        self._server = {}
        self._defaults = default_settings()

    def is_default(self) -> bool:
        return not self._manual and not self._server
