# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2020

import os
from typing import Generator

import pytest

from multiverse_harness.agent.host import MonitoringAgent
from multiverse_harness.testing.fake_collector import FakeCollector

pytest_plugins = ("multiverse_harness.testing.pytest_plugin",)

ENV_VARIABLES = (
    "NEWRELIC_OMIT_FAKE_COLLECTOR",
    "NEW_RELIC_HOST",
    "NEW_RELIC_PORT",
    "NEW_RELIC_APP_NAME",
    "NEW_RELIC_LICENSE_KEY",
    "NEW_RELIC_LOG_LEVEL",
    "NEW_RELIC_DEBUG",
    "NEW_RELIC_TIMEOUT",
    "NEW_RELIC_HARVEST_INTERVAL",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """No agent settings leak in from the environment; local traffic never goes through a proxy"""
    for variable_name in ENV_VARIABLES:
        monkeypatch.delenv(variable_name, raising=False)
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
    monkeypatch.setenv("no_proxy", "127.0.0.1,localhost")
    yield
    for variable_name in ENV_VARIABLES:
        if variable_name in os.environ:
            os.environ.pop(variable_name)


@pytest.fixture
def agent() -> Generator[MonitoringAgent, None, None]:
    """A private agent, not the process-wide singleton"""
    new_agent = MonitoringAgent()
    yield new_agent
    new_agent.shutdown()


@pytest.fixture
def collector() -> Generator[FakeCollector, None, None]:
    """A private fake collector listening on a free port"""
    new_collector = FakeCollector()
    new_collector.start()
    yield new_collector
    new_collector.stop()


@pytest.fixture
def connected_agent(
    agent: MonitoringAgent, collector: FakeCollector
) -> MonitoringAgent:
    agent.service.collector.host = collector.host
    agent.service.collector.port = collector.port
    agent.manual_start(sync_startup=True, force_reconnect=True)
    return agent
