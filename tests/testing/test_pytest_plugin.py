# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2020

import pytest

from multiverse_harness import singletons
from multiverse_harness.agent.host import MonitoringAgent
from multiverse_harness.testing import assertions
from multiverse_harness.testing.fake_collector import FakeCollector, get_collector
from multiverse_harness.testing.multiverse import READY, AgentLifecycleController
from tests.helpers import run_failing_transaction


class TestPytestPlugin:
    def test_multiverse_agent(
        self,
        multiverse_agent: MonitoringAgent,
        fake_collector: FakeCollector,
        multiverse: AgentLifecycleController,
    ) -> None:
        assert multiverse.state == READY
        assert multiverse_agent is singletons.get_agent()
        assert fake_collector is get_collector()
        assert multiverse_agent.connected()

        run_failing_transaction(multiverse_agent, name="Controller/plugin")
        multiverse.run_harvest()

        error = assertions.single_error_posted(fake_collector)
        assert error.path == "Controller/plugin"

    @pytest.mark.multiverse_options(app_name="marked")
    def test_marker_options(self, fake_collector: FakeCollector) -> None:
        connect = assertions.single_connect_posted(fake_collector)
        assert connect.app_name == ["marked"]

    def test_each_test_starts_clean(
        self, multiverse_agent: MonitoringAgent, fake_collector: FakeCollector
    ) -> None:
        assert multiverse_agent.options["app_name"] == "My Application"
        assert multiverse_agent.agent_run_id == 1
        assert fake_collector.calls_for("error_data") == []

    def test_multiverse_left_running(self, multiverse: AgentLifecycleController) -> None:
        # The fixture tears down whatever a test leaves behind
        multiverse.setup_agent()
        assert multiverse.state == READY
