# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2020

import threading

import pytest

from multiverse_harness.agent.host import MonitoringAgent
from multiverse_harness.agent.rules import NamingRule
from multiverse_harness.agent.transaction_state import TransactionState


class TestTransaction:
    @pytest.fixture(autouse=True)
    def _resource(self, agent: MonitoringAgent):
        self.agent = agent
        yield
        TransactionState.tl_clear_for_testing()

    def test_records_metrics_trace_and_event(self) -> None:
        with self.agent.transaction("Controller/users/show", uri="/users/1") as txn:
            txn.add_custom_attribute("user", "bob")

        _, _, stats = self.agent.stats_engine.harvest()
        assert ("Controller/users/show", "") in stats
        assert ("WebTransaction", "") in stats

        [sample] = self.agent.transaction_sampler.harvest()
        assert sample.name == "Controller/users/show"
        assert sample.uri == "/users/1"
        assert sample.attributes == {"user": "bob"}

        _, [event] = self.agent.events.harvest()
        intrinsics, user_attributes, _ = event
        assert intrinsics["type"] == "Transaction"
        assert intrinsics["name"] == "Controller/users/show"
        assert intrinsics["error"] is False
        assert user_attributes == {"user": "bob"}

        assert self.agent.error_collector.harvest() == []

    def test_background_transaction(self) -> None:
        with self.agent.transaction("OtherTransaction/Job/cleanup"):
            pass

        _, _, stats = self.agent.stats_engine.harvest()
        assert ("OtherTransaction/all", "") in stats

    def test_exception_is_noticed_and_reraised(self) -> None:
        with pytest.raises(ValueError):
            with self.agent.transaction("Controller/orders/create"):
                raise ValueError("boom")

        [error] = self.agent.error_collector.harvest()
        assert error.path == "Controller/orders/create"
        assert error.exception_class_name == "ValueError"
        assert error.message == "boom"

        _, [event] = self.agent.events.harvest()
        assert event[0]["error"] is True

    def test_nested_transactions_become_segments(self) -> None:
        with self.agent.transaction("Controller/outer"):
            with self.agent.transaction("Controller/inner"):
                pass

        [sample] = self.agent.transaction_sampler.harvest()
        assert sample.name == "Controller/outer"
        assert [segment[2] for segment in sample.segments] == ["Controller/inner"]

        _, events = self.agent.events.harvest()
        assert len(events) == 1

    def test_naming_rules(self) -> None:
        self.agent.transaction_rules.add(NamingRule(r"/\d+$", "/*"))

        with self.agent.transaction("Controller/users/42"):
            pass

        [sample] = self.agent.transaction_sampler.harvest()
        assert sample.name == "Controller/users/*"

    def test_ignored_by_naming_rules(self) -> None:
        self.agent.transaction_rules.add(NamingRule("^Controller/health", ignore=True))

        with self.agent.transaction("Controller/health"):
            pass

        assert self.agent.transaction_sampler.harvest() == []
        assert self.agent.stats_engine.harvest()[2] == {}

    def test_tracer_disabled(self) -> None:
        self.agent.options.apply_manual({"transaction_tracer.enabled": False})

        with self.agent.transaction("Controller/x"):
            pass

        assert self.agent.transaction_sampler.harvest() == []

    def test_thread_local_state(self) -> None:
        with self.agent.transaction("Controller/x") as txn:
            assert TransactionState.tl_get().current_transaction is txn
        assert TransactionState.tl_get().current_transaction is None

    def test_attributes_before_transaction(self) -> None:
        self.agent.add_custom_attribute("tenant", "acme")

        with self.agent.transaction("Controller/x"):
            self.agent.add_custom_attribute("user", "bob")

        [sample] = self.agent.transaction_sampler.harvest()
        assert sample.attributes == {"tenant": "acme", "user": "bob"}
        assert TransactionState.tl_get().attributes == {}

    def test_tl_clear_for_testing(self) -> None:
        self.agent.add_custom_attribute("tenant", "acme")
        state = TransactionState.tl_get()

        TransactionState.tl_clear_for_testing()

        assert TransactionState.tl_get() is not state
        assert TransactionState.tl_get().attributes == {}

    def test_state_is_per_thread(self) -> None:
        self.agent.add_custom_attribute("tenant", "acme")
        seen = []

        thread = threading.Thread(
            target=lambda: seen.append(TransactionState.tl_get().attributes)
        )
        thread.start()
        thread.join()

        assert seen == [{}]
