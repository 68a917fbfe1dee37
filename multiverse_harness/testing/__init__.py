# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016

"""
Test support: the fake collector, the agent lifecycle controller and the
assertion helpers built on top of them.
"""

from multiverse_harness.testing.assertions import (
    run_harvest,
    single_connect_posted,
    single_error_posted,
    single_event_posted,
    single_metrics_post,
    single_transaction_trace_posted,
)
from multiverse_harness.testing.fake_collector import (
    FakeCollector,
    ensure_fake_collector,
    get_collector,
    set_collector,
)
from multiverse_harness.testing.multiverse import (
    AgentLifecycleController,
    MultiverseHelpers,
    omit_collector,
    setup_and_teardown_agent,
)

__all__ = [
    "AgentLifecycleController",
    "FakeCollector",
    "MultiverseHelpers",
    "ensure_fake_collector",
    "get_collector",
    "omit_collector",
    "run_harvest",
    "set_collector",
    "setup_and_teardown_agent",
    "single_connect_posted",
    "single_error_posted",
    "single_event_posted",
    "single_metrics_post",
    "single_transaction_trace_posted",
]
