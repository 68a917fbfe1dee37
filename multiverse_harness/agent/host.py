# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2020

"""
The in-process monitoring agent that manages monitoring state and reports
that data to a collector.
"""

import threading
import time
from typing import Any, Dict, Optional

from multiverse_harness.agent.base import BaseAgent
from multiverse_harness.agent.error_collector import ErrorCollector
from multiverse_harness.agent.event_aggregator import EventAggregator
from multiverse_harness.agent.rules import RulesEngine
from multiverse_harness.agent.service import CollectorService
from multiverse_harness.agent.stats_engine import StatsEngine
from multiverse_harness.agent.transaction import Transaction
from multiverse_harness.agent.transaction_sampler import (
    TransactionSample,
    TransactionSampler,
)
from multiverse_harness.agent.transaction_state import TransactionState
from multiverse_harness.exceptions import CollectorError, CollectorException
from multiverse_harness.fsm import ConnectMachine
from multiverse_harness.log import logger
from multiverse_harness.options import StandardOptions
from multiverse_harness.util import every
from multiverse_harness.version import VERSION


class MonitoringAgent(BaseAgent):
    """
    The MonitoringAgent is the central controlling entity: it owns the
    configuration, the connect state machine, the telemetry buffers and the
    background harvest thread.
    """

    THREAD_NAME = "Multiverse Harvest"

    def __init__(self) -> None:
        super(MonitoringAgent, self).__init__()

        self.options = StandardOptions()

        # Update log level from what Options detected
        self.update_log_level()

        logger.debug(f"Starting multiverse agent version: {VERSION}")

        self.started = False
        self.agent_run_id = None

        self.transaction_rules = RulesEngine()
        self.stats_engine = StatsEngine()
        self.transaction_sampler = TransactionSampler()
        self.error_collector = ErrorCollector(self)
        self.events = EventAggregator(self)
        self.transaction_state = TransactionState

        self.service = CollectorService(self)
        self.machine = ConnectMachine(self)

        self.harvest_thread = None
        self.thread_shutdown = threading.Event()
        # Never two harvests in flight at once
        self.harvest_lock = threading.Lock()

    @classmethod
    def instance(cls) -> "MonitoringAgent":
        # Late import to avoid circular import
        # pylint: disable=import-outside-toplevel
        from multiverse_harness.singletons import get_agent

        return get_agent()

    @property
    def config(self) -> StandardOptions:
        return self.options

    def connected(self) -> bool:
        return self.machine.is_connected()

    def manual_start(self, **options: Any) -> None:
        """
        Start the agent.  Recognized start options are sync_startup (block
        until the connect handshake resolved) and force_reconnect (connect even
        when already connected); every option is layered over the configuration.
        """
        if self.started:
            logger.error("Agent started already!")
            return

        self.options.apply_manual(options)
        self.update_log_level()

        if "host" in options:
            self.service.collector.host = options["host"]
        if "port" in options:
            self.service.collector.port = options["port"]

        self.started = True
        # A fresh event per start; a harvest thread from an earlier start keeps its own, set one
        self.thread_shutdown = threading.Event()

        self.machine.start(
            sync_startup=self.options["sync_startup"],
            force_reconnect=self.options["force_reconnect"],
        )
        self.start_harvest_thread()

    def finish_setup(self, config_data: Dict[str, Any]) -> None:
        """
        Apply what the collector handed back on connect.  Naming rules are
        appended to the ones we already have.
        """
        config_data = dict(config_data)
        self.agent_run_id = config_data.pop("agent_run_id", None)

        self.transaction_rules.merge(config_data.pop("transaction_name_rules", []))
        self.stats_engine.metric_rules.merge(config_data.pop("metric_name_rules", []))

        self.options.apply_server(config_data)
        self.update_log_level()

    def shutdown(self) -> None:
        """
        Stop harvesting, say goodbye to the collector and go back to an
        unstarted state.
        """
        if not self.started:
            return

        logger.debug("Shutting down the multiverse agent")
        self.stop_harvest_thread()

        if self.connected():
            try:
                self.service.shutdown()
            except CollectorError:
                logger.debug("shutdown: collector error", exc_info=True)

        self.machine.disconnect()
        self.agent_run_id = None
        self.started = False

    def drop_buffered_data(self) -> None:
        """Throw away everything gathered but not sent yet."""
        self.stats_engine.reset()
        self.transaction_sampler.reset()
        self.error_collector.drop_buffered_data()
        self.events.reset()

    def start_harvest_thread(self) -> None:
        if self.harvest_thread is not None and self.harvest_thread.is_alive():
            return

        self.harvest_thread = threading.Thread(
            target=every,
            args=(
                self.options["harvest_interval"],
                self.background_harvest,
                f"{self.THREAD_NAME}: harvest",
                self.thread_shutdown,
            ),
            name=self.THREAD_NAME,
        )
        self.harvest_thread.daemon = True
        self.harvest_thread.start()

    def stop_harvest_thread(self) -> None:
        """
        Signal the harvest thread and wait for it to finish a harvest in flight.
        The next start gets a new thread with the interval configured then.
        """
        self.thread_shutdown.set()
        thread, self.harvest_thread = self.harvest_thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(self.options["timeout"])

    def background_harvest(self) -> bool:
        if self.thread_shutdown.is_set():
            logger.debug("Thread shutdown signal is active: Shutting down harvest thread")
            return False
        self.transmit_data()
        self.transmit_event_data()
        return True

    def transmit_data(self) -> None:
        """
        Send metrics, transaction traces and errors to the collector.  Data that
        couldn't be delivered is kept for the next harvest.
        """
        if not self.connected():
            logger.debug("transmit_data: not connected; keeping data for later")
            return

        with self.harvest_lock:
            start, end, stats = self.stats_engine.harvest()
            samples = self.transaction_sampler.harvest()
            errors = self.error_collector.harvest()

            try:
                if stats:
                    self.service.metric_data(
                        start, end, StatsEngine.to_collector_array(stats)
                    )
                    stats = {}
                if samples:
                    self.service.transaction_sample_data(
                        [sample.to_collector_array() for sample in samples]
                    )
                    samples = []
                if errors:
                    self.service.error_data(
                        [error.to_collector_array() for error in errors]
                    )
                    errors = []
            except CollectorException as exc:
                self.handle_collector_exception(exc)
            except CollectorError:
                logger.debug("transmit_data: collector error", exc_info=True)
                self.stats_engine.merge(stats)
                self.transaction_sampler.merge(samples)
                self.error_collector.merge(errors)

    def transmit_event_data(self) -> None:
        """Send the analytic events to the collector."""
        if not self.connected():
            logger.debug("transmit_event_data: not connected; keeping events for later")
            return

        with self.harvest_lock:
            metadata, events = self.events.harvest()
            if not events:
                return

            try:
                self.service.analytic_event_data(metadata, events)
            except CollectorException as exc:
                self.handle_collector_exception(exc)
            except CollectorError:
                logger.debug("transmit_event_data: collector error", exc_info=True)
                self.events.merge(metadata, events)

    def handle_collector_exception(self, exc: CollectorException) -> None:
        """
        The collector may tell us to reconnect or to stop reporting altogether.
        Either way the data of the failed harvest is gone.
        """
        if exc.error_type == "ForceRestartException":
            logger.info(f"Collector asked for a restart: {exc.message}")
            self.agent_run_id = None
            self.machine.pending()
            self.machine.connect_to_collector()
        elif exc.error_type == "ForceDisconnectException":
            logger.warning(f"Collector asked us to disconnect: {exc.message}")
            self.thread_shutdown.set()
            self.machine.disconnect()
            self.agent_run_id = None
        else:
            logger.debug(f"Collector exception: {exc}")

    def transaction(self, name: str, uri: Optional[str] = None) -> Transaction:
        return Transaction(self, name, uri)

    def record_transaction(
        self, txn: Transaction, exc: Optional[BaseException] = None
    ) -> None:
        name = self.transaction_rules.rename(txn.name)
        if name is None:
            logger.debug(f"Ignoring transaction {txn.name} per naming rules")
            return

        self.stats_engine.record_metric(name, txn.duration)
        self.stats_engine.record_metric(
            "WebTransaction" if txn.uri else "OtherTransaction/all", txn.duration
        )

        if exc is not None:
            self.error_collector.notice_error(exc, path=name, params=txn.attributes)

        if self.options["transaction_tracer.enabled"]:
            self.transaction_sampler.notice(
                TransactionSample(
                    name=name,
                    start_time=txn.start_time,
                    duration=txn.duration,
                    uri=txn.uri,
                    attributes=txn.attributes,
                    segments=txn.segments,
                )
            )

        self.events.record(
            {
                "type": "Transaction",
                "name": name,
                "timestamp": int(txn.start_time * 1000),
                "duration": txn.duration,
                "error": exc is not None,
            },
            dict(txn.attributes),
        )

    def record_metric(self, name: str, value: float) -> None:
        self.stats_engine.record_metric(name, value)

    def notice_error(self, exc: BaseException, path: Optional[str] = None) -> None:
        state = self.transaction_state.tl_get()
        if path is None and state.current_transaction is not None:
            path = state.current_transaction.name
        self.error_collector.notice_error(exc, path=path)

    def record_event(self, event_type: str, attributes: Dict[str, Any]) -> None:
        self.events.record(
            {"type": event_type, "timestamp": int(time.time() * 1000)}, attributes
        )

    def add_custom_attribute(self, key: str, value: Any) -> None:
        """
        Attach an attribute to the transaction in flight, or to the next one
        started on this thread.
        """
        state = self.transaction_state.tl_get()
        if state.current_transaction is not None:
            state.current_transaction.add_custom_attribute(key, value)
        else:
            state.attributes[key] = value
