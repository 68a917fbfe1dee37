# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016

import os
import socket
import threading
from typing import TYPE_CHECKING, Any, Optional

from fysom import Fysom

from multiverse_harness.exceptions import CollectorError
from multiverse_harness.log import logger
from multiverse_harness.version import VERSION

if TYPE_CHECKING:
    from multiverse_harness.agent.host import MonitoringAgent


class ConnectMachine:
    """
    Tracks the connection of the agent to its collector:

        none -> pending -> connected
                        -> disconnected (handshake failed)
        *    -> disconnected (shutdown)
    """

    THREAD_NAME = "Multiverse Connect"

    def __init__(self, agent: "MonitoringAgent") -> None:
        logger.debug("Initializing agent connect state machine")

        self.agent = agent
        self.thread = None
        # Bumped whenever a new handshake is requested; older handshakes see
        # the change and give up without touching the agent
        self.generation = 0
        self.lock = threading.RLock()
        self.fsm = self._build_fsm()

    def _build_fsm(self) -> Fysom:
        return Fysom(
            {
                "events": [
                    ("pending", "*", "pending"),
                    ("connect", "pending", "connected"),
                    ("fail", "pending", "disconnected"),
                    ("disconnect", "*", "disconnected"),
                ],
                "callbacks": {
                    # Can add the following to debug
                    # "onchangestate":  self.print_state_change,
                    "onconnected": self.on_connected,
                },
            }
        )

    @staticmethod
    def print_state_change(e: Any) -> None:
        logger.debug(
            f"========= ({os.getpid()}#{threading.current_thread().name}) FSM event: {e.event}, src: {e.src}, dst: {e.dst} =========="
        )

    @property
    def current(self) -> str:
        return self.fsm.current

    def is_connected(self) -> bool:
        return self.fsm.current == "connected"

    def is_pending(self) -> bool:
        return self.fsm.current == "pending"

    def pending(self) -> None:
        """
        Forget the current connection; the next start will run a new handshake.
        """
        with self.lock:
            self.generation += 1
            self.fsm.pending()

    def disconnect(self) -> None:
        self.fsm.disconnect()

    def reset(self) -> None:
        """
        Back to the state of a freshly booted process.
        """
        logger.debug("Connect state machine being reset.")
        with self.lock:
            self.generation += 1
            self.fsm = self._build_fsm()

    def start(self, sync_startup: bool = False, force_reconnect: bool = False) -> None:
        """
        Kick off the connect handshake.  With sync_startup the handshake runs on
        the calling thread and has resolved once this returns.
        """
        if self.is_connected() and not force_reconnect:
            logger.debug("Already connected to the collector; not reconnecting.")
            return

        if not self.is_pending():
            self.pending()

        if sync_startup:
            self.connect_to_collector()
            return

        self.thread = threading.Thread(
            target=self.connect_to_collector,
            args=(self.generation,),
            name=self.THREAD_NAME,
        )
        self.thread.daemon = True
        self.thread.start()

    def superseded(self, generation: int) -> bool:
        if generation == self.generation:
            return False
        logger.debug(f"Handshake #{generation} superseded by #{self.generation}; dropping it.")
        return True

    def connect_to_collector(self, generation: Optional[int] = None) -> bool:
        """
        Run the preconnect/connect handshake.  A handshake whose generation is
        no longer current leaves the agent and the machine alone.
        """
        if generation is None:
            generation = self.generation

        service = self.agent.service
        logger.debug(
            f"Attempting to connect to the collector on {service.collector.host}:{service.collector.port}"
        )

        try:
            redirect = service.preconnect()
            if self.superseded(generation):
                return False
            if isinstance(redirect, dict) and redirect.get("redirect_host"):
                service.collector.host = redirect["redirect_host"]

            config_data = service.connect(self.connect_settings())
        except CollectorError as exc:
            with self.lock:
                if self.superseded(generation):
                    return False
                logger.warning(f"Failed to connect to the collector: {exc}")
                if self.is_pending():
                    self.fsm.fail()
            return False

        with self.lock:
            if self.superseded(generation):
                return False

            if not self.is_pending():
                # Shut down while the handshake was in flight.
                logger.debug(f"Connect state changed to {self.current} during handshake.")
                return False

            self.agent.finish_setup(config_data or {})
            self.fsm.connect()
        return True

    def connect_settings(self) -> dict:
        options = self.agent.options
        return {
            "pid": os.getpid(),
            "host": socket.gethostname(),
            "app_name": [options["app_name"]],
            "language": "python",
            "agent_version": VERSION,
            "settings": options.to_dict(),
        }

    def on_connected(self, _: Any) -> None:
        logger.info(
            f"Connected to the collector. We're in business. Agent run id: {self.agent.agent_run_id}"
        )
