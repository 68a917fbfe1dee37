# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016

import random
import threading
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from multiverse_harness.agent.host import MonitoringAgent


class EventAggregator(object):
    """
    Analytic events kept in a fixed size reservoir.  Once the reservoir is
    full, new events replace existing ones at random so every event seen has
    the same chance of being reported.
    """

    def __init__(self, agent: "MonitoringAgent") -> None:
        self.agent = agent
        self.lock = threading.Lock()
        self.events: List[List[Dict[str, Any]]] = []
        self.events_seen = 0

    @property
    def capacity(self) -> int:
        return self.agent.options["analytic_events.max_samples_stored"]

    def record(
        self,
        intrinsics: Dict[str, Any],
        user_attributes: Optional[Dict[str, Any]] = None,
        agent_attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not self.agent.options["analytic_events.enabled"]:
            return

        event = [intrinsics, user_attributes or {}, agent_attributes or {}]
        with self.lock:
            self.events_seen += 1
            if len(self.events) < self.capacity:
                self.events.append(event)
                return
            slot = random.randrange(self.events_seen)
            if slot < len(self.events):
                self.events[slot] = event

    def harvest(self) -> Tuple[Dict[str, int], List[List[Dict[str, Any]]]]:
        with self.lock:
            metadata = {
                "reservoir_size": self.capacity,
                "events_seen": self.events_seen,
            }
            events, self.events = self.events, []
            self.events_seen = 0
        return metadata, events

    def merge(self, metadata: Dict[str, int], events: List[List[Dict[str, Any]]]) -> None:
        with self.lock:
            room = self.capacity - len(self.events)
            self.events.extend(events[:max(room, 0)])
            self.events_seen += metadata.get("events_seen", len(events))

    def reset(self) -> None:
        with self.lock:
            self.events = []
            self.events_seen = 0
