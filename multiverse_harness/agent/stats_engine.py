# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016

import threading
import time
from typing import Any, Dict, List, Tuple

from multiverse_harness.agent.rules import RulesEngine


class Stats(object):
    """Aggregated timings for one metric: count, total, min, max, sum of squares"""

    def __init__(self) -> None:
        self.call_count = 0
        self.total_call_time = 0.0
        self.min_call_time = 0.0
        self.max_call_time = 0.0
        self.sum_of_squares = 0.0

    def record(self, value: float) -> None:
        if self.call_count == 0 or value < self.min_call_time:
            self.min_call_time = value
        if value > self.max_call_time:
            self.max_call_time = value
        self.call_count += 1
        self.total_call_time += value
        self.sum_of_squares += value * value

    def merge(self, other: "Stats") -> None:
        if other.call_count == 0:
            return
        if self.call_count == 0 or other.min_call_time < self.min_call_time:
            self.min_call_time = other.min_call_time
        if other.max_call_time > self.max_call_time:
            self.max_call_time = other.max_call_time
        self.call_count += other.call_count
        self.total_call_time += other.total_call_time
        self.sum_of_squares += other.sum_of_squares

    def to_array(self) -> List[Any]:
        return [
            self.call_count,
            self.total_call_time,
            self.min_call_time,
            self.max_call_time,
            self.sum_of_squares,
        ]


class StatsEngine(object):
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.metric_rules = RulesEngine()
        self.stats: Dict[Tuple[str, str], Stats] = {}
        self.last_harvest = time.time()

    def record_metric(self, name: str, value: float, scope: str = "") -> None:
        name = self.metric_rules.rename(name)
        if name is None:
            return

        with self.lock:
            stats = self.stats.get((name, scope))
            if stats is None:
                stats = self.stats[(name, scope)] = Stats()
            stats.record(value)

    def harvest(self) -> Tuple[float, float, Dict[Tuple[str, str], Stats]]:
        """
        Hand over everything recorded since the last harvest.
        @return: (start, end, stats)
        """
        with self.lock:
            start, end = self.last_harvest, time.time()
            stats, self.stats = self.stats, {}
            self.last_harvest = end
        return start, end, stats

    def merge(self, stats: Dict[Tuple[str, str], Stats]) -> None:
        """
        Put back stats from a harvest that couldn't be delivered.
        """
        with self.lock:
            for key, other in stats.items():
                mine = self.stats.get(key)
                if mine is None:
                    mine = self.stats[key] = Stats()
                mine.merge(other)

    def reset(self) -> None:
        with self.lock:
            self.stats = {}
            self.last_harvest = time.time()

    @staticmethod
    def to_collector_array(stats: Dict[Tuple[str, str], Stats]) -> List[Any]:
        return [
            [{"name": name, "scope": scope}, s.to_array()]
            for (name, scope), s in stats.items()
        ]
