# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016

import threading
import uuid
from typing import Any, Dict, List, Optional


class TransactionSample(object):
    """A finished transaction trace, ready to be reported"""

    def __init__(
        self,
        name: str,
        start_time: float,
        duration: float,
        uri: Optional[str] = None,
        attributes: Optional[Dict[str, Any]] = None,
        segments: Optional[List[Any]] = None,
    ) -> None:
        self.name = name
        self.start_time = start_time
        self.duration = duration
        self.uri = uri
        self.attributes = attributes or {}
        self.segments = segments or []
        self.guid = uuid.uuid4().hex[:16]

    def trace_tree(self) -> List[Any]:
        duration_ms = int(self.duration * 1000)
        root = [0, duration_ms, "ROOT", {}, [
            [0, duration_ms, self.name, dict(self.attributes), list(self.segments)]
        ]]
        return root

    def to_collector_array(self) -> List[Any]:
        return [
            int(self.start_time * 1000),
            int(self.duration * 1000),
            self.name,
            self.uri,
            self.trace_tree(),
            self.guid,
        ]


class TransactionSampler(object):
    """Keeps the slowest transaction trace seen in each harvest cycle"""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.harvest_sample: Optional[TransactionSample] = None

    def notice(self, sample: TransactionSample) -> None:
        with self.lock:
            if (
                self.harvest_sample is None
                or sample.duration > self.harvest_sample.duration
            ):
                self.harvest_sample = sample

    def harvest(self) -> List[TransactionSample]:
        with self.lock:
            sample, self.harvest_sample = self.harvest_sample, None
        return [sample] if sample is not None else []

    def merge(self, samples: List[TransactionSample]) -> None:
        for sample in samples:
            self.notice(sample)

    def reset(self) -> None:
        with self.lock:
            self.harvest_sample = None
