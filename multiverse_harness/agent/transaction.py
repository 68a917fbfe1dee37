# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016

import time
from types import TracebackType
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type

from multiverse_harness.agent.transaction_state import TransactionState

if TYPE_CHECKING:
    from multiverse_harness.agent.host import MonitoringAgent


class Transaction(object):
    """
    A unit of work timed by the agent, used as a context manager:

        with agent.transaction("Controller/users/show", uri="/users/1"):
            ...

    Nested transactions are folded into the outermost one as segments.
    Exceptions are noticed and re-raised.
    """

    def __init__(
        self, agent: "MonitoringAgent", name: str, uri: Optional[str] = None
    ) -> None:
        self.agent = agent
        self.name = name
        self.uri = uri
        self.parent: Optional["Transaction"] = None
        self.attributes: Dict[str, Any] = {}
        self.segments: List[Any] = []
        self.start_time = 0.0
        self.duration = 0.0

    def add_custom_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def __enter__(self) -> "Transaction":
        state = TransactionState.tl_get()
        self.parent = state.current_transaction
        if self.parent is None and state.attributes:
            self.attributes.update(state.attributes)
        state.current_transaction = self
        self.start_time = time.time()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> bool:
        self.duration = time.time() - self.start_time
        state = TransactionState.tl_get()
        state.current_transaction = self.parent

        if self.parent is not None:
            offset_ms = int((self.start_time - self.parent.start_time) * 1000)
            self.parent.segments.append(
                [offset_ms, offset_ms + int(self.duration * 1000), self.name, {}, self.segments]
            )
            return False

        state.attributes = {}
        self.agent.record_transaction(self, exc_val)
        return False
