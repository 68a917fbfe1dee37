# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016

import threading
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from multiverse_harness.agent.transaction import Transaction

# Thread-local storage; every attribute the agent keeps here starts with "multiverse"
_tl = threading.local()

TL_KEY = "multiverse_transaction_state"


class TransactionState(object):
    """Per-thread bookkeeping for the transaction in flight"""

    def __init__(self) -> None:
        self.current_transaction: Optional["Transaction"] = None
        self.attributes: Dict[str, Any] = {}

    @classmethod
    def tl_get(cls) -> "TransactionState":
        state = getattr(_tl, TL_KEY, None)
        if state is None:
            state = cls()
            setattr(_tl, TL_KEY, state)
        return state

    @classmethod
    def tl_clear_for_testing(cls) -> None:
        """
        Drop every thread-local variable the agent set on the calling thread.
        """
        for name in list(vars(_tl)):
            if name.startswith("multiverse"):
                delattr(_tl, name)
