# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016

import threading
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from multiverse_harness.log import logger

if TYPE_CHECKING:
    from multiverse_harness.agent.host import MonitoringAgent


class NoticedError(object):
    def __init__(
        self,
        path: str,
        message: str,
        exception_class_name: str,
        params: Optional[Dict[str, Any]] = None,
        timestamp: Optional[float] = None,
    ) -> None:
        self.path = path
        self.message = message
        self.exception_class_name = exception_class_name
        self.params = params or {}
        self.timestamp = timestamp if timestamp is not None else time.time()

    def to_collector_array(self) -> List[Any]:
        return [
            int(self.timestamp * 1000),
            self.path,
            self.message,
            self.exception_class_name,
            self.params,
        ]


class ErrorCollector(object):
    """
    Collects exceptions noticed by the agent until the next harvest.

    The ignore filter is a callable receiving the exception; when it returns
    something falsy the exception is dropped.
    """

    MAX_ERROR_QUEUE_LENGTH = 20

    def __init__(self, agent: "MonitoringAgent") -> None:
        self.agent = agent
        self.lock = threading.Lock()
        self.errors: List[NoticedError] = []
        self.ignore_filter: Optional[Callable[[BaseException], Any]] = None

    def ignore_error_filter(self, fn: Callable[[BaseException], Any]) -> None:
        self.ignore_filter = fn

    def reset_ignore_filter(self) -> None:
        self.ignore_filter = None

    def is_ignored(self, exc: BaseException) -> bool:
        if self.ignore_filter is None:
            return False
        return not self.ignore_filter(exc)

    def notice_error(
        self,
        exc: BaseException,
        path: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Optional[NoticedError]:
        if not self.agent.options["error_collector.enabled"]:
            return None

        if self.is_ignored(exc):
            logger.debug(f"Ignoring error {type(exc).__name__} per ignore filter")
            return None

        error = NoticedError(
            path=path or "Unknown",
            message=str(exc),
            exception_class_name=type(exc).__name__,
            params=params,
        )

        with self.lock:
            if len(self.errors) >= self.MAX_ERROR_QUEUE_LENGTH:
                logger.debug("Error queue is full; dropping noticed error")
                return None
            self.errors.append(error)
        return error

    def harvest(self) -> List[NoticedError]:
        with self.lock:
            errors, self.errors = self.errors, []
        return errors

    def merge(self, errors: List[NoticedError]) -> None:
        with self.lock:
            room = self.MAX_ERROR_QUEUE_LENGTH - len(self.errors)
            self.errors = errors[:max(room, 0)] + self.errors

    def drop_buffered_data(self) -> None:
        with self.lock:
            self.errors = []
