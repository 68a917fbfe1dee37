# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2020

"""
The transport between the agent and its collector.  Every remote method is a
POST of a JSON body to a single endpoint, with the method name and the agent
run id passed as query parameters.
"""

import gzip
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import requests
import urllib3

from multiverse_harness.exceptions import CollectorException, ServerConnectionError
from multiverse_harness.log import logger
from multiverse_harness.util import to_json

if TYPE_CHECKING:
    from multiverse_harness.agent.host import MonitoringAgent


class CollectorTarget(object):
    """Where the agent sends its data"""

    PROTOCOL_PATH = "agent_listener/invoke_raw_method"

    def __init__(self, host: str, port: int) -> None:
        self.host = host
        self.port = port

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/{self.PROTOCOL_PATH}"

    def __repr__(self) -> str:
        return f"<CollectorTarget {self.host}:{self.port}>"


class CollectorService(object):
    def __init__(self, agent: "MonitoringAgent") -> None:
        self.agent = agent
        self.collector = CollectorTarget(
            agent.options["host"], agent.options["port"]
        )

    def preconnect(self) -> Any:
        return self.invoke_remote("preconnect", [])

    def connect(self, settings: Dict[str, Any]) -> Any:
        return self.invoke_remote("connect", [settings])

    def shutdown(self) -> Any:
        return self.invoke_remote("shutdown", [self.agent.agent_run_id])

    def metric_data(self, start: float, end: float, metrics: List[Any]) -> Any:
        return self.invoke_remote(
            "metric_data", [self.agent.agent_run_id, start, end, metrics]
        )

    def transaction_sample_data(self, samples: List[Any]) -> Any:
        return self.invoke_remote(
            "transaction_sample_data", [self.agent.agent_run_id, samples]
        )

    def error_data(self, errors: List[Any]) -> Any:
        return self.invoke_remote("error_data", [self.agent.agent_run_id, errors])

    def analytic_event_data(self, metadata: Dict[str, Any], events: List[Any]) -> Any:
        return self.invoke_remote(
            "analytic_event_data", [self.agent.agent_run_id, metadata, events]
        )

    def compress(self, data: bytes, headers: Dict[str, str]) -> bytes:
        options = self.agent.options
        if (
            len(data) > options["compression_threshold"]
            and options["compressed_content_encoding"] == "gzip"
        ):
            headers["Content-Encoding"] = "gzip"
            return gzip.compress(data)
        return data

    def invoke_remote(self, method: str, payload: Any) -> Any:
        """
        Call <method> on the collector.
        @return: the "return_value" of the collector response
        @raise ServerConnectionError: the collector couldn't be reached or didn't answer 200
        @raise CollectorException: the collector answered with an exception
        """
        params = {
            "method": method,
            "license_key": self.agent.options["license_key"],
            "marshal_format": "json",
        }
        if self.agent.agent_run_id is not None:
            params["run_id"] = self.agent.agent_run_id

        headers = {"Content-Type": "application/json"}
        data = self.compress(to_json(payload), headers)

        try:
            response = self.agent.client.post(
                self.collector.url,
                params=params,
                data=data,
                headers=headers,
                timeout=self.agent.options["timeout"],
            )
        except (requests.exceptions.RequestException, urllib3.exceptions.HTTPError) as exc:
            raise ServerConnectionError(
                f"{method}: collector connection error ({type(exc).__name__})"
            ) from exc

        if response.status_code != 200:
            raise ServerConnectionError(
                f"{method}: response status code ({response.status_code}) is NOT 200"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ServerConnectionError(
                f"{method}: response is not JSON: ({response.text})"
            ) from exc

        if not hasattr(body, "get"):
            raise ServerConnectionError(f"{method}: response has no fields: ({body})")

        if "exception" in body:
            exception = body["exception"] or {}
            raise CollectorException(
                exception.get("error_type", "RuntimeError"),
                exception.get("message", ""),
            )

        logger.debug(f"invoke_remote: {method} succeeded")
        return body.get("return_value")
