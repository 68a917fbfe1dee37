# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2018

from typing import Optional

from multiverse_harness.agent.host import MonitoringAgent


def run_failing_transaction(
    agent: MonitoringAgent,
    name: str = "Controller/orders/create",
    uri: Optional[str] = "/orders",
    message: str = "boom",
) -> None:
    """
    Run a transaction on <agent> that raises a ValueError, and swallow the error.
    """
    try:
        with agent.transaction(name, uri=uri):
            raise ValueError(message)
    except ValueError:
        pass


def warnings_in(caplog, message: str) -> list:
    """The WARNING records from <caplog> whose message contains <message>"""
    return [
        record
        for record in caplog.records
        if record.levelname == "WARNING" and message in record.getMessage()
    ]
