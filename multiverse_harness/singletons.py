# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2018

from typing import Optional

from multiverse_harness.agent.host import MonitoringAgent

agent = MonitoringAgent()


def get_agent() -> MonitoringAgent:
    """
    Retrieve the globally configured agent
    @return: The agent singleton
    """
    global agent
    return agent


def set_agent(new_agent: MonitoringAgent) -> None:
    """
    Set the global agent.  This is used for the test suite only currently.

    @param new_agent: agent to replace current singleton
    @return: None
    """
    global agent
    agent = new_agent


def reset_control(target: Optional[MonitoringAgent] = None) -> None:
    """
    Reset the process-wide control state that survives a shutdown: the harvest
    thread is stopped, the connect state machine goes back to its boot state
    and the run id is forgotten.

    @param target: the agent to reset, defaults to the singleton
    @return: None
    """
    target = target or get_agent()
    target.stop_harvest_thread()
    target.machine.reset()
    target.agent_run_id = None
