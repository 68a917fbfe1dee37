# coding=utf-8
# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2016
"""
multiverse_harness

A test harness that runs a monitoring agent against a local fake collector,
so integration tests can drive real connect, harvest and shutdown cycles and
inspect exactly what the agent transmitted.

Typical use from a pytest conftest.py:

    pytest_plugins = ("multiverse_harness.testing.pytest_plugin",)
"""

from multiverse_harness.version import VERSION

__license__ = "MIT"
__version__ = VERSION
