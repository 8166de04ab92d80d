from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _quiet_regseries_loggers():
    """Reset package logger levels tests may have changed via caplog.at_level."""
    yield
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("regseries"):
            logging.getLogger(name).setLevel(logging.NOTSET)
