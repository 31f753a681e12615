import sys

import pytest
from loguru import logger

pytest_plugins = ["position_vaults.testing.local_protocol"]


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "scenario" in item.nodeid:
            item.add_marker(pytest.mark.scenario)


@pytest.fixture(autouse=True)
def _quiet_logs():
    logger.remove()
    logger.add(sys.stderr, level="WARNING")
    yield
    # the CLI reconfigures sinks on every invocation
    logger.remove()
