import copy

import pytest

from gauge_unstaker.core import config as config_module


def pytest_configure(config):
    config.addinivalue_line("markers", "smoke: mark test as a smoke test")
    config.addinivalue_line("markers", "integration: mark test as integration")


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "smoke" in item.nodeid:
            item.add_marker(pytest.mark.smoke)


@pytest.fixture
def restore_global_config():
    snapshot = copy.deepcopy(config_module.CONFIG)
    try:
        yield config_module.CONFIG
    finally:
        config_module.set_config(snapshot)


@pytest.fixture
def optimism_rpc_config(restore_global_config):
    config_module.set_config({"rpc_urls": {"10": ["https://rpc.example/op"]}})
    return config_module.CONFIG
