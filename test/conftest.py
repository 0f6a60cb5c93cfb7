import pytest
import structlog

from enconf.contracts.parser import parse_contracts
from enconf.deployment.presets import default_runtime
from enconf.env.mapper import ExternalNodeConfig

from helpers import L1_FIELDS, addr


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def l1_source():
    return {name: addr(i) for i, name in enumerate(L1_FIELDS, start=1)}


@pytest.fixture
def full_source(l1_source):
    return {
        "l1": l1_source,
        "l2": {"testnet_paymaster_addr": "0x" + "AB" * 20},
        "bridges": {
            "erc20": {"l1_address": addr(7), "l2_address": addr(8)},
            "weth": {"l1_address": addr(9), "l2_address": "0x" + "cd" * 20},
        },
    }


@pytest.fixture
def contracts(full_source):
    return parse_contracts(full_source)


@pytest.fixture
def runtime():
    return default_runtime("mainnet")


@pytest.fixture
def node_config(contracts, runtime):
    return ExternalNodeConfig(contracts=contracts, runtime=runtime)
