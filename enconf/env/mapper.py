# /enconf/env/mapper.py
# Translation between the structured config and the flat environment namespace
# consumed by the external node. load_from_env() is the only place that reads
# the process environment for node configuration.
import os
from typing import Mapping, Optional
from pydantic import BaseModel

from enconf.contracts.address import validate_address
from enconf.contracts.parser import parse_contracts
from enconf.contracts.schema import Contracts
from enconf.core.errors import ConfigValidationError, MissingRequiredField
from enconf.core.logger import get_logger
from enconf.env.runtime import LOG_DIRECTIVES_KEY, NodeRuntime, export_runtime, import_runtime

log = get_logger(__name__)

# (section path, field, env key, required). Order follows the schema field numbers.
CONTRACT_KEYS = (
    ("l1", "governance_addr", "EN_GOVERNANCE_ADDR", True),
    ("l1", "verifier_addr", "EN_VERIFIER_ADDR", True),
    ("l1", "diamond_proxy_addr", "EN_DIAMOND_PROXY_ADDR", True),
    ("l1", "validator_timelock_addr", "EN_VALIDATOR_TIMELOCK_ADDR", True),
    ("l1", "default_upgrade_addr", "EN_DEFAULT_UPGRADE_ADDR", True),
    ("l1", "multicall3_addr", "EN_L1_MULTICALL3_ADDR", True),
    ("l2", "testnet_paymaster_addr", "EN_L2_TESTNET_PAYMASTER_ADDR", False),
    ("bridges.erc20", "l1_address", "EN_L1_ERC20_BRIDGE_ADDR", False),
    ("bridges.erc20", "l2_address", "EN_L2_ERC20_BRIDGE_ADDR", False),
    ("bridges.weth", "l1_address", "EN_L1_WETH_BRIDGE_ADDR", False),
    ("bridges.weth", "l2_address", "EN_L2_WETH_BRIDGE_ADDR", False),
)


class ExternalNodeConfig(BaseModel):
    contracts: Contracts
    runtime: NodeRuntime

    class Config:
        frozen = True


def _lookup(contracts: Contracts, path: str, field: str) -> Optional[str]:
    node = contracts
    for part in path.split("."):
        node = getattr(node, part)
        if node is None:
            return None
    return getattr(node, field)


def export_env(contracts: Contracts, runtime: NodeRuntime) -> list[tuple[str, str]]:
    """Flattens the config into ordered ``(key, value)`` pairs.

    Infrastructure keys come first, then ``EN_`` runtime keys, then contract
    addresses in schema order, then the log directives. Absent values are
    left out entirely.
    """
    entries = export_runtime(runtime)
    for path, field, key, _ in CONTRACT_KEYS:
        value = _lookup(contracts, path, field)
        if value is not None:
            entries.append((key, value))
    if runtime.log_directives:
        entries.append((LOG_DIRECTIVES_KEY, runtime.log_directives))
    log.debug("ENV_EXPORTED", keys=len(entries))
    return entries


def import_env(mapping: Mapping[str, str]) -> Contracts:
    """Rebuilds :class:`Contracts` from env values, failing on the first bad key.

    Empty values count as absent.
    """
    source: dict = {}
    for path, field, key, required in CONTRACT_KEYS:
        raw = mapping.get(key)
        if raw is None or raw == "":
            if required:
                raise MissingRequiredField(key)
            continue
        validate_address(raw)
        node = source
        for part in path.split("."):
            node = node.setdefault(part, {})
        node[field] = raw
    try:
        return parse_contracts(source)
    except ConfigValidationError as e:
        raise e.errors[0] from e


def load_from_env(environ: Optional[Mapping[str, str]] = None) -> ExternalNodeConfig:
    """Reads the environment once and returns the immutable node configuration."""
    snapshot = dict(os.environ if environ is None else environ)
    config = ExternalNodeConfig(contracts=import_env(snapshot), runtime=import_runtime(snapshot))
    log.info(
        "EXTERNAL_NODE_CONFIG_LOADED",
        l1_chain_id=config.runtime.l1_chain_id,
        l2_chain_id=config.runtime.l2_chain_id,
        main_node_url=config.runtime.main_node_url,
    )
    return config
