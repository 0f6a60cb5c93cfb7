import pytest
from pydantic import ValidationError

from enconf.contracts.parser import parse_contracts
from enconf.core.errors import EnvParseError, InvalidAddressFormat, MissingRequiredField
from enconf.env.mapper import CONTRACT_KEYS, export_env, import_env, load_from_env
from enconf.env.runtime import NodeRuntime, import_runtime

from helpers import addr

REQUIRED_RUNTIME_KEYS = [
    "DATABASE_URL",
    "DATABASE_POOL_SIZE",
    "EN_HTTP_PORT",
    "EN_WS_PORT",
    "EN_HEALTHCHECK_PORT",
    "EN_ETH_CLIENT_URL",
    "EN_MAIN_NODE_URL",
    "EN_L1_CHAIN_ID",
    "EN_L2_CHAIN_ID",
    "EN_STATE_CACHE_PATH",
    "EN_MERKLE_TREE_PATH",
]


@pytest.fixture
def env(contracts, runtime):
    return dict(export_env(contracts, runtime))


def test_export_contains_normalized_en_addresses(l1_source, runtime):
    contracts = parse_contracts({"l1": l1_source})
    entries = export_env(contracts, runtime)
    addresses = [(k, v) for k, v in entries if k.endswith("_ADDR")]
    assert addresses == [
        ("EN_GOVERNANCE_ADDR", addr(1)),
        ("EN_VERIFIER_ADDR", addr(2)),
        ("EN_DIAMOND_PROXY_ADDR", addr(3)),
        ("EN_VALIDATOR_TIMELOCK_ADDR", addr(4)),
        ("EN_DEFAULT_UPGRADE_ADDR", addr(5)),
        ("EN_L1_MULTICALL3_ADDR", addr(6)),
    ]


def test_export_order_is_deterministic(contracts, runtime):
    keys = [k for k, _ in export_env(contracts, runtime)]
    assert keys[:2] == ["DATABASE_URL", "DATABASE_POOL_SIZE"]
    assert keys[-1] == "RUST_LOG"
    assert keys == [k for k, _ in export_env(contracts, runtime)]
    assert all(k.startswith("EN_") for k in keys[2:-1])
    assert keys.index("EN_SNAPSHOTS_OBJECT_STORE_MODE") < keys.index("EN_GOVERNANCE_ADDR")
    assert keys[-12:-1] == [key for _, _, key, _ in CONTRACT_KEYS]


def test_export_matches_mainnet_surface(env):
    assert env["EN_HTTP_PORT"] == "3060"
    assert env["EN_WS_PORT"] == "3061"
    assert env["EN_HEALTHCHECK_PORT"] == "3081"
    assert env["EN_L1_CHAIN_ID"] == "1"
    assert env["EN_L2_CHAIN_ID"] == "324"
    assert env["DATABASE_POOL_SIZE"] == "10"
    assert env["EN_SNAPSHOTS_OBJECT_STORE_MODE"] == "GCSAnonymousReadOnly"
    assert env["EN_STATE_CACHE_PATH"] == "./db/ext-node/state_keeper"


def test_round_trip_full(contracts, runtime, env):
    assert import_env(env) == contracts
    assert import_runtime(env) == runtime


def test_round_trip_keeps_absent_optionals_absent(l1_source, runtime):
    contracts = parse_contracts({"l1": l1_source, "bridges": {"weth": {"l1_address": addr(9)}}})
    env = dict(export_env(contracts, runtime))
    assert "EN_L2_TESTNET_PAYMASTER_ADDR" not in env
    assert "EN_L2_WETH_BRIDGE_ADDR" not in env
    restored = import_env(env)
    assert restored == contracts
    assert restored.l2.testnet_paymaster_addr is None
    assert restored.bridges.erc20 is None
    assert restored.bridges.weth.l2_address is None


def test_optional_runtime_values_are_not_exported_empty(contracts, runtime):
    bare = runtime.model_copy(update={
        "snapshots_object_store_bucket_base_url": None,
        "snapshots_object_store_mode": None,
        "log_directives": None,
    })
    env = dict(export_env(contracts, bare))
    assert "RUST_LOG" not in env
    assert "EN_SNAPSHOTS_OBJECT_STORE_MODE" not in env
    assert import_runtime(env) == bare


def test_import_normalizes_addresses(env):
    env["EN_GOVERNANCE_ADDR"] = "AB" * 20
    assert import_env(env).l1.governance_addr == "0x" + "ab" * 20


def test_import_treats_empty_values_as_absent(env):
    env["EN_L2_TESTNET_PAYMASTER_ADDR"] = ""
    assert import_env(env).l2.testnet_paymaster_addr is None
    env["EN_VERIFIER_ADDR"] = ""
    with pytest.raises(MissingRequiredField) as exc:
        import_env(env)
    assert exc.value.name == "EN_VERIFIER_ADDR"


def test_import_fails_fast_on_first_bad_key(env):
    del env["EN_DIAMOND_PROXY_ADDR"]
    env["EN_L1_ERC20_BRIDGE_ADDR"] = "0xbad"
    with pytest.raises(MissingRequiredField) as exc:
        import_env(env)
    assert exc.value == MissingRequiredField("EN_DIAMOND_PROXY_ADDR")


def test_import_rejects_malformed_address(env):
    env["EN_L2_WETH_BRIDGE_ADDR"] = "0xbad"
    with pytest.raises(InvalidAddressFormat) as exc:
        import_env(env)
    assert exc.value.value == "0xbad"


@pytest.mark.parametrize("key", REQUIRED_RUNTIME_KEYS)
def test_missing_runtime_key(env, key):
    del env[key]
    with pytest.raises(MissingRequiredField) as exc:
        import_runtime(env)
    assert exc.value.name == key


@pytest.mark.parametrize(
    "key,value",
    [
        ("EN_HTTP_PORT", "http"),
        ("EN_WS_PORT", "0"),
        ("EN_HEALTHCHECK_PORT", "70000"),
        ("EN_L1_CHAIN_ID", "mainnet"),
        ("EN_L2_CHAIN_ID", "-324"),
        ("DATABASE_POOL_SIZE", "1.5"),
        ("EN_SNAPSHOTS_OBJECT_STORE_MODE", "Dropbox"),
    ],
)
def test_runtime_parse_errors(env, key, value):
    env[key] = value
    with pytest.raises(EnvParseError) as exc:
        import_runtime(env)
    assert exc.value.key == key


def test_load_from_env_uses_given_mapping(env, contracts, runtime):
    config = load_from_env(env)
    assert config.contracts == contracts
    assert config.runtime == runtime


def test_load_from_env_reads_process_environment_once(monkeypatch, env, contracts):
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    config = load_from_env()
    monkeypatch.setenv("EN_GOVERNANCE_ADDR", addr(9))
    assert config.contracts == contracts
    assert config.contracts.l1.governance_addr == addr(1)


def test_round_trip_non_default_runtime(contracts):
    runtime = NodeRuntime(
        database_url="postgres://node:pw@db.internal:6432/en_testnet",
        database_pool_size=75,
        http_port=4050,
        ws_port=4051,
        healthcheck_port=4081,
        eth_client_url="https://sepolia.example.org",
        main_node_url="https://main.example.org",
        l1_chain_id=11155111,
        l2_chain_id=300,
        state_cache_path="/var/lib/en/state",
        merkle_tree_path="/var/lib/en/tree",
        snapshots_object_store_bucket_base_url="/snapshots",
        snapshots_object_store_mode="FileBacked",
        log_directives="zksync_external_node=trace",
    )
    env = dict(export_env(contracts, runtime))
    assert import_runtime(env) == runtime


@pytest.mark.parametrize(
    "field,value",
    [
        ("snapshots_object_store_mode", "S3"),
        ("log_directives", ""),
        ("snapshots_object_store_bucket_base_url", ""),
        ("database_url", ""),
        ("state_cache_path", ""),
    ],
)
def test_runtime_rejects_values_the_env_cannot_carry(runtime, field, value):
    values = runtime.model_dump()
    values[field] = value
    with pytest.raises(ValidationError):
        NodeRuntime(**values)


@pytest.mark.parametrize("value", ["3_060", "+3060", " 3060", "3060 ", "３０６０"])
def test_ports_must_be_plain_decimal(env, value):
    env["EN_HTTP_PORT"] = value
    with pytest.raises(EnvParseError) as exc:
        import_runtime(env)
    assert exc.value.key == "EN_HTTP_PORT"


def test_negative_chain_id_hits_the_sign_check(env):
    env["EN_L1_CHAIN_ID"] = "-1"
    with pytest.raises(EnvParseError) as exc:
        import_runtime(env)
    assert "positive" in exc.value.reason
