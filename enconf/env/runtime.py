# /enconf/env/runtime.py
# Runtime parameters that travel next to the contract addresses in the node's
# environment. Values are parsed from strings here; env access lives in mapper.py.
from typing import Literal, Mapping, Optional, get_args
from pydantic import BaseModel, Field

from enconf.core.errors import EnvParseError, MissingRequiredField

SnapshotStoreMode = Literal["GCS", "GCSWithCredentialFile", "GCSAnonymousReadOnly", "FileBacked"]
SNAPSHOT_STORE_MODES = get_args(SnapshotStoreMode)

DEFAULT_HTTP_PORT = 3060
DEFAULT_WS_PORT = 3061
DEFAULT_HEALTHCHECK_PORT = 3081


class NodeRuntime(BaseModel):
    database_url: str = Field(min_length=1)
    database_pool_size: int = Field(gt=0)
    http_port: int = Field(DEFAULT_HTTP_PORT, ge=1, le=65535)
    ws_port: int = Field(DEFAULT_WS_PORT, ge=1, le=65535)
    healthcheck_port: int = Field(DEFAULT_HEALTHCHECK_PORT, ge=1, le=65535)
    eth_client_url: str = Field(min_length=1)
    main_node_url: str = Field(min_length=1)
    l1_chain_id: int = Field(gt=0)
    l2_chain_id: int = Field(gt=0)
    state_cache_path: str = Field(min_length=1)
    merkle_tree_path: str = Field(min_length=1)
    # Optional values are absent or non-empty; an empty string cannot survive the env.
    snapshots_object_store_bucket_base_url: Optional[str] = Field(None, min_length=1)
    snapshots_object_store_mode: Optional[SnapshotStoreMode] = None
    log_directives: Optional[str] = Field(None, min_length=1)

    class Config:
        frozen = True
        extra = "forbid"

    @property
    def exposed_ports(self) -> tuple[int, int, int]:
        return (self.http_port, self.ws_port, self.healthcheck_port)


# (field, env key, kind, required). Order is the export order.
RUNTIME_KEYS = (
    ("database_url", "DATABASE_URL", "str", True),
    ("database_pool_size", "DATABASE_POOL_SIZE", "positive", True),
    ("http_port", "EN_HTTP_PORT", "port", True),
    ("ws_port", "EN_WS_PORT", "port", True),
    ("healthcheck_port", "EN_HEALTHCHECK_PORT", "port", True),
    ("eth_client_url", "EN_ETH_CLIENT_URL", "str", True),
    ("main_node_url", "EN_MAIN_NODE_URL", "str", True),
    ("l1_chain_id", "EN_L1_CHAIN_ID", "positive", True),
    ("l2_chain_id", "EN_L2_CHAIN_ID", "positive", True),
    ("state_cache_path", "EN_STATE_CACHE_PATH", "str", True),
    ("merkle_tree_path", "EN_MERKLE_TREE_PATH", "str", True),
    ("snapshots_object_store_bucket_base_url", "EN_SNAPSHOTS_OBJECT_STORE_BUCKET_BASE_URL", "str", False),
    ("snapshots_object_store_mode", "EN_SNAPSHOTS_OBJECT_STORE_MODE", "mode", False),
)
LOG_DIRECTIVES_KEY = "RUST_LOG"


def _parse_int(key: str, raw: str) -> int:
    # Plain decimal only: no padding, underscores or "+" sign.
    digits = raw[1:] if raw.startswith("-") else raw
    if not (digits.isascii() and digits.isdigit()):
        raise EnvParseError(key, f"expected an integer, got {raw!r}")
    return int(raw, 10)


def parse_value(key: str, kind: str, raw: str):
    if kind == "str":
        return raw
    if kind == "mode":
        if raw not in SNAPSHOT_STORE_MODES:
            raise EnvParseError(key, f"unknown object store mode {raw!r}")
        return raw
    value = _parse_int(key, raw)
    if kind == "port" and not 1 <= value <= 65535:
        raise EnvParseError(key, f"port {value} out of range 1..65535")
    if kind == "positive" and value <= 0:
        raise EnvParseError(key, f"expected a positive integer, got {value}")
    return value


def import_runtime(mapping: Mapping[str, str]) -> NodeRuntime:
    """Parses runtime parameters, failing on the first bad or missing key."""
    values = {}
    for field, key, kind, required in RUNTIME_KEYS:
        raw = mapping.get(key)
        if raw is None or raw == "":
            if required:
                raise MissingRequiredField(key)
            continue
        values[field] = parse_value(key, kind, raw)
    directives = mapping.get(LOG_DIRECTIVES_KEY)
    if directives:
        values["log_directives"] = directives
    return NodeRuntime(**values)


def export_runtime(runtime: NodeRuntime) -> list[tuple[str, str]]:
    entries = []
    for field, key, _, _ in RUNTIME_KEYS:
        value = getattr(runtime, field)
        if value is not None:
            entries.append((key, str(value)))
    return entries
