# /enconf/contracts/parser.py
# Builds a Contracts value from a structured document (proto JSON shape),
# collecting every defect in one pass instead of stopping at the first.
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from enconf.contracts.address import validate_address
from enconf.contracts.schema import Bridge, Bridges, Contracts, L1, L2
from enconf.core.errors import (
    ConfigError,
    InvalidSection,
    MissingRequiredField,
    UnsupportedConfigFormat,
    raise_collected,
)
from enconf.core.logger import get_logger

log = get_logger(__name__)


def _section(source: Mapping, key: str, path: str, errors: List[ConfigError]) -> Optional[Mapping]:
    """Returns the nested mapping, {} when absent, None when malformed (already reported)."""
    value = source.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        errors.append(InvalidSection(path))
        return None
    unknown = set(value) - set(_KNOWN_KEYS.get(path, ()))
    if unknown:
        log.warning("UNKNOWN_CONFIG_KEYS_IGNORED", section=path, keys=sorted(map(str, unknown)))
    return value


def _addresses(
    section: Optional[Mapping],
    model,
    prefix: str,
    errors: List[ConfigError],
    required: bool = False,
) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    if section is None:
        return values
    for name in model.field_names():
        raw = section.get(name)
        if raw is None:
            if required:
                errors.append(MissingRequiredField(f"{prefix}.{name}"))
            continue
        try:
            values[name] = validate_address(raw)
        except ConfigError as e:
            errors.append(e)
    return values


def parse_contracts(source: Mapping) -> Contracts:
    """Validates *source* and returns an immutable :class:`Contracts`.

    Every L1 address must be present. L2 and bridge addresses may be left out
    and stay ``None``. All problems are raised together as a single
    :class:`~enconf.core.errors.ConfigValidationError`.
    """
    errors: List[ConfigError] = []
    if not isinstance(source, Mapping):
        raise_collected([InvalidSection("<root>")])

    unknown = set(source) - set(_KNOWN_KEYS["<root>"])
    if unknown:
        log.warning("UNKNOWN_CONFIG_KEYS_IGNORED", section="<root>", keys=sorted(map(str, unknown)))

    l1 = _addresses(_section(source, "l1", "l1", errors), L1, "l1", errors, required=True)
    l2 = _addresses(_section(source, "l2", "l2", errors), L2, "l2", errors)

    bridges_src = _section(source, "bridges", "bridges", errors) or {}
    bridges: Dict[str, Bridge] = {}
    for name in Bridges.field_names():
        path = f"bridges.{name}"
        pair = _addresses(_section(bridges_src, name, path, errors), Bridge, path, errors)
        bridges[name] = Bridge(**pair)

    raise_collected(errors)

    contracts = Contracts(l1=L1(**l1), l2=L2(**l2), bridges=Bridges(**bridges))
    log.info(
        "CONTRACTS_PARSED",
        diamond_proxy=contracts.l1.diamond_proxy_addr,
        erc20_bridge=contracts.bridges.erc20 is not None,
        weth_bridge=contracts.bridges.weth is not None,
    )
    return contracts


def _read_document(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            return json.load(f)
        return yaml.safe_load(f) or {}


def load_contracts_file(path) -> Contracts:
    """Reads a YAML or JSON document, optionally nested under ``contracts:``."""
    path = Path(path)
    if path.suffix.lower() not in (".yaml", ".yml", ".json"):
        raise UnsupportedConfigFormat(str(path))
    document = _read_document(path)
    if isinstance(document, Mapping) and isinstance(document.get("contracts"), Mapping):
        document = document["contracts"]
    log.debug("CONTRACTS_DOCUMENT_LOADED", path=str(path))
    return parse_contracts(document)


_KNOWN_KEYS = {
    "<root>": Contracts.field_names(),
    "l1": L1.field_names(),
    "l2": L2.field_names(),
    "bridges": Bridges.field_names(),
    "bridges.erc20": Bridge.field_names(),
    "bridges.weth": Bridge.field_names(),
}
