# /enconf/contracts/schema.py
# Immutable contract address model. Field numbers mirror the wire schema and
# define iteration order everywhere (parsing, error reports, env export).
#
# Every address is nullable at the model level. Required-ness of the L1 fields
# is enforced by the parser's presence check, not by the model.
from typing import Any, ClassVar, Dict, Optional
from pydantic import BaseModel, Field, field_validator

from enconf.contracts.address import validate_address


def _canonical(value):
    return None if value is None else validate_address(value)


class _Message(BaseModel):
    FIELD_NUMBERS: ClassVar[Dict[str, int]] = {}

    class Config:
        frozen = True
        extra = "forbid"

    @classmethod
    def field_names(cls) -> list[str]:
        return sorted(cls.FIELD_NUMBERS, key=cls.FIELD_NUMBERS.__getitem__)

    def to_source(self) -> Dict[str, Any]:
        """Structured document form; absent values are omitted."""
        out: Dict[str, Any] = {}
        for name in self.field_names():
            value = getattr(self, name)
            if isinstance(value, _Message):
                value = value.to_source()
                if not value:
                    continue
            if value is not None:
                out[name] = value
        return out


class L1(_Message):
    FIELD_NUMBERS: ClassVar[Dict[str, int]] = {
        "governance_addr": 1,
        "verifier_addr": 2,
        "diamond_proxy_addr": 3,
        "validator_timelock_addr": 4,
        "default_upgrade_addr": 5,
        "multicall3_addr": 6,
    }

    governance_addr: Optional[str] = None
    verifier_addr: Optional[str] = None
    diamond_proxy_addr: Optional[str] = None
    validator_timelock_addr: Optional[str] = None
    default_upgrade_addr: Optional[str] = None
    multicall3_addr: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def normalize_address(cls, value):
        return _canonical(value)


class L2(_Message):
    FIELD_NUMBERS: ClassVar[Dict[str, int]] = {"testnet_paymaster_addr": 1}

    testnet_paymaster_addr: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def normalize_address(cls, value):
        return _canonical(value)


class Bridge(_Message):
    """One L1/L2 contract pair. Either side may be missing (asymmetric deployments)."""
    FIELD_NUMBERS: ClassVar[Dict[str, int]] = {"l1_address": 1, "l2_address": 2}

    l1_address: Optional[str] = None
    l2_address: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def normalize_address(cls, value):
        return _canonical(value)

    @property
    def is_empty(self) -> bool:
        return self.l1_address is None and self.l2_address is None


class Bridges(_Message):
    FIELD_NUMBERS: ClassVar[Dict[str, int]] = {"erc20": 1, "weth": 2}

    erc20: Optional[Bridge] = None
    weth: Optional[Bridge] = None

    @field_validator("erc20", "weth", mode="after")
    @classmethod
    def drop_empty_bridge(cls, value: Optional[Bridge]) -> Optional[Bridge]:
        # A bridge with neither side set carries no information.
        if value is not None and value.is_empty:
            return None
        return value


class Contracts(_Message):
    FIELD_NUMBERS: ClassVar[Dict[str, int]] = {"l1": 1, "l2": 2, "bridges": 3}

    l1: Optional[L1] = None
    l2: L2 = Field(default_factory=L2)
    bridges: Bridges = Field(default_factory=Bridges)
