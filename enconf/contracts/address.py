# /enconf/contracts/address.py
# H160 address validation. Syntax only: no checksum, no network lookups.
import re
from web3 import Web3

from enconf.core.errors import InvalidAddressFormat

ADDRESS_BYTES = 20
_HEX_BODY = re.compile(r"[0-9a-fA-F]{40}")


def validate_address(raw) -> str:
    """Returns the canonical lower-case, ``0x``-prefixed form of *raw*.

    Accepts 40 hex characters with or without a ``0x`` prefix, in any case.
    Anything else raises :class:`InvalidAddressFormat`.
    """
    if not isinstance(raw, str):
        raise InvalidAddressFormat(raw)
    body = raw[2:] if raw[:2] in ("0x", "0X") else raw
    if not _HEX_BODY.fullmatch(body):
        raise InvalidAddressFormat(raw)
    decoded = Web3.to_bytes(hexstr=body)
    if len(decoded) != ADDRESS_BYTES:
        raise InvalidAddressFormat(raw)
    return Web3.to_hex(decoded)


def is_address(raw) -> bool:
    try:
        validate_address(raw)
    except InvalidAddressFormat:
        return False
    return True
