L1_FIELDS = [
    "governance_addr",
    "verifier_addr",
    "diamond_proxy_addr",
    "validator_timelock_addr",
    "default_upgrade_addr",
    "multicall3_addr",
]


def addr(digit) -> str:
    return "0x" + str(digit) * 40
