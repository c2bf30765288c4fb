import re

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_address(address: object) -> bool:
    return isinstance(address, str) and ADDRESS_RE.fullmatch(address) is not None


def normalize_address(address: str) -> str:
    """Lowercase form used for storage and lookups. Raises ValueError on bad input."""
    if not is_valid_address(address):
        raise ValueError(f"Invalid wallet address: {address!r}")
    return address.lower()
