from eth_utils import keccak

FIELD_PRIME = 2**251 + 17 * 2**192 + 1
"""The order of the field Cairo felts live in."""

# Starknet selectors are Keccak-256 truncated to 250 bits so that they fit into a felt.
_SELECTOR_MASK = 2**250 - 1

# A felt holds 251 bits, so at most 31 full bytes.
SHORT_STRING_MAX_LENGTH = 31


def get_selector_from_name(name: str) -> int:
    """Returns the entry point selector corresponding to the function name."""
    return int.from_bytes(keccak(name.encode()), byteorder="big") & _SELECTOR_MASK


def encode_short_string(text: str) -> int:
    """
    Packs an ASCII string of at most 31 characters into a felt
    (big-endian, one byte per character).
    """
    if not text.isascii():
        raise ValueError(f"Short strings must be ASCII, got {text!r}")
    if len(text) > SHORT_STRING_MAX_LENGTH:
        raise ValueError(
            f"Short strings can have at most {SHORT_STRING_MAX_LENGTH} characters, "
            f"got {len(text)}"
        )
    return int.from_bytes(text.encode(), byteorder="big")


def decode_short_string(value: int) -> str:
    """Unpacks a felt produced by :py:func:`encode_short_string`."""
    if value < 0 or value >= FIELD_PRIME:
        raise ValueError(f"Not a felt: {value}")
    length = (value.bit_length() + 7) // 8
    return value.to_bytes(length, byteorder="big").decode("ascii")


def parse_felt_string(value: str) -> int:
    """Parses a hex (``0x``-prefixed) or a decimal felt representation."""
    if value.startswith(("0x", "0X")):
        return int(value, 16)
    return int(value, 10)


def normalize_address(address: int | str) -> str:
    """Returns the address as a lowercase ``0x``-prefixed hex string."""
    if isinstance(address, int):
        return hex(address)
    return address.lower()
