"""
TRON address encoding utilities.

Supports:
- base58check: T... (34 chars), the user-facing format
- hex: 41 + 20-byte account id (42 hex chars)
- 0x-prefixed 20-byte hex, read as the same account id under the 0x41 prefix
"""

import string

from bip_utils import Base58ChecksumError, Base58Decoder, Base58Encoder, TrxAddrEncoder

from .errors import InvalidAddressError

ADDRESS_PREFIX = 0x41
ADDRESS_LENGTH = 21

_HEX_DIGITS = set(string.hexdigits)


def _is_hex(value: str) -> bool:
    return bool(value) and all(c in _HEX_DIGITS for c in value)


def decode_tron_address(address: str) -> bytes:
    """
    Decode an address to its 21-byte form (0x41 prefix + account id).

    Raises:
        InvalidAddressError: If the address is malformed or not 0x41-prefixed
    """
    if not isinstance(address, str) or not address:
        raise InvalidAddressError(address)

    if address.startswith(("0x", "0X")):
        body = address[2:]
        if len(body) != 40 or not _is_hex(body):
            raise InvalidAddressError(address)
        return bytes([ADDRESS_PREFIX]) + bytes.fromhex(body)

    if len(address) == ADDRESS_LENGTH * 2 and _is_hex(address):
        raw = bytes.fromhex(address)
    else:
        try:
            raw = Base58Decoder.CheckDecode(address)
        except (ValueError, Base58ChecksumError) as e:
            raise InvalidAddressError(address) from e

    if len(raw) != ADDRESS_LENGTH or raw[0] != ADDRESS_PREFIX:
        raise InvalidAddressError(address)

    return raw


def to_hex_address(address: str) -> str:
    """Convert any supported address format to 41-prefixed lowercase hex."""
    return decode_tron_address(address).hex()


def to_base58_address(address: str) -> str:
    """Convert any supported address format to base58check (T...)."""
    return Base58Encoder.CheckEncode(decode_tron_address(address))


def address_to_bytes20(address: str) -> bytes:
    """Return the 20-byte account id used in ABI encoding."""
    return decode_tron_address(address)[1:]


def is_address(address: str) -> bool:
    """Check whether a value is a valid TRON address in any supported format."""
    try:
        decode_tron_address(address)
    except InvalidAddressError:
        return False
    return True


def public_key_to_address(public_key: bytes) -> str:
    """Derive the base58check address of a secp256k1 public key."""
    return TrxAddrEncoder.EncodeKey(public_key)
