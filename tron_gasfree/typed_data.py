"""
TIP-712 typed structured data hashing and signing.

TIP-712 is TRON's port of EIP-712: same canonical type strings, same
struct hashing and the same 0x1901-prefixed digest. The only differences
are at the field level:
- ``address`` values are TRON addresses (base58check or 41-prefixed hex),
  encoded as the 20-byte account id
- ``trcToken`` values are plain integers (encoded as uint256)

Signing is done in-process with the account's private key; no network
access is needed.
"""

import re
from typing import Any, Mapping, Optional, Sequence

from eth_abi import encode
from eth_account import Account
from eth_keys import keys
from eth_utils import keccak
import structlog

from .address import address_to_bytes20, public_key_to_address
from .errors import TypedDataError

logger = structlog.get_logger()


TypeMap = Mapping[str, Sequence[Mapping[str, str]]]

DOMAIN_TYPE_NAME = "EIP712Domain"

# Canonical domain field order; only the fields present in a domain are used.
DOMAIN_FIELDS: list[tuple[str, str]] = [
    ("name", "string"),
    ("version", "string"),
    ("chainId", "uint256"),
    ("verifyingContract", "address"),
    ("salt", "bytes32"),
]

TYPED_DATA_PREFIX = b"\x19\x01"

_ARRAY_SUFFIX = re.compile(r"\[\d*\]$")


def _base_type(type_name: str) -> str:
    """Strip one trailing array suffix (``Person[]`` -> ``Person``)."""
    return _ARRAY_SUFFIX.sub("", type_name)


def _fields(types: TypeMap, type_name: str) -> Sequence[Mapping[str, str]]:
    try:
        return types[type_name]
    except KeyError:
        raise TypedDataError(f"Unknown struct type {type_name}") from None


def find_dependencies(types: TypeMap, primary_type: str) -> list[str]:
    """
    Collect every struct type reachable from ``primary_type``.

    The primary type itself is the first element; the rest are in
    discovery order and not yet sorted.
    """
    found: list[str] = []

    def visit(type_name: str) -> None:
        if type_name not in types or type_name in found:
            return
        found.append(type_name)
        for field in types[type_name]:
            visit(_base_type(field["type"]))

    visit(primary_type)
    return found


def _format_struct(type_name: str, fields: Sequence[Mapping[str, str]]) -> str:
    members = ",".join(f"{field['type']} {field['name']}" for field in fields)
    return f"{type_name}({members})"


def encode_type(types: TypeMap, primary_type: str) -> str:
    """
    Build the canonical type string.

    Primary type first, then its struct dependencies sorted by name, each
    formatted as ``Name(type1 name1,type2 name2)`` with no separator:

        Mail(Person from,Person to,string contents)Person(string name,address wallet)
    """
    _fields(types, primary_type)

    deps = sorted(d for d in find_dependencies(types, primary_type) if d != primary_type)

    return "".join(_format_struct(type_name, types[type_name]) for type_name in [primary_type, *deps])


def hash_type(types: TypeMap, primary_type: str) -> bytes:
    """keccak256 of the canonical type string."""
    return keccak(text=encode_type(types, primary_type))


def _hash_bytes_value(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return keccak(bytes(value))
    if isinstance(value, str):
        body = value[2:] if value.startswith(("0x", "0X")) else value
        try:
            return keccak(bytes.fromhex(body))
        except ValueError as e:
            raise TypedDataError(f"Invalid hex bytes value {value!r}") from e
    raise TypedDataError(f"Invalid bytes value {value!r}")


def _encode_field(types: TypeMap, type_name: str, value: Any) -> tuple[str, Any]:
    """Map one field to an (abi_type, abi_value) pair for the static encoder."""
    if type_name in types:
        return "bytes32", hash_struct(types, type_name, value)

    if _ARRAY_SUFFIX.search(type_name):
        item_type = _base_type(type_name)
        if isinstance(value, (str, bytes, bytearray)) or not isinstance(value, Sequence):
            raise TypedDataError(f"Expected a list for {type_name}, got {value!r}")
        if item_type in types:
            encoded = b"".join(hash_struct(types, item_type, item) for item in value)
        else:
            encoded = b"".join(
                encode([abi_type], [abi_value])
                for abi_type, abi_value in (
                    _encode_field(types, item_type, item) for item in value
                )
            )
        return "bytes32", keccak(encoded)

    if type_name == "string":
        if not isinstance(value, str):
            raise TypedDataError(f"Expected a string, got {value!r}")
        return "bytes32", keccak(text=value)

    if type_name == "bytes":
        return "bytes32", _hash_bytes_value(value)

    if type_name == "address":
        return "address", address_to_bytes20(value)

    if type_name == "trcToken":
        return "uint256", int(value)

    # Anything else (uintN, intN, bool, bytesN, ...) goes to the ABI encoder as-is.
    return type_name, value


def encode_data(types: TypeMap, primary_type: str, data: Mapping[str, Any]) -> bytes:
    """
    Encode the field values of a struct instance in declaration order.

    Raises:
        TypedDataError: If a field value is missing or None
    """
    abi_types: list[str] = []
    abi_values: list[Any] = []

    for field in _fields(types, primary_type):
        value = data.get(field["name"]) if isinstance(data, Mapping) else None
        if value is None:
            raise TypedDataError(f"Missing value for field {field['name']}")

        abi_type, abi_value = _encode_field(types, field["type"], value)
        abi_types.append(abi_type)
        abi_values.append(abi_value)

    return encode(abi_types, abi_values)


def hash_struct(types: TypeMap, primary_type: str, data: Mapping[str, Any]) -> bytes:
    """keccak256(typeHash || encodeData)."""
    return keccak(hash_type(types, primary_type) + encode_data(types, primary_type, data))


def domain_type(domain: Mapping[str, Any]) -> list[dict[str, str]]:
    """Build the EIP712Domain field list from the keys present in ``domain``."""
    return [
        {"name": name, "type": type_name}
        for name, type_name in DOMAIN_FIELDS
        if domain.get(name) is not None
    ]


def _with_domain_type(types: TypeMap, domain: Mapping[str, Any]) -> dict[str, Sequence[Mapping[str, str]]]:
    all_types = dict(types)
    all_types.setdefault(DOMAIN_TYPE_NAME, domain_type(domain))
    return all_types


def hash_domain(domain: Mapping[str, Any], types: Optional[TypeMap] = None) -> bytes:
    """Domain separator: hashStruct of the domain under EIP712Domain."""
    all_types = _with_domain_type(types or {}, domain)
    return hash_struct(all_types, DOMAIN_TYPE_NAME, domain)


def hash_typed_data(
    domain: Mapping[str, Any],
    types: TypeMap,
    primary_type: str,
    message: Mapping[str, Any],
) -> bytes:
    """
    Compute the 32-byte signing digest.

    digest = keccak256(0x1901 || hashStruct(domain) || hashStruct(message))
    """
    all_types = _with_domain_type(types, domain)

    domain_separator = hash_struct(all_types, DOMAIN_TYPE_NAME, domain)
    struct_hash = hash_struct(all_types, primary_type, message)

    return keccak(TYPED_DATA_PREFIX + domain_separator + struct_hash)


def sign_hash(digest: bytes, private_key: bytes) -> str:
    """
    Sign a 32-byte digest.

    Returns:
        0x-prefixed hex of r (32 bytes) || s (32 bytes) || v (recovery + 27),
        with s normalized to the lower half of the curve order.
    """
    signed = Account.unsafe_sign_hash(digest, bytes(private_key))
    return "0x" + f"{signed.r:064x}{signed.s:064x}{signed.v:02x}"


def sign_typed_data(
    private_key: bytes,
    domain: Mapping[str, Any],
    types: TypeMap,
    primary_type: str,
    message: Mapping[str, Any],
) -> str:
    """Hash typed data and sign the digest with ``private_key``."""
    digest = hash_typed_data(domain, types, primary_type, message)
    signature = sign_hash(digest, private_key)

    logger.debug(
        "signed_typed_data",
        primary_type=primary_type,
        digest="0x" + digest.hex(),
    )

    return signature


def split_signature(signature: str) -> tuple[int, int, int]:
    """Split a 65-byte hex signature into (v, r, s)."""
    body = signature[2:] if signature.startswith(("0x", "0X")) else signature
    if len(body) != 130:
        raise TypedDataError("Signature must be 65 bytes")
    raw = bytes.fromhex(body)
    return raw[64], int.from_bytes(raw[:32], "big"), int.from_bytes(raw[32:64], "big")


def recover_public_key(digest: bytes, signature: str) -> bytes:
    """Recover the 64-byte uncompressed public key (without 0x04) from a signature."""
    v, r, s = split_signature(signature)
    recovery = v - 27 if v >= 27 else v
    sig = keys.Signature(vrs=(recovery, r, s))
    return sig.recover_public_key_from_msg_hash(digest).to_bytes()


def recover_typed_data_signer(
    domain: Mapping[str, Any],
    types: TypeMap,
    primary_type: str,
    message: Mapping[str, Any],
    signature: str,
) -> str:
    """Return the base58check TRON address that produced ``signature``."""
    digest = hash_typed_data(domain, types, primary_type, message)
    public_key = recover_public_key(digest, signature)
    return public_key_to_address(b"\x04" + public_key)
