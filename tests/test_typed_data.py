"""
Tests for TIP-712 hashing and signing.

Hash vectors are the EIP-712 "Mail" example; with 0x addresses TIP-712
hashes exactly like EIP-712.
"""

from eth_account.messages import encode_typed_data
from eth_keys import keys
from eth_keys.constants import SECPK1_N
from eth_utils import keccak
import pytest

from tron_gasfree.address import to_base58_address
from tron_gasfree.errors import TypedDataError
from tron_gasfree.typed_data import (
    encode_type,
    hash_domain,
    hash_struct,
    hash_type,
    hash_typed_data,
    recover_typed_data_signer,
    sign_hash,
    sign_typed_data,
    split_signature,
)


MAIL_TYPES = {
    "Person": [
        {"name": "name", "type": "string"},
        {"name": "wallet", "type": "address"},
    ],
    "Mail": [
        {"name": "from", "type": "Person"},
        {"name": "to", "type": "Person"},
        {"name": "contents", "type": "string"},
    ],
}

MAIL_DOMAIN = {
    "name": "Ether Mail",
    "version": "1",
    "chainId": 1,
    "verifyingContract": "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC",
}

MAIL_MESSAGE = {
    "from": {"name": "Cow", "wallet": "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826"},
    "to": {"name": "Bob", "wallet": "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB"},
    "contents": "Hello, Bob!",
}

COW_PRIVATE_KEY = keccak(text="cow")


class TestEncodeType:
    """Tests for canonical type strings."""

    def test_mail_type_string(self) -> None:
        assert encode_type(MAIL_TYPES, "Mail") == (
            "Mail(Person from,Person to,string contents)Person(string name,address wallet)"
        )

    def test_mail_type_hash(self) -> None:
        assert hash_type(MAIL_TYPES, "Mail").hex() == (
            "a0cedeb2dc280ba39b857546d74f5549c3a1d7bdc2dd96bf881f76108e23dac2"
        )

    def test_dependencies_sorted_by_name(self) -> None:
        """Dependencies follow the primary type in name order, whatever the declaration order."""
        types = {
            "Order": [
                {"name": "zeta", "type": "Zeta"},
                {"name": "alpha", "type": "Alpha[]"},
            ],
            "Zeta": [{"name": "value", "type": "uint256"}],
            "Alpha": [{"name": "inner", "type": "Zeta"}],
        }

        assert encode_type(types, "Order") == (
            "Order(Zeta zeta,Alpha[] alpha)Alpha(Zeta inner)Zeta(uint256 value)"
        )

    def test_unknown_primary_type(self) -> None:
        with pytest.raises(TypedDataError):
            encode_type(MAIL_TYPES, "Letter")


class TestHashing:
    """Tests for struct, domain and digest hashing."""

    def test_mail_struct_hash(self) -> None:
        assert hash_struct(MAIL_TYPES, "Mail", MAIL_MESSAGE).hex() == (
            "c52c0ee5d84264471806290a3f2c4cecfc5490626bf912d01f240d7a274b371e"
        )

    def test_mail_domain_separator(self) -> None:
        assert hash_domain(MAIL_DOMAIN).hex() == (
            "f2cee375fa42b42143804025fc449deafd50cc031ca257e0b194a650a912090f"
        )

    def test_mail_digest(self) -> None:
        digest = hash_typed_data(MAIL_DOMAIN, MAIL_TYPES, "Mail", MAIL_MESSAGE)

        assert digest.hex() == "be609aee343fb3c4b28e1df9e632fca64fcfaede20f02e86244efddf30957bd2"

    def test_digest_matches_eth_account(self) -> None:
        """Digest agrees with eth_account's EIP-712 encoder."""
        signable = encode_typed_data(
            full_message={
                "types": {
                    "EIP712Domain": [
                        {"name": "name", "type": "string"},
                        {"name": "version", "type": "string"},
                        {"name": "chainId", "type": "uint256"},
                        {"name": "verifyingContract", "type": "address"},
                    ],
                    **MAIL_TYPES,
                },
                "primaryType": "Mail",
                "domain": MAIL_DOMAIN,
                "message": MAIL_MESSAGE,
            }
        )
        expected = keccak(b"\x19" + signable.version + signable.header + signable.body)

        assert hash_typed_data(MAIL_DOMAIN, MAIL_TYPES, "Mail", MAIL_MESSAGE) == expected

    def test_tron_and_hex_addresses_hash_alike(self) -> None:
        """A base58 TRON address hashes like the same account id in 0x form."""
        message = {
            **MAIL_MESSAGE,
            "to": {"name": "Bob", "wallet": to_base58_address(MAIL_MESSAGE["to"]["wallet"])},
        }

        assert hash_struct(MAIL_TYPES, "Mail", message) == hash_struct(MAIL_TYPES, "Mail", MAIL_MESSAGE)

    def test_missing_field_raises(self) -> None:
        message = {"from": MAIL_MESSAGE["from"], "to": MAIL_MESSAGE["to"]}

        with pytest.raises(TypedDataError, match="contents"):
            hash_struct(MAIL_TYPES, "Mail", message)

    def test_struct_array_elements_hashed_as_structs(self) -> None:
        types = {
            "Group": [{"name": "members", "type": "Person[]"}],
            "Person": MAIL_TYPES["Person"],
        }
        members = [MAIL_MESSAGE["from"], MAIL_MESSAGE["to"]]

        expected = keccak(
            hash_type(types, "Group")
            + keccak(b"".join(hash_struct(types, "Person", m) for m in members))
        )

        assert hash_struct(types, "Group", {"members": members}) == expected

    def test_domain_only_uses_present_fields(self) -> None:
        domain = {"name": "Ether Mail", "chainId": 1}
        type_hash = keccak(text="EIP712Domain(string name,uint256 chainId)")

        expected = keccak(type_hash + keccak(text="Ether Mail") + (1).to_bytes(32, "big"))

        assert hash_domain(domain) == expected

    def test_changing_nonce_changes_digest(self) -> None:
        types = {"Permit": [{"name": "owner", "type": "address"}, {"name": "nonce", "type": "uint256"}]}
        owner = MAIL_MESSAGE["from"]["wallet"]

        first = hash_typed_data(MAIL_DOMAIN, types, "Permit", {"owner": owner, "nonce": 0})
        second = hash_typed_data(MAIL_DOMAIN, types, "Permit", {"owner": owner, "nonce": 1})

        assert first != second


class TestSigning:
    """Tests for typed-data signatures."""

    def test_signature_layout(self) -> None:
        signature = sign_typed_data(COW_PRIVATE_KEY, MAIL_DOMAIN, MAIL_TYPES, "Mail", MAIL_MESSAGE)

        assert signature.startswith("0x")
        assert len(signature) == 2 + 130

        v, r, s = split_signature(signature)
        assert v in (27, 28)
        assert r > 0 and s > 0

    def test_signature_is_deterministic(self) -> None:
        first = sign_typed_data(COW_PRIVATE_KEY, MAIL_DOMAIN, MAIL_TYPES, "Mail", MAIL_MESSAGE)
        second = sign_typed_data(COW_PRIVATE_KEY, MAIL_DOMAIN, MAIL_TYPES, "Mail", MAIL_MESSAGE)

        assert first == second

    def test_recovers_signer(self) -> None:
        cow = keys.PrivateKey(COW_PRIVATE_KEY).public_key.to_checksum_address()
        assert cow == MAIL_MESSAGE["from"]["wallet"]

        signature = sign_typed_data(COW_PRIVATE_KEY, MAIL_DOMAIN, MAIL_TYPES, "Mail", MAIL_MESSAGE)
        signer = recover_typed_data_signer(MAIL_DOMAIN, MAIL_TYPES, "Mail", MAIL_MESSAGE, signature)

        assert signer == to_base58_address(cow)

    def test_split_signature_rejects_short_input(self) -> None:
        with pytest.raises(TypedDataError):
            split_signature("0x1234")

    def test_signatures_are_low_s(self) -> None:
        """s stays in the lower half of the curve order for every digest."""
        for i in range(200):
            digest = keccak(i.to_bytes(4, "big"))

            v, r, s = split_signature(sign_hash(digest, COW_PRIVATE_KEY))

            assert 0 < s <= SECPK1_N // 2
