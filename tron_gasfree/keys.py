"""
TRON owner account: BIP-39 seed -> BIP-44 key (m/44'/195'/...).

Derivation path: m/44'/195'/<relative path>, e.g. "0'/0/0"
Address format: T... (base58check of 0x41 + keccak(pubkey)[-20:])

The private key lives in a bytearray owned by the account so that
``dispose()`` can overwrite it in place.
"""

from dataclasses import dataclass
from typing import Optional, Union

from bip_utils import Bip32Secp256k1, Bip39MnemonicValidator, Bip39SeedGenerator
from eth_keys.exceptions import BadSignature, ValidationError as KeyValidationError
from eth_utils import keccak
import structlog

from .address import public_key_to_address
from .errors import WalletDisposedError
from .typed_data import recover_public_key, sign_hash

logger = structlog.get_logger()


BIP44_TRON_PREFIX = "m/44'/195'"

TRON_MESSAGE_PREFIX = b"\x19TRON Signed Message:\n"


def seed_from_mnemonic(seed: Union[str, bytes]) -> bytes:
    """
    Turn a BIP-39 mnemonic into seed bytes; raw seed bytes pass through.

    Raises:
        ValueError: If the mnemonic is invalid
    """
    if isinstance(seed, (bytes, bytearray)):
        return bytes(seed)

    if not Bip39MnemonicValidator().IsValid(seed):
        raise ValueError("The seed phrase is invalid.")
    return Bip39SeedGenerator(seed).Generate()


def hash_message(message: Union[str, bytes]) -> bytes:
    """TRON signed-message digest (TIP-191 v2)."""
    data = message.encode("utf-8") if isinstance(message, str) else bytes(message)
    return keccak(TRON_MESSAGE_PREFIX + str(len(data)).encode("ascii") + data)


@dataclass
class KeyPair:
    """An account's key pair; ``private_key`` is None once disposed."""

    public_key: bytes
    private_key: Optional[bytes]


class WalletAccountTron:
    """
    TRON account derived from a seed at a BIP-44 path.

    Example:
        account = WalletAccountTron("between oval abandon ...", "0'/0/0")
        account.address  # "T..."
        account.path     # "m/44'/195'/0'/0/0"
    """

    def __init__(self, seed: Union[str, bytes], path: str):
        self._path = f"{BIP44_TRON_PREFIX}/{path}"

        ctx = Bip32Secp256k1.FromSeed(seed_from_mnemonic(seed)).DerivePath(self._path)

        self._private_key: Optional[bytearray] = bytearray(ctx.PrivateKey().Raw().ToBytes())
        self._public_key = ctx.PublicKey().RawUncompressed().ToBytes()
        self._address = public_key_to_address(self._public_key)

    @property
    def path(self) -> str:
        """Full derivation path."""
        return self._path

    @property
    def index(self) -> int:
        """Last index of the derivation path."""
        return int(self._path.rsplit("/", 1)[-1].rstrip("'"))

    @property
    def address(self) -> str:
        return self._address

    @property
    def key_pair(self) -> KeyPair:
        private_key = bytes(self._private_key) if self._private_key is not None else None
        return KeyPair(public_key=self._public_key, private_key=private_key)

    @property
    def disposed(self) -> bool:
        return self._private_key is None

    async def get_address(self) -> str:
        return self._address

    def private_key_bytes(self) -> bytes:
        """
        Return the private key.

        Raises:
            WalletDisposedError: If the account was disposed
        """
        if self._private_key is None:
            raise WalletDisposedError("The wallet account has been disposed.")
        return bytes(self._private_key)

    async def sign(self, message: Union[str, bytes]) -> str:
        """Sign a message; returns the 0x-prefixed r || s || v signature."""
        return sign_hash(hash_message(message), self.private_key_bytes())

    async def verify(self, message: Union[str, bytes], signature: str) -> bool:
        """Check that ``signature`` over ``message`` was made by this account."""
        try:
            public_key = recover_public_key(hash_message(message), signature)
        except (ValueError, BadSignature, KeyValidationError):
            return False
        return public_key_to_address(b"\x04" + public_key) == self._address

    def dispose(self) -> None:
        """Erase the private key from memory. Safe to call more than once."""
        if self._private_key is None:
            return

        for i in range(len(self._private_key)):
            self._private_key[i] = 0
        self._private_key = None

        logger.debug("owner_key_disposed", path=self._path)
