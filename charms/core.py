"""
Core identity types and errors for app-scoped UTXO assets.

This module provides the foundational value types used by the rest of the package:
1. Constants: reserved app tags and fixed encoding sizes
2. Exceptions: CharmsError and the construction/parsing error kinds
3. Identity types: B32, TxId, UtxoId
4. App: the (tag, identity, vk) descriptor that keys attached data

All types are immutable and compare structurally. Construction from untrusted
bytes or text always validates and raises on malformed input.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Union


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved app tags. Other single-character tags are allowed and denote other
# app kinds; only these two have dedicated predicates.
TOKEN = "t"
NFT = "n"

B32_LENGTH = 32
UTXO_ID_LENGTH = B32_LENGTH + 4

MAX_OUTPUT_INDEX = 2**32 - 1

# Token amounts are unsigned 64-bit values. A sum above this is an overflow.
MAX_TOKEN_AMOUNT = 2**64 - 1

_HEX_DIGITS = frozenset("0123456789abcdef")

BytesLike = Union[bytes, bytearray, memoryview]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class CharmsError(Exception):
    """Base exception for all charms-related errors."""
    pass


class InvalidLength(CharmsError, ValueError):
    """Raised when a fixed-size value is built from a buffer of the wrong length."""
    pass


class InvalidEncoding(CharmsError, ValueError):
    """Raised when canonical text for an identity type is malformed."""
    pass


class InvalidApp(InvalidEncoding):
    """Raised when an App cannot be built from its fields or parsed from its string form."""
    pass


class DecodeError(CharmsError, ValueError):
    """Raised when raw bytes or text are not a valid encoding of Data."""
    pass


class DeserializeError(CharmsError, ValueError):
    """Raised when Data cannot be projected back to a structured value."""
    pass


class InvalidData(CharmsError, ValueError):
    """Raised when a value cannot be represented in the structured Data model."""
    pass


class MalformedTransaction(CharmsError, ValueError):
    """Raised when a transaction document violates the expected schema."""
    pass


class TokenAmountError(CharmsError, ValueError):
    """Raised when attached data does not carry a valid token amount, or amounts overflow."""
    pass


# ============================================================================
# HELPERS
# ============================================================================

def _fixed_bytes(raw: BytesLike, length: int, type_name: str) -> bytes:
    if not isinstance(raw, (bytes, bytearray, memoryview)):
        raise InvalidLength(f"{type_name} requires a bytes-like value, got {type(raw).__name__}")
    raw = bytes(raw)
    if len(raw) != length:
        raise InvalidLength(f"{type_name} must be {length} bytes, got {len(raw)}")
    return raw


def _parse_hex32(s: str, type_name: str) -> bytes:
    """Parse exactly 64 lowercase hex digits. Anything else is rejected."""
    if not isinstance(s, str):
        raise InvalidEncoding(f"{type_name} text must be str, got {type(s).__name__}")
    if len(s) != 2 * B32_LENGTH or not set(s) <= _HEX_DIGITS:
        raise InvalidEncoding(f"{type_name} must be {2 * B32_LENGTH} lowercase hex digits: {s!r}")
    return bytes.fromhex(s)


def _parse_index(s: str) -> int:
    # Canonical decimal only: no sign, no whitespace, no leading zeros.
    if not s or not s.isascii() or not s.isdigit() or (len(s) > 1 and s[0] == "0"):
        raise InvalidEncoding(f"UtxoId index is not a canonical decimal: {s!r}")
    index = int(s)
    if index > MAX_OUTPUT_INDEX:
        raise InvalidEncoding(f"UtxoId index out of range: {index}")
    return index


# ============================================================================
# IDENTITY TYPES
# ============================================================================

@dataclass(frozen=True, order=True, slots=True)
class B32:
    """
    A 32-byte identifier (app identity, verification key, hashes).

    The canonical text form is 64 lowercase hex digits.
    Ordering is by byte value.
    """
    raw: bytes

    def __post_init__(self):
        object.__setattr__(self, 'raw', _fixed_bytes(self.raw, B32_LENGTH, "B32"))

    @classmethod
    def from_str(cls, s: str) -> B32:
        return cls(_parse_hex32(s, "B32"))

    def to_bytes(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return self.raw.hex()

    def __repr__(self) -> str:
        return f"Bytes32({self})"


@dataclass(frozen=True, order=True, slots=True)
class TxId:
    """
    A 32-byte transaction identifier.

    Stored in internal byte order; the text form shows the bytes reversed,
    the way block explorers display transaction ids. Never equal to a B32
    holding the same bytes.
    """
    raw: bytes

    def __post_init__(self):
        object.__setattr__(self, 'raw', _fixed_bytes(self.raw, B32_LENGTH, "TxId"))

    @classmethod
    def from_str(cls, s: str) -> TxId:
        return cls(_parse_hex32(s, "TxId")[::-1])

    def to_bytes(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return self.raw[::-1].hex()

    def __repr__(self) -> str:
        return f"TxId({self})"


@dataclass(frozen=True, order=True, slots=True)
class UtxoId:
    """
    Address of a transaction output: the creating transaction and the output index.

    Binary form is 36 bytes: the 32 txid bytes followed by the index as a
    4-byte little-endian integer. Text form is "<txid>:<index>".
    """
    txid: TxId
    index: int

    def __post_init__(self):
        if not isinstance(self.txid, TxId):
            raise InvalidEncoding(f"UtxoId txid must be TxId, got {type(self.txid).__name__}")
        if isinstance(self.index, bool) or not isinstance(self.index, int):
            raise InvalidEncoding(f"UtxoId index must be int, got {type(self.index).__name__}")
        if not 0 <= self.index <= MAX_OUTPUT_INDEX:
            raise InvalidEncoding(f"UtxoId index out of range: {self.index}")

    @classmethod
    def from_bytes(cls, raw: BytesLike) -> UtxoId:
        raw = _fixed_bytes(raw, UTXO_ID_LENGTH, "UtxoId")
        return cls(TxId(raw[:B32_LENGTH]), int.from_bytes(raw[B32_LENGTH:], "little"))

    @classmethod
    def from_str(cls, s: str) -> UtxoId:
        if not isinstance(s, str):
            raise InvalidEncoding(f"UtxoId text must be str, got {type(s).__name__}")
        txid_part, sep, index_part = s.rpartition(":")
        if not sep:
            raise InvalidEncoding(f"UtxoId must be '<txid>:<index>': {s!r}")
        return cls(TxId.from_str(txid_part), _parse_index(index_part))

    def to_bytes(self) -> bytes:
        return self.txid.raw + self.index.to_bytes(4, "little")

    def __str__(self) -> str:
        return f"{self.txid}:{self.index}"

    def __repr__(self) -> str:
        return f"UtxoId({self})"


# ============================================================================
# APP
# ============================================================================

@dataclass(frozen=True, order=True, slots=True)
class App:
    """
    Descriptor of an application whose state is attached to UTXOs.

    Attributes:
        tag: Single character classifying the app kind (TOKEN, NFT, or other).
        identity: Distinguishes one app instance from another with the same tag.
        vk: Verification key bound to the app's validation logic.

    The canonical string form is "<tag>/<identity>/<vk>". It is the only
    accepted textual representation and round-trips exactly.
    """
    tag: str
    identity: B32
    vk: B32

    def __post_init__(self):
        if not isinstance(self.tag, str) or len(self.tag) != 1:
            raise InvalidApp(f"App tag must be a single character, got {self.tag!r}")
        if self.tag == "/":
            raise InvalidApp("App tag cannot be the separator '/'")
        if not isinstance(self.identity, B32):
            raise InvalidApp(f"App identity must be B32, got {type(self.identity).__name__}")
        if not isinstance(self.vk, B32):
            raise InvalidApp(f"App vk must be B32, got {type(self.vk).__name__}")

    @classmethod
    def from_str(cls, s: str) -> App:
        if not isinstance(s, str):
            raise InvalidApp(f"App string must be str, got {type(s).__name__}")
        parts = s.split("/")
        if len(parts) != 3:
            raise InvalidApp(f"invalid App string {s!r}: expected '<tag>/<identity>/<vk>'")
        tag, identity, vk = parts
        try:
            return cls(tag, B32.from_str(identity), B32.from_str(vk))
        except InvalidApp:
            raise
        except InvalidEncoding as e:
            raise InvalidApp(f"invalid App string {s!r}: {e}") from e

    @property
    def is_token(self) -> bool:
        return self.tag == TOKEN

    @property
    def is_nft(self) -> bool:
        return self.tag == NFT

    def __str__(self) -> str:
        return f"{self.tag}/{self.identity}/{self.vk}"

    def __repr__(self) -> str:
        return f"App({self})"
