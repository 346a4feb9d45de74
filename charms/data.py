"""
Data - the opaque value container attached to a UTXO for one app.

Data holds canonical CBOR bytes. Structured values (maps with string keys,
arrays, strings, integers, floats, booleans and null) convert to and from
those bytes losslessly. The empty Data holds no bytes at all and is distinct
from every encoded value, including null.

Bytes that are well-formed CBOR but fall outside the structured model
(byte strings, tags, undefined) are kept as an opaque payload: they can be
carried and compared but not projected back to a structured value.
"""

from __future__ import annotations
import json
import math
from typing import Any

import cbor2

from .core import (
    BytesLike,
    DecodeError,
    DeserializeError,
    InvalidData,
)


# CBOR major types 0 and 1 cover this range. Larger magnitudes would need
# bignum tags, which the structured model does not include.
MIN_DATA_INT = -(2**64)
MAX_DATA_INT = 2**64 - 1

# Containers nested deeper than this are outside the structured model. The
# bound sits below the nesting limit of the CBOR decoder so that every value
# Data accepts can be decoded again.
MAX_DATA_DEPTH = 256

_NO_VALUE = object()


def _check_value(value: Any, path: str = "$", depth: int = 0) -> None:
    """
    Ensure a value belongs to the structured model.

    Raises:
        InvalidData: naming the path of the first offending element.
    """
    if value is None or isinstance(value, (bool, str)):
        return
    if isinstance(value, int):
        if not MIN_DATA_INT <= value <= MAX_DATA_INT:
            raise InvalidData(f"{path}: integer out of range: {value}")
        return
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise InvalidData(f"{path}: float must be finite, got {value}")
        return
    if isinstance(value, (list, tuple, dict)) and depth >= MAX_DATA_DEPTH:
        raise InvalidData(f"{path}: nesting deeper than {MAX_DATA_DEPTH} containers")
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_value(item, f"{path}[{i}]", depth + 1)
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise InvalidData(f"{path}: map keys must be str, got {type(key).__name__}")
            _check_value(item, f"{path}.{key}", depth + 1)
        return
    raise InvalidData(f"{path}: unsupported type {type(value).__name__}")


def _encode(value: Any) -> bytes:
    _check_value(value)
    return cbor2.dumps(value, canonical=True)


def _loads(raw: bytes) -> Any:
    try:
        return cbor2.loads(raw)
    except (cbor2.CBORDecodeError, EOFError, ValueError, RecursionError) as e:
        raise DecodeError(f"invalid CBOR: {e}") from e


def _decode_item(raw: bytes) -> Any:
    """Decode exactly one CBOR item, rejecting truncated input and trailing bytes."""
    item = _loads(raw)
    # CBOR items are prefix-free: if the buffer still decodes without its
    # last byte, the item ended before the end of the buffer.
    try:
        _loads(raw[:-1])
    except DecodeError:
        return item
    raise DecodeError("trailing bytes after CBOR item")


def _is_structured(item: Any) -> bool:
    try:
        _check_value(item)
    except InvalidData:
        return False
    return True


def _reject_constant(name: str) -> Any:
    raise DecodeError(f"invalid JSON: non-finite number {name}")


class Data:
    """
    Immutable canonically-encoded value.

    Usage:
        Data()                      # empty
        Data({"owner": "A"})        # structured value
        Data.from_bytes(raw)        # canonical CBOR bytes
        Data.from_json('{"a": 1}')  # JSON text

    Equality and hashing are by canonical bytes, so two Data built from the
    same structured value are always equal.
    """

    __slots__ = ("_bytes",)

    def __init__(self, value: Any = _NO_VALUE):
        raw = b"" if value is _NO_VALUE else _encode(value)
        object.__setattr__(self, "_bytes", raw)

    def __setattr__(self, name, value):
        raise AttributeError("Data is immutable")

    @classmethod
    def empty(cls) -> Data:
        return cls()

    @classmethod
    def _from_raw(cls, raw: bytes) -> Data:
        data = cls.__new__(cls)
        object.__setattr__(data, "_bytes", raw)
        return data

    @classmethod
    def from_bytes(cls, raw: BytesLike) -> Data:
        """
        Build Data from CBOR bytes.

        An empty buffer gives the empty Data. Structured content is stored
        re-encoded canonically; other well-formed CBOR is kept as given.

        Raises:
            DecodeError: if the buffer is not exactly one well-formed CBOR item.
        """
        if not isinstance(raw, (bytes, bytearray, memoryview)):
            raise DecodeError(f"Data bytes must be bytes-like, got {type(raw).__name__}")
        raw = bytes(raw)
        if not raw:
            return cls()
        item = _decode_item(raw)
        if _is_structured(item):
            return cls._from_raw(cbor2.dumps(item, canonical=True))
        return cls._from_raw(raw)

    @classmethod
    def from_json(cls, text: str) -> Data:
        """
        Build Data from JSON text.

        Raises:
            DecodeError: if the text is not JSON, or parses to a value outside
                         the structured model (e.g. an integer past 2**64 - 1).
        """
        try:
            value = json.loads(text, parse_constant=_reject_constant)
        except (json.JSONDecodeError, TypeError, RecursionError) as e:
            raise DecodeError(f"invalid JSON: {e}") from e
        try:
            return cls(value)
        except InvalidData as e:
            raise DecodeError(f"invalid JSON value: {e}") from e

    @classmethod
    def from_py(cls, obj: Any) -> Data:
        """
        Convert a native Python object to Data.

        Data passes through unchanged. Bytes-like objects are read as CBOR
        first and, failing that, as UTF-8 JSON text. Anything else is taken
        as a structured value.
        """
        if isinstance(obj, Data):
            return obj
        if isinstance(obj, (bytes, bytearray, memoryview)):
            raw = bytes(obj)
            try:
                return cls.from_bytes(raw)
            except DecodeError as cbor_error:
                try:
                    text = raw.decode("utf-8")
                except UnicodeDecodeError:
                    raise cbor_error
                return cls.from_json(text)
        return cls(obj)

    def is_empty(self) -> bool:
        return not self._bytes

    def bytes(self) -> bytes:
        return self._bytes

    def value(self) -> Any:
        """
        Project back to a structured value.

        Raises:
            DeserializeError: if Data is empty or holds an opaque payload.
        """
        if not self._bytes:
            raise DeserializeError("empty Data has no value")
        try:
            item = _decode_item(self._bytes)
            _check_value(item)
        except (DecodeError, InvalidData) as e:
            raise DeserializeError(f"Data is not a structured value: {e}") from e
        return item

    def to_json(self) -> str:
        return json.dumps(self.value(), separators=(",", ":"), ensure_ascii=False)

    def __eq__(self, other):
        if not isinstance(other, Data):
            return NotImplemented
        return self._bytes == other._bytes

    def __hash__(self):
        return hash((Data, self._bytes))

    def __repr__(self) -> str:
        if not self._bytes:
            return "Data()"
        try:
            return f"Data({self.value()!r})"
        except DeserializeError:
            return f"Data(0x{self._bytes.hex()})"
