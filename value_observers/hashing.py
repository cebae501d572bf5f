"""
Deterministic fixed-seed content hash.

Algorithm (compatibility contract, encoding version 1):
    digest = BLAKE2b(canonical_bytes(value),
                     digest_size=8,
                     key=pack("<4Q", 1, 2, 3, 4),
                     person=b"value-obs/v1")
    hash   = int.from_bytes(digest, "little")

`canonical_bytes` is a type-tagged, length-prefixed encoding, so the result
depends only on content: never on PYTHONHASHSEED, object identity, dict
insertion order, process or platform. Values that compare equal within one
type encode identically (-0.0 and 0.0 included; every NaN maps to one
pattern).
"""
from __future__ import annotations

import dataclasses
import hashlib
import logging
import struct
from enum import Enum
from typing import Any, Optional

import numpy as np
import torch

from .config import HASH_DIGEST_SIZE, HASH_PERSON, HASH_SEEDS
from .errors import UnhashableValueError

logger = logging.getLogger(__name__)

_HASH_KEY = struct.pack("<4Q", *HASH_SEEDS)
_CANONICAL_NAN = struct.pack("<d", float("nan"))

_TAG_NONE = b"N"
_TAG_TRUE = b"T"
_TAG_FALSE = b"F"
_TAG_INT = b"i"
_TAG_FLOAT = b"f"
_TAG_COMPLEX = b"c"
_TAG_STR = b"s"
_TAG_BYTES = b"b"
_TAG_TUPLE = b"t"
_TAG_LIST = b"l"
_TAG_DICT = b"d"
_TAG_SET = b"S"
_TAG_ENUM = b"e"
_TAG_DATACLASS = b"D"
_TAG_NDARRAY = b"a"
_TAG_NDARRAY_OBJECT = b"A"
_TAG_NUMPY_SCALAR = b"g"
_TAG_TENSOR = b"x"


def _length(n: int) -> bytes:
    return struct.pack("<Q", n)


def _encode_float(x: float) -> bytes:
    if x != x:
        return _CANONICAL_NAN
    if x == 0.0:
        x = 0.0
    return struct.pack("<d", x)


def _encode_text(text: str) -> bytes:
    raw = text.encode("utf-8", "surrogatepass")
    return _length(len(raw)) + raw


def _qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def _normalized_array(arr: np.ndarray) -> np.ndarray:
    """Native-endian, C-contiguous copy with -0.0 and NaN payloads normalised."""
    if arr.dtype.byteorder == ">":
        arr = arr.astype(arr.dtype.newbyteorder("<"))
    if arr.dtype.kind in "fc":
        arr = arr + arr.dtype.type(0)
        arr = np.where(np.isnan(arr), arr.dtype.type(np.nan), arr)
    return np.ascontiguousarray(arr)


def _encode_array(tag: bytes, dtype_key: str, arr: np.ndarray) -> bytes:
    shape = _encode_sequence(_TAG_TUPLE, arr.shape)
    if arr.dtype.hasobject:
        return (_TAG_NDARRAY_OBJECT + _encode_text(dtype_key) + shape
                + _encode_sequence(_TAG_LIST, arr.ravel().tolist()))
    raw = _normalized_array(arr).tobytes()
    return tag + _encode_text(dtype_key) + shape + _length(len(raw)) + raw


def _dtype_key(dtype: np.dtype) -> str:
    if dtype.fields is not None:
        return repr(dtype.descr)
    return dtype.newbyteorder("<").str if dtype.byteorder == ">" else dtype.str


def _encode_sequence(tag: bytes, items) -> bytes:
    parts = [canonical_bytes(item) for item in items]
    return tag + _length(len(parts)) + b"".join(parts)


def _encode_unordered(tag: bytes, parts) -> bytes:
    parts = sorted(parts)
    return tag + _length(len(parts)) + b"".join(parts)


def _encode_tensor(tensor: torch.Tensor) -> bytes:
    if tensor.layout != torch.strided or tensor.is_quantized:
        raise UnhashableValueError(f"torch.Tensor ({tensor.layout}, {tensor.dtype})")
    t = tensor.detach().cpu().resolve_conj().resolve_neg()
    if t.dtype == torch.bfloat16:
        # numpy has no bfloat16; the widening is exact
        t = t.to(torch.float32)
    arr = t.contiguous().numpy()
    return _encode_array(_TAG_TENSOR, str(tensor.dtype), arr)


def canonical_bytes(value: Any) -> bytes:
    """
    Encode `value` into the canonical byte string fed to the hash.

    Raises UnhashableValueError for types without a canonical encoding.
    """
    if value is None:
        return _TAG_NONE
    if value is True:
        return _TAG_TRUE
    if value is False:
        return _TAG_FALSE
    if isinstance(value, Enum):
        return (_TAG_ENUM + _encode_text(_qualified_name(type(value)))
                + canonical_bytes(value.value))
    if isinstance(value, torch.Tensor):
        return _encode_tensor(value)
    if isinstance(value, np.ndarray):
        return _encode_array(_TAG_NDARRAY, _dtype_key(value.dtype), value)
    if isinstance(value, np.generic):
        arr = np.asarray(value)
        return _encode_array(_TAG_NUMPY_SCALAR, _dtype_key(arr.dtype), arr)
    if isinstance(value, int):
        raw = value.to_bytes((value.bit_length() + 8) // 8, "little", signed=True)
        return _TAG_INT + _length(len(raw)) + raw
    if isinstance(value, float):
        return _TAG_FLOAT + _encode_float(value)
    if isinstance(value, complex):
        return _TAG_COMPLEX + _encode_float(value.real) + _encode_float(value.imag)
    if isinstance(value, str):
        return _TAG_STR + _encode_text(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        return _TAG_BYTES + _length(len(raw)) + raw
    if isinstance(value, tuple):
        return _encode_sequence(_TAG_TUPLE, value)
    if isinstance(value, list):
        return _encode_sequence(_TAG_LIST, value)
    if isinstance(value, dict):
        return _encode_unordered(
            _TAG_DICT,
            (canonical_bytes(k) + canonical_bytes(v) for k, v in value.items()),
        )
    if isinstance(value, (set, frozenset)):
        return _encode_unordered(_TAG_SET, (canonical_bytes(item) for item in value))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = dataclasses.fields(value)
        body = b"".join(
            _encode_text(f.name) + canonical_bytes(getattr(value, f.name))
            for f in fields
        )
        return (_TAG_DATACLASS + _encode_text(_qualified_name(type(value)))
                + _length(len(fields)) + body)
    raise UnhashableValueError(type(value).__qualname__)


def fixed_seed_hash(value: Any) -> int:
    """64-bit deterministic hash of `value`'s content."""
    try:
        encoded = canonical_bytes(value)
    except RecursionError as exc:
        # self-referential containers have no finite encoding
        raise UnhashableValueError(type(value).__qualname__) from exc
    hasher = hashlib.blake2b(
        encoded,
        digest_size=HASH_DIGEST_SIZE,
        key=_HASH_KEY,
        person=HASH_PERSON,
    )
    return int.from_bytes(hasher.digest(), "little")


def try_fixed_seed_hash(value: Any) -> Optional[int]:
    """Like fixed_seed_hash, but None when the content has no canonical encoding."""
    try:
        return fixed_seed_hash(value)
    except UnhashableValueError as exc:
        logger.debug("Content hash unavailable: %s", exc)
        return None
