"""
Strict CBOR codec for zkrun input records.

The wire record is a definite-length CBOR map with integer keys:

    0 gps             array of sample maps {0: t, 1: lat_microdeg, 2: lon_microdeg}
    1 start_time      u64
    2 end_time        u64
    3 max_elapsed_sec u32
    4 max_speed_mps   u32
    5 blob            byte string
    6 sig             byte string
    7 pubkey          byte string

Decoding tolerates nothing: unknown, duplicate or missing keys, out-of-range
integers, wrong major types, indefinite lengths, tags, floats and trailing
bytes all raise DecodeError. The generic value codec underneath also serves
the client side (blob metadata and record encoding).
"""
from __future__ import annotations

from typing import Any, Dict, List, Tuple

from zkrun.model import RunInput, Sample
from zkrun.policy import I32_MAX, I32_MIN, U32_MAX, U64_MAX

MAX_DEPTH = 16

_MAJOR_UINT = 0
_MAJOR_NEGINT = 1
_MAJOR_BYTES = 2
_MAJOR_TEXT = 3
_MAJOR_ARRAY = 4
_MAJOR_MAP = 5
_MAJOR_TAG = 6
_MAJOR_SIMPLE = 7

_SIMPLE_FALSE = 20
_SIMPLE_TRUE = 21
_SIMPLE_NULL = 22

# Record keys
KEY_GPS = 0
KEY_START_TIME = 1
KEY_END_TIME = 2
KEY_MAX_ELAPSED_SEC = 3
KEY_MAX_SPEED_MPS = 4
KEY_BLOB = 5
KEY_SIG = 6
KEY_PUBKEY = 7

KEY_SAMPLE_T = 0
KEY_SAMPLE_LAT = 1
KEY_SAMPLE_LON = 2

RUN_INPUT_KEYS = frozenset(range(8))
SAMPLE_KEYS = frozenset(range(3))


class DecodeError(ValueError):
    """Raised when a buffer is not a well-formed record."""


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def _encode_head(major: int, value: int) -> bytes:
    if value < 24:
        return bytes([(major << 5) | value])
    if value < 1 << 8:
        return bytes([(major << 5) | 24, value])
    if value < 1 << 16:
        return bytes([(major << 5) | 25]) + value.to_bytes(2, "big")
    if value < 1 << 32:
        return bytes([(major << 5) | 26]) + value.to_bytes(4, "big")
    if value <= U64_MAX:
        return bytes([(major << 5) | 27]) + value.to_bytes(8, "big")
    raise ValueError("integer too large for CBOR head")


def encode_value(value: Any) -> bytes:
    """Encode the supported CBOR subset. Maps keep insertion order."""
    if value is None:
        return bytes([(_MAJOR_SIMPLE << 5) | _SIMPLE_NULL])
    if value is True:
        return bytes([(_MAJOR_SIMPLE << 5) | _SIMPLE_TRUE])
    if value is False:
        return bytes([(_MAJOR_SIMPLE << 5) | _SIMPLE_FALSE])
    if isinstance(value, int):
        if value >= 0:
            return _encode_head(_MAJOR_UINT, value)
        return _encode_head(_MAJOR_NEGINT, -1 - value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
        return _encode_head(_MAJOR_BYTES, len(data)) + data
    if isinstance(value, str):
        data = value.encode("utf-8")
        return _encode_head(_MAJOR_TEXT, len(data)) + data
    if isinstance(value, (list, tuple)):
        out = bytearray(_encode_head(_MAJOR_ARRAY, len(value)))
        for item in value:
            out.extend(encode_value(item))
        return bytes(out)
    if isinstance(value, dict):
        out = bytearray(_encode_head(_MAJOR_MAP, len(value)))
        for key, item in value.items():
            out.extend(encode_value(key))
            out.extend(encode_value(item))
        return bytes(out)
    raise TypeError(f"unsupported type for CBOR encoding: {type(value)!r}")


def encode_sample(sample: Sample) -> Dict[int, int]:
    return {
        KEY_SAMPLE_T: sample.t,
        KEY_SAMPLE_LAT: sample.lat_microdeg,
        KEY_SAMPLE_LON: sample.lon_microdeg,
    }


def encode_run_input(run: RunInput) -> bytes:
    """Encode a RunInput as the integer-keyed record the guest reads."""
    record = {
        KEY_GPS: [encode_sample(s) for s in run.gps],
        KEY_START_TIME: run.start_time,
        KEY_END_TIME: run.end_time,
        KEY_MAX_ELAPSED_SEC: run.max_elapsed_sec,
        KEY_MAX_SPEED_MPS: run.max_speed_mps,
        KEY_BLOB: bytes(run.blob),
        KEY_SIG: bytes(run.sig),
        KEY_PUBKEY: bytes(run.pubkey),
    }
    return encode_value(record)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def _take(data: memoryview, pos: int, n: int) -> Tuple[bytes, int]:
    end = pos + n
    if end > len(data):
        raise DecodeError("unexpected end of data")
    return bytes(data[pos:end]), end


def _read_argument(ai: int, data: memoryview, pos: int) -> Tuple[int, int]:
    if ai < 24:
        return ai, pos
    if ai in (24, 25, 26, 27):
        raw, pos = _take(data, pos, 1 << (ai - 24))
        return int.from_bytes(raw, "big"), pos
    if ai == 31:
        raise DecodeError("indefinite-length items not supported")
    raise DecodeError(f"reserved additional information {ai}")


def _decode_item(data: memoryview, pos: int, depth: int) -> Tuple[Any, int]:
    if depth > MAX_DEPTH:
        raise DecodeError("nesting too deep")
    if pos >= len(data):
        raise DecodeError("unexpected end of data")
    initial = data[pos]
    major = initial >> 5
    ai = initial & 0x1F
    pos += 1

    if major == _MAJOR_SIMPLE:
        if ai == _SIMPLE_FALSE:
            return False, pos
        if ai == _SIMPLE_TRUE:
            return True, pos
        if ai == _SIMPLE_NULL:
            return None, pos
        raise DecodeError(f"unsupported simple/float item (ai={ai})")
    if major == _MAJOR_TAG:
        raise DecodeError("tagged items not supported")

    arg, pos = _read_argument(ai, data, pos)

    if major == _MAJOR_UINT:
        return arg, pos
    if major == _MAJOR_NEGINT:
        return -1 - arg, pos
    if major == _MAJOR_BYTES:
        return _take(data, pos, arg)
    if major == _MAJOR_TEXT:
        raw, pos = _take(data, pos, arg)
        try:
            return raw.decode("utf-8"), pos
        except UnicodeDecodeError as exc:
            raise DecodeError("invalid UTF-8 in text string") from exc
    if major == _MAJOR_ARRAY:
        items: List[Any] = []
        for _ in range(arg):
            item, pos = _decode_item(data, pos, depth + 1)
            items.append(item)
        return items, pos
    # _MAJOR_MAP
    mapping: Dict[Any, Any] = {}
    for _ in range(arg):
        key, pos = _decode_item(data, pos, depth + 1)
        if isinstance(key, (list, dict)):
            raise DecodeError("unhashable map key")
        if key in mapping:
            raise DecodeError(f"duplicate map key {key!r}")
        value, pos = _decode_item(data, pos, depth + 1)
        mapping[key] = value
    return mapping, pos


def decode_value(data: bytes) -> Any:
    """Decode exactly one CBOR item; trailing bytes are an error."""
    view = memoryview(bytes(data))
    value, pos = _decode_item(view, 0, 0)
    if pos != len(view):
        raise DecodeError(f"{len(view) - pos} trailing bytes after record")
    return value


def _expect_record(value: Any, keys: frozenset, what: str) -> Dict[int, Any]:
    if not isinstance(value, dict):
        raise DecodeError(f"{what} must be a map")
    for key in value:
        if type(key) is not int or key not in keys:
            raise DecodeError(f"unknown {what} key {key!r}")
    missing = keys.difference(value)
    if missing:
        raise DecodeError(f"{what} missing keys {sorted(missing)}")
    return value


def _expect_int(value: Any, lo: int, hi: int, name: str) -> int:
    if type(value) is not int:
        raise DecodeError(f"{name} must be an integer")
    if not lo <= value <= hi:
        raise DecodeError(f"{name} out of range")
    return value


def _expect_bytes(value: Any, name: str) -> bytes:
    if not isinstance(value, bytes):
        raise DecodeError(f"{name} must be a byte string")
    return value


def _decode_sample(value: Any) -> Sample:
    fields = _expect_record(value, SAMPLE_KEYS, "sample")
    return Sample(
        t=_expect_int(fields[KEY_SAMPLE_T], 0, U64_MAX, "t"),
        lat_microdeg=_expect_int(fields[KEY_SAMPLE_LAT], I32_MIN, I32_MAX, "lat_microdeg"),
        lon_microdeg=_expect_int(fields[KEY_SAMPLE_LON], I32_MIN, I32_MAX, "lon_microdeg"),
    )


def decode_run_input(data: bytes) -> RunInput:
    """Decode one input buffer into a RunInput or raise DecodeError."""
    fields = _expect_record(decode_value(data), RUN_INPUT_KEYS, "run input")
    gps = fields[KEY_GPS]
    if not isinstance(gps, list):
        raise DecodeError("gps must be an array")
    return RunInput(
        gps=tuple(_decode_sample(item) for item in gps),
        start_time=_expect_int(fields[KEY_START_TIME], 0, U64_MAX, "start_time"),
        end_time=_expect_int(fields[KEY_END_TIME], 0, U64_MAX, "end_time"),
        max_elapsed_sec=_expect_int(fields[KEY_MAX_ELAPSED_SEC], 0, U32_MAX, "max_elapsed_sec"),
        max_speed_mps=_expect_int(fields[KEY_MAX_SPEED_MPS], 0, U32_MAX, "max_speed_mps"),
        blob=_expect_bytes(fields[KEY_BLOB], "blob"),
        sig=_expect_bytes(fields[KEY_SIG], "sig"),
        pubkey=_expect_bytes(fields[KEY_PUBKEY], "pubkey"),
    )


__all__ = [
    "DecodeError",
    "MAX_DEPTH",
    "RUN_INPUT_KEYS",
    "SAMPLE_KEYS",
    "encode_value",
    "encode_sample",
    "encode_run_input",
    "decode_value",
    "decode_run_input",
]
