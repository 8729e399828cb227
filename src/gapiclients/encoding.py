"""
Wire encodings shared by every generated client.

JSON can't carry everything the Google APIs hand around so the discovery
documents tag those fields with a format and the values travel as strings:
64-bit integers as decimal strings (a double would lose precision), bytes
as base64, timestamps as RFC 3339.  Everything here is a pure function and
None always maps to None so an absent field stays absent.
"""
import datetime
from typing import Iterable

_BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_BASE64_LOOKUP = {c: i for i, c in enumerate(_BASE64_ALPHABET)}


def encode_base64(data: bytes|bytearray|Iterable[int]) -> str:
    """
    RFC 4648 base64 of a byte sequence.
    Straight 3 byte -> 4 character block transform, then pad out whatever
    is left over (1 or 2 bytes) with '='.
    """
    b = bytes(data)
    abc = _BASE64_ALPHABET
    out = []
    full = len(b) - len(b) % 3
    for i in range(0, full, 3):
        n = (b[i] << 16) | (b[i+1] << 8) | b[i+2]
        out.append(abc[n >> 18])
        out.append(abc[(n >> 12) & 0x3f])
        out.append(abc[(n >> 6) & 0x3f])
        out.append(abc[n & 0x3f])
    rest = len(b) - full
    if rest == 1:
        n = b[full] << 16
        out.append(abc[n >> 18])
        out.append(abc[(n >> 12) & 0x3f])
        out.append("==")
    elif rest == 2:
        n = (b[full] << 16) | (b[full+1] << 8)
        out.append(abc[n >> 18])
        out.append(abc[(n >> 12) & 0x3f])
        out.append(abc[(n >> 6) & 0x3f])
        out.append("=")
    return "".join(out)


def decode_base64(data: str) -> bytes:
    """
    Inverse of encode_base64.
    No validation, garbage in is garbage out.
    """
    s = data.rstrip("=")
    out = bytearray()
    bits = 0
    nbits = 0
    for c in s:
        bits = (bits << 6) | _BASE64_LOOKUP[c]
        nbits += 6
        if nbits >= 8:
            nbits -= 8
            out.append((bits >> nbits) & 0xff)
            bits &= (1 << nbits) - 1
    return bytes(out)


def encode_int64(value: int|None) -> str|None:
    return None if value is None else str(int(value))


def decode_int64(value: str|int|None) -> int|None:
    return None if value is None else int(value)


def encode_timestamp(value: datetime.datetime|str|None) -> str|None:
    """
    Google wants RFC 3339 with the 'T' separator.  UTC gets the 'Z' suffix
    since that is what the APIs send back.
    """
    if value is None or isinstance(value, str):
        return value
    s = value.isoformat()
    if value.utcoffset() == datetime.timedelta(0) and s.endswith("+00:00"):
        s = s[:-6] + "Z"
    return s


def decode_timestamp(value: str|None) -> datetime.datetime|None:
    """
    fromisoformat() handles 'Z' and fractional seconds of any length
    """
    if value is None:
        return None
    return datetime.datetime.fromisoformat(str(value))


def encode_date(value: datetime.date|str|None) -> str|None:
    if value is None or isinstance(value, str):
        return value
    return value.isoformat()


def decode_date(value: str|None) -> datetime.date|None:
    if value is None:
        return None
    return datetime.date.fromisoformat(str(value))


def passthrough(value):
    """Durations and field masks are already strings on both sides."""
    return value
