#!/usr/bin/env python3
"""
Patch Encoding - Argument to Byte Rendering
===========================================

Turns the textual payload of a patch into the exact bytes written to disk.

Data Kinds:
----------
| Token | Kind  | Width | Encoding                                   |
|-------|-------|-------|--------------------------------------------|
| db    | BYTE  | 1     | low 8 bits, little-endian                  |
| dw    | WORD  | 2     | low 16 bits, little-endian                 |
| dd    | DWORD | 4     | low 32 bits, little-endian                 |
| dq    | QWORD | 8     | low 64 bits, little-endian                 |
| str   | STR   | -l    | decoded string, truncated or right-padded  |

Integer payloads are never range-checked: oversized values keep only their
low bytes and non-numeric text encodes as 0.
"""

import os
import re
import struct
import logging
from enum import IntEnum

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MASK = (1 << 64) - 1

# struct formats per integer width (always little-endian)
INTEGER_FORMATS = {
    1: '<B',
    2: '<H',
    4: '<I',
    8: '<Q',
}

# Two-character escapes understood in string payloads
ESCAPES = {
    ord('r'): 0x0D,
    ord('n'): 0x0A,
}

BACKSLASH = 0x5C

# strtoll(): optional whitespace, optional sign, then decimal digits
DECIMAL_PREFIX = re.compile(rb'[ \t\n\v\f\r]*([+-]?[0-9]+)')


class DataKind(IntEnum):
    """Kind of data written by one patch. Integer kinds are valued by width."""
    STR = 0
    BYTE = 1
    WORD = 2
    DWORD = 4
    QWORD = 8

    @property
    def is_integer(self) -> bool:
        return self is not DataKind.STR

    @property
    def width(self):
        """Bytes written for integer kinds, None for STR."""
        return int(self) if self.is_integer else None


# =============================================================================
# DECODING
# =============================================================================

def decode_escapes(raw) -> bytes:
    """
    Replace the two-character sequences \\r and \\n with CR and LF.

    Every other backslash is kept as-is. The scan is a single left-to-right
    pass, so in "\\\\n" the first backslash is literal and the second one
    starts the newline escape.

    Args:
        raw: Argument text (str is converted with os.fsencode) or bytes

    Returns:
        Decoded payload bytes
    """
    if isinstance(raw, str):
        raw = os.fsencode(raw)

    result = bytearray()
    pos = 0
    end = len(raw)

    while pos < end:
        byte = raw[pos]
        if byte == BACKSLASH and pos + 1 < end and raw[pos + 1] in ESCAPES:
            result.append(ESCAPES[raw[pos + 1]])
            pos += 2
        else:
            result.append(byte)
            pos += 1

    return bytes(result)


def integer_for(text) -> int:
    """
    Parse a decimal literal the way strtoll(text, NULL, 10) does.

    Parsing stops at the first character that is not a digit, text without
    digits yields 0 and literals outside the signed 64-bit range saturate.
    The result is the unsigned 64-bit reinterpretation, so "-1" becomes
    0xFFFFFFFFFFFFFFFF.
    """
    if isinstance(text, str):
        text = os.fsencode(text)

    match = DECIMAL_PREFIX.match(text)
    if not match:
        return 0

    value = int(match.group(1))
    value = max(INT64_MIN, min(INT64_MAX, value))
    return value & UINT64_MASK


# =============================================================================
# ENCODING
# =============================================================================

def encode_integer(value: int, width: int) -> bytes:
    """
    Encode the low `width` bytes of value, least significant byte first.

    Higher bits are discarded silently. Negative values are taken in two's
    complement.
    """
    if width not in INTEGER_FORMATS:
        raise ValueError(f"Invalid integer width: {width}")

    mask = (1 << (8 * width)) - 1
    return struct.pack(INTEGER_FORMATS[width], value & mask)


def encode_string(data: bytes, length: int, pad_value: int) -> bytes:
    """
    Fit data into exactly `length` bytes.

    Longer data is truncated, shorter data is followed by copies of the pad
    byte. No NUL terminator is ever added.
    """
    if length < 0:
        raise ValueError(f"Invalid string length: {length}")

    padding = max(0, length - len(data))
    return bytes(data[:length]) + bytes([pad_value & 0xFF]) * padding


def encode_request(request) -> bytes:
    """Render a PatchRequest into the bytes to write at its offset."""
    if request.kind.is_integer:
        value = integer_for(request.data)
        payload = encode_integer(value, request.kind.width)
    else:
        payload = encode_string(request.data, request.length, request.pad_value)

    logger.debug("Encoded %s payload: %d bytes [%s]",
                 request.kind.name, len(payload), payload[:64].hex(' '))
    return payload
