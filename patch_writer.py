#!/usr/bin/env python3
"""
Patch Writer - In-place File Region Overwrite
=============================================

Writes an encoded payload over a byte range of an existing file. The file
is opened read+write without truncation, so every byte outside
[offset, offset + len(payload)) keeps its value. Writing past the end of
the file extends it; any gap is left to the host filesystem.

The descriptor is released on every path, including a short write.
"""

import logging

from patch_encoding import encode_request
from patch_errors import FileOpenError, NoFileSuppliedError, ShortWriteError

logger = logging.getLogger(__name__)

# Largest position a 64-bit off_t can address
SEEK_LIMIT = (1 << 63) - 1


def open_target(path: str):
    """
    Open an existing file for unbuffered read+write.

    Raises:
        FileOpenError: missing, unreadable, unwritable or not a regular file
    """
    try:
        return open(path, 'r+b', buffering=0)
    except OSError as e:
        logger.debug("Open failed for %s: %s", path, e)
        raise FileOpenError(path) from e


def check_range(offset: int, length: int):
    """Reject regions the host cannot seek to. Nothing has been written yet."""
    if offset < 0 or offset + length > SEEK_LIMIT:
        logger.debug("Region at %d (+%d bytes) is beyond the seek limit", offset, length)
        raise ShortWriteError(0)


def write_payload(f, offset: int, payload: bytes) -> int:
    """
    Seek to offset and write the whole payload, then flush.

    The region is expected to have passed check_range.

    Returns:
        Number of bytes written (always len(payload))

    Raises:
        ShortWriteError: the seek failed or fewer bytes were written
    """
    view = memoryview(payload)
    written = 0
    try:
        f.seek(offset)
        while written < len(payload):
            count = f.write(view[written:])
            if not count:
                break
            written += count
        f.flush()
    except (OSError, OverflowError, ValueError) as e:
        logger.debug("Write failed after %d bytes: %s", written, e)
        raise ShortWriteError(written) from e

    if written != len(payload):
        raise ShortWriteError(written)

    logger.debug("Wrote %d bytes at offset %d (0x%X)", written, offset, offset)
    return written


def apply_patch(request) -> int:
    """
    Carry out a parsed PatchRequest: open, encode, seek and write.

    Returns:
        Number of bytes written

    Raises:
        NoFileSuppliedError, FileOpenError, ShortWriteError
    """
    if not request.file_path:
        raise NoFileSuppliedError()

    with open_target(request.file_path) as f:
        check_range(request.offset, request.written_length)
        try:
            payload = encode_request(request)
        except MemoryError as e:
            raise ShortWriteError(0) from e
        return write_payload(f, request.offset, payload)
