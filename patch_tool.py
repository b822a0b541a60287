#!/usr/bin/env python3
"""
patch tool
==========

Replaces binary data inside an existing file. For instance, the following
inserts the string "Hello, World!" into build/disk.img at offset 512:

    patch -f build/disk.img -a 512 -t str -d "Hello, World!"

and this inserts the number 2 as a 16-bit word at offset 544:

    patch -f build/disk.img -a 544 -t dw -d 2

Exit codes:
----------
    0  success
    1  no binary file supplied (or unusable command line)
    2  the binary file could not be opened for read+write
    3  the patch was not completely written

Set PATCH_TOOL_LOG_LEVEL=DEBUG to trace parsing and writing on stderr.
"""

import os
import sys
import logging

from patch_errors import PatchError
from patch_request import parse_args
from patch_writer import apply_patch

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = 'PATCH_TOOL_LOG_LEVEL'


def configure_logging():
    """Send log records to stderr when PATCH_TOOL_LOG_LEVEL names a level."""
    level_name = os.environ.get(LOG_LEVEL_ENV, '').strip().upper()
    if not level_name:
        return

    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        return

    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format='%(name)s: %(levelname)s: %(message)s',
    )


def main(argv=None) -> int:
    configure_logging()

    if argv is None:
        argv = sys.argv[1:]

    try:
        request = parse_args(argv)
        written = apply_patch(request)
    except PatchError as e:
        print(e, file=sys.stderr)
        return e.exit_code

    logger.info("Patched %s: %d bytes at offset %d", request.file_path,
                written, request.offset)
    return 0


if __name__ == "__main__":
    sys.exit(main())
