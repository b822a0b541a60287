#!/usr/bin/env python3
"""
Patch Request - Command Line Parsing
====================================

Builds the PatchRequest for one invocation from the short flags of the
patch tool:

    -f <path>                 binary file to work upon (~ and $VARS expanded)
    -a <decimal>              offset to work from (default 0)
    -t <db|dw|dd|dq|str>      type of data to insert (default db)
    -l <decimal>              length of string data, truncate or pad to it
    -p <decimal>              value to pad with (low 8 bits)
    -d <data>                 data to write (\\r and \\n escapes decoded)
    -v                        print the version line and carry on

Values are taken the way getopt takes them, so "-d -hello" writes "-hello".
Unknown flags are ignored and the last occurrence of a repeated flag wins.
"""

import os
import argparse
import logging
from dataclasses import dataclass
from typing import List, Optional

from patch_encoding import DataKind, decode_escapes, integer_for

logger = logging.getLogger(__name__)

VERSION_LINE = "patch tool v0.1 -- Copyright (c) 2019 Tom Hancocks"

DATA_KIND_TOKENS = {
    'db': DataKind.BYTE,
    'dw': DataKind.WORD,
    'dd': DataKind.DWORD,
    'dq': DataKind.QWORD,
    'str': DataKind.STR,
}

# getopt("f:a:t:l:p:vd:"): flags taking a value, and plain switches
VALUE_FLAGS = 'fatlpd'
SWITCH_FLAGS = 'v'


@dataclass
class PatchRequest:
    """Parsed intent of one patch invocation"""
    file_path: Optional[str] = None     # Expanded target path, None if not given
    offset: int = 0                     # Unsigned 64-bit byte offset
    kind: DataKind = DataKind.BYTE
    length: int = 1                     # String length (STR only)
    pad_value: int = 0                  # Pad byte (STR only)
    data: bytes = b''                   # Escape-decoded payload text

    @property
    def written_length(self) -> int:
        """Number of bytes this request writes at offset."""
        if self.kind.is_integer:
            return self.kind.width
        return self.length


# =============================================================================
# VALUE CONVERSIONS
# =============================================================================

def data_kind_for(token: str) -> DataKind:
    """Map a -t token to its DataKind. Unrecognized tokens mean db."""
    return DATA_KIND_TOKENS.get(token, DataKind.BYTE)


def pad_value_for(text: str) -> int:
    return integer_for(text) & 0xFF


def resolve_path(path: str) -> str:
    """Expand ~ and environment variable references in a path."""
    return os.path.expandvars(os.path.expanduser(path))


# =============================================================================
# ARGUMENT PARSER
# =============================================================================

class PrintVersionAction(argparse.Action):
    """-v: print the version line immediately and keep parsing."""

    def __init__(self, option_strings, dest=argparse.SUPPRESS,
                 default=argparse.SUPPRESS, help=None, **kwargs):
        super().__init__(option_strings=option_strings, dest=dest,
                         default=default, nargs=0, help=help, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        print(VERSION_LINE, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='patch',
        description='Replace binary data inside an existing file',
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument('-f', dest='file_path', type=resolve_path, default=None,
                        help='binary file to work upon')
    parser.add_argument('-a', dest='offset', type=integer_for, default=0,
                        help='offset to work from')
    parser.add_argument('-t', dest='kind', type=data_kind_for, default=DataKind.BYTE,
                        help='type of data to insert: db, dw, dd, dq or str')
    parser.add_argument('-l', dest='length', type=integer_for, default=1,
                        help='length of data to insert, truncate or pad to it')
    parser.add_argument('-p', dest='pad_value', type=pad_value_for, default=0,
                        help='value to pad with')
    parser.add_argument('-d', dest='data', type=decode_escapes, default=b'',
                        help='data to write')
    parser.add_argument('-v', action=PrintVersionAction,
                        help='print the version')
    return parser


def normalize_argv(argv: List[str]) -> List[str]:
    """
    Rewrite argv into words argparse reads unambiguously.

    Scanning follows getopt("f:a:t:l:p:vd:"): a value flag takes the rest of
    its word, or else the whole next word even when that word starts with
    '-'. Flags may be clustered ("-vd 2"). Unknown flags, non-option words,
    a value flag at the very end of argv and everything after "--" are
    dropped. Each value comes out as "-X=value"; argparse splits at the
    first '=', so the value reaches it intact.
    """
    words = []
    pos = 0

    while pos < len(argv):
        word = argv[pos]
        pos += 1

        if word == '--':
            logger.debug("Ignoring arguments: %s", argv[pos:])
            break
        if len(word) < 2 or not word.startswith('-'):
            logger.debug("Ignoring argument: %s", word)
            continue

        for index in range(1, len(word)):
            flag = word[index]
            if flag in VALUE_FLAGS:
                value = word[index + 1:]
                if not value:
                    if pos >= len(argv):
                        logger.debug("Ignoring -%s without a value", flag)
                        break
                    value = argv[pos]
                    pos += 1
                words.append(f'-{flag}={value}')
                break
            elif flag in SWITCH_FLAGS:
                words.append(f'-{flag}')
            else:
                logger.debug("Ignoring unknown flag -%s", flag)

    return words


def parse_args(argv: List[str]) -> PatchRequest:
    """Parse a command line vector (without the program name)."""
    args = build_parser().parse_args(normalize_argv(argv))

    request = PatchRequest(
        file_path=args.file_path or None,
        offset=args.offset,
        kind=args.kind,
        length=args.length,
        pad_value=args.pad_value,
        data=args.data,
    )
    logger.debug("Parsed request: %s", request)
    return request
