#!/usr/bin/env python3
"""
Patch Errors
============

Failure modes of the patch tool. Each carries the process exit code that
the command line driver returns for it.

| Exit | Error               | Message                                         |
|------|---------------------|-------------------------------------------------|
| 1    | NoFileSuppliedError | No binary file supplied.                        |
| 2    | FileOpenError       | Failed to open specified binary file.           |
| 3    | ShortWriteError     | Something went wrong when patching file. ...    |
"""


class PatchError(Exception):
    """Base class for errors that end a patch run."""
    exit_code = 1

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class NoFileSuppliedError(PatchError):
    exit_code = 1

    def __init__(self):
        super().__init__("No binary file supplied.")


class FileOpenError(PatchError):
    """The target could not be opened for read+write without truncation."""
    exit_code = 2

    def __init__(self, path: str):
        super().__init__("Failed to open specified binary file.")
        self.path = path


class ShortWriteError(PatchError):
    """Fewer bytes than requested reached the file."""
    exit_code = 3

    def __init__(self, written: int):
        super().__init__(
            f"Something went wrong when patching file. Wrote {written} bytes."
        )
        self.written = written
