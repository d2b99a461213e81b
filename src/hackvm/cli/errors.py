"""
CLI Error Reporting for hackvm and hackasm
==========================================

Turns exceptions raised while translating or assembling into one
diagnostic on stderr and a process exit code.

Exit Codes
----------
| Code | Meaning                                                   |
|------|-----------------------------------------------------------|
| 0    | Output written                                            |
| 1    | The program is wrong: syntax, segment, link or asm errors |
| 2    | The invocation is wrong: arguments, unreadable input      |
| 3    | Bug in the tools themselves                               |

Message Shapes
--------------
Located errors (VM and assembly syntax) already print as
``file:line:col: error: ...`` with the source line, caret and hint, so
they are echoed unchanged. Link errors name the function involved and
end with a hint line. Input errors name the path that failed.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from hackvm.errors import (
    AssemblerError,
    DuplicateFunctionError,
    EmptyInputError,
    HackVMError,
    InputReadError,
    LinkError,
    UndefinedFunctionError,
    VMError,
)


class ExitCode(IntEnum):
    """Process exit codes shared by hackvm and hackasm."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Malformed VM program, link or assembly error
    INVALID_ARGS = 2     # Bad arguments or unreadable input
    INTERNAL_ERROR = 3   # Unexpected internal error


def _with_hint(message: str, hint: str) -> str:
    return f"{message}\n    hint: {hint}"


def _describe_link_error(error: LinkError) -> str:
    if isinstance(error, DuplicateFunctionError):
        return _with_hint(
            f"error: {error}",
            "function names must be unique across all input units",
        )
    if isinstance(error, UndefinedFunctionError):
        if error.location is None:
            # Raised for the bootstrap entry point, which has no call site
            return _with_hint(
                f"error: bootstrap calls undefined function '{error.name}'",
                "define it or point HACKVM_ENTRY at an existing function",
            )
        return _with_hint(
            f"{error.location}: error: call to undefined function '{error.name}'",
            "define it in one of the input units, or drop --strict",
        )
    return f"link error: {error}"


def describe_error(error: Exception, error_type: str | None = None) -> tuple[str, ExitCode]:
    """
    Message and exit code for an exception raised by a CLI command.

    Args:
        error: The exception that stopped the command
        error_type: Prefix for driver errors without a shape of their own
            (e.g. "Translation")

    Returns:
        (message, exit code); INTERNAL_ERROR means the error is unexpected
    """
    if isinstance(error, (VMError, AssemblerError)):
        return str(error), ExitCode.BUILD_ERROR

    if isinstance(error, LinkError):
        return _describe_link_error(error), ExitCode.BUILD_ERROR

    if isinstance(error, EmptyInputError):
        return _with_hint(
            f"error: {error}",
            "pass a .vm file, or a directory holding at least one .vm file",
        ), ExitCode.BUILD_ERROR

    if isinstance(error, InputReadError):
        return f"error: {error}", ExitCode.INVALID_ARGS

    if isinstance(error, HackVMError):
        prefix = f"{error_type} error" if error_type else "error"
        return f"{prefix}: {error}", ExitCode.BUILD_ERROR

    if isinstance(error, click.BadParameter):
        return f"Error: {error}", ExitCode.INVALID_ARGS

    if isinstance(error, UnicodeDecodeError):
        return f"error: cannot read input: not UTF-8 text ({error.reason})", ExitCode.INVALID_ARGS

    if isinstance(error, OSError):
        target = f" '{error.filename}'" if error.filename else ""
        reason = error.strerror or str(error)
        return f"error: cannot access{target}: {reason}", ExitCode.INVALID_ARGS

    return f"Internal error: {error}", ExitCode.INTERNAL_ERROR


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Report ``error`` on stderr and exit.

    In verbose mode a traceback follows internal errors.

    Raises:
        SystemExit: Always
    """
    message, code = describe_error(error, error_type)
    click.echo(message, err=True)
    if code is ExitCode.INTERNAL_ERROR and verbose:
        traceback.print_exc()
    sys.exit(code)
