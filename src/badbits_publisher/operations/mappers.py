"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

import typer

T = TypeVar('T')

logger = logging.getLogger(__name__)

EXIT_CODES = {
    "ValueError": 2,
    "ValidationError": 2,
    "FetchFailure": 3,
    "OversizedHashError": 4,
    "SegmentWriteFailure": 5,
    "IncompleteDenylistError": 6,
}

FALLBACK_EXIT_CODE = 1


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Exit codes:
    - 0: Success
    - 1: Unknown error (store I/O, unexpected failures)
    - 2: Invalid configuration or arguments (ValueError, ValidationError)
    - 3: Denylist source unavailable or malformed (FetchFailure)
    - 4: Hash token larger than a segment (OversizedHashError)
    - 5: Segment write failed (SegmentWriteFailure)
    - 6: Published denylist could not be read completely (IncompleteDenylistError)

    PublishFailed maps to the code of the error that caused it.

    Args:
        exc: Exception to map

    Returns:
        Exit code
    """
    if type(exc).__name__ == "PublishFailed" and getattr(exc, "cause", None) is not None:
        return exit_code_for(exc.cause)
    return EXIT_CODES.get(type(exc).__name__, FALLBACK_EXIT_CODE)


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit, so CLI commands don't need individual
    try/except blocks.

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except typer.Exit:
        raise
    except Exception as e:
        from .printers import print_error
        print_error(e)
        raise typer.Exit(code=exit_code_for(e)) from e
