"""
Test error mapping and CLI exit code functionality.

Validates that exceptions are correctly mapped to exit codes and that
the run_and_exit wrapper handles errors appropriately for CLI commands.
"""
from __future__ import annotations

import pytest
import typer

from badbits_publisher.errors import (
    FetchFailure,
    IncompleteDenylistError,
    OversizedHashError,
    PublishFailed,
    SegmentWriteFailure,
)
from badbits_publisher.operations.mappers import EXIT_CODES, FALLBACK_EXIT_CODE, exit_code_for, run_and_exit


class TestExitCodeMapping:
    """Test exception to exit code mapping."""

    @pytest.mark.parametrize("exc,code", [
        (ValueError("bad"), 2),
        (FetchFailure("down"), 3),
        (OversizedHashError("x" * 10, 5), 4),
        (SegmentWriteFailure("write failed", key="k"), 5),
        (IncompleteDenylistError("gap", version="v1"), 6),
    ])
    def test_known_exceptions(self, exc, code):
        assert exit_code_for(exc) == code

    def test_unknown_exception_maps_to_fallback(self):
        assert exit_code_for(OSError("disk")) == FALLBACK_EXIT_CODE == 1

    def test_publish_failed_maps_to_cause(self):
        assert exit_code_for(PublishFailed("fetching", FetchFailure("down"))) == 3
        assert exit_code_for(PublishFailed("writing", SegmentWriteFailure("x"))) == 5
        assert exit_code_for(PublishFailed("swapping", OSError("io"))) == 1

    def test_exit_codes_are_distinct(self):
        non_config = [code for name, code in EXIT_CODES.items() if name not in ("ValueError", "ValidationError")]
        assert len(non_config) == len(set(non_config))


class TestRunAndExit:
    """Test the run_and_exit wrapper."""

    def test_returns_result_on_success(self):
        assert run_and_exit(lambda: 42) == 42

    def test_maps_exception_to_exit(self, capsys):
        def failing():
            raise PublishFailed("fetching", FetchFailure("source [down]"))

        with pytest.raises(typer.Exit) as exc_info:
            run_and_exit(failing)

        assert exc_info.value.exit_code == 3
        assert "source [down]" in capsys.readouterr().err

    def test_typer_exit_passes_through(self):
        def exiting():
            raise typer.Exit(code=7)

        with pytest.raises(typer.Exit) as exc_info:
            run_and_exit(exiting)
        assert exc_info.value.exit_code == 7
