"""Tests for crash markers."""

from pathlib import Path

import pytest

from hhwatch.watchman.crash import (
    WATCHMAN_FAILED_EXIT_CODE,
    crash_marker_path,
    crash_record,
    slash_escaped,
    with_crash_record,
    with_crash_record_exn,
    with_crash_record_opt,
)


def _boom():
    raise ValueError("boom")


def test_slash_escaped():
    assert slash_escaped("/a/b:z") == "zSazSbzCzZ"
    assert slash_escaped("C:\\src") == "CzCzBsrc"


def test_crash_marker_path(tmp_path):
    assert crash_marker_path("/repo/www", tmp_path) == tmp_path / ".zSrepozSwww.watchman_failed"
    assert crash_marker_path(Path("/repo"), tmp_path) == crash_marker_path("/repo", tmp_path)


def test_default_tmp_dir():
    assert crash_marker_path("/repo").parent.name == "hh_server"


def test_success_leaves_no_marker(tmp_path):
    assert with_crash_record_exn("/repo", "get_changes", lambda: 42, tmp_path) == 42
    assert not crash_marker_path("/repo", tmp_path).exists()


def test_exn_flavour_marks_and_reraises(tmp_path):
    with pytest.raises(ValueError, match="boom"):
        with_crash_record_exn("/repo", "get_changes", _boom, tmp_path)

    marker = crash_marker_path("/repo", tmp_path)
    assert marker.exists()
    assert marker.stat().st_size == 0


def test_marker_directory_is_created(tmp_path):
    tmp_dir = tmp_path / "nested" / "hh_server"
    with pytest.raises(ValueError):
        with_crash_record_exn("/repo", "init", _boom, tmp_dir)
    assert crash_marker_path("/repo", tmp_dir).exists()


def test_fatal_flavour_exits(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        with_crash_record("/repo", "get_all_files", _boom, tmp_path)
    assert exc_info.value.code == WATCHMAN_FAILED_EXIT_CODE
    assert crash_marker_path("/repo", tmp_path).exists()


def test_opt_flavour_returns_none(tmp_path):
    assert with_crash_record_opt("/repo", "init", _boom, tmp_path) is None
    assert crash_marker_path("/repo", tmp_path).exists()
    assert with_crash_record_opt("/other", "init", lambda: "ok", tmp_path) == "ok"


def test_context_manager_logs_source(tmp_path, caplog):
    with pytest.raises(ValueError):
        with crash_record("/repo", "get_changes", tmp_path):
            _boom()
    assert "Watchman get_changes" in caplog.text
