"""Tests for configuration loading."""

from pathlib import Path

import pydantic
import pytest

from hhwatch.config import load_config
from hhwatch.models.config import Config


def test_defaults_when_missing(tmp_path):
    config = load_config(tmp_path / "missing.toml")
    assert config == Config()
    assert config.watchman.timeout == 120.0
    assert config.watchman.poll_timeout == 0.0
    assert config.watchman.strict is True
    assert config.filters.config_file == ".hhconfig"
    assert config.filters.suffixes == ["php", "phpt", "hh", "hhi", "xhp", "js"]
    assert config.filters.vcs_dirs == [".hg", ".git", ".svn"]
    assert config.filters.defer == ["hg.update"]


def test_partial_override(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        """
[watchman]
subscribe = true
tmp_dir = "/var/tmp/hh"

[filters]
suffixes = ["php", "hack"]

[logging]
log_level = "debug"
"""
    )
    config = load_config(path)

    assert config.watchman.subscribe is True
    assert config.watchman.tmp_dir == Path("/var/tmp/hh")
    assert config.watchman.binary == "watchman"
    assert config.filters.suffixes == ["php", "hack"]
    assert config.filters.vcs_dirs == [".hg", ".git", ".svn"]
    assert config.logging.log_level == "debug"


def test_invalid_log_level(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[logging]\nlog_level = "loud"\n')
    with pytest.raises(pydantic.ValidationError):
        load_config(path)
