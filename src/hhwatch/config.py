"""Configuration loading and logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from hhwatch.models.config import Config

DEFAULT_CONFIG_PATH = Path("~/.config/hhwatch/config.toml")


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH.expanduser()
    else:
        config_path = Path(config_path).expanduser()

    if not config_path.exists():
        return Config()

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return Config.model_validate(data)


def setup_logging(config: Config) -> None:
    """Configure the root logger from the logging section."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    log_file = config.logging.log_file
    if log_file is not None:
        log_file = log_file.expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, config.logging.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )
