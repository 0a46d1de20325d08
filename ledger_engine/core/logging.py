"""Logging utilities."""
from __future__ import annotations

import logging.config
from pathlib import Path

import yaml  # type: ignore[import-untyped]

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "configs" / "logging.yaml"


def configure_logging(config_path: Path | None = None) -> None:
    """Configure logging from the YAML configuration file if present."""
    path = config_path or DEFAULT_CONFIG_PATH
    if path.exists():
        with path.open("r", encoding="utf-8") as config_file:
            logging.config.dictConfig(yaml.safe_load(config_file))
    else:
        logging.basicConfig(level=logging.INFO)


__all__ = ["DEFAULT_CONFIG_PATH", "configure_logging"]
