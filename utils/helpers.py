# Author: Bradley R. Kinnard
# utility helpers for confidential transfers

import json
import logging
from pathlib import Path
from typing import Any

import yaml
import jsonschema

from config.schemas import system_config_schema


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "system_config.yaml"


def load_system_config(path: Path | str = DEFAULT_CONFIG_PATH) -> dict[str, Any]:
    """load and validate system config against schema."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"config not found: {path}")

    with open(path, "r") as f:
        config = yaml.safe_load(f)

    jsonschema.validate(instance=config, schema=system_config_schema)
    logger.info(f"loaded system config from {path}")
    return config


def canonical_json(data: Any) -> str:
    """compact JSON, same bytes as JSON.stringify for plain data."""
    return json.dumps(data, separators=(",", ":"))


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """get a configured logger. avoids duplicate handlers."""
    log = logging.getLogger(name)
    log.setLevel(level)

    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
        )
        handler.setFormatter(formatter)
        log.addHandler(handler)

    return log


def set_log_level(level: str | int) -> None:
    """apply a level to every logger created through get_logger."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    for name in list(logging.root.manager.loggerDict):
        log = logging.getLogger(name)
        if log.handlers:
            log.setLevel(level)
            for handler in log.handlers:
                handler.setLevel(level)
