"""Tutorial configuration loaded from environment variables and config.yaml."""

from __future__ import annotations

import copy
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import yaml
from pythonjsonlogger import jsonlogger

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG = PACKAGE_DIR / "config.yaml"

# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------
OUTPUT_DIR = os.environ.get("BAYESDOCS_OUTPUT_DIR", "results")
SEED = int(os.environ.get("BAYESDOCS_SEED", "42"))

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = os.environ.get("BAYESDOCS_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.environ.get("BAYESDOCS_LOG_FORMAT", "text").lower()


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Configure root logging, structured JSON or plain text."""
    handler = logging.StreamHandler(sys.stdout)
    if (fmt or LOG_FORMAT) == "json":
        formatter = jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level or LOG_LEVEL)

    # Quiet noisy libraries
    logging.getLogger("pymc").setLevel(logging.WARNING)
    logging.getLogger("pytensor").setLevel(logging.WARNING)
    logging.getLogger("arviz").setLevel(logging.WARNING)
    logging.getLogger("matplotlib").setLevel(logging.WARNING)


def _deep_merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load tutorial parameters.

    The packaged ``config.yaml`` provides defaults; a user file, when given,
    is merged over them key by key.
    """
    with open(DEFAULT_CONFIG) as f:
        cfg = yaml.safe_load(f)

    if config_path is not None:
        with open(config_path) as f:
            user = yaml.safe_load(f) or {}
        if not isinstance(user, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
        cfg = _deep_merge(cfg, user)

    cfg.setdefault("output_dir", OUTPUT_DIR)
    cfg.setdefault("seed", SEED)
    return cfg
