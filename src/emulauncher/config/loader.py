from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from .models import Settings

CONFIG_ENV_VAR = "EMULAUNCHER_CONFIG"
DEFAULT_CONFIG = "emulauncher.yaml"


def _config_path(path: str | None) -> Path:
    return Path(path or os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG)


def load_settings(path: str | None = None) -> Settings:
    """
    Build Settings from an optional YAML file layered under the environment.

    The file is looked up as ``path``, then ``$EMULAUNCHER_CONFIG``, then
    ``emulauncher.yaml`` in the working directory. A missing file, an empty
    one, or one whose top level is not a mapping contributes nothing, and
    ``EMULAUNCHER_*`` variables still override whatever it sets.
    """
    config = _config_path(path)
    overrides: dict[str, Any] = {}
    if config.is_file():
        with config.open(encoding="utf-8") as fh:
            document = yaml.safe_load(fh)
        if isinstance(document, dict):
            overrides = document
    return Settings(**overrides)
