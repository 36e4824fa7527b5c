"""
Tool configuration for bbl.

Configuration is loaded from the bbl.toml [bbl] section, then overridden by
BBL_* environment variables.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel

CONFIG_FILE = "bbl.toml"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class BblConfig(BaseModel):
    """Complete bbl tool configuration."""

    state_dir: str = "."
    terraform_binary: str = "terraform"
    bosh_binary: str = "bosh"
    debug: bool = False
    aws_endpoint_url: str | None = None

    def get_state_dir(self, base: Path | None = None) -> Path:
        """Get the absolute state directory."""
        state_dir = Path(self.state_dir).expanduser()
        if state_dir.is_absolute():
            return state_dir
        return (base or Path.cwd()) / state_dir


def load_bbl_config(toml_path: Path, environ: Mapping[str, str] | None = None) -> BblConfig:
    """
    Load bbl configuration.

    Args:
        toml_path: Path to bbl.toml
        environ: Environment to read overrides from (defaults to os.environ)

    Returns:
        BblConfig with values from file, environment, or defaults
    """
    data: dict[str, Any] = {}

    if toml_path.exists():
        try:
            with open(toml_path, "rb") as f:
                data = dict(tomllib.load(f).get("bbl", {}))
        except (OSError, tomllib.TOMLDecodeError):
            data = {}

    data.update(_parse_environ(os.environ if environ is None else environ))

    return BblConfig.model_validate(data)


def _parse_environ(environ: Mapping[str, str]) -> dict[str, Any]:
    """Pick BBL_* overrides out of the environment."""
    overrides: dict[str, Any] = {}

    if environ.get("BBL_STATE_DIR"):
        overrides["state_dir"] = environ["BBL_STATE_DIR"]
    if environ.get("BBL_DEBUG"):
        overrides["debug"] = environ["BBL_DEBUG"].strip().lower() in _TRUE_VALUES
    if environ.get("BBL_TERRAFORM_BINARY"):
        overrides["terraform_binary"] = environ["BBL_TERRAFORM_BINARY"]
    if environ.get("BBL_AWS_ENDPOINT_URL"):
        overrides["aws_endpoint_url"] = environ["BBL_AWS_ENDPOINT_URL"]

    return overrides
