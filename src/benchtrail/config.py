"""Configuration for a benchtrail workspace."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from benchtrail.errors import InvalidConfig

CONFIG_FILE_NAME = "config.yaml"
HOME_ENV_VAR = "BENCHTRAIL_HOME"


class TrailConfig(BaseModel):
    """Workspace configuration."""

    model_config = {"extra": "forbid"}

    root_dir: Path = Field(..., description="Directory holding the catalog and run histories")
    benchmark_format: Literal["json", "csv"] = Field(
        default="json", description="Output format requested from benchmark executables"
    )
    benchmark_args: list[str] = Field(
        default_factory=list, description="Extra arguments passed to benchmark executables"
    )
    git_executable: str = Field(default="git", description="Git binary used for hashes and diffs")
    diff_color: bool = Field(default=True, description="Ask git for colored diffs")
    log_level: str = Field(default="WARNING", description="Default logging level")


def get_root_dir(config_value: str | Path | None = None) -> Path:
    """Resolve the workspace directory.

    Priority:
        1. Explicit value (``--root``)
        2. $BENCHTRAIL_HOME
        3. $XDG_CONFIG_HOME/benchtrail
        4. ~/.config/benchtrail
    """
    if config_value:
        return Path(os.path.expandvars(str(config_value))).expanduser()

    home = os.environ.get(HOME_ENV_VAR)
    if home:
        return Path(os.path.expandvars(home)).expanduser()

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg).expanduser() / "benchtrail"

    return Path.home() / ".config" / "benchtrail"


def load_config(root: str | Path | None = None) -> TrailConfig:
    """Load configuration, reading ``config.yaml`` from the root if present.

    Raises:
        InvalidConfig: If the YAML file is not a mapping or has invalid values
    """
    root_dir = get_root_dir(root)
    path = root_dir / CONFIG_FILE_NAME
    config_dict: dict = {}
    if path.is_file():
        with path.open("r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise InvalidConfig(str(path), "expected a mapping")
        config_dict = loaded

    config_dict["root_dir"] = root_dir
    try:
        return TrailConfig(**config_dict)
    except ValidationError as e:
        raise InvalidConfig(str(path), str(e)) from e
