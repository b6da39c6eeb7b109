"""
Configuration loading for tfwait.

Values can come from a YAML file (validated against the bundled JSON
schema), from the environment, or from the command line. The merged result
is validated by the WaitConfig model.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import jsonschema
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .client import TFE_ADDRESS, TFWaitError, check_base_url
from .loop import DEFAULT_INTERVAL
from .models import WorkspaceRef, parse_workspace_refs


SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "config.schema.json"


class ConfigError(TFWaitError):
    """Raised when configuration is missing or invalid."""

    def __init__(self, message: str, errors: list[str] = None):
        super().__init__(message)
        self.errors = errors or []


def load_schema() -> dict:
    with open(SCHEMA_PATH) as f:
        return json.load(f)


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML config file and validate it against the schema."""
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML parse error in {path}: {e}") from e

    if data is None:
        return {}

    try:
        jsonschema.validate(data, load_schema())
    except jsonschema.ValidationError as e:
        raise ConfigError(f"Invalid config file {path} at {e.json_path}: {e.message}") from e

    return data


class WaitConfig(BaseModel):
    """Settings for one tfwait invocation."""

    organization: str = Field(min_length=1)
    workspaces: list[str] = Field(min_length=1)
    token: str = Field(min_length=1, repr=False)
    wait_for_apply: bool = False
    interval: float = Field(default=DEFAULT_INTERVAL, gt=0)
    timeout: Optional[float] = Field(default=None, gt=0)
    base_url: str = TFE_ADDRESS

    @field_validator("workspaces", mode="before")
    @classmethod
    def split_workspaces(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            return [name.strip() for name in v if isinstance(name, str) and name.strip()]
        return v

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        return check_base_url(v)

    def workspace_refs(self) -> list[WorkspaceRef]:
        return parse_workspace_refs(self.organization, self.workspaces)


def build_config(config_file: Optional[str | Path] = None, **overrides: Any) -> WaitConfig:
    """
    Merge the optional config file with explicit values.

    Overrides that are None are ignored, so unset CLI options fall back to
    the file and then to the model defaults.
    """
    values: dict[str, Any] = {}
    if config_file:
        values.update(load_config_file(config_file))

    for key, value in overrides.items():
        if value is not None:
            values[key] = value

    missing = [key for key in ("organization", "workspaces", "token") if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing required setting(s): {', '.join(missing)}", errors=missing)

    try:
        return WaitConfig(**values)
    except ValidationError as e:
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise ConfigError("Invalid configuration: " + "; ".join(errors), errors=errors) from e
