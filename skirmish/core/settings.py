"""
Engine settings module.

Holds the switches a table can toggle for an encounter and loads them from a
JSON file.
"""

import json
from pathlib import Path

from catchery import log_warning
from pydantic import BaseModel, ConfigDict, Field, ValidationError


class EngineSettings(BaseModel):
    """Feature switches for a single encounter."""

    model_config = ConfigDict(frozen=True)

    action_economy_enabled: bool = Field(
        default=True,
        description="Track and enforce the per-turn action slots.",
    )
    engagement_enabled: bool = Field(
        default=True,
        description="Enforce engagement requirements on melee and ranged attacks.",
    )


def load_settings(filepath: Path) -> EngineSettings:
    """
    Load engine settings from a JSON file.

    A missing file falls back to the defaults; a malformed one is an error.

    Args:
        filepath (Path):
            The JSON file to read.

    Returns:
        EngineSettings:
            The loaded settings.

    Raises:
        ValueError:
            If the file exists but cannot be parsed into settings.

    """
    if not filepath.exists():
        log_warning(
            "Settings file not found, using defaults",
            {"filepath": str(filepath)},
        )
        return EngineSettings()
    if not filepath.is_file():
        raise ValueError(f"Not a file: {filepath}")
    try:
        with open(filepath, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Expected object in {filepath}, got {type(data).__name__}")
        return EngineSettings(**data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"File {filepath} raised an error: {e}")
