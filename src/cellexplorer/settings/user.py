"""User preference files layered on top of the defaults."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Final

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from cellexplorer.constants import DEFAULT_PREFERENCES_PATHS, PREFERENCES_ENV_VAR
from cellexplorer.settings.preferences import Settings, load_default_settings

# Load environment variables from .env file(s)
load_dotenv()

logger: Final = logging.getLogger(__name__)


def _interpolate_env(content: str) -> str:
    return re.sub(r"\$\{(\w+)\}", lambda m: os.getenv(m.group(1), ""), content)


def find_preferences_file(path: Path | None = None) -> Path | None:
    """Locate the preferences file to use.

    Args:
        path: Explicit file (optional, searches the environment variable and
            default locations if None)

    Returns:
        Path to the preferences file, or None if there is none

    Raises:
        FileNotFoundError: If the environment variable names a missing file
    """
    if path is not None:
        return path

    env_path = os.environ.get(PREFERENCES_ENV_VAR)
    if env_path:
        path = Path(env_path)
        if not path.exists():
            raise FileNotFoundError(f"Preferences file from {PREFERENCES_ENV_VAR} not found: {path}")
        return path

    for default_path in DEFAULT_PREFERENCES_PATHS:
        if default_path.exists():
            return default_path
    return None


def load_settings(path: Path | None = None) -> Settings:
    """Load the defaults with a user preferences file applied on top.

    Args:
        path: Preferences YAML (optional, see :func:`find_preferences_file`)

    Returns:
        Validated Settings object; the plain defaults if no file is found

    Raises:
        FileNotFoundError: If the environment variable names a missing file
        RuntimeError: If the file cannot be parsed or holds invalid settings
    """
    settings = load_default_settings()
    path = find_preferences_file(path)
    if path is None:
        logger.debug("No preferences file found, using defaults")
        return settings

    logger.debug("Loading preferences from %s", path)
    try:
        raw = _interpolate_env(path.read_text(encoding="utf-8"))
        data = yaml.safe_load(raw)
    except (OSError, yaml.YAMLError) as exc:
        raise RuntimeError(f"Unable to read preferences YAML: {exc}") from exc

    if data is None:
        return settings
    if not isinstance(data, Mapping):
        raise RuntimeError(f"Invalid preferences: expected a mapping in {path}")

    try:
        return settings.with_overrides(data)
    except KeyError as err:
        raise RuntimeError(f"Invalid preferences: unknown setting {err.args[0]!r}") from err
    except ValidationError as err:
        raise RuntimeError(f"Invalid preferences:\n{err}") from err
    except ValueError as err:
        raise RuntimeError(f"Invalid preferences: {err}") from err


def settings_to_yaml(settings: Settings) -> str:
    """Serialize settings with their nested alias keys."""
    return yaml.safe_dump(settings.model_dump(mode="json", by_alias=True), sort_keys=False)


def dump_settings(settings: Settings, path: Path) -> None:
    """Write settings to a preferences file readable by :func:`load_settings`."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(settings_to_yaml(settings), encoding="utf-8")
    logger.debug("Wrote preferences to %s", path)
