"""Cell Explorer preferences.

This package provides:
- Settings: Validated preferences with their default values
- load_default_settings: Fresh defaults, no I/O
- load_settings / dump_settings: User preference files in YAML
"""

from cellexplorer.settings.preferences import (
    FiringRateMapSettings,
    Settings,
    TSNESettings,
    load_default_settings,
)
from cellexplorer.settings.user import dump_settings, load_settings, settings_to_yaml

__all__ = [
    "FiringRateMapSettings",
    "Settings",
    "TSNESettings",
    "dump_settings",
    "load_default_settings",
    "load_settings",
    "settings_to_yaml",
]
