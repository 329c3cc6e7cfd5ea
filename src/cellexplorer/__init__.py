"""Default preferences for the Cell Explorer."""

from cellexplorer.settings import Settings, load_default_settings, load_settings

__version__ = "0.1.0"

__all__ = ["Settings", "__version__", "load_default_settings", "load_settings"]
