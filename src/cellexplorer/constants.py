from __future__ import annotations

from pathlib import Path
from typing import Final

# Environment variable naming an explicit preferences file
PREFERENCES_ENV_VAR: Final = "CELLEXPLORER_PREFERENCES"

# Searched in order when no preferences file is given
DEFAULT_PREFERENCES_PATHS: Final[list[Path]] = [
    Path("cellexplorer.yaml"),
    Path("~/.config/cellexplorer/preferences.yaml").expanduser(),
]

# Built-in plots for the custom cell panels. Response-curve plots are
# generated per metric and are addressed with the RCs_ prefix.
CELL_PLOT_KINDS: Final[frozenset[str]] = frozenset(
    {
        "Waveforms (single)",
        "Waveforms (all)",
        "Waveforms (image)",
        "Raw waveforms (single)",
        "Raw waveforms (all)",
        "ACGs (single)",
        "ACGs (all)",
        "ACGs (image)",
        "CCGs (image)",
        "Sharp wave-ripple",
    }
)
RESPONSE_CURVE_PREFIX: Final = "RCs_"

# Number of custom cell plot panels in the largest GUI layout
CUSTOM_CELL_PLOT_COUNT: Final = 6

# Autocorrelogram window per acgType (None = log-scaled bins)
ACG_WINDOWS_MS: Final[dict[str, int | None]] = {
    "Normal": 100,
    "Wide": 1000,
    "Narrow": 30,
    "Log10": None,
}
