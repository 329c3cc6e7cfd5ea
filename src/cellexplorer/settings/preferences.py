"""Cell Explorer preferences and their default values.

Every setting is a pre-declared field on a frozen pydantic model. Python
attributes are snake_case; the aliases keep the dotted keys used by the
Cell Explorer GUI and by persisted preference files (``plotXdata``,
``tSNE.Perplexity``, ...).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Annotated, Any, Final, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cellexplorer.constants import (
    ACG_WINDOWS_MS,
    CELL_PLOT_KINDS,
    CUSTOM_CELL_PLOT_COUNT,
    RESPONSE_CURVE_PREFIX,
)

logger: Final = logging.getLogger(__name__)

UnitInterval = Annotated[float, Field(ge=0.0, le=1.0)]
RGB = tuple[UnitInterval, UnitInterval, UnitInterval]
Label = Annotated[str, Field(min_length=1)]
MetricName = Annotated[str, Field(min_length=1)]
PositiveNumber = Union[Annotated[int, Field(gt=0)], Annotated[float, Field(gt=0)]]
AtLeastOne = Union[Annotated[int, Field(ge=1)], Annotated[float, Field(ge=1)]]

AcgType = Literal["Normal", "Wide", "Narrow", "Log10"]
IsiNormalization = Literal["Rate", "Occurance"]
MonoSynDisplay = Literal["All", "Upstream", "Downstream", "Up & downstream", "Selected", "None"]
MetricsTableType = Literal["Metrics", "Cells", "None"]
PlotCount = Literal["GUI 1+3", "GUI 2+3", "GUI 3+3", "GUI 3+4", "GUI 3+5", "GUI 3+6"]
DistanceMetric = Literal[
    "euclidean",
    "seuclidean",
    "cityblock",
    "chebychev",
    "minkowski",
    "mahalanobis",
    "cosine",
    "correlation",
    "spearman",
    "hamming",
    "jaccard",
]

M = TypeVar("M", bound="PreferenceModel")


def _field_name(model_cls: type[BaseModel], key: str) -> str:
    """Map an alias or attribute name to the attribute name of a field."""
    for name, info in model_cls.model_fields.items():
        if key in (name, info.alias):
            return name
    raise KeyError(key)


def _nested_model(model_cls: type[BaseModel], name: str) -> type[PreferenceModel] | None:
    annotation = model_cls.model_fields[name].annotation
    if isinstance(annotation, type) and issubclass(annotation, PreferenceModel):
        return annotation
    return None


def _merge_overrides(
    model_cls: type[BaseModel], target: dict[str, Any], overrides: Mapping[Any, Any]
) -> None:
    """Merge dotted or nested overrides into an alias-keyed dump of ``model_cls``."""
    for raw_key, value in overrides.items():
        key = str(raw_key)
        head, _, rest = key.partition(".")
        name = _field_name(model_cls, head)
        alias = model_cls.model_fields[name].alias or name
        nested = _nested_model(model_cls, name)

        if rest and nested is None:
            raise KeyError(key)
        if rest or (nested is not None and isinstance(value, Mapping)):
            group = target[alias]
            # an earlier override may have replaced the group with a scalar
            if not isinstance(group, dict):
                raise ValueError(f"{alias} must be a mapping, got {group!r}")
            _merge_overrides(nested, group, {rest: value} if rest else value)
        else:
            target[alias] = value


class PreferenceModel(BaseModel):
    """Base for preference groups.

    Instances are immutable; use :meth:`with_overrides` to derive a modified
    copy. Unknown keys are rejected instead of being silently added.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        validate_default=True,
    )

    def get(self, key: str) -> Any:
        """Look up a setting by dotted key.

        Args:
            key: Alias path (``"tSNE.Perplexity"``) or attribute path
                (``"t_sne.perplexity"``)

        Returns:
            The setting value

        Raises:
            KeyError: If any part of the key does not name a setting
        """
        value: Any = self
        for part in key.split("."):
            if not isinstance(value, BaseModel):
                raise KeyError(key)
            try:
                value = getattr(value, _field_name(type(value), part))
            except KeyError:
                raise KeyError(key) from None
        return value

    def to_flat_dict(self) -> dict[str, Any]:
        """Return every leaf setting keyed by its dotted alias."""
        flat: dict[str, Any] = {}
        for name, info in type(self).model_fields.items():
            key = info.alias or name
            value = getattr(self, name)
            if isinstance(value, PreferenceModel):
                for sub_key, sub_value in value.to_flat_dict().items():
                    flat[f"{key}.{sub_key}"] = sub_value
            else:
                flat[key] = value
        return flat

    def with_overrides(self: M, overrides: Mapping[Any, Any]) -> M:
        """Return a validated copy with ``overrides`` applied.

        Keys may be dotted (``"tSNE.Perplexity"``) or nested mappings
        (``{"tSNE": {"Perplexity": 30}}``), using aliases or attribute names.

        Raises:
            KeyError: If a key does not name a setting
            ValueError: If a dotted key descends into a group that was
                overridden with a non-mapping value
            pydantic.ValidationError: If an overridden value is invalid
        """
        merged = self.model_dump(by_alias=True)
        _merge_overrides(type(self), merged, overrides)
        logger.debug("Applied %d preference override(s)", len(overrides))
        return self.model_validate(merged)


class TSNESettings(PreferenceModel):
    """Hyperparameters handed to the t-SNE dimensionality reduction."""

    metrics: tuple[MetricName, ...] = Field(
        (
            "firingRate",
            "thetaModulationIndex",
            "burstIndex_Mizuseki2012",
            "troughToPeak",
            "ab_ratio",
            "burstIndex_Royer2012",
            "acg_tau_rise",
            "acg_tau_burst",
            "acg_h",
            "acg_tau_decay",
            "cv2",
            "burstIndex_Doublets",
            "troughtoPeakDerivative",
        ),
        min_length=1,
        description="Cell metrics used as t-SNE input features",
    )
    d_distance_metric: DistanceMetric = Field("euclidean", alias="dDistanceMetric")
    exaggeration: AtLeastOne = Field(15, description="Early exaggeration factor")
    standardize: bool = False
    num_pca_components: int = Field(
        0, ge=0, alias="NumPCAComponents", description="PCA pre-reduction (0 = disabled)"
    )
    learn_rate: PositiveNumber = Field(1000, alias="LearnRate")
    perplexity: PositiveNumber = Field(200, alias="Perplexity")
    initial_y: str = Field("Random", min_length=1, alias="InitialY")

    # Extra features appended to the metrics
    calc_wide_acg: bool = Field(False, alias="calcWideAcg")
    calc_narrow_acg: bool = Field(False, alias="calcNarrowAcg")
    calc_log_acg: bool = Field(False, alias="calcLogAcg")
    calc_log_isi: bool = Field(False, alias="calcLogIsi")
    calc_filt_waveform: bool = Field(False, alias="calcFiltWaveform")
    calc_raw_waveform: bool = Field(False, alias="calcRawWaveform")


class FiringRateMapSettings(PreferenceModel):
    """Firing rate map display options."""

    show_heatmap: bool = Field(False, alias="showHeatmap")
    show_legend: bool = Field(False, alias="showLegend")
    show_heatmap_colorbar: bool = Field(False, alias="showHeatmapColorbar")


class Settings(PreferenceModel):
    """Preferences read by the Cell Explorer at startup.

    The defaults describe a 3+3 panel layout with waveform, ACG and CCG plots,
    autosave every 6 classification steps, and the standard cell type and
    ground truth taxonomies with their plot encodings.

    Examples:
        settings = load_default_settings()
        settings.plot_x_data              # "firingRate"
        settings.get("tSNE.Perplexity")   # 200.0
        tuned = settings.with_overrides({"tSNE.Perplexity": 30})
    """

    # Display settings
    custom_cell_plot_in: tuple[str, ...] = Field(
        (
            "Waveforms (all)",
            "ACGs (single)",
            "RCs_firingRateAcrossTime",
            "Waveforms (single)",
            "CCGs (image)",
            "Sharp wave-ripple",
        ),
        min_length=CUSTOM_CELL_PLOT_COUNT,
        max_length=CUSTOM_CELL_PLOT_COUNT,
        alias="customCellPlotIn",
        description="Plot shown in each custom cell panel",
    )
    acg_type: AcgType = Field(
        "Normal", alias="acgType", description="Normal (100ms), Wide (1s), Narrow (30ms), Log10"
    )
    isi_normalization: IsiNormalization = Field("Occurance", alias="isiNormalization")
    mono_syn_disp_in: MonoSynDisplay = Field(
        "Selected", alias="monoSynDispIn", description="Monosynaptic connections to draw"
    )
    metrics_table_type: MetricsTableType = Field("Metrics", alias="metricsTableType")
    plot_count_in: PlotCount = Field("GUI 3+3", alias="plotCountIn")
    disp_legend: bool = Field(False, alias="dispLegend", description="Display legends in plots")
    plot_waveform_metrics: bool = Field(
        False, alias="plotWaveformMetrics", description="Show waveform metrics on the single waveform"
    )
    sorting_metric: MetricName = Field(
        "burstIndex_Royer2012", alias="sortingMetric", description="Metric used to sort image data"
    )
    marker_size: int = Field(15, gt=0, alias="markerSize", description="Marker size in group plots")
    plot_channel_map: bool = Field(
        True, alias="plotChannelMap", description="Show a channel map with waveforms"
    )
    plot_channel_map_all_channels: bool = Field(
        True, alias="plotChannelMapAllChannels", description="Show all channels, not a subset"
    )

    # Autosave settings
    auto_save_frequency: int = Field(
        6,
        ge=0,
        alias="autoSaveFrequency",
        description="Classification steps between autosaves (0 = off)",
    )
    auto_save_var_name: str = Field(
        "cell_metrics",
        pattern=r"^[A-Za-z]\w*$",
        alias="autoSaveVarName",
        description="Variable name used in autosave",
    )

    # Initial data displayed in the custom plot
    plot_x_data: MetricName = Field("firingRate", alias="plotXdata")
    plot_y_data: MetricName = Field("peakVoltage", alias="plotYdata")
    plot_z_data: MetricName = Field("troughToPeak", alias="plotZdata")
    plot_marker_size_data: MetricName = Field("peakVoltage", alias="plotMarkerSizedata")

    # Cell type classification definitions
    cell_types: tuple[Label, ...] = Field(
        ("Unknown", "Pyramidal Cell", "Narrow Interneuron", "Wide Interneuron"),
        alias="cellTypes",
    )
    deep_superficial: tuple[Label, ...] = Field(
        ("Unknown", "Cortical", "Deep", "Superficial"), alias="deepSuperficial"
    )
    tags: tuple[Label, ...] = ("Good", "Bad", "Noise", "InverseSpike")
    ground_truth: tuple[Label, ...] = Field(
        ("PV+", "NOS1+", "GAT1+", "SST+", "Axoaxonic", "Cell type A"), alias="groundTruth"
    )
    ground_truth_markers: tuple[Label, ...] = Field(
        ("om", "dg", "sm", "*k", "+k", "+p"),
        alias="groundTruthMarkers",
        description="Marker format string per ground truth label",
    )
    ground_truth_colors: tuple[RGB, ...] = Field(
        (
            (0.9, 0.2, 0.2),
            (0.2, 0.2, 0.9),
            (0.2, 0.9, 0.9),
            (0.9, 0.2, 0.9),
            (0.2, 0.9, 0.2),
            (0.5, 0.5, 0.5),
        ),
        alias="groundTruthColors",
    )
    cell_type_colors: tuple[RGB, ...] = Field(
        (
            (0.5, 0.5, 0.5),
            (0.8, 0.2, 0.2),
            (0.2, 0.2, 0.8),
            (0.2, 0.8, 0.8),
        ),
        alias="cellTypeColors",
    )

    # tSNE representation
    t_sne: TSNESettings = Field(default_factory=TSNESettings, alias="tSNE")

    # Highlight excitatory / inhibitory cells
    display_inhibitory: bool = Field(False, alias="displayInhibitory")
    display_excitatory: bool = Field(False, alias="displayExcitatory")
    display_excitatory_postsynaptic_cells: bool = Field(
        False, alias="displayExcitatoryPostsynapticCells"
    )
    display_inhibitory_postsynaptic_cells: bool = Field(
        False, alias="displayInhibitoryPostsynapticCells"
    )

    firing_rate_map: FiringRateMapSettings = Field(
        default_factory=FiringRateMapSettings, alias="firingRateMap"
    )

    # ---- validators ----
    @field_validator("custom_cell_plot_in")
    @classmethod
    def check_cell_plots(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for plot in v:
            if plot in CELL_PLOT_KINDS:
                continue
            if plot.startswith(RESPONSE_CURVE_PREFIX) and len(plot) > len(RESPONSE_CURVE_PREFIX):
                continue
            raise ValueError(f"unknown cell plot {plot!r}")
        return v

    @field_validator("cell_types", "deep_superficial", "tags", "ground_truth")
    @classmethod
    def check_unique_labels(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Labels within one taxonomy must be distinct."""
        duplicates = sorted({label for label in v if v.count(label) > 1})
        if duplicates:
            raise ValueError(f"duplicate labels: {', '.join(duplicates)}")
        return v

    @model_validator(mode="after")
    def check_visual_encodings(self) -> Settings:
        """Each ground truth label and cell type needs exactly one encoding."""
        count = len(self.ground_truth)
        if len(self.ground_truth_markers) != count or len(self.ground_truth_colors) != count:
            raise ValueError(
                f"groundTruth has {count} labels but {len(self.ground_truth_markers)} markers "
                f"and {len(self.ground_truth_colors)} colors"
            )
        if len(self.cell_type_colors) != len(self.cell_types):
            raise ValueError(
                f"cellTypes has {len(self.cell_types)} entries "
                f"but cellTypeColors has {len(self.cell_type_colors)}"
            )
        return self

    # ---- convenience methods ----
    @property
    def autosave_enabled(self) -> bool:
        """Whether autosave is switched on."""
        return self.auto_save_frequency > 0

    def should_autosave(self, classification_steps: int) -> bool:
        """Check if an autosave is due after a number of classification steps.

        Args:
            classification_steps: Classification steps since the session started

        Returns:
            True if autosave is enabled and the step count is a multiple of
            the autosave frequency
        """
        if not self.autosave_enabled or classification_steps <= 0:
            return False
        return classification_steps % self.auto_save_frequency == 0

    @property
    def acg_window_ms(self) -> int | None:
        """Autocorrelogram window in milliseconds, None for log-scaled ACGs."""
        return ACG_WINDOWS_MS[self.acg_type]

    def ground_truth_style(self, label: str) -> tuple[str, RGB]:
        """Marker and color used to plot a ground truth label.

        Raises:
            KeyError: If the label is not a ground truth label
        """
        if label not in self.ground_truth:
            raise KeyError(label)
        index = self.ground_truth.index(label)
        return self.ground_truth_markers[index], self.ground_truth_colors[index]

    def cell_type_color(self, cell_type: str) -> RGB:
        """Color used to plot a cell type.

        Raises:
            KeyError: If the cell type is not defined
        """
        if cell_type not in self.cell_types:
            raise KeyError(cell_type)
        return self.cell_type_colors[self.cell_types.index(cell_type)]

    def referenced_metrics(self) -> set[str]:
        """All cell metric names these settings refer to."""
        return {
            self.sorting_metric,
            self.plot_x_data,
            self.plot_y_data,
            self.plot_z_data,
            self.plot_marker_size_data,
            *self.t_sne.metrics,
        }

    def missing_metrics(self, available: Iterable[str]) -> list[str]:
        """Referenced metric names that are absent from ``available``.

        Metric names are not checked when settings are built, since the
        metrics table is only known once a session is loaded.
        """
        return sorted(self.referenced_metrics().difference(available))


def load_default_settings() -> Settings:
    """Return a new Settings object holding the default preferences."""
    return Settings()
