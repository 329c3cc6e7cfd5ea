import pytest

from cellexplorer.settings import Settings, load_default_settings


@pytest.mark.parametrize(
    "steps, expected",
    [(0, False), (5, False), (6, True), (12, True), (13, False), (-6, False)],
)
def test_should_autosave(steps: int, expected: bool) -> None:
    assert load_default_settings().should_autosave(steps) is expected


def test_autosave_disabled() -> None:
    settings = Settings(auto_save_frequency=0)
    assert settings.autosave_enabled is False
    assert settings.should_autosave(6) is False


@pytest.mark.parametrize(
    "acg_type, window",
    [("Normal", 100), ("Wide", 1000), ("Narrow", 30), ("Log10", None)],
)
def test_acg_window(acg_type: str, window: int | None) -> None:
    assert Settings(acg_type=acg_type).acg_window_ms == window


def test_ground_truth_style() -> None:
    settings = load_default_settings()
    assert settings.ground_truth_style("PV+") == ("om", (0.9, 0.2, 0.2))
    assert settings.ground_truth_style("Cell type A") == ("+p", (0.5, 0.5, 0.5))
    with pytest.raises(KeyError):
        settings.ground_truth_style("VIP+")


def test_cell_type_color() -> None:
    settings = load_default_settings()
    assert settings.cell_type_color("Unknown") == (0.5, 0.5, 0.5)
    assert settings.cell_type_color("Narrow Interneuron") == (0.2, 0.2, 0.8)
    with pytest.raises(KeyError):
        settings.cell_type_color("Granule Cell")


def test_referenced_metrics() -> None:
    metrics = load_default_settings().referenced_metrics()
    assert {"firingRate", "peakVoltage", "troughToPeak", "burstIndex_Royer2012", "cv2"} <= metrics
    assert len(metrics) == 14


def test_missing_metrics() -> None:
    settings = load_default_settings()
    assert settings.missing_metrics(settings.referenced_metrics()) == []
    available = settings.referenced_metrics() - {"peakVoltage", "acg_h"}
    assert settings.missing_metrics(available) == ["acg_h", "peakVoltage"]
