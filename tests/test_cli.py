from pathlib import Path

import yaml
from typer.testing import CliRunner

from cellexplorer import __version__
from cellexplorer.cli import app

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_show_defaults():
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0
    data = yaml.safe_load(result.output)
    assert data["plotXdata"] == "firingRate"
    assert data["tSNE"]["Perplexity"] == 200


def test_show_with_config(tmp_path: Path):
    prefs = tmp_path / "prefs.yaml"
    prefs.write_text("markerSize: 25\n")
    result = runner.invoke(app, ["config", "show", "--config", str(prefs)])
    assert result.exit_code == 0
    assert yaml.safe_load(result.output)["markerSize"] == 25


def test_get_scalar_and_list():
    result = runner.invoke(app, ["config", "get", "acgType"])
    assert result.exit_code == 0
    assert result.output.strip() == "Normal"

    result = runner.invoke(app, ["config", "get", "cellTypes"])
    assert result.exit_code == 0
    assert yaml.safe_load(result.output)[1] == "Pyramidal Cell"


def test_get_unknown_key():
    result = runner.invoke(app, ["config", "get", "tSNE.nope"])
    assert result.exit_code == 1
    assert "Unknown setting" in result.output


def test_validate(tmp_path: Path):
    good = tmp_path / "good.yaml"
    good.write_text("plotCountIn: GUI 3+6\n")
    result = runner.invoke(app, ["config", "validate", str(good)])
    assert result.exit_code == 0
    assert "Preferences valid" in result.output

    bad = tmp_path / "bad.yaml"
    bad.write_text("plotCountIn: GUI 9+9\n")
    result = runner.invoke(app, ["config", "validate", str(bad)])
    assert result.exit_code == 1


def test_init_writes_defaults(tmp_path: Path):
    dst = tmp_path / "cellexplorer.yaml"
    result = runner.invoke(app, ["config", "init", str(dst)])
    assert result.exit_code == 0
    assert yaml.safe_load(dst.read_text())["autoSaveFrequency"] == 6

    result = runner.invoke(app, ["config", "init", str(dst)])
    assert result.exit_code == 1
    result = runner.invoke(app, ["config", "init", str(dst), "--force"])
    assert result.exit_code == 0


def test_check_metrics():
    from cellexplorer.settings import load_default_settings

    available = sorted(load_default_settings().referenced_metrics())
    result = runner.invoke(app, ["config", "check-metrics", *available])
    assert result.exit_code == 0

    result = runner.invoke(app, ["config", "check-metrics", "firingRate", "cv2"])
    assert result.exit_code == 1
    assert "missing" in result.output


def test_get_integer_hyperparameter():
    result = runner.invoke(app, ["config", "get", "tSNE.Perplexity"])
    assert result.exit_code == 0
    assert result.output.strip() == "200"
