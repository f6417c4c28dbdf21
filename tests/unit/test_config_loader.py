from pathlib import Path

import pytest

from geofinder.common.config_loader import load_finder_config
from geofinder.common.errors import ConfigError

BASE_CONFIG = """regions:
  sources:
    - regions/a.geojson
    - https://example.test/b.geojson
points:
  path: data/points.csv
"""


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_load_finder_config_from_repo_config_dir():
    settings = load_finder_config(Path("config/finder.yml"))
    assert len(settings.regions.sources) == 13
    assert settings.query.radius_km == 40.0
    assert settings.query.resolution == "first"
    assert settings.port == 8085


def test_defaults_and_relative_path_resolution(tmp_path: Path):
    config_path = _write(tmp_path / "conf" / "finder.yml", BASE_CONFIG)

    settings = load_finder_config(config_path)

    base = config_path.resolve().parent
    assert settings.regions.sources == (str(base / "regions" / "a.geojson"), "https://example.test/b.geojson")
    assert settings.regions.source_epsg == 4326
    assert settings.points.path == base / "data" / "points.csv"
    assert settings.points.id_column == "id"
    assert settings.query.radius_km == 40.0
    assert settings.query.resolution == "first"
    assert settings.workers == 1
    assert (settings.host, settings.port) == ("0.0.0.0", 8085)


def test_overlay_values_are_deep_merged(tmp_path: Path):
    config_path = _write(tmp_path / "base" / "finder.yml", BASE_CONFIG + "query:\n  radius_km: 40\n  resolution: first\n")
    overlay_dir = tmp_path / "overlay"
    _write(overlay_dir / "finder.yml", "query:\n  resolution: all\nbuild:\n  workers: 3\n")

    settings = load_finder_config(config_path, overlay_config_dir=overlay_dir)

    assert settings.query.resolution == "all"
    assert settings.query.radius_km == 40.0
    assert settings.workers == 3
    assert len(settings.regions.sources) == 2


def test_empty_overlay_file_is_ignored(tmp_path: Path):
    config_path = _write(tmp_path / "base" / "finder.yml", BASE_CONFIG)
    overlay_dir = tmp_path / "overlay"
    _write(overlay_dir / "finder.yml", "")

    settings = load_finder_config(config_path, overlay_config_dir=overlay_dir)

    assert settings.query.resolution == "first"


def test_missing_config_file_raises(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_finder_config(tmp_path / "absent.yml")


REGIONS_ONLY = BASE_CONFIG.split("points:")[0]
POINTS = "points:\n  path: p.csv\n"


@pytest.mark.parametrize(
    "tail",
    [
        POINTS + "query:\n  radius_km: -1\n",
        POINTS + "query:\n  radius_km: wide\n",
        POINTS + "query:\n  resolution: nearest\n",
        POINTS + "build:\n  workers: 0\n",
        POINTS + "server:\n  port: 70000\n",
        POINTS + "unexpected: true\n",
        "points:\n  path: x.csv\n  colour: red\n",
        "",
    ],
)
def test_invalid_values_raise_config_error(tmp_path: Path, tail: str):
    config_path = _write(tmp_path / "finder.yml", REGIONS_ONLY + tail)
    with pytest.raises(ConfigError):
        load_finder_config(config_path)


def test_unknown_keys_allowed_when_enabled(tmp_path: Path):
    config_path = _write(tmp_path / "finder.yml", BASE_CONFIG + "unexpected: true\n")
    settings = load_finder_config(config_path, allow_unknown=True)
    assert settings.points.path.name == "points.csv"
