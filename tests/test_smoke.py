"""Smoke tests for the package CLI."""

from __future__ import annotations

import json

import pytest

from radar_visibility.__main__ import main


def test_cli_import_smoke() -> None:
    """Ensure CLI entrypoint can be imported and executed."""
    assert main([]) == 0


def test_cli_calculate_writes_geojson(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    """`calculate` with the mock provider writes a FeatureCollection file."""
    monkeypatch.setenv("RADARVIS_RATE_LIMIT_PER_S", "0")
    monkeypatch.delenv("RADARVIS_ELEVATION_PROVIDER", raising=False)
    out = tmp_path / "visibility.geojson"

    code = main(
        [
            "calculate",
            "--lat", "59.0",
            "--lon", "30.0",
            "--radius", "600",
            "--height", "40",
            "--bearing-step", "45",
            "--provider", "mock",
            "--output", str(out),
        ]
    )

    assert code == 0
    body = json.loads(out.read_text(encoding="utf-8"))
    assert body["type"] == "FeatureCollection"
    assert body["features"][0]["properties"]["kind"] == "coverage"


def test_cli_calculate_rejects_invalid_input(monkeypatch: pytest.MonkeyPatch) -> None:
    """Invalid numbers exit with an argparse error instead of NaN geometry."""
    monkeypatch.setenv("RADARVIS_RATE_LIMIT_PER_S", "0")

    with pytest.raises(SystemExit) as excinfo:
        main(["calculate", "--lat", "59", "--lon", "30", "--radius", "nan", "--height", "10"])

    assert excinfo.value.code == 2


@pytest.mark.parametrize("value", ["2", "0"])
def test_cli_calculate_rejects_small_min_vertices(value: str, monkeypatch: pytest.MonkeyPatch) -> None:
    """A vertex minimum below three is an argument error, not a silent default."""
    monkeypatch.setenv("RADARVIS_RATE_LIMIT_PER_S", "0")

    with pytest.raises(SystemExit) as excinfo:
        main(
            [
                "calculate",
                "--lat", "59", "--lon", "30", "--radius", "300", "--height", "10",
                "--bearing-step", "120", "--min-vertices", value, "--provider", "mock",
            ]
        )

    assert excinfo.value.code == 2
