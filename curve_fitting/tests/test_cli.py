"""Tests for the curve-fit command line entry point."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pytest
import yaml

from curve_fitting.scripts.fit_points import main
from curve_fitting.utils.logging_config import pop_context, setup_logging


@pytest.fixture(autouse=True)
def clean_logging():
    level = logging.getLogger().level
    yield
    setup_logging(to_stderr=False, capture_warnings=False)
    logging.getLogger().setLevel(level)
    logging.captureWarnings(False)
    pop_context()


def write_points(tmp_path: Path, points, name: str = "points.yaml") -> Path:
    path = tmp_path / name
    data = {"schema": "points.v1", "points": [[float(x), float(y)] for x, y in points]}
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


@pytest.fixture()
def circle_file(tmp_path: Path) -> Path:
    angles = 2.0 * np.pi * np.arange(97) / 96
    points = np.column_stack((400.0 + 300.0 * np.cos(angles), 330.0 + 300.0 * np.sin(angles)))
    return write_points(tmp_path, points, "circle.yaml")


@pytest.fixture()
def arch_file(tmp_path: Path) -> Path:
    return write_points(tmp_path, [(0, 0), (5, 5), (10, 0)])


# ---------------------------------------------------------------------------
# Straight-through
# ---------------------------------------------------------------------------


class TestFit:
    def test_quadratic(self, arch_file: Path, capsys: pytest.CaptureFixture) -> None:
        assert main([str(arch_file)]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out == [
            "  0  degree=2  samples=[0, 2]  (0.000, 0.000) (5.000, 10.000) (10.000, 0.000)",
            "1 segment(s), degrees [2]",
        ]

    def test_circle(self, circle_file: Path, capsys: pytest.CaptureFixture) -> None:
        assert main([str(circle_file)]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("  0  degree=")
        assert "samples=[0, " in out[0]
        assert out[-1].endswith("]")
        assert int(out[-1].split()[0]) == len(out) - 1 > 1

    def test_custom_config(self, circle_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        config = tmp_path / "loose.yaml"
        config.write_text("fitting:\n  tolerance: 5000.0\n", encoding="utf-8")
        assert main([str(circle_file), "--config", str(config)]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[-1] == "1 segment(s), degrees [3]"


# ---------------------------------------------------------------------------
# Step mode
# ---------------------------------------------------------------------------


class TestStep:
    def test_prints_every_checkpoint(self, arch_file: Path, capsys: pytest.CaptureFixture) -> None:
        assert main([str(arch_file), "--step"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("step    1  after-parametrization")
        assert out[0].endswith("[0, 2]  Initial")
        assert out[1].startswith("step    2  end")
        assert out[1].endswith("Done")
        assert out[-1] == "1 segment(s), degrees [2]"

    def test_max_steps_cancels(self, circle_file: Path, capsys: pytest.CaptureFixture) -> None:
        assert main([str(circle_file), "--step", "--max-steps", "3"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert len(out) == 4
        assert out[1].startswith("step    2  after-least-squares")
        assert "Residual = " in out[1]
        assert out[-1] == "Cancelled after 3 step(s)"

    def test_same_path_as_straight_through(self, circle_file: Path, capsys: pytest.CaptureFixture) -> None:
        main([str(circle_file)])
        straight = capsys.readouterr().out.splitlines()
        main([str(circle_file), "--step"])
        stepped = capsys.readouterr().out.splitlines()
        assert stepped[-len(straight):] == straight

    def test_max_steps_must_be_positive(self, arch_file: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([str(arch_file), "--step", "--max-steps", "0"])
        assert exc_info.value.code == 2


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_missing_points_file(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        assert main([str(tmp_path / "missing.yaml")]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_invalid_points(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("schema: points.v1\npoints:\n  - [0, 0]\n", encoding="utf-8")
        assert main([str(path)]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_invalid_config(self, arch_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        config = tmp_path / "bad_config.yaml"
        config.write_text("fitting:\n  tolerance: -1\n", encoding="utf-8")
        assert main([str(arch_file), "-c", str(config)]) == 1
        assert "tolerance must be positive" in capsys.readouterr().err

    def test_malformed_yaml(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("points: [[0, 0\n", encoding="utf-8")
        assert main([str(path)]) == 1
        assert "Failed to parse" in capsys.readouterr().err
