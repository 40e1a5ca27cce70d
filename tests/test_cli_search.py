from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cli.search.app import NO_RESULTS, SearchCLIOptions, app, load_points
from mtreex import config as mx_config
from mtreex.datasets import points_of_interest


@pytest.fixture(autouse=True)
def reset_runtime_config(monkeypatch: pytest.MonkeyPatch):
    for key in ("MTREEX_METRIC", "MTREEX_MAX_NODE_SIZE", "MTREEX_SPLIT_POLICY"):
        monkeypatch.delenv(key, raising=False)
    mx_config.reset_runtime_config_cache()
    yield
    mx_config.reset_runtime_config_cache()


def test_points_of_interest_sample():
    points = points_of_interest()

    assert [p.payload for p in points] == [
        "Restaurant A",
        "Park B",
        "Store C",
        "Museum D",
        "Restaurant E",
    ]
    assert all(p.dimension == 2 for p in points)


def test_cli_searches_builtin_points_nearest_first():
    runner = CliRunner()

    result = runner.invoke(app, ["--center", "40.7128,-74.0060", "--radius", "0.0045"])

    assert result.exit_code == 0, result.output
    lines = [line for line in result.output.splitlines() if " | coords=" in line]
    assert [line.split(" | ")[0] for line in lines] == ["Restaurant A", "Store C"]
    assert "distance=0.000000" in lines[0]


def test_cli_reports_empty_result():
    runner = CliRunner()

    result = runner.invoke(app, ["--center", "0,0", "--radius", "1"])

    assert result.exit_code == 0
    assert NO_RESULTS in result.output


def test_cli_loads_points_file(tmp_path: Path):
    path = tmp_path / "points.json"
    path.write_text(
        json.dumps(
            [
                {"name": "A", "coords": [0, 0]},
                {"name": "B", "coords": [1, 0]},
                {"name": "C", "coords": [10, 10]},
                {"name": "D", "coords": [10, 11]},
                {"name": "E", "coords": [11, 10]},
            ]
        )
    )
    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "--points",
            str(path),
            "--center",
            "10,10",
            "--radius",
            "1.5",
            "--max-node-size",
            "2",
            "--stats",
        ],
    )

    assert result.exit_code == 0, result.output
    names = {line.split(" | ")[0] for line in result.output.splitlines() if " | coords=" in line}
    assert names == {"C", "D", "E"}
    assert "tree | points=5" in result.output
    assert "splits=3" in result.output


@pytest.mark.parametrize(
    "args",
    [
        ["--center", "abc,1", "--radius", "1"],
        ["--center", "1,,2", "--radius", "1"],
        ["--center", "1,2", "--radius=-1"],
        ["--center", "1,2", "--radius", "wide"],
        ["--center", "1,2", "--radius", "nan"],
        ["--center", "1,2,3", "--radius", "1"],
        ["--center", "1,2", "--radius", "1", "--metric", "cosine"],
        ["--center", "1,2", "--radius", "1", "--split-policy", "median"],
        ["--center", "1,2", "--radius", "1", "--max-node-size", "0"],
        ["--radius", "1"],
    ],
)
def test_cli_rejects_invalid_input(args):
    runner = CliRunner()

    result = runner.invoke(app, args)

    assert result.exit_code == 2


def test_cli_passes_tree_options(monkeypatch: pytest.MonkeyPatch):
    runner = CliRunner()
    invoked = {}

    def fake_run_search(opts: SearchCLIOptions) -> None:
        invoked["options"] = opts

    monkeypatch.setattr("cli.search.app.run_search", fake_run_search)
    result = runner.invoke(
        app,
        [
            "--center",
            "1.5,2",
            "--radius",
            "3",
            "--metric",
            "Manhattan",
            "--split-policy",
            "farthest_pair",
            "--check-invariants",
        ],
    )

    assert result.exit_code == 0, result.output
    options = invoked["options"]
    assert options.center == (1.5, 2.0)
    assert options.radius == 3.0
    assert options.metric == "manhattan"
    assert options.split_policy == "farthest_pair"
    assert options.check_invariants is True
    assert options.points_path is None


def test_load_points_defaults_missing_names(tmp_path: Path):
    path = tmp_path / "points.json"
    path.write_text(json.dumps([{"coords": [1, 2]}, {"name": "x", "coords": [3, 4]}]))

    points = load_points(path)

    assert [p.payload for p in points] == ["#0", "x"]


def test_cli_rejects_malformed_points_file(tmp_path: Path):
    path = tmp_path / "points.json"
    path.write_text(json.dumps({"coords": [1, 2]}))
    runner = CliRunner()

    result = runner.invoke(app, ["--points", str(path), "--center", "1,2", "--radius", "1"])

    assert result.exit_code == 2


@pytest.mark.parametrize(
    "records",
    [
        [{"name": "flat", "coords": [0, 0]}, {"name": "deep", "coords": [1, 2, 3]}],
        [{"name": "ok", "coords": [0, 0]}, {"name": "broken", "coords": [float("nan"), 1]}],
    ],
)
def test_cli_rejects_inconsistent_points_file(tmp_path: Path, records):
    path = tmp_path / "points.json"
    path.write_text(json.dumps(records))
    runner = CliRunner()

    result = runner.invoke(app, ["--points", str(path), "--center", "0,0", "--radius", "1"])

    assert result.exit_code == 2
    assert not isinstance(result.exception, (ValueError, TypeError))
