"""
Integration tests of running the whole pipeline
"""

from __future__ import annotations

import json
import re

import pytest

from epigraph.cli import main
from epigraph.io import load_snapshot
from epigraph.pipeline import SnapshotPipeline


@pytest.fixture
def input_path(tmp_path, raw_json_records):
    res = tmp_path / "county-data.json"
    res.write_text(json.dumps(raw_json_records))

    return res


def read_outputs(output_dir):
    return {p.name: p.read_bytes() for p in sorted(output_dir.iterdir())}


def test_run(input_path, tmp_path):
    output_dir = tmp_path / "out"
    pipeline = SnapshotPipeline(n_processes=None, progress=False)

    res = pipeline.run(input_path, output_dir)

    assert [p.name for p in res] == [
        "2020-03-01T000000+0000.json",
        "2020-03-02T000000+0000.json",
    ]

    day_one = {node.name: node for node in load_snapshot(res[0]).nodes}
    assert set(day_one) == {"CA - Alpha", "CA - Beta", "NY - Alpha", "CA", "NY"}
    assert day_one["CA - Alpha"].metrics == {"confirmed": 10, "deaths": 2}
    assert day_one["NY - Alpha"].metrics == {"confirmed": 7, "deaths": 0}
    assert day_one["CA"].metrics == {"confirmed": 15, "deaths": 2}
    assert day_one["CA"].edges_directed == {"CA - Alpha", "CA - Beta"}
    assert day_one["NY"].edges_directed == {"NY - Alpha"}

    day_two = {node.name: node for node in load_snapshot(res[1]).nodes}
    assert set(day_two) == {"CA - Beta", "CA"}
    assert day_two["CA"].metrics == {"confirmed": 3, "deaths": 0}


@pytest.mark.parametrize(
    "n_shards, n_processes",
    (
        pytest.param(1, None, id="serial"),
        pytest.param(3, None, id="sharded-serial"),
        pytest.param(3, 2, id="sharded-parallel"),
    ),
)
def test_run_is_reproducible(input_path, tmp_path, n_shards, n_processes):
    first_dir = tmp_path / "first"
    second_dir = tmp_path / "second"

    SnapshotPipeline(n_processes=None, progress=False).run(input_path, first_dir)
    SnapshotPipeline(
        n_shards=n_shards, n_processes=n_processes, progress=False
    ).run(input_path, second_dir)

    assert read_outputs(first_dir) == read_outputs(second_dir)


def test_pipeline_call_on_random_records(random_records):
    res = SnapshotPipeline(n_shards=5, n_processes=None, progress=False)(
        random_records
    )

    assert [g.timestamp for g in res] == sorted(g.timestamp for g in res)
    assert len({g.timestamp for g in res}) == len(res)


def test_pipeline_invalid_n_shards():
    with pytest.raises(ValueError, match=re.escape("n_shards must be at least 1")):
        SnapshotPipeline(n_shards=0)


def test_cli(input_path, tmp_path):
    output_dir = tmp_path / "out"

    res = main(
        [str(input_path), str(output_dir), "--serial", "--no-progress", "--shards", "2"]
    )

    assert res == 0
    assert sorted(p.name for p in output_dir.iterdir()) == [
        "2020-03-01T000000+0000.json",
        "2020-03-02T000000+0000.json",
    ]


def test_cli_malformed_input(tmp_path):
    input_path = tmp_path / "county-data.json"
    input_path.write_text('[{"Date": 1583020800000, "County": "Alpha"}]')
    output_dir = tmp_path / "out"

    res = main([str(input_path), str(output_dir), "--serial", "--no-progress"])

    assert res == 1
    assert not output_dir.exists()


def test_cli_missing_input(tmp_path):
    output_dir = tmp_path / "out"

    res = main(
        [str(tmp_path / "missing.json"), str(output_dir), "--serial", "--no-progress"]
    )

    assert res == 1
    assert not output_dir.exists()


@pytest.mark.parametrize(
    "extra_args",
    (
        pytest.param(["--shards", "0"], id="zero-shards"),
        pytest.param(["--shards", "-2"], id="negative-shards"),
        pytest.param(["--shards", "two"], id="non-integer-shards"),
        pytest.param(["--processes", "0"], id="zero-processes"),
    ),
)
def test_cli_invalid_integer_arguments(input_path, tmp_path, extra_args, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([str(input_path), str(tmp_path / "out"), *extra_args])

    assert exc_info.value.code == 2
    assert "epigraph: error: argument" in capsys.readouterr().err
