"""
Reading observations and writing graph snapshots
"""

from __future__ import annotations

import concurrent.futures
import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pandas as pd
from pandas_openscm.parallelisation import ParallelOpConfig, apply_op_parallel_progress

from epigraph.assertions import INPUT_COLUMNS, assert_observations_frame_is_valid
from epigraph.exceptions import MalformedInputError, SnapshotWriteError
from epigraph.graph import Graph, GraphNode
from epigraph.normalisation import RawObservation


def load_observations_frame(path: Path) -> pd.DataFrame:
    """
    Load raw observations into a [pd.DataFrame][pandas.DataFrame]

    The file must hold a JSON list of objects,
    each with the fields `Date` (milliseconds since the epoch),
    `County`, `State`, `values` and `Type`.

    Parameters
    ----------
    path
        File to load

    Returns
    -------
    :
        Validated raw observations, one row per record

    Raises
    ------
    MalformedInputError
        The file can't be parsed or its records are incomplete
    """
    try:
        raw = json.loads(Path(path).read_bytes())
    except json.JSONDecodeError as exc:
        raise MalformedInputError(f"Failed to parse JSON: {exc}", source=path) from exc

    if not isinstance(raw, list) or not all(isinstance(r, dict) for r in raw):
        raise MalformedInputError("Expected a JSON list of objects", source=path)

    if raw:
        res = pd.DataFrame.from_records(raw)
    else:
        res = pd.DataFrame(columns=list(INPUT_COLUMNS))

    assert_observations_frame_is_valid(res, source=str(path))

    return res


def observations_from_frame(indf: pd.DataFrame) -> tuple[RawObservation, ...]:
    """
    Convert a frame of raw observations into observations

    Parameters
    ----------
    indf
        Frame to convert, in the format returned by [load_observations_frame][(m).]

    Returns
    -------
    :
        Observations
    """
    if indf.empty:
        return ()

    assert_observations_frame_is_valid(indf)

    # Types are already checked, int only turns numpy integers into Python ones
    return tuple(
        RawObservation(
            timestamp_ms=int(timestamp_ms),
            county=county,
            state=state,
            value=int(value),
            kind=kind,
        )
        for timestamp_ms, county, state, value, kind in zip(
            indf["Date"], indf["County"], indf["State"], indf["values"], indf["Type"]
        )
    )


def load_observations(path: Path) -> tuple[RawObservation, ...]:
    """
    Load observations from a file

    Parameters
    ----------
    path
        File to load

    Returns
    -------
    :
        Observations in the file
    """
    return observations_from_frame(load_observations_frame(path))


def graph_to_dict(graph: Graph) -> dict[str, Any]:
    """
    Convert a graph to a JSON-compatible dictionary

    Metrics and extra fields are key-sorted and edges are sorted,
    so the same graph always gives the same output.

    Parameters
    ----------
    graph
        Graph to convert

    Returns
    -------
    :
        Dictionary representation of `graph`
    """
    return {
        "timestamp": graph.timestamp,
        "nodes": [
            {
                "name": node.name,
                "metrics": dict(sorted(node.metrics.items())),
                "edges_directed": sorted(node.edges_directed),
                "extra_fields": dict(sorted(node.extra_fields.items())),
            }
            for node in graph.nodes
        ],
    }


def graph_from_dict(data: dict[str, Any]) -> Graph:
    """
    Convert a dictionary created by [graph_to_dict][(m).] back into a graph

    Parameters
    ----------
    data
        Dictionary to convert

    Returns
    -------
    :
        Graph
    """
    return Graph(
        timestamp=data["timestamp"],
        nodes=[
            GraphNode(
                name=node["name"],
                metrics={k: int(v) for k, v in node["metrics"].items()},
                edges_directed=set(node["edges_directed"]),
                extra_fields=dict(node["extra_fields"]),
            )
            for node in data["nodes"]
        ],
    )


def graph_to_json(graph: Graph) -> str:
    """
    Serialise a graph to JSON

    Parameters
    ----------
    graph
        Graph to serialise

    Returns
    -------
    :
        JSON representation of `graph`
    """
    return json.dumps(graph_to_dict(graph), indent=2, sort_keys=True)


def snapshot_filename(timestamp: str) -> str:
    """
    Get the filename to use for the snapshot of a given timestamp

    Parameters
    ----------
    timestamp
        Canonical timestamp e.g. `"2020-03-01T00:00:00+00:00"`

    Returns
    -------
    :
        Filename e.g. `"2020-03-01T000000+0000.json"`
    """
    return f"{timestamp.replace(':', '')}.json"


def write_snapshot(graph: Graph, output_dir: Path) -> Path:
    """
    Write the snapshot of a graph

    Parameters
    ----------
    graph
        Graph to write

    output_dir
        Directory in which to write the snapshot

    Returns
    -------
    :
        Path to which the snapshot was written

    Raises
    ------
    SnapshotWriteError
        The snapshot could not be written
    """
    out_path = Path(output_dir) / snapshot_filename(graph.timestamp)
    try:
        out_path.write_text(graph_to_json(graph), encoding="utf-8")
    except OSError as exc:
        raise SnapshotWriteError(timestamp=graph.timestamp, path=out_path) from exc

    return out_path


def write_snapshots(
    graphs: Iterable[Graph],
    output_dir: Path,
    n_threads: int | None = None,
    progress: bool = False,
) -> tuple[Path, ...]:
    """
    Write the snapshots of many graphs

    Parameters
    ----------
    graphs
        Graphs to write

    output_dir
        Directory in which to write the snapshots.

        It is created if it doesn't exist.

    n_threads
        Number of threads to use for writing.

        Set to `None` to write in serial.

    progress
        Should a progress bar be shown?

    Returns
    -------
    :
        Paths to which the snapshots were written, sorted
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = apply_op_parallel_progress(
        func_to_call=write_snapshot,
        iterable_input=graphs,
        parallel_op_config=ParallelOpConfig.from_user_facing(
            progress=progress,
            max_workers=n_threads,
            parallel_pool_cls=concurrent.futures.ThreadPoolExecutor,
            progress_results_kwargs=dict(desc="Snapshots to write"),
        ),
        output_dir=output_dir,
    )

    return tuple(sorted(written))


def load_snapshot(path: Path) -> Graph:
    """
    Load a snapshot written by [write_snapshot][(m).]

    Parameters
    ----------
    path
        Path to the snapshot

    Returns
    -------
    :
        Graph held in the snapshot
    """
    return graph_from_dict(json.loads(Path(path).read_text(encoding="utf-8")))
