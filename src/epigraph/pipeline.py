"""
The full pipeline, from raw observations to snapshots on disk
"""

from __future__ import annotations

import multiprocessing
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import attr
from attrs import define, field

from epigraph.aggregation import aggregate
from epigraph.assertions import assert_graph_is_consistent
from epigraph.graph import Graph, build_graphs
from epigraph.instrumentation import timed_event
from epigraph.io import (
    load_observations_frame,
    observations_from_frame,
    write_snapshots,
)
from epigraph.normalisation import RawObservation


@define
class SnapshotPipeline:
    """
    Pipeline which turns county-level observations into per-date graphs
    """

    n_shards: int = field(default=1)
    """
    Number of shards to split the observations into before aggregating
    """

    n_processes: int | None = multiprocessing.cpu_count()
    """
    Number of processes to use for parallel processing.

    Set to `None` to process in serial.
    """

    progress: bool = True
    """
    Should progress bars be shown for each operation?
    """

    run_checks: bool = True
    """
    If `True`, check that every graph is internally consistent

    If you are sure about your workflow,
    you can disable the checks to speed things up.
    """

    @n_shards.validator
    def validate_n_shards(self, attribute: attr.Attribute[Any], value: int) -> None:
        """
        Validate the number of shards
        """
        if value < 1:
            msg = f"{attribute.name} must be at least 1, received {value}"
            raise ValueError(msg)

    def __call__(self, observations: Sequence[RawObservation]) -> tuple[Graph, ...]:
        """
        Build the graph for every date in `observations`

        Parameters
        ----------
        observations
            Observations to process

        Returns
        -------
        :
            One graph per date, sorted by timestamp
        """
        with timed_event("group by", entries=len(observations)) as event:
            buckets = aggregate(
                observations,
                n_shards=self.n_shards,
                n_processes=self.n_processes,
                progress=self.progress,
            )
            event["dates"] = len(buckets)

        with timed_event("add state nodes"):
            graphs = build_graphs(
                buckets, n_processes=self.n_processes, progress=self.progress
            )

        if self.run_checks:
            with timed_event("check graphs", num_graphs=len(graphs)):
                for graph in graphs:
                    assert_graph_is_consistent(graph)

        return graphs

    def run(self, input_path: Path, output_dir: Path) -> tuple[Path, ...]:
        """
        Run the pipeline from an input file to snapshots on disk

        Parameters
        ----------
        input_path
            File containing the raw observations

        output_dir
            Directory in which to write one snapshot per date

        Returns
        -------
        :
            Paths of the written snapshots
        """
        input_path = Path(input_path)
        output_dir = Path(output_dir)

        with timed_event("read_file", input=str(input_path)) as event:
            event["size_mb"] = input_path.stat().st_size / 1e6
            raw = load_observations_frame(input_path)

        with timed_event("parse") as event:
            observations = observations_from_frame(raw)
            event["entries"] = len(observations)

        graphs = self(observations)

        with timed_event(
            "write_files", output_dir=str(output_dir), num_files=len(graphs)
        ):
            return write_snapshots(
                graphs,
                output_dir,
                n_threads=self.n_processes,
                progress=self.progress,
            )
