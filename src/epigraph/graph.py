"""
Building of per-date graphs

Each date's graph has a node for every county
plus a node for every state,
with directed edges from each state to its counties.
"""

from __future__ import annotations

import datetime as dt

from attrs import define, field
from pandas_openscm.parallelisation import ParallelOpConfig, apply_op_parallel_progress

from epigraph.normalisation import to_canonical_timestamp
from epigraph.typing import CountyKey, DateBucket, DateBuckets

COUNTY_KEY_SEPARATOR = " - "
"""
Separator used between state and county when naming county nodes
"""

METRIC_CONFIRMED = "confirmed"
"""
Name of the confirmed cases metric
"""

METRIC_DEATHS = "deaths"
"""
Name of the deaths metric
"""


@define
class GraphNode:
    """
    Node in a [Graph][(m).]
    """

    name: str
    """
    Name of the node, unique within a graph
    """

    metrics: dict[str, int] = field(factory=dict)
    """
    Metrics of the node
    """

    edges_directed: set[str] = field(factory=set)
    """
    Names of the nodes this node points to
    """

    extra_fields: dict[str, str] = field(factory=dict)
    """
    Any extra information about the node
    """

    def add_metric(self, metric: str, value: int) -> None:
        """
        Add to a metric, creating it at zero if it doesn't exist yet

        Parameters
        ----------
        metric
            Metric to add to

        value
            Value to add
        """
        self.metrics[metric] = self.metrics.get(metric, 0) + value


@define
class Graph:
    """
    Graph of county and state nodes for a single date
    """

    timestamp: str
    """
    Canonical timestamp of the date
    """

    nodes: list[GraphNode] = field(factory=list)
    """
    Nodes in the graph
    """


def render_county_key(key: CountyKey) -> str:
    """
    Render a county key as a node name

    Parameters
    ----------
    key
        Key to render

    Returns
    -------
    :
        Node name e.g. `"CA - Alameda"`
    """
    return f"{key.state}{COUNTY_KEY_SEPARATOR}{key.county}"


def build_graph(date: dt.date, bucket: DateBucket) -> Graph:
    """
    Build the graph for a single date

    Parameters
    ----------
    date
        Date the bucket is for

    bucket
        County aggregates for `date`

    Returns
    -------
    :
        Graph with one node per county and one node per state.

        County nodes come first (sorted by key), then state nodes (sorted by name).
    """
    county_nodes = []
    states: dict[str, GraphNode] = {}
    for key in sorted(bucket):
        county = bucket[key]
        name = render_county_key(key)

        if county.state not in states:
            states[county.state] = GraphNode(name=county.state)

        state_node = states[county.state]
        state_node.add_metric(METRIC_CONFIRMED, county.confirmed)
        state_node.add_metric(METRIC_DEATHS, county.deaths)
        state_node.edges_directed.add(name)

        county_nodes.append(
            GraphNode(
                name=name,
                metrics={
                    METRIC_CONFIRMED: county.confirmed,
                    METRIC_DEATHS: county.deaths,
                },
                extra_fields={
                    "display_name": county.display_name,
                    "state": county.state,
                },
            )
        )

    return Graph(
        timestamp=to_canonical_timestamp(date),
        nodes=[*county_nodes, *(states[state] for state in sorted(states))],
    )


def _build_graph_for_item(item: tuple[dt.date, DateBucket]) -> Graph:
    date, bucket = item

    return build_graph(date, bucket)


def build_graphs(
    buckets: DateBuckets, n_processes: int | None = None, progress: bool = False
) -> tuple[Graph, ...]:
    """
    Build the graph for every date

    Each date is independent, so dates are built in parallel.

    Parameters
    ----------
    buckets
        Buckets for each date

    n_processes
        Number of processes to use.

        Set to `None` to process in serial.

    progress
        Should a progress bar be shown?

    Returns
    -------
    :
        Graphs, sorted by timestamp
    """
    graphs = apply_op_parallel_progress(
        func_to_call=_build_graph_for_item,
        iterable_input=buckets.items(),
        parallel_op_config=ParallelOpConfig.from_user_facing(
            progress=progress,
            max_workers=n_processes,
            progress_results_kwargs=dict(desc="Dates to build graphs for"),
        ),
    )

    return tuple(sorted(graphs, key=lambda g: g.timestamp))
