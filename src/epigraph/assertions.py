"""
Useful assertions
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Iterable

import numpy as np
import pandas as pd

from epigraph.exceptions import MalformedInputError
from epigraph.graph import METRIC_CONFIRMED, METRIC_DEATHS, Graph, GraphNode

INPUT_COLUMNS: tuple[str, ...] = ("Date", "County", "State", "values", "Type")
"""
Columns we require in the input
"""

INTEGER_INPUT_COLUMNS: tuple[str, ...] = ("Date", "values")
"""
Input columns which must hold integers
"""

STRING_INPUT_COLUMNS: tuple[str, ...] = ("County", "State", "Type")
"""
Input columns which must hold strings
"""


class InternalConsistencyError(ValueError):
    """
    Raised when a graph's state nodes don't match its county nodes
    """

    def __init__(self, timestamp: str, problems: Iterable[str]) -> None:
        problems_str = "\n".join(f"- {p}" for p in problems)
        error_msg = (
            f"The graph for {timestamp} is not internally consistent. "
            f"Problems:\n{problems_str}"
        )

        super().__init__(error_msg)


def assert_graph_is_consistent(graph: Graph) -> None:
    """
    Assert that a graph's state nodes are consistent with its county nodes

    Every county's state must have exactly one node,
    each state node's metrics must be the sum over its counties
    and each state node must point to exactly its counties.

    Parameters
    ----------
    graph
        Graph to check

    Raises
    ------
    InternalConsistencyError
        The graph is not internally consistent
    """
    problems = []

    name_counts = Counter(node.name for node in graph.nodes)
    duplicates = sorted(name for name, count in name_counts.items() if count > 1)
    if duplicates:
        problems.append(f"Node names appear more than once: {duplicates}")

    county_nodes = [node for node in graph.nodes if "state" in node.extra_fields]
    state_nodes = {
        node.name: node for node in graph.nodes if "state" not in node.extra_fields
    }

    counties_by_state: defaultdict[str, list[GraphNode]] = defaultdict(list)
    for county in county_nodes:
        counties_by_state[county.extra_fields["state"]].append(county)

    missing_states = sorted(set(counties_by_state) - set(state_nodes))
    if missing_states:
        problems.append(f"Counties refer to states without a node: {missing_states}")

    for state, state_node in sorted(state_nodes.items()):
        counties = counties_by_state.get(state, [])

        exp_edges = {county.name for county in counties}
        if state_node.edges_directed != exp_edges:
            problems.append(
                f"Edges of {state!r} are {sorted(state_node.edges_directed)}, "
                f"expected {sorted(exp_edges)}"
            )

        for metric in (METRIC_CONFIRMED, METRIC_DEATHS):
            exp = sum(county.metrics.get(metric, 0) for county in counties)
            res = state_node.metrics.get(metric, 0)
            if res != exp:
                problems.append(
                    f"{metric} of {state!r} is {res}, "
                    f"the sum over its counties is {exp}"
                )

    if problems:
        raise InternalConsistencyError(timestamp=graph.timestamp, problems=problems)


def assert_observations_frame_is_valid(
    indf: pd.DataFrame, source: str | None = None
) -> None:
    """
    Assert that a frame of raw observations can be converted to observations

    Parameters
    ----------
    indf
        Frame to check

    source
        Where the frame came from (only used in error messages)

    Raises
    ------
    MalformedInputError
        The frame is missing columns, has missing values
        or has values of the wrong type (strings and integers are required,
        booleans and floats are not accepted as integers)
    """
    missing_cols = [c for c in INPUT_COLUMNS if c not in indf.columns]
    if missing_cols:
        raise MalformedInputError(
            f"Missing required fields: {missing_cols}. "
            f"Available fields: {indf.columns.tolist()}",
            source=source,
        )

    null_rows = indf[indf[list(INPUT_COLUMNS)].isnull().any(axis="columns")]
    if not null_rows.empty:
        raise MalformedInputError(
            f"Records with missing values:\n{null_rows}", source=source
        )

    for col in STRING_INPUT_COLUMNS:
        not_string = ~indf[col].map(lambda v: isinstance(v, str)).astype(bool)
        if not_string.any():
            raise MalformedInputError(
                f"Records with non-string {col}:\n{indf[not_string]}",
                source=source,
            )

    for col in INTEGER_INPUT_COLUMNS:
        # Booleans are ints in Python, JSON `true` is not a count
        not_integer = ~indf[col].map(
            lambda v: isinstance(v, (int, np.integer))
            and not isinstance(v, (bool, np.bool_))
        ).astype(bool)
        if not_integer.any():
            raise MalformedInputError(
                f"Records with non-integer {col}:\n{indf[not_integer]}",
                source=source,
            )
