"""
Tests of `epigraph.graph`
"""

from __future__ import annotations

import datetime as dt

from epigraph.aggregation import aggregate, fold_shard
from epigraph.assertions import assert_graph_is_consistent
from epigraph.graph import GraphNode, build_graph, build_graphs, render_county_key
from epigraph.typing import CountyKey

D1 = dt.date(2020, 3, 1)


def test_render_county_key():
    assert render_county_key(CountyKey(state="CA", county="Alpha")) == "CA - Alpha"


def test_build_graph_scenario(scenario_records):
    buckets = aggregate(scenario_records)

    res = build_graph(D1, buckets[D1])

    assert res.timestamp == "2020-03-01T00:00:00+00:00"
    assert res.nodes == [
        GraphNode(
            name="CA - Alpha",
            metrics={"confirmed": 10, "deaths": 2},
            extra_fields={"display_name": "Alpha", "state": "CA"},
        ),
        GraphNode(
            name="CA - Beta",
            metrics={"confirmed": 5, "deaths": 0},
            extra_fields={"display_name": "Beta", "state": "CA"},
        ),
        GraphNode(
            name="NY - Alpha",
            metrics={"confirmed": 7, "deaths": 0},
            extra_fields={"display_name": "Alpha", "state": "NY"},
        ),
        GraphNode(
            name="CA",
            metrics={"confirmed": 15, "deaths": 2},
            edges_directed={"CA - Alpha", "CA - Beta"},
        ),
        GraphNode(
            name="NY",
            metrics={"confirmed": 7, "deaths": 0},
            edges_directed={"NY - Alpha"},
        ),
    ]


def test_build_graph_empty_bucket():
    res = build_graph(D1, {})

    assert res.timestamp == "2020-03-01T00:00:00+00:00"
    assert res.nodes == []


def test_build_graph_independent_of_bucket_order(scenario_records):
    bucket = fold_shard(scenario_records)[D1]
    reversed_bucket = dict(reversed(list(bucket.items())))

    assert build_graph(D1, bucket) == build_graph(D1, reversed_bucket)


def test_build_graphs(random_records):
    buckets = aggregate(random_records)

    res = build_graphs(buckets)

    assert len(res) == len(buckets)
    assert [g.timestamp for g in res] == sorted(g.timestamp for g in res)
    for graph in res:
        assert_graph_is_consistent(graph)


def test_build_graphs_parallel(random_records):
    buckets = aggregate(random_records)

    assert build_graphs(buckets, n_processes=2) == build_graphs(buckets)


def test_graph_node_add_metric():
    node = GraphNode(name="CA")

    node.add_metric("confirmed", 3)
    node.add_metric("confirmed", 4)
    node.add_metric("deaths", 0)

    assert node.metrics == {"confirmed": 7, "deaths": 0}
