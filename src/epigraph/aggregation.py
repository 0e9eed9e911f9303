"""
Aggregation of observations into per-date county buckets

The aggregation is a fork/join reduction.
The input is split into shards,
each shard is folded into its own private buckets
and the partial results are then combined with
[merge_date_buckets][(m).].
The merge is associative and commutative,
so neither the sharding nor the order in which shards finish
affects the result.
"""

from __future__ import annotations

import functools
from collections.abc import Iterable, Sequence

import numpy as np
from attrs import define
from pandas_openscm.parallelisation import ParallelOpConfig, apply_op_parallel_progress

from epigraph.normalisation import MetricKind, RawObservation, normalise_observation
from epigraph.typing import CountyKey, DateBucket, DateBuckets


@define
class CountyAggregate:
    """
    Accumulated metrics for a county on a given date
    """

    display_name: str
    """
    Human-readable name of the county
    """

    state: str
    """
    State to which the county belongs
    """

    confirmed: int = 0
    """
    Accumulated confirmed cases
    """

    deaths: int = 0
    """
    Accumulated deaths
    """

    def add(self, kind: MetricKind, value: int) -> None:
        """
        Add a value to the accumulator for `kind`

        Values of kind [MetricKind.OTHER][epigraph.normalisation.] are ignored.

        Parameters
        ----------
        kind
            Kind of metric

        value
            Value to add
        """
        if kind is MetricKind.CONFIRMED:
            self.confirmed += value
        elif kind is MetricKind.DEATHS:
            self.deaths += value

    def copy(self) -> CountyAggregate:
        """
        Get a copy of self
        """
        return CountyAggregate(
            display_name=self.display_name,
            state=self.state,
            confirmed=self.confirmed,
            deaths=self.deaths,
        )


def upsert_county(bucket: DateBucket, key: CountyKey) -> CountyAggregate:
    """
    Get the aggregate for `key`, creating it if needed

    If `key` is not in `bucket`,
    an aggregate with zero accumulators is created and stored first.

    Parameters
    ----------
    bucket
        Bucket to look in (modified in place if `key` is missing)

    key
        Key of the county

    Returns
    -------
    :
        Aggregate for `key`, ready to be added to
    """
    if key not in bucket:
        bucket[key] = CountyAggregate(display_name=key.county, state=key.state)

    return bucket[key]


def fold_shard(records: Iterable[RawObservation]) -> DateBuckets:
    """
    Fold a shard of observations into date buckets

    Parameters
    ----------
    records
        Observations in the shard

    Returns
    -------
    :
        Buckets, owned only by the caller
    """
    res: DateBuckets = {}
    for record in records:
        normalised = normalise_observation(record)
        bucket = res.setdefault(normalised.date, {})
        upsert_county(bucket, normalised.county_key).add(
            normalised.kind, normalised.value
        )

    return res


def merge_date_buckets(left: DateBuckets, right: DateBuckets) -> DateBuckets:
    """
    Merge two sets of date buckets

    Neither input is modified.
    Counties present on both sides are summed,
    counties present on one side only are copied.

    Parameters
    ----------
    left
        First buckets

    right
        Second buckets

    Returns
    -------
    :
        Merged buckets
    """
    res: DateBuckets = {
        date: {key: agg.copy() for key, agg in bucket.items()}
        for date, bucket in left.items()
    }
    for date, right_bucket in right.items():
        res_bucket = res.setdefault(date, {})
        for key, right_agg in right_bucket.items():
            if key not in res_bucket:
                res_bucket[key] = right_agg.copy()
                continue

            res_agg = res_bucket[key]
            res_agg.confirmed += right_agg.confirmed
            res_agg.deaths += right_agg.deaths

    return res


def shard_records(
    records: Sequence[RawObservation], n_shards: int
) -> tuple[tuple[RawObservation, ...], ...]:
    """
    Split records into contiguous shards of near-equal size

    Parameters
    ----------
    records
        Records to split

    n_shards
        Maximum number of shards to create

    Returns
    -------
    :
        Shards (empty shards are dropped)
    """
    if n_shards < 1:
        msg = f"n_shards must be at least 1, received {n_shards=}"
        raise ValueError(msg)

    if not records:
        return ()

    return tuple(
        tuple(records[int(idx[0]) : int(idx[-1]) + 1])
        for idx in np.array_split(np.arange(len(records)), n_shards)
        if idx.size > 0
    )


def aggregate(
    records: Sequence[RawObservation],
    n_shards: int = 1,
    n_processes: int | None = None,
    progress: bool = False,
) -> DateBuckets:
    """
    Aggregate observations into per-date county buckets

    Parameters
    ----------
    records
        Observations to aggregate

    n_shards
        Number of shards to split `records` into before folding

    n_processes
        Number of processes to use for folding shards.

        Set to `None` to fold in serial.

    progress
        Should a progress bar be shown?

    Returns
    -------
    :
        Buckets for each date that appears in `records`
    """
    partials = apply_op_parallel_progress(
        func_to_call=fold_shard,
        iterable_input=shard_records(records, n_shards),
        parallel_op_config=ParallelOpConfig.from_user_facing(
            progress=progress,
            max_workers=n_processes,
            progress_results_kwargs=dict(desc="Shards to aggregate"),
        ),
    )

    return functools.reduce(merge_date_buckets, partials, {})
