"""
Re-useable fixtures etc. for tests

See https://docs.pytest.org/en/7.1.x/reference/fixtures.html#conftest-py-sharing-fixtures-across-multiple-files
"""

import numpy as np
import pandas as pd
import pytest

from epigraph.normalisation import MetricKind, RawObservation

D1_MS = 1583020800000
"""
2020-03-01T00:00:00+00:00 in milliseconds since the epoch
"""

DAY_MS = 24 * 60 * 60 * 1000


@pytest.fixture(scope="session", autouse=True)
def pandas_terminal_width():
    # Set pandas terminal width so that error messages don't depend on terminal width.
    pd.set_option("display.width", 120)
    pd.set_option("display.max_columns", 1000)


@pytest.fixture
def scenario_records():
    return (
        RawObservation(D1_MS, "Alpha", "CA", 10, MetricKind.CONFIRMED),
        RawObservation(D1_MS, "Alpha", "CA", 2, MetricKind.DEATHS),
        RawObservation(D1_MS, "Beta", "CA", 5, MetricKind.CONFIRMED),
        RawObservation(D1_MS, "Alpha", "NY", 7, MetricKind.CONFIRMED),
    )


@pytest.fixture
def random_records():
    rng = np.random.default_rng(seed=20200301)
    n_records = 500

    states = ("CA", "NY", "WA", "TX")
    counties = ("Alpha", "Beta", "Gamma", "Delta", "Epsilon")
    kinds = ("Confirmed", "Deaths", "Recovered", "Other")

    return tuple(
        RawObservation(
            timestamp_ms=D1_MS + int(rng.integers(-3 * DAY_MS, 4 * DAY_MS)),
            county=counties[rng.integers(len(counties))],
            state=states[rng.integers(len(states))],
            value=int(rng.integers(0, 1000)),
            kind=kinds[rng.integers(len(kinds))],
        )
        for _ in range(n_records)
    )


@pytest.fixture
def raw_json_records():
    return [
        {"Date": D1_MS, "County": "Alpha", "State": "CA", "values": 10, "Type": "Confirmed"},
        {"Date": D1_MS + 3600_000, "County": "Alpha", "State": "CA", "values": 2, "Type": "Deaths"},
        {"Date": D1_MS, "County": "Beta", "State": "CA", "values": 5, "Type": "Confirmed"},
        {"Date": D1_MS, "County": "Alpha", "State": "NY", "values": 7, "Type": "Confirmed"},
        {"Date": D1_MS, "County": "Alpha", "State": "NY", "values": 100, "Type": "Recovered"},
        {"Date": D1_MS + DAY_MS, "County": "Beta", "State": "CA", "values": 3, "Type": "Confirmed"},
    ]  # fmt: skip
