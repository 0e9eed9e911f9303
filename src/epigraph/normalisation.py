"""
Normalisation of raw observations

Raw observations are turned into records
keyed by their UTC date and their county,
ready for accumulation.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum

from attrs import field, frozen

from epigraph.typing import CountyKey

EPOCH = dt.date(1970, 1, 1)
"""
Start of the epoch to which raw timestamps are relative
"""

MILLISECONDS_PER_DAY = 24 * 60 * 60 * 1000
"""
Number of milliseconds in a UTC day
"""


class MetricKind(Enum):
    """
    Kind of metric an observation reports
    """

    CONFIRMED = "Confirmed"
    """Confirmed cases"""

    DEATHS = "Deaths"
    """Deaths"""

    OTHER = "Other"
    """Anything else, not accumulated"""

    @classmethod
    def from_raw(cls, value: str | MetricKind) -> MetricKind:
        """
        Get the metric kind for a raw value

        Parameters
        ----------
        value
            Raw value

        Returns
        -------
        :
            Matching metric kind.

            Values we don't recognise map to [MetricKind.OTHER][(c).].
        """
        if isinstance(value, cls):
            return value

        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@frozen
class RawObservation:
    """
    A single observation as supplied in the input
    """

    timestamp_ms: int
    """
    Time of the observation in milliseconds since the epoch (UTC)
    """

    county: str
    """
    Name of the county
    """

    state: str
    """
    Name of the state
    """

    value: int
    """
    Reported value

    This is treated as an additive delta, not a running total.
    """

    kind: MetricKind = field(converter=MetricKind.from_raw)
    """
    Kind of metric reported
    """


@frozen
class NormalisedRecord:
    """
    An observation keyed by date and county
    """

    date: dt.date
    county_key: CountyKey
    kind: MetricKind
    value: int


def to_canonical_date(timestamp_ms: int) -> dt.date:
    """
    Truncate a millisecond timestamp to its UTC date

    Parameters
    ----------
    timestamp_ms
        Milliseconds since the epoch

    Returns
    -------
    :
        UTC date in which the timestamp falls
    """
    # Floor division so pre-epoch timestamps go to the earlier day
    return EPOCH + dt.timedelta(days=timestamp_ms // MILLISECONDS_PER_DAY)


def to_canonical_timestamp(date: dt.date) -> str:
    """
    Get the canonical (RFC 3339) timestamp of a date

    Parameters
    ----------
    date
        Date

    Returns
    -------
    :
        Timestamp of UTC midnight at the start of `date`
    """
    midnight = dt.datetime(date.year, date.month, date.day, tzinfo=dt.timezone.utc)

    return midnight.isoformat()


def normalise_observation(observation: RawObservation) -> NormalisedRecord:
    """
    Normalise a raw observation

    Parameters
    ----------
    observation
        Observation to normalise

    Returns
    -------
    :
        Normalised record
    """
    return NormalisedRecord(
        date=to_canonical_date(observation.timestamp_ms),
        county_key=CountyKey(state=observation.state, county=observation.county),
        kind=observation.kind,
        value=observation.value,
    )
