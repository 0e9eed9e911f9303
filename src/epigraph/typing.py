"""
Type hints that are used throughout
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, NamedTuple

from typing_extensions import TypeAlias

if TYPE_CHECKING:
    from epigraph.aggregation import CountyAggregate


class CountyKey(NamedTuple):
    """
    Key which identifies a county within a date

    Counties are namespaced by state
    because the same county name appears in more than one state.
    """

    state: str
    """State the county belongs to"""

    county: str
    """Name of the county"""


DateBucket: TypeAlias = "dict[CountyKey, CountyAggregate]"
"""
All the county aggregates observed for one date
"""

DateBuckets: TypeAlias = "dict[dt.date, DateBucket]"
"""
Mapping from date to the county aggregates observed for that date
"""
