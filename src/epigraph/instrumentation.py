"""
Timing of pipeline events
"""

from __future__ import annotations

import contextlib
import time
from collections.abc import Iterator
from typing import Any

from loguru import logger


@contextlib.contextmanager
def timed_event(name: str, **data: Any) -> Iterator[dict[str, Any]]:
    """
    Time an event and log it when it finishes

    The event is logged whether or not the block raises.
    If it raises, the error is added to the logged data
    and the record is logged at `ERROR` level.

    Parameters
    ----------
    name
        Name of the event

    **data
        Data to log with the event

    Yields
    ------
    :
        Data to log with the event.

        Add to this within the block to log extra information.

    Examples
    --------
    >>> with timed_event("parse") as event:
    ...     event["entries"] = 3
    """
    event_data = dict(data)
    level = "INFO"
    start = time.perf_counter()
    try:
        yield event_data
    except Exception as exc:
        event_data["error"] = repr(exc)
        level = "ERROR"
        raise
    finally:
        elapsed = time.perf_counter() - start
        logger.bind(event=name, elapsed_s=elapsed, **event_data).log(
            level, "{} finished in {:.3f}s {}", name, elapsed, event_data
        )
