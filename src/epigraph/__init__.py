"""
Per-date county and state graphs built from county-level epidemiological counts.
"""

import importlib.metadata

from loguru import logger

__version__ = importlib.metadata.version("epigraph")

logger.disable("epigraph")
