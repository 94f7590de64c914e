"""Counts input files, with some reduce tasks taking a long time."""

import time
from typing import List

from ..mr.worker import KeyValue


def map_fn(filename: str, contents: str) -> List[KeyValue]:
    """Emit (filename, "1") once per input file."""
    return [KeyValue(filename, "1")]


def reduce_fn(key: str, values: List[str]) -> str:
    """Number of occurrences; slow for keys mentioning sherlock or tom."""
    if "sherlock" in key or "tom" in key:
        time.sleep(3)
    return str(len(values))