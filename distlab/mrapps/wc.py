"""Word count: counts how often each word occurs across all inputs."""

from itertools import groupby
from typing import List

from ..mr.worker import KeyValue


def _words(text: str) -> List[str]:
    return ["".join(run) for is_letter, run in groupby(text, key=str.isalpha) if is_letter]


def map_fn(filename: str, contents: str) -> List[KeyValue]:
    """Emit (word, "1") for every word; the file name is ignored."""
    return [KeyValue(word, "1") for word in _words(contents)]


def reduce_fn(key: str, values: List[str]) -> str:
    """Number of occurrences of the word."""
    return str(len(values))