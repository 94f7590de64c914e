"""Inverted index: for each word, the documents that contain it."""

from itertools import groupby
from typing import List

from ..mr.worker import KeyValue


def _words(text: str) -> List[str]:
    return ["".join(run) for is_letter, run in groupby(text, key=str.isalpha) if is_letter]


def map_fn(document: str, value: str) -> List[KeyValue]:
    """Emit (word, document) once for each distinct word in the document."""
    return [KeyValue(word, document) for word in dict.fromkeys(_words(value))]


def reduce_fn(key: str, values: List[str]) -> str:
    """The number of documents and their sorted, comma-separated names."""
    documents = sorted(values)
    return f"{len(documents)} {','.join(documents)}"