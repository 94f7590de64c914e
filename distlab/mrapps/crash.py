"""A MapReduce application that sometimes crashes and sometimes stalls."""

import os
import secrets
import time
from typing import List

from ..mr.worker import KeyValue


def maybe_crash() -> None:
    """Exit the process about a third of the time; stall up to 10 s another third."""
    roll = secrets.randbelow(1000)
    if roll < 330:
        os._exit(1)
    elif roll < 660:
        time.sleep(secrets.randbelow(10 * 1000) / 1000)


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8", errors="surrogateescape"))


def map_fn(filename: str, contents: str) -> List[KeyValue]:
    maybe_crash()
    return [
        KeyValue("a", filename),
        KeyValue("b", str(_byte_len(filename))),
        KeyValue("c", str(_byte_len(contents))),
        KeyValue("d", "xyzzy"),
    ]


def reduce_fn(key: str, values: List[str]) -> str:
    maybe_crash()
    return " ".join(sorted(values))