"""The same application as crash, without the crashes and stalls."""

from typing import List

from ..mr.worker import KeyValue


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8", errors="surrogateescape"))


def map_fn(filename: str, contents: str) -> List[KeyValue]:
    return [
        KeyValue("a", filename),
        KeyValue("b", str(_byte_len(filename))),
        KeyValue("c", str(_byte_len(contents))),
        KeyValue("d", "xyzzy"),
    ]


def reduce_fn(key: str, values: List[str]) -> str:
    return " ".join(sorted(values))