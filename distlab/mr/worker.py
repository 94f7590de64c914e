"""MapReduce worker: asks the coordinator for tasks and runs them."""

import json
import os
import socket
import tempfile
from dataclasses import dataclass
from itertools import groupby
from operator import attrgetter
from typing import Any, Callable, Iterator, List, Optional, TextIO

from ..labgob import LabDecoder, LabEncoder
from ..labrpc import CallFailed
from .rpc import ExampleArgs, ExampleReply, MapTask, TaskType, coordinator_sock

MapFunc = Callable[[str, str], List["KeyValue"]]
ReduceFunc = Callable[[str, List[str]], str]


@dataclass
class KeyValue:
    """A pair emitted by a map function."""

    key: str
    value: str


def ihash(key: str) -> int:
    """FNV-1a hash of the key, masked to a non-negative 31-bit number."""
    h = 2166136261
    for byte in key.encode("utf-8", errors="surrogateescape"):
        h ^= byte
        h = (h * 16777619) & 0xFFFFFFFF
    return h & 0x7FFFFFFF


def _write_atomically(path: str, lines) -> None:
    fd, tmp = tempfile.mkstemp(prefix="temp", dir=".")
    with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape") as out:
        out.writelines(lines)
    os.replace(tmp, path)


def execute_map(task: MapTask, mapf: MapFunc, n_reduce: int) -> None:
    """Run the map function on one input file and write n_reduce intermediate files."""
    with open(task.file_name, encoding="utf-8", errors="surrogateescape") as f:
        content = f.read()
    buckets: list = [[] for _ in range(n_reduce)]
    for kv in mapf(task.file_name, content):
        buckets[ihash(kv.key) % n_reduce].append(kv)
    for idx, bucket in enumerate(buckets):
        _write_atomically(
            f"mr-{task.task_id}-{idx}",
            (
                json.dumps({"Key": kv.key, "Value": kv.value}, separators=(",", ":")) + "\n"
                for kv in bucket
            ),
        )


def _read_pairs(stream: TextIO) -> Iterator[KeyValue]:
    for line in stream:
        try:
            obj = json.loads(line)
            yield KeyValue(obj["Key"], obj["Value"])
        except (ValueError, KeyError, TypeError):
            return


def execute_reduce(task_id: int, reducef: ReduceFunc, n_map: int) -> None:
    """Gather one partition from every map task, reduce it and write mr-out-<task_id>."""
    intermediate: list = []
    for i in range(n_map):
        with open(f"mr-{i}-{task_id}", encoding="utf-8", errors="surrogateescape") as f:
            intermediate.extend(_read_pairs(f))
    intermediate.sort(key=attrgetter("key"))
    lines = [
        f"{key} {reducef(key, [kv.value for kv in group])}\n"
        for key, group in groupby(intermediate, key=attrgetter("key"))
    ]
    _write_atomically(f"mr-out-{task_id}", lines)


def call(rpcname: str, args: Any) -> Any:
    """Send one RPC to the coordinator and return its reply.

    Raises CallFailed when the coordinator reports an error or hangs up,
    and OSError when it cannot be reached at all.
    """
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        sock.connect(coordinator_sock())
        with sock.makefile("rwb") as stream:
            LabEncoder(stream).encode((rpcname, args))
            stream.flush()
            try:
                succeeded, payload = LabDecoder(stream).decode()
            except (EOFError, ValueError) as exc:
                raise CallFailed(f"no reply for {rpcname}") from exc
    if not succeeded:
        raise CallFailed(payload)
    return payload


def _notify(reply: Any) -> None:
    try:
        call("Coordinator.NotifyComplete", reply)
    except CallFailed:
        pass


def worker(mapf: MapFunc, reducef: ReduceFunc) -> None:
    """Run tasks from the coordinator until it says to stop."""
    while True:
        try:
            reply = call("Coordinator.Dispatch", ExampleArgs())
        except CallFailed:
            return
        kind = TaskType(reply.type)
        if kind is TaskType.TERMINATE:
            return
        if kind is TaskType.MAP:
            execute_map(reply.map_task, mapf, reply.num_reduce)
        else:
            execute_reduce(reply.reduce_task_id, reducef, reply.num_map)
        _notify(reply)


def call_example() -> Optional[int]:
    """Call the coordinator's example handler with 99 and print the answer."""
    try:
        reply: ExampleReply = call("Coordinator.Example", ExampleArgs(x=99))
    except CallFailed:
        print("call failed!")
        return None
    print(f"reply.Y {reply.y}")
    return reply.y