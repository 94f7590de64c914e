import io
import os

from distlab.labgob import LabDecoder, LabEncoder
from distlab.mr.rpc import (
    ExampleArgs,
    ExampleReply,
    MapTask,
    TaskReply,
    TaskType,
    coordinator_sock,
)


def roundtrip(value):
    buf = io.BytesIO()
    LabEncoder(buf).encode(value)
    buf.seek(0)
    return LabDecoder(buf).decode()


def test_task_reply_roundtrip():
    reply = TaskReply(
        type=TaskType.REDUCE,
        map_task=MapTask(file_name="pg-a.txt", task_id=4),
        reduce_task_id=7,
        num_reduce=10,
        num_map=3,
    )
    decoded = roundtrip(reply)
    assert decoded == reply
    assert TaskType(decoded.type) is TaskType.REDUCE
    assert decoded.map_task.file_name == "pg-a.txt"


def test_example_messages_roundtrip():
    assert roundtrip(ExampleArgs(x=99)) == ExampleArgs(x=99)
    assert roundtrip(ExampleReply(y=100)).y == 100


def test_default_task_reply_is_map():
    decoded = roundtrip(TaskReply())
    assert TaskType(decoded.type) is TaskType.MAP
    assert decoded.map_task == MapTask()


def test_coordinator_sock_uses_uid(monkeypatch):
    monkeypatch.setattr(os, "getuid", lambda: 1234)
    assert coordinator_sock() == "/var/tmp/5840-mr-1234"