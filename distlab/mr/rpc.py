"""Messages exchanged between the MapReduce coordinator and its workers."""

import enum
import os
from dataclasses import dataclass, field

from ..labgob import register


class TaskType(enum.IntEnum):
    """Kind of work handed to a worker."""

    MAP = 0
    REDUCE = 1
    TERMINATE = 2


@dataclass
class ExampleArgs:
    x: int = 0


@dataclass
class ExampleReply:
    y: int = 0


@dataclass
class MapTask:
    file_name: str = ""
    task_id: int = 0


@dataclass
class TaskReply:
    type: int = TaskType.MAP
    map_task: MapTask = field(default_factory=MapTask)
    reduce_task_id: int = 0
    num_reduce: int = 0
    num_map: int = 0


for _message in (ExampleArgs, ExampleReply, MapTask, TaskReply):
    register(_message)


def coordinator_sock() -> str:
    """Path of the UNIX-domain socket the coordinator listens on."""
    return f"/var/tmp/5840-mr-{os.getuid()}"