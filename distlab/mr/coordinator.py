"""The MapReduce coordinator: hands out map and reduce tasks to workers."""

import contextlib
import dataclasses
import logging
import os
import socketserver
import threading
from typing import Any, Callable, Optional

from ..labgob import LabDecoder, LabEncoder
from .rpc import ExampleArgs, ExampleReply, MapTask, TaskReply, TaskType, coordinator_sock

_log = logging.getLogger(__name__)

TASK_TIMEOUT = 10.0


def file_exists(path: str) -> bool:
    return os.path.exists(path)


class _RequestHandler(socketserver.StreamRequestHandler):
    def handle(self) -> None:
        try:
            rpcname, args = LabDecoder(self.rfile).decode()
        except (EOFError, ValueError, TypeError):
            return
        try:
            response = (True, self.server.coordinator._handle(rpcname, args))
        except Exception as exc:
            response = (False, str(exc))
        LabEncoder(self.wfile).encode(response)


class _RPCServer(socketserver.ThreadingUnixStreamServer):
    daemon_threads = True
    block_on_close = False

    def __init__(self, path: str, coordinator: "Coordinator") -> None:
        self.coordinator = coordinator
        super().__init__(path, _RequestHandler)


class Coordinator:
    """Tracks map and reduce tasks and re-queues those that did not finish in time."""

    def __init__(self, files, n_reduce: int, task_timeout: float = TASK_TIMEOUT) -> None:
        self._map_tasks = [MapTask(file_name=name, task_id=i) for i, name in enumerate(files)]
        self._n_files = len(self._map_tasks)
        self._n_reduce = n_reduce
        self._reduce_task_ids = list(range(n_reduce))
        self.map_completed: dict = {}
        self.reduce_completed: set = set()
        self._task_timeout = task_timeout
        self._cond = threading.Condition(threading.RLock())
        self._timers: list = []
        self._server: Optional[_RPCServer] = None
        self._sockname: Optional[str] = None

    def __enter__(self) -> "Coordinator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def example(self, args: ExampleArgs) -> ExampleReply:
        return ExampleReply(y=args.x + 1)

    def is_map_completed(self) -> bool:
        with self._cond:
            return len(self.map_completed) == self._n_files

    def is_reduce_completed(self) -> bool:
        with self._cond:
            return len(self.reduce_completed) == self._n_reduce

    def dispatch(self) -> TaskReply:
        """Hand out the next task, waiting until one is available."""
        with self._cond:
            while True:
                reply = self._try_dispatch()
                if reply is not None:
                    return reply
                self._cond.wait()

    def _try_dispatch(self) -> Optional[TaskReply]:
        reply = TaskReply(num_reduce=self._n_reduce, num_map=self._n_files)
        if not self.is_map_completed():
            if not self._map_tasks:
                return None
            task = self._map_tasks.pop()
            reply.type = TaskType.MAP
            reply.map_task = dataclasses.replace(task)
            self._schedule(self._check_map, task)
            return reply
        if self.is_reduce_completed():
            reply.type = TaskType.TERMINATE
            return reply
        if not self._reduce_task_ids:
            return None
        reply.type = TaskType.REDUCE
        reply.reduce_task_id = self._reduce_task_ids.pop()
        self._schedule(self._check_reduce, reply.reduce_task_id)
        return reply

    def notify_complete(self, task: TaskReply) -> TaskReply:
        """Record that a worker finished the given task."""
        with self._cond:
            kind = TaskType(task.type)
            if kind is TaskType.MAP:
                self.map_completed[task.map_task.task_id] = task.map_task.file_name
            elif kind is TaskType.REDUCE:
                self.reduce_completed.add(task.reduce_task_id)
            self._cond.notify_all()
        return TaskReply()

    def _schedule(self, check: Callable[[Any], None], task: Any) -> None:
        timer = threading.Timer(self._task_timeout, check, args=(task,))
        timer.daemon = True
        self._timers = [t for t in self._timers if t.is_alive()]
        self._timers.append(timer)
        timer.start()

    def _check_map(self, task: MapTask) -> None:
        failed = not all(
            file_exists(f"mr-{task.task_id}-{i}") for i in range(self._n_reduce)
        )
        with self._cond:
            if failed:
                self._map_tasks.append(task)
                _log.info("Map task ID %d added back to queue.", task.task_id)
            else:
                self.map_completed[task.task_id] = task.file_name
            self._cond.notify_all()

    def _check_reduce(self, reduce_task_id: int) -> None:
        failed = not file_exists(f"mr-out-{reduce_task_id}")
        with self._cond:
            if failed:
                self._reduce_task_ids.append(reduce_task_id)
                _log.info("Reduce task ID %d added back to queue.", reduce_task_id)
            else:
                self.reduce_completed.add(reduce_task_id)
            self._cond.notify_all()

    def _handle(self, rpcname: str, args: Any) -> Any:
        handlers = {
            "Coordinator.Example": self.example,
            "Coordinator.Dispatch": lambda _args: self.dispatch(),
            "Coordinator.NotifyComplete": self.notify_complete,
        }
        handler = handlers.get(rpcname)
        if handler is None:
            raise LookupError(f"unknown method {rpcname!r}; expecting one of {sorted(handlers)}")
        return handler(args)

    def serve(self) -> None:
        """Listen for worker RPCs on the coordinator socket in a background thread."""
        path = coordinator_sock()
        with contextlib.suppress(FileNotFoundError):
            os.remove(path)
        self._server = _RPCServer(path, self)
        self._sockname = path
        threading.Thread(target=self._server.serve_forever, daemon=True).start()

    def done(self) -> bool:
        """True once every reduce task has finished."""
        return self.is_reduce_completed()

    def close(self) -> None:
        """Stop the checkers and the RPC listener."""
        for timer in self._timers:
            timer.cancel()
        self._timers = []
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._sockname is not None:
            with contextlib.suppress(FileNotFoundError):
                os.remove(self._sockname)
            self._sockname = None


def make_coordinator(files, n_reduce: int) -> Coordinator:
    """Create a coordinator for the input files and start serving workers."""
    coordinator = Coordinator(files, n_reduce)
    coordinator.serve()
    return coordinator