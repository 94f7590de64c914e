"""In-process RPC over a simulated network.

The network can lose requests and replies, delay messages and disconnect
particular ends.  Arguments and replies are passed through labgob so that a
call never shares object references between caller and handler.

A Service wraps an object: each public method taking exactly one argument is
a handler that receives the decoded arguments and returns the reply.  A
Server groups services; a Network routes calls from ClientEnds to Servers.
"""

import inspect
import io
import queue
import random
import threading
import time
from typing import Any, Callable

from .labgob import LabDecoder, LabEncoder


class CallFailed(Exception):
    """No reply arrived: the request or reply was lost, or the server is down."""


def _encode(value: Any) -> bytes:
    buf = io.BytesIO()
    LabEncoder(buf).encode(value)
    return buf.getvalue()


def _decode(data: bytes) -> Any:
    return LabDecoder(io.BytesIO(data)).decode()


class ClientEnd:
    """A client end-point that talks to one server through a network."""

    def __init__(self, network: "Network", endname: Any) -> None:
        self._network = network
        self.endname = endname

    def call(self, svc_meth: str, args: Any) -> Any:
        """Send an RPC such as "Raft.AppendEntries" and return the reply.

        Raises CallFailed when no reply was received.
        """
        payload = self._network._deliver(self.endname, svc_meth, _encode(args))
        return _decode(payload)


class Network:
    """Holds client ends, servers and the connections between them."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reliable = True
        self._long_delays = False
        self._long_reordering = False
        self._ends: dict = {}
        self._enabled: dict = {}
        self._servers: dict = {}
        self._connections: dict = {}
        self._done = threading.Event()
        self._count = 0
        self._bytes = 0

    def __enter__(self) -> "Network":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        """Shut the network down; later calls fail at once."""
        self._done.set()

    def reliable(self, yes: bool) -> None:
        with self._lock:
            self._reliable = yes

    def long_reordering(self, yes: bool) -> None:
        with self._lock:
            self._long_reordering = yes

    def long_delays(self, yes: bool) -> None:
        with self._lock:
            self._long_delays = yes

    def make_end(self, endname: Any) -> ClientEnd:
        """Create a disabled, unconnected client end."""
        with self._lock:
            if endname in self._ends:
                raise ValueError(f"end {endname!r} already exists")
            end = ClientEnd(self, endname)
            self._ends[endname] = end
            self._enabled[endname] = False
            self._connections[endname] = None
            return end

    def add_server(self, servername: Any, server: "Server") -> None:
        with self._lock:
            self._servers[servername] = server

    def delete_server(self, servername: Any) -> None:
        with self._lock:
            self._servers[servername] = None

    def connect(self, endname: Any, servername: Any) -> None:
        """Connect a client end to a server."""
        with self._lock:
            self._connections[endname] = servername

    def enable(self, endname: Any, enabled: bool) -> None:
        with self._lock:
            self._enabled[endname] = enabled

    def get_count(self, servername: Any) -> int:
        """Number of RPCs the named server has received."""
        with self._lock:
            server = self._servers.get(servername)
        if server is None:
            raise KeyError(servername)
        return server.get_count()

    def get_total_count(self) -> int:
        with self._lock:
            return self._count

    def get_total_bytes(self) -> int:
        with self._lock:
            return self._bytes

    def _is_server_dead(self, endname: Any, servername: Any, server: "Server") -> bool:
        with self._lock:
            return not self._enabled.get(endname, False) or self._servers.get(servername) is not server

    def _deliver(self, endname: Any, svc_meth: str, args: bytes) -> bytes:
        if self._done.is_set():
            raise CallFailed("network has been cleaned up")
        with self._lock:
            self._count += 1
            self._bytes += len(args)
            enabled = self._enabled.get(endname, False)
            servername = self._connections.get(endname)
            server = self._servers.get(servername) if servername is not None else None
            reliable = self._reliable
            long_reordering = self._long_reordering
            long_delays = self._long_delays

        if not (enabled and servername is not None and server is not None):
            # simulate no reply and an eventual timeout
            delay_ms = random.randrange(7000) if long_delays else random.randrange(100)
            time.sleep(delay_ms / 1000)
            raise CallFailed(f"no reply for {svc_meth}")

        if not reliable:
            time.sleep(random.randrange(27) / 1000)
            if random.randrange(1000) < 100:
                raise CallFailed(f"request for {svc_meth} was dropped")

        results: queue.Queue = queue.Queue(maxsize=1)
        threading.Thread(
            target=_run_handler, args=(server, svc_meth, args, results), daemon=True
        ).start()

        outcome = None
        while outcome is None:
            try:
                outcome = results.get(timeout=0.1)
            except queue.Empty:
                if self._is_server_dead(endname, servername, server):
                    break

        # never report success from a server that was deleted meanwhile
        if outcome is None or self._is_server_dead(endname, servername, server):
            raise CallFailed(f"server {servername!r} went away during {svc_meth}")

        succeeded, payload = outcome
        if not succeeded:
            raise payload
        if not reliable and random.randrange(1000) < 100:
            raise CallFailed(f"reply for {svc_meth} was dropped")
        if long_reordering and random.randrange(900) < 600:
            delay_ms = 200 + random.randrange(1 + random.randrange(2000))
            time.sleep(delay_ms / 1000)
        with self._lock:
            self._bytes += len(payload)
        return payload


def _run_handler(server: "Server", svc_meth: str, args: bytes, results: queue.Queue) -> None:
    try:
        results.put((True, server._dispatch(svc_meth, args)))
    except Exception as exc:
        results.put((False, exc))


class Server:
    """A collection of services sharing one RPC endpoint."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._services: dict = {}
        self._count = 0

    def add_service(self, service: "Service") -> None:
        with self._lock:
            self._services[service.name] = service

    def get_count(self) -> int:
        """Number of incoming RPCs."""
        with self._lock:
            return self._count

    def _dispatch(self, svc_meth: str, args: bytes) -> bytes:
        with self._lock:
            self._count += 1
            service_name, _, method_name = svc_meth.rpartition(".")
            service = self._services.get(service_name)
            choices = sorted(self._services)
        if service is None:
            raise LookupError(
                f"unknown service {service_name!r} in {svc_meth!r}; expecting one of {choices}"
            )
        return service._dispatch(method_name, args, svc_meth)


_VARIADIC = inspect.CO_VARARGS | inspect.CO_VARKEYWORDS


def _is_handler(cls: type, name: str, function: Callable) -> bool:
    if name.startswith("_"):
        return False
    if isinstance(inspect.getattr_static(cls, name), (staticmethod, classmethod)):
        return False
    code = getattr(function, "__code__", None)
    if code is None:
        return False
    # self plus exactly one positional argument, nothing else
    return (
        code.co_argcount == 2
        and code.co_kwonlyargcount == 0
        and not code.co_flags & _VARIADIC
    )


class Service:
    """An object whose one-argument public methods handle RPCs."""

    def __init__(self, receiver: Any) -> None:
        cls = type(receiver)
        self.name = cls.__name__
        self._methods = {
            name: getattr(receiver, name)
            for name, function in inspect.getmembers(cls, inspect.isfunction)
            if _is_handler(cls, name, function)
        }

    def _dispatch(self, method_name: str, args: bytes, svc_meth: str) -> bytes:
        method = self._methods.get(method_name)
        if method is None:
            raise LookupError(
                f"unknown method {method_name!r} in {svc_meth!r}; "
                f"expecting one of {sorted(self._methods)}"
            )
        return _encode(method(_decode(args)))