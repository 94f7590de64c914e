"""Client of the replicated key/value service, and the messages it sends."""

import enum
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ..labgob import register
from ..labrpc import CallFailed, ClientEnd

REQUEST_TIMEOUT = 100


class Err(str, enum.Enum):
    OK = "OK"
    WRONG_LEADER = "ErrWrongLeader"
    TIME_OUT = "ErrTimeOut"
    STALE_REQUEST = "ErrStaleRequest"
    LOST_LEADERSHIP = "ErrLostLeadership"
    KILLED = "ErrKilled"


class OpKind(str, enum.Enum):
    PUT = "Put"
    APPEND = "Append"
    GET = "Get"


@dataclass
class PutAppendArgs:
    key: str = ""
    value: str = ""
    op: str = ""
    client_id: int = 0
    seq_number: int = 0


@dataclass
class PutAppendReply:
    err: str = ""


@dataclass
class GetArgs:
    key: str = ""
    client_id: int = 0
    seq_number: int = 0


@dataclass
class GetReply:
    err: str = ""
    value: str = ""


for _message in (PutAppendArgs, PutAppendReply, GetArgs, GetReply):
    register(_message)


def nrand() -> int:
    """A random non-negative number below 2**62."""
    return secrets.randbelow(1 << 62)


class Clerk:
    """Sends requests to the servers, retrying until some leader accepts them."""

    def __init__(
        self, servers: Sequence[ClientEnd], request_timeout: float = float(REQUEST_TIMEOUT)
    ) -> None:
        self._servers = list(servers)
        self.client_id = nrand()
        self._request_timeout = request_timeout
        self._lock = threading.Lock()
        self._leader = 0
        self._seq = 0

    def _next_seq(self) -> int:
        with self._lock:
            self._seq += 1
            return self._seq

    def _send(self, svc_meth: str, args: Any) -> Optional[Any]:
        with self._lock:
            index = self._leader
        deadline = time.monotonic() + self._request_timeout
        while time.monotonic() < deadline:
            try:
                reply = self._servers[index].call(svc_meth, args)
            except CallFailed:
                reply = None
            if reply is not None and reply.err == Err.OK:
                with self._lock:
                    self._leader = index
                return reply
            index = (index + 1) % len(self._servers)
        return None

    def get(self, key: str) -> str:
        """Current value for key; "" if the key is absent or no server answered in time."""
        args = GetArgs(key=key, client_id=self.client_id, seq_number=self._next_seq())
        reply = self._send("KVServer.Get", args)
        return reply.value if reply is not None else ""

    def put_append(self, key: str, value: str, op: str) -> None:
        args = PutAppendArgs(
            key=key,
            value=value,
            op=str(OpKind(op).value),
            client_id=self.client_id,
            seq_number=self._next_seq(),
        )
        self._send("KVServer.PutAppend", args)

    def put(self, key: str, value: str) -> None:
        self.put_append(key, value, OpKind.PUT)

    def append(self, key: str, value: str) -> None:
        self.put_append(key, value, OpKind.APPEND)