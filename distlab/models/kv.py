"""Sequential model of a key/value store, for checking operation histories."""

from dataclasses import dataclass
from typing import ClassVar, Dict, List, Tuple


@dataclass(frozen=True)
class KvInput:
    """An operation on one key: op is GET, PUT or APPEND."""

    GET: ClassVar[int] = 0
    PUT: ClassVar[int] = 1
    APPEND: ClassVar[int] = 2

    op: int
    key: str
    value: str = ""


@dataclass(frozen=True)
class KvOutput:
    value: str = ""


@dataclass(frozen=True)
class KvOperation:
    """One client operation with its invocation and return times."""

    input: KvInput
    output: KvOutput
    call: int
    ret: int
    client_id: int = 0


def partition(history: List[KvOperation]) -> List[List[KvOperation]]:
    """Split a history by key, keys in sorted order, each keeping its original order."""
    by_key: Dict[str, List[KvOperation]] = {}
    for operation in history:
        by_key.setdefault(operation.input.key, []).append(operation)
    return [by_key[key] for key in sorted(by_key)]


def init_state() -> str:
    """State of a single key before any operation."""
    return ""


def step(state: str, inp: KvInput, out: KvOutput) -> Tuple[bool, str]:
    """Apply one operation; returns whether it is legal and the next state."""
    if inp.op == KvInput.GET:
        return out.value == state, state
    if inp.op == KvInput.PUT:
        return True, inp.value
    return True, state + inp.value


def describe_operation(inp: KvInput, out: KvOutput) -> str:
    if inp.op == KvInput.GET:
        return f"get('{inp.key}') -> '{out.value}'"
    if inp.op == KvInput.PUT:
        return f"put('{inp.key}', '{inp.value}')"
    if inp.op == KvInput.APPEND:
        return f"append('{inp.key}', '{inp.value}')"
    return "<invalid>"