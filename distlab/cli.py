"""Command entry points: sequential MapReduce, coordinator and worker."""

import os
import sys
import time
from itertools import groupby
from operator import attrgetter
from typing import Callable, List, Optional, Sequence, Tuple

from .mr.coordinator import make_coordinator
from .mr.worker import KeyValue, worker
from .mrapps import crash, early_exit, indexer, jobcount, mtiming, nocrash, rtiming, wc

MapFunc = Callable[[str, str], List[KeyValue]]
ReduceFunc = Callable[[str, List[str]], str]

_APPS = {
    "wc": wc,
    "indexer": indexer,
    "crash": crash,
    "nocrash": nocrash,
    "early_exit": early_exit,
    "jobcount": jobcount,
    "mtiming": mtiming,
    "rtiming": rtiming,
}

_ENCODING = {"encoding": "utf-8", "errors": "surrogateescape"}


def load_app(name: str) -> Tuple[MapFunc, ReduceFunc]:
    """Map and reduce functions of an application named like "wc" or "../mrapps/wc.so"."""
    stem = os.path.basename(name)
    for suffix in (".so", ".py"):
        if stem.endswith(suffix):
            stem = stem[: -len(suffix)]
            break
    app = _APPS.get(stem)
    if app is None:
        raise LookupError(f"cannot load plugin {name}")
    return app.map_fn, app.reduce_fn


def run_sequential(
    mapf: MapFunc, reducef: ReduceFunc, filenames: Sequence[str], output: str = "mr-out-0"
) -> None:
    """Map every input, reduce each distinct key and write "key result" lines to output."""
    intermediate: List[KeyValue] = []
    for filename in filenames:
        with open(filename, **_ENCODING) as f:
            intermediate.extend(mapf(filename, f.read()))
    intermediate.sort(key=attrgetter("key"))
    with open(output, "w", **_ENCODING) as out:
        for key, group in groupby(intermediate, key=attrgetter("key")):
            out.write(f"{key} {reducef(key, [kv.value for kv in group])}\n")


def mrsequential_main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        print("Usage: mrsequential xxx.so inputfiles...", file=sys.stderr)
        return 1
    try:
        mapf, reducef = load_app(args[0])
        run_sequential(mapf, reducef, args[1:])
    except LookupError as exc:
        print(exc.args[0], file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"cannot open {exc.filename}", file=sys.stderr)
        return 1
    return 0


def mrcoordinator_main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("Usage: mrcoordinator inputfiles...", file=sys.stderr)
        return 1
    with make_coordinator(args, 10) as coordinator:
        while not coordinator.done():
            time.sleep(1)
        time.sleep(1)
    return 0


def mrworker_main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print("Usage: mrworker xxx.so", file=sys.stderr)
        return 1
    try:
        mapf, reducef = load_app(args[0])
        worker(mapf, reducef)
    except LookupError as exc:
        print(exc.args[0], file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"dialing: {exc}", file=sys.stderr)
        return 1
    return 0