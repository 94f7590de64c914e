# distlab

Building blocks for experimenting with distributed systems in plain Python.
No third-party dependencies; Python 3.10 or later on a POSIX system (the
MapReduce coordinator listens on a UNIX-domain socket).

## What is in it

- **`distlab.labgob`**: a self-describing binary encoding for values sent
  over RPC or persisted. It handles `None`, `bool`, `int`, `float`, `str`,
  `bytes`, lists, tuples, dicts and dataclass instances. Write with
  `LabEncoder(stream).encode(value)`, read with `LabDecoder(stream).decode()`
  or `decode_into(target)`, which copies the decoded fields onto an existing
  dataclass instance. Dataclass fields whose names start with an underscore
  are never transmitted, and the encoder logs a warning about them once per
  class. `decode_into` also warns when the target already holds non-default
  values. `error_count()` reports how many such problems have been noted.
  Dataclasses are found again on decoding by name: `register(cls)` or
  `register_name(name, cls)` them in the decoding process.
- **`distlab.labrpc`**: an in-process simulated network. `Network.make_end`
  creates a client end, `Server` groups one or more `Service` objects, and
  `Network.add_server`, `connect` and `enable` wire them up. The network can
  drop and delay messages (`reliable(False)`), delay calls on disabled ends
  for up to seven seconds (`long_delays(True)`), delay replies
  (`long_reordering(True)`), and remove servers (`delete_server`), which
  makes calls in flight to that server fail. `ClientEnd.call` returns the
  reply or raises `CallFailed`. `get_count`, `get_total_count` and
  `get_total_bytes` report traffic. A `Network` is a context manager that
  calls `cleanup()` on exit.
- **`distlab.mr`**: a MapReduce `Coordinator` (`make_coordinator(files,
  n_reduce)` creates one and starts serving), a `worker(mapf, reducef)` loop
  and the messages they exchange (`distlab.mr.rpc`).
- **`distlab.mrapps`**: MapReduce applications, each a module with
  `map_fn` and `reduce_fn`: `wc` (word count), `indexer` (inverted index),
  and `crash`, `nocrash`, `early_exit`, `jobcount`, `mtiming` and `rtiming`
  for exercising fault tolerance and parallelism. `crash` really does end
  the worker process about a third of the time; `jobcount`, `mtiming` and
  `rtiming` leave marker files in the current directory.
- **`distlab.kvraft.client`**: a key/value `Clerk` with `get`, `put` and
  `append`. It tags each request with its client id and a sequence number
  and tries the servers in turn, starting with the last one that answered
  `Err.OK`, until one does or the request timeout (100 s by default) runs
  out. `get` returns `""` when the key is absent or nobody answered in time.
- **`distlab.models.kv`**: a sequential key/value model for checking
  histories of operations: `partition` splits a history of `KvOperation`s by
  key, `init_state` and `step` give the state of one key, and
  `describe_operation` renders an operation as text.

## Running MapReduce

An application is named by its module in `distlab.mrapps`, such as `wc` or
`indexer` (a path or a `.so`/`.py` suffix is ignored).

Sequentially, in one process, writing the result to `mr-out-0`:

```
mrsequential wc pg-*.txt
```

Distributed, with one coordinator and any number of workers started from
the same directory:

```
mrcoordinator pg-*.txt
mrworker wc
mrworker wc
```

The coordinator makes one map task per input file and ten reduce tasks.
Map output goes to `mr-<map>-<reduce>` files (one JSON object per line) and
reduce output to `mr-out-<reduce>`. A task whose output files are not there
ten seconds after it was handed out goes back in the queue. The coordinator
exits a second after every reduce task is done. Workers exit when the
coordinator tells them to; a worker that cannot reach the coordinator
prints the error and exits with status 1.

Each line of reduce output has the form `<key> <value>`, keys sorted within
a file.

## Using the library

```python
from distlab.cli import run_sequential
from distlab.mrapps import wc

run_sequential(wc.map_fn, wc.reduce_fn, ["a.txt", "b.txt"], "mr-out-0")
```

A service is any object; each public method that takes exactly one argument
is a handler, called with the decoded arguments, and what it returns is the
reply. The service is addressed by its class name.

```python
from distlab.labrpc import CallFailed, Network, Server, Service


class Echo:
    def Shout(self, text):
        return text.upper()


with Network() as net:
    end = net.make_end("client-1")
    server = Server()
    server.add_service(Service(Echo()))
    net.add_server("server-1", server)
    net.connect("client-1", "server-1")
    net.enable("client-1", True)

    try:
        print(end.call("Echo.Shout", "hello"))  # HELLO
    except CallFailed:
        print("no reply")
```

## What it does not do

- There is no key/value server and no consensus (Raft) implementation. The
  `Clerk` needs servers reachable through `labrpc` that handle
  `KVServer.Get` and `KVServer.PutAppend`, taking `GetArgs` and
  `PutAppendArgs` and returning `GetReply` and `PutAppendReply`.
- `distlab.models.kv` is only the model; there is no linearizability
  checker that searches a history with it.

## Tests

```
pip install .[test]
pytest
```