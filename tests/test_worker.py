import json
import os
import random
import threading

import pytest

from distlab.labrpc import CallFailed
from distlab.mr.coordinator import Coordinator, file_exists
from distlab.mr.rpc import ExampleArgs, MapTask
from distlab.mr.worker import (
    KeyValue,
    call,
    call_example,
    execute_map,
    execute_reduce,
    ihash,
    worker,
)


def word_map(filename, contents):
    return [KeyValue(word, "1") for word in contents.split()]


def count_reduce(key, values):
    return str(len(values))


def read_pairs(path):
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f]


@pytest.fixture
def start_coordinator(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    fake_uid = 500000 + random.randrange(400000)
    monkeypatch.setattr(os, "getuid", lambda: fake_uid)
    started = []

    def start(files, n_reduce):
        coordinator = Coordinator(files, n_reduce, task_timeout=30.0)
        coordinator.serve()
        started.append(coordinator)
        return coordinator

    yield start
    for coordinator in started:
        coordinator.close()


def test_ihash_of_empty_is_offset_basis():
    assert ihash("") == 2166136261 & 0x7FFFFFFF


def test_ihash_is_stable_and_non_negative():
    for key in ["a", "hello", "sherlock", "ünïcode"]:
        assert ihash(key) == ihash(key)
        assert 0 <= ihash(key) <= 0x7FFFFFFF


def test_execute_map_line_format(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "in.txt").write_text("ignored")
    assert not file_exists("mr-3-0")
    execute_map(MapTask("in.txt", 3), lambda name, text: [KeyValue("a", "1")], 1)
    assert file_exists("mr-3-0")
    assert (tmp_path / "mr-3-0").read_text() == '{"Key":"a","Value":"1"}\n'


def test_execute_map_partitions_by_hash(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "in.txt").write_text("a b c a d")
    execute_map(MapTask("in.txt", 5), word_map, 3)
    total = 0
    for idx in range(3):
        pairs = read_pairs(tmp_path / f"mr-5-{idx}")
        total += len(pairs)
        assert all(ihash(p["Key"]) % 3 == idx for p in pairs)
    assert total == 5
    assert not [p for p in os.listdir(tmp_path) if p.startswith("temp")]


def test_execute_reduce_groups_sorted_keys(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "mr-0-2").write_text('{"Key":"b","Value":"z"}\n{"Key":"a","Value":"y"}\n')
    (tmp_path / "mr-1-2").write_text('{"Key":"a","Value":"x"}\n')
    assert not file_exists("mr-out-2")
    execute_reduce(2, lambda key, values: " ".join(sorted(values)), 2)
    assert file_exists("mr-out-2")
    assert (tmp_path / "mr-out-2").read_text() == "a x y\nb z\n"


def test_execute_reduce_stops_at_bad_line(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "mr-0-0").write_text('{"Key":"k","Value":"1"}\nnot json\n{"Key":"q","Value":"1"}\n')
    assert not file_exists("mr-out-0")
    execute_reduce(0, count_reduce, 1)
    assert file_exists("mr-out-0")
    assert (tmp_path / "mr-out-0").read_text() == "k 1\n"


def test_execute_reduce_missing_input(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        execute_reduce(0, count_reduce, 1)


def test_map_then_reduce_roundtrip(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "one.txt").write_text("x y x")
    (tmp_path / "two.txt").write_text("y x")
    for task_id, name in enumerate(["one.txt", "two.txt"]):
        execute_map(MapTask(name, task_id), word_map, 2)
    for r in range(2):
        execute_reduce(r, count_reduce, 2)
    lines = sorted(
        line
        for r in range(2)
        for line in (tmp_path / f"mr-out-{r}").read_text().splitlines()
    )
    assert lines == ["x 3", "y 2"]


def test_worker_runs_job_to_completion(start_coordinator, tmp_path):
    (tmp_path / "a.txt").write_text("a b a")
    (tmp_path / "b.txt").write_text("b c")
    coordinator = start_coordinator(["a.txt", "b.txt"], 3)
    thread = threading.Thread(target=worker, args=(word_map, count_reduce), daemon=True)
    thread.start()
    thread.join(timeout=20)
    assert not thread.is_alive()
    assert coordinator.done()
    lines = sorted(
        line
        for r in range(3)
        for line in (tmp_path / f"mr-out-{r}").read_text().splitlines()
    )
    assert lines == ["a 2", "b 2", "c 1"]


def test_call_example_prints_reply(start_coordinator, capsys):
    start_coordinator([], 1)
    assert call_example() == 100
    assert capsys.readouterr().out == "reply.Y 100\n"


def test_call_unknown_method_fails(start_coordinator):
    start_coordinator([], 1)
    with pytest.raises(CallFailed):
        call("Coordinator.Nope", ExampleArgs(x=1))