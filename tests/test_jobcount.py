import os
from unittest import mock

from distlab.mr.worker import KeyValue
from distlab.mrapps.jobcount import map_fn, reduce_fn


def test_map_returns_single_pair_and_leaves_marker(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with mock.patch("time.sleep") as sleep_mock:
        assert map_fn("in.txt", "data") == [KeyValue("a", "x")]
    delay = sleep_mock.call_args[0][0]
    assert 2.0 <= delay < 5.0
    markers = [n for n in os.listdir(tmp_path) if n.startswith("mr-worker-jobcount")]
    assert len(markers) == 1
    assert str(os.getpid()) in markers[0]


def test_reduce_counts_map_runs(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "unrelated.txt").write_text("x")
    with mock.patch("time.sleep"):
        for _ in range(3):
            map_fn("in.txt", "data")
    assert reduce_fn("a", ["x", "x", "x"]) == "3"


def test_reduce_in_empty_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert reduce_fn("a", []) == "0"