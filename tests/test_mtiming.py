import os
import time
from unittest import mock

from distlab.mrapps.mtiming import map_fn, nparallel, reduce_fn


def test_nparallel_alone_counts_self(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with mock.patch("time.sleep") as sleep_mock:
        assert nparallel("map") == 1
    sleep_mock.assert_called_once_with(1)


def test_map_reports_time_and_parallelism(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    pid = os.getpid()
    before = time.time()
    with mock.patch("time.sleep"):
        result = map_fn("in.txt", "data")
    assert [kv.key for kv in result] == [f"times-{pid}", f"parallel-{pid}"]
    assert abs(float(result[0].value) - before) < 5
    assert result[1].value == "1"


def test_reduce_sorts_values():
    assert reduce_fn("k", ["2", "1", "3"]) == "1 2 3"