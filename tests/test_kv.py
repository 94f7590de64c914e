from distlab.models.kv import (
    KvInput,
    KvOperation,
    KvOutput,
    describe_operation,
    init_state,
    partition,
    step,
)


def op(kind, key, value="", out="", t=0):
    return KvOperation(KvInput(kind, key, value), KvOutput(out), call=t, ret=t + 1)


def test_partition_groups_by_sorted_key_preserving_order():
    history = [op(1, "b", "1", t=0), op(1, "a", "2", t=1), op(0, "b", out="1", t=2), op(2, "a", "3", t=3)]
    groups = partition(history)
    assert [[o.input.key for o in g] for g in groups] == [["a", "a"], ["b", "b"]]
    assert groups[0] == [history[1], history[3]]
    assert groups[1] == [history[0], history[2]]


def test_partition_of_empty_history():
    assert partition([]) == []


def test_get_must_match_state():
    state = init_state()
    assert step(state, KvInput(KvInput.GET, "k"), KvOutput("")) == (True, state)
    assert step("v", KvInput(KvInput.GET, "k"), KvOutput("w")) == (False, "v")


def test_put_replaces_and_append_extends():
    ok, state = step(init_state(), KvInput(KvInput.PUT, "k", "x"), KvOutput())
    assert ok and state == "x"
    ok, state = step(state, KvInput(KvInput.APPEND, "k", "y"), KvOutput())
    assert ok and state == "xy"
    assert step(state, KvInput(KvInput.GET, "k"), KvOutput("xy")) == (True, "xy")


def test_describe_operations():
    assert describe_operation(KvInput(0, "k"), KvOutput("v")) == "get('k') -> 'v'"
    assert describe_operation(KvInput(1, "k", "v"), KvOutput()) == "put('k', 'v')"
    assert describe_operation(KvInput(2, "k", "v"), KvOutput()) == "append('k', 'v')"
    assert describe_operation(KvInput(7, "k"), KvOutput()) == "<invalid>"