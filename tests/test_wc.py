from distlab.mr.worker import KeyValue
from distlab.mrapps.wc import map_fn, reduce_fn


def test_map_emits_one_pair_per_word():
    result = map_fn("ignored.txt", "Hello, world! Hello")
    assert [kv.key for kv in result] == ["Hello", "world", "Hello"]
    assert all(kv.value == "1" for kv in result)


def test_map_splits_on_digits_and_punctuation():
    result = map_fn("f", "ab1cd_ef")
    assert [kv.key for kv in result] == ["ab", "cd", "ef"]


def test_map_keeps_non_ascii_letters_together():
    result = map_fn("f", "héllo wörld")
    assert result == [KeyValue("héllo", "1"), KeyValue("wörld", "1")]


def test_map_of_text_without_letters_is_empty():
    assert map_fn("f", "123 ... 456") == []


def test_reduce_counts_values():
    assert reduce_fn("word", ["1", "1", "1"]) == "3"
    assert reduce_fn("word", []) == "0"