from distlab.mrapps.indexer import map_fn, reduce_fn


def test_map_emits_each_word_once():
    result = map_fn("doc1", "the cat the dog")
    keys = [kv.key for kv in result]
    assert sorted(keys) == ["cat", "dog", "the"]
    assert len(keys) == len(set(keys))


def test_map_values_are_the_document_name():
    result = map_fn("doc1", "alpha beta, gamma")
    assert {kv.value for kv in result} == {"doc1"}


def test_reduce_sorts_and_counts_documents():
    assert reduce_fn("word", ["b", "a", "c"]) == "3 a,b,c"


def test_reduce_count_matches_joined_names():
    out = reduce_fn("word", ["x.txt", "y.txt"])
    count, names = out.split(" ", 1)
    assert int(count) == len(names.split(","))