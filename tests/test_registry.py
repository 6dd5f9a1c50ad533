from concurrent.futures import ThreadPoolExecutor

import pytest

from anystore.condition import parse_condition
from anystore.registry import FilterRegistry, SortRegistry
from anystore.sorting import parse_sort
from anystore.syncpool import SyncPool
from anystore.values import encode, parse


def val_from_json(text):
    return encode(parse(text))


def test_filter_registry_filter():
    fr = FilterRegistry(SyncPool(10000), 4)
    assert fr.register(parse_condition('{"f":0}')) == 1
    assert fr.register(parse_condition('{"f":1}')) == 2
    assert fr.register(parse_condition('{"f":2}')) == 3
    assert fr.filter(2, val_from_json('{"f":1}')) is True
    assert fr.filter(3, val_from_json('{"f":1}')) is False

    fr.release(2)
    assert fr.register(parse_condition('{"f":3}')) == 2
    assert fr.filter(2, val_from_json('{"f":3}')) is True


def test_sort_registry_sort():
    sr = SortRegistry(SyncPool(10000), 4)
    test_json = val_from_json('{"n0":0, "n1":1, "n2":2}')

    assert sr.register(parse_sort("n0")) == 1
    assert sr.register(parse_sort("n1")) == 2
    assert sr.register(parse_sort("n2")) == 3

    assert sr.sort(2, test_json) == encode(1)

    sr.release(2)
    assert sr.register(parse_sort("n2")) == 2
    assert sr.sort(2, test_json) == encode(2)


def test_sort_registry_concurrent():
    sr = SortRegistry(SyncPool(10000), 10)

    def work(i):
        test_obj = val_from_json(f'{{"f":{i}}}')
        entry_id = sr.register(parse_sort("f"))
        try:
            return bytes(sr.sort(entry_id, test_obj))
        finally:
            sr.release(entry_id)

    with ThreadPoolExecutor(max_workers=20) as pool:
        results = list(pool.map(work, range(2000)))
    assert results == [encode(i) for i in range(2000)]


def test_filter_registry_concurrent():
    fr = FilterRegistry(SyncPool(10000), 10)
    miss = val_from_json('{"f":-1}')

    def work(i):
        test_obj = val_from_json(f'{{"f":{i}}}')
        entry_id = fr.register(parse_condition({"f": i}))
        try:
            return (fr.filter(entry_id, test_obj), fr.filter(entry_id, miss))
        finally:
            fr.release(entry_id)

    with ThreadPoolExecutor(max_workers=20) as pool:
        results = list(pool.map(work, range(2000)))
    assert results == [(True, False)] * 2000


def test_release_unused_id_raises():
    fr = FilterRegistry(SyncPool(0), 2)
    with pytest.raises(ValueError):
        fr.release(1)


def test_filter_with_unregistered_id_raises():
    sr = SortRegistry(SyncPool(0), 2)
    with pytest.raises(ValueError):
        sr.sort(3, val_from_json('{"f":1}'))


def test_ids_are_reused_in_order():
    fr = FilterRegistry(SyncPool(0), 3)
    ids = [fr.register(parse_condition(None)) for _ in range(3)]
    assert ids == [1, 2, 3]
    fr.release(1)
    fr.release(3)
    assert fr.register(parse_condition(None)) == 1
    assert fr.register(parse_condition(None)) == 3