import re

import pytest

from anystore.bound import Bound, Bounds
from anystore.filters import (
    MISSING,
    All,
    And,
    Comp,
    CompOp,
    Exists,
    In,
    Key,
    Nor,
    Not,
    Or,
    Regexp,
    Size,
    TypeFilter,
    extract_prefix,
    get_path,
    new_comp,
    new_in,
)
from anystore.values import ValueType, encode, format_key


def eq(value):
    return Comp(CompOp.EQ, encode(value), not isinstance(value, list))


def key(path, flt):
    return Key(tuple(path.split(".")), flt)


ONE = encode(1)


class TestComp:
    def test_eq(self):
        cmp = Comp(CompOp.EQ, ONE)
        assert cmp.ok(1)
        assert not cmp.ok(2)
        assert not cmp.ok(0)
        assert not cmp.ok(-1)
        assert not cmp.ok("1")

    def test_eq_bounds(self):
        bs = Comp(CompOp.EQ, ONE).index_bounds("")
        assert bs[0] == Bound(start=ONE, end=ONE, start_include=True, end_include=True)

    def test_eq_array(self):
        cmp = Comp(CompOp.EQ, ONE)
        assert cmp.ok([3, 2, 1])
        assert cmp.ok([1])
        assert cmp.ok([1, 2])
        assert not cmp.ok([])
        assert not cmp.ok([0, 2, 3])
        assert not cmp.ok(["1", 2])

    def test_eq_array_array(self):
        a_cmp = Comp(CompOp.EQ, encode([1, 2, 3]))
        assert a_cmp.ok([1, 2, 3])
        assert a_cmp.ok([[1, 2, 3], 1])

    def test_eq_empty_array(self):
        a_cmp = Comp(CompOp.EQ, encode([]))
        assert a_cmp.ok([])
        assert not a_cmp.ok([1])

    def test_ne(self):
        cmp = Comp(CompOp.NE, ONE)
        assert cmp.ok(2)
        assert cmp.ok(0)
        assert cmp.ok(-1)
        assert cmp.ok([0, 2, 3])
        assert not cmp.ok(1)
        assert not cmp.ok([0, 1, 3])

    def test_ne_array_array(self):
        a_cmp = Comp(CompOp.NE, encode([1, 2, 3]))
        assert not a_cmp.ok([1, 2, 3])
        assert not a_cmp.ok([[1, 2, 3], 1])
        assert a_cmp.ok([1, 2])

    def test_ne_bounds(self):
        bs = Comp(CompOp.NE, ONE).index_bounds("")
        assert bs == Bounds([Bound(end=ONE), Bound(start=ONE)])

    def test_gt(self):
        cmp = Comp(CompOp.GT, ONE)
        assert cmp.ok(2)
        assert cmp.ok(3)
        assert cmp.ok(1.1)
        assert not cmp.ok(1)
        assert not cmp.ok(0)
        assert cmp.index_bounds("") == Bounds([Bound(start=ONE)])

    def test_gte(self):
        cmp = Comp(CompOp.GTE, ONE)
        assert cmp.ok(2)
        assert cmp.ok(3)
        assert cmp.ok(1.0)
        assert not cmp.ok(0)
        assert cmp.index_bounds("") == Bounds([Bound(start=ONE, start_include=True)])

    def test_lt(self):
        cmp = Comp(CompOp.LT, ONE)
        assert cmp.ok(0)
        assert cmp.ok(-1)
        assert cmp.ok(0.9)
        assert not cmp.ok(1)
        assert not cmp.ok(2)
        assert cmp.index_bounds("") == Bounds([Bound(end=ONE)])

    def test_lte(self):
        cmp = Comp(CompOp.LTE, ONE)
        assert cmp.ok(1)
        assert cmp.ok(0)
        assert cmp.ok(0.9)
        assert not cmp.ok(2)
        assert cmp.index_bounds("") == Bounds([Bound(end=ONE, end_include=True)])

    def test_missing_is_null(self):
        assert new_comp(CompOp.EQ, None).ok(MISSING)
        assert not new_comp(CompOp.EQ, 1).ok(MISSING)

    def test_string(self):
        assert str(new_comp(CompOp.GT, 1.99)) == '{"$gt": 1.99}'
        assert str(new_comp(CompOp.EQ, {"b": "c"})) == '{"$eq": {"b":"c"}}'


AND_FILTER = And((key("a", eq(1)), key("b", eq("2"))))


def test_and_ok():
    assert AND_FILTER.ok({"a": 1, "b": "2", "c": 4})
    assert not AND_FILTER.ok({"a": 2, "b": "2", "c": 4})
    assert not AND_FILTER.ok({"a": 1, "b": 2, "c": 4})


def test_and_bounds():
    assert len(AND_FILTER.index_bounds("a")) == 1
    assert AND_FILTER.index_bounds("z") == Bounds()


def test_and_string():
    assert str(AND_FILTER) == '{"$and":[{"a": {"$eq": 1}}, {"b": {"$eq": "2"}}]}'


def test_or():
    f = Or((key("a", eq(1)), key("b", eq("2"))))
    assert f.ok({"a": 1, "b": "2", "c": 4})
    assert f.ok({"a": 1, "b": "3", "c": 4})
    assert not f.ok({"a": 12, "b": 2, "c": 4})
    assert f.index_bounds("a") == Bounds()
    f2 = Or((key("a", eq(1)), key("a", eq("2"))))
    assert len(f2.index_bounds("a")) == 2


def test_or_over_limit_keeps_bounds():
    existing = Bounds([Bound(start=ONE)])
    f = Or(tuple(key("a", eq(i)) for i in range(951)))
    assert f.index_bounds("a", existing) == existing


def test_nor():
    f = Nor((key("a", eq(1)), key("b", eq("2"))))
    assert not f.ok({"a": 1, "b": "2", "c": 4})
    assert not f.ok({"a": 1, "b": "3", "c": 4})
    assert f.ok({"a": 12, "b": 2, "c": 4})
    assert f.index_bounds("a") == Bounds()
    f2 = Nor((key("a", eq(1)), key("a", eq("2"))))
    assert len(f2.index_bounds("a")) == 0
    assert not Nor((key("a", eq(1)),)).ok({"a": 1, "b": "2", "c": 4})


def test_not():
    f = key("a", Not(Comp(CompOp.EQ, encode(2), True)))
    assert f.ok({"a": 1, "b": "2", "c": 4})
    assert f.ok({"a": 1, "b": "3", "c": 4})
    assert not f.ok({"a": 2, "b": 2, "c": 4})
    assert len(f.index_bounds("a")) == 0
    assert str(f) == '{"a": {"$not": {"$eq": 2}}}'


COMPLEX = And(
    (
        key("a", new_in([1, 2, 3])),
        key("b", And((eq(1), eq(2)))),
        key("c", eq("test")),
    )
)


def test_complex():
    assert COMPLEX.ok({"a": 2, "b": [3, 2, 1], "c": "test"})
    assert not COMPLEX.ok({"a": 1, "b": [3, 2], "c": "test"})
    assert len(COMPLEX.index_bounds("a")) == 3


def test_exists():
    f = key("a", Exists())
    assert f.ok({"a": 1})
    assert not f.ok({"b": 1})
    nf = key("a", Not(Exists()))
    assert not nf.ok({"a": 1})
    assert nf.ok({"b": 1})
    assert len(f.index_bounds("a")) == 0
    assert str(f) == '{"a": {"$exists": true}}'


def test_type_filter():
    f = key("a", TypeFilter(ValueType.NUMBER))
    assert f.ok({"a": 1})
    assert not f.ok({"a": "1"})
    bs = f.index_bounds("a")
    assert bs == Bounds([Bound(start=b"\x02", end=b"\x02\xff", start_include=True, end_include=True)])
    assert str(f) == '{"a": {"$type": "number"}}'


class TestRegexp:
    def test_ok(self):
        f = key("name", Regexp("a"))
        assert f.ok({"name": "a"})
        assert not f.ok({"name": "A"})
        assert not f.ok({"name": "b"})

    def test_case_insensitive(self):
        f = key("name", Regexp("^(?i)a"))
        assert not f.ok({"name": "baaa"})
        assert f.ok({"name": "A"})
        assert f.ok({"name": "a"})

    def test_array(self):
        f = key("name", Regexp("^(?i)a"))
        assert f.ok({"name": ["A", "B", "C"]})
        assert not f.ok({"name": ["baaa"]})
        assert f.ok({"name": ["baaa", "a"]})

    def test_number_and_missing(self):
        f = key("name", Regexp("^a(?i)"))
        assert not f.ok({"name": 1})
        assert not f.ok(MISSING)

    def test_mid_pattern_flag(self):
        assert Regexp("^a(?i)b").ok("aB")
        assert not Regexp("^a(?i)b").ok("AB")
        assert Regexp("x(?i)a|b").ok("B")

    def test_invalid(self):
        with pytest.raises(re.error):
            Regexp("(")
        with pytest.raises(re.error):
            Regexp("(?U)a")

    @pytest.mark.parametrize("pattern", ["prefix", "^(?i)prefix"])
    def test_no_prefix_bounds(self, pattern):
        assert len(key("name", Regexp(pattern)).index_bounds("name", Bounds())) == 0

    @pytest.mark.parametrize(
        "pattern, expected",
        [
            (r"^prefix\.test", '"prefix.test"'),
            (r"^prefix\.test{a-zA-z}*", '"prefix.test"'),
            ("^prefix+", '"prefix"'),
            (r"^\.a*", '".a"'),
        ],
    )
    def test_prefix_bounds(self, pattern, expected):
        bounds = key("name", Regexp(pattern)).index_bounds("name", Bounds())
        assert len(bounds) == 1
        assert format_key(bounds[0].start + b"\x00") == expected
        assert bounds[0].end == bounds[0].start + b"\xff"

    def test_extract_prefix(self):
        assert extract_prefix("^abc.d") == "abc"
        assert extract_prefix("abc") == ""
        assert extract_prefix("^(?i)abc") == ""


def test_size():
    f = key("name", Size(2))
    assert f.ok({"name": [1, 2]})
    assert not f.ok({"arr": [1, 2]})
    assert not f.ok({"name": "a"})
    assert not f.ok({"name": []})
    assert not f.ok({"name": [1]})
    assert not f.ok({"name": [1, 2, 3]})
    assert str(f) == '{"name": {"$size": 2}}'


DOC = {"a": 2, "b": [3, 2, 1], "c": "test"}


@pytest.mark.parametrize(
    "field, values, expected",
    [
        ("c", ["test"], True),
        ("a", ["42"], False),
        ("b", [1, 2], True),
        ("b", [1, 4], True),
        ("b", [8, 4], False),
    ],
)
def test_in(field, values, expected):
    assert key(field, new_in(values)).ok(DOC) is expected


def test_in_limit_and_string():
    assert str(new_in([1])) == '{"$in":[1]}'
    assert In(tuple(encode(i) for i in range(950))).index_bounds("a") == Bounds()
    assert not new_in([1]).ok(MISSING)


def test_all():
    assert All().ok({"x": 1})
    assert str(All()) == "null"
    assert All().index_bounds("a") == Bounds()


def test_get_path():
    doc = {"a": {"b": [10, {"c": 5}]}}
    assert get_path(doc, ["a", "b", "1", "c"]) == 5
    assert get_path(doc, ["a", "b", "0"]) == 10
    assert get_path(doc, ["a", "b", "5"]) is MISSING
    assert get_path(doc, ["a", "x"]) is MISSING
    assert get_path(None, ["a"]) is MISSING