import pytest

from decay_source.errors import ParseError
from decay_source.indices import resolve


def test_all_and_blank_select_every_step():
    assert resolve("all", 5) == [0, 1, 2, 3, 4]
    assert resolve("ALL", 5) == [0, 1, 2, 3, 4]
    assert resolve("", 5) == [0, 1, 2, 3, 4]
    assert resolve(None, 5) == [0, 1, 2, 3, 4]


def test_single_index():
    assert resolve("3", 5) == [3]
    assert resolve("5", 5) == []


def test_range_is_inclusive_and_clipped():
    assert resolve("1-3", 5) == [1, 2, 3]
    assert resolve("3-9", 5) == [3, 4]
    assert resolve("2-0", 5) == []


def test_list_is_sorted_deduplicated_and_filtered():
    assert resolve("1 3 4", 5) == [1, 3, 4]
    assert resolve("1 3 9", 5) == [1, 3]
    assert resolve("4 1 4 1", 5) == [1, 4]


def test_out_of_range_only_gives_empty_selection():
    assert resolve("7 8", 5) == []
    assert resolve("1", 0) == []


@pytest.mark.parametrize(
    "expr, token",
    [("x", "x"), ("1 two", "two"), ("-1", "-1"), ("3-", "3-"), ("1-b", "b"), ("1.5", "1.5"), ("\u00b2", "\u00b2"), ("1-\u00b2", "\u00b2")],
)
def test_bad_expressions_raise_parse_error(expr, token):
    with pytest.raises(ParseError) as exc:
        resolve(expr, 5)
    assert exc.value.expression == expr
    assert exc.value.token == token


@pytest.mark.parametrize("expr", ["all", "0", "2-4", "4-2", "0 2 2 9", "3-100"])
@pytest.mark.parametrize("n", [0, 1, 3, 5])
def test_result_is_sorted_unique_subset(expr, n):
    out = resolve(expr, n)
    assert out == sorted(set(out))
    assert all(0 <= i < n for i in out)
