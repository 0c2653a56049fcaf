#!/usr/bin/env python3
"""
KB Test Suite — arithmetic flatten/fold simplifier
Copyright (c) 2026 Alex P. Slaby — MIT License

Run:  pytest tests/ -v
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

from kb import T, Tag, KbError
from kb_normalize import BudgetExceeded
from kb_arith import simplify, multiset_equal, equivalent, evaluate

x, y = T.vars("x y")
n = T.num


class TestFold:
    def test_sum_of_literals(self):
        assert simplify(T.sum(n(9), n(10), n(2))) == n(21)

    def test_empty_product_is_one(self):
        result = simplify(T.product())
        assert result == n(1)
        assert result.data == 1

    def test_empty_sum_is_zero(self):
        assert simplify(T.sum()) == n(0)

    def test_product_keeps_product_tag(self):
        result = simplify(T.product(x, n(2), n(3)))
        assert result.tag == Tag.PRODUCT
        assert result == T.product(n(6), x)

    def test_sum_keeps_sum_tag(self):
        result = simplify(T.sum(x, n(2), n(3)))
        assert result.tag == Tag.SUM
        assert result == T.sum(n(5), x)

    def test_flatten_nested_sum(self):
        t = T.sum(x, T.sum(n(1), n(2)), n(0))
        assert simplify(t) == T.sum(n(3), x)

    def test_flatten_nested_product(self):
        t = T.product(n(2), T.product(x, n(3)))
        assert simplify(t) == T.product(n(6), x)

    def test_zero_absorbs_product(self):
        assert simplify(T.product(x, T.sum(y, n(1)), n(0))) == n(0)

    def test_neutral_elements_dropped(self):
        assert simplify(T.product(x, n(1))) == x
        assert simplify(T.sum(n(0), x)) == x

    def test_mixed(self):
        t = T.sum(T.product(y, x), n(1))
        assert simplify(t) == T.sum(n(1), T.product(x, y))

    def test_canonical_order(self):
        assert simplify(T.sum(y, x)) == T.sum(x, y)
        assert simplify(T.sum(y, x)) == simplify(T.sum(x, y))

    def test_singleton_product_collapses_into_sum(self):
        t = T.sum(n(1), T.product(T.sum(x, n(2))))
        assert simplify(t) == T.sum(n(3), x)

    def test_other_operators_pass_through(self):
        t = T.or_(x, T.sum(n(1), n(1)))
        assert simplify(t) == T.or_(x, n(2))

    def test_idempotent(self):
        t = T.sum(y, T.product(n(2), x, T.product(n(5))), T.sum(n(4), x))
        once = simplify(t)
        assert simplify(once) == once

    def test_budget(self):
        with pytest.raises(BudgetExceeded) as e:
            simplify(T.sum(x, y), budget=2)
        assert e.value.resource == "nodes"

    def test_deep_sum_nest(self):
        t = n(1)
        for _ in range(3000):
            t = T.sum(t, n(1))
        assert simplify(t) == n(3001)

    def test_deep_alternating_nest(self):
        t = x
        for _ in range(2000):
            t = T.product(T.sum(t, n(0)), n(1))
        assert simplify(t) == x

    def test_deep_nest_flattens_and_is_idempotent(self):
        t = x
        for _ in range(500):
            t = T.sum(t, x)
        once = simplify(t)
        assert once.tag == Tag.SUM
        assert once.arity == 501
        assert simplify(once) == once
        assert evaluate(once, {"x": 2}) == evaluate(t, {"x": 2}) == 1002


class TestMultiset:
    def test_permutation(self):
        assert multiset_equal([1, 2, 2], [2, 1, 2])

    def test_multiplicity(self):
        assert not multiset_equal([1, 2, 2], [1, 1, 2])
        assert not multiset_equal([x, x], [x, y])

    def test_lengths(self):
        assert not multiset_equal([1], [1, 1])
        assert multiset_equal([], [])

    def test_custom_equality(self):
        assert multiset_equal(["a", "B"], ["b", "A"], lambda p, q: p.lower() == q.lower())

    def test_equivalent_modulo_order(self):
        s = T.sum(x, T.product(y, n(2)))
        t = T.sum(T.product(n(2), y), x)
        assert equivalent(s, t)
        assert s != t

    def test_equivalent_is_tag_sensitive(self):
        assert not equivalent(T.sum(x, y), T.product(x, y))
        assert not equivalent(T.or_(x, y), T.or_(y, x))

    def test_equivalent_deep(self):
        s, t = x, x
        for _ in range(3000):
            s = T.sum(s, y)
            t = T.sum(y, t)
        assert s != t
        assert equivalent(s, t)
        assert not equivalent(s, T.product(s.children[0], y))


class TestEvaluate:
    def test_values(self):
        assert evaluate(T.sum(n(2), T.product(x, n(3))), {"x": 4}) == 14
        assert evaluate(T.product()) == 1
        assert evaluate(T.sum()) == 0

    def test_unbound_variable(self):
        with pytest.raises(KbError):
            evaluate(x)

    def test_not_arithmetic(self):
        with pytest.raises(KbError):
            evaluate(T.top())


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, '-v', '--tb=short']))
