#!/usr/bin/env python3
"""
KB Property-Based Tests — Hypothesis Fuzzing
Copyright (c) 2026 Alex P. Slaby — MIT License

Fuzz-tests core rewriting invariants:
  1. Normalization idempotence:  normalize(normalize(t)) ≡ normalize(t)
  2. Determinism:                repeated normalize(t) calls agree
  3. Soundness:                  normal forms keep truth / integer values
  4. Ordering:                   total and antisymmetric on ground terms
  5. Unifier soundness:          σ(s) ≡ σ(t) whenever unify(s, t) = σ
  6. Simplifier:                 value-preserving, idempotent, order-blind

Run:  pytest tests/test_property.py -v
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from hypothesis import given, settings, HealthCheck
from hypothesis import strategies as st

from kb import T, match
from kb_normalize import normalize
from kb_order import compare, greater, Order
from kb_unify import unify, resolve
from kb_complete import complete
from kb_boolean import boolean_identities, BOOLEAN_AXIOMS, evaluate as truth
from kb_arith import simplify, equivalent, evaluate as value

VAR_NAMES = ["a", "b", "c"]
TABLE = boolean_identities()
COMPLETED = complete(BOOLEAN_AXIOMS)


# ═══════════════════════════════════════════════════════════════
# STRATEGIES — Random term generation
# ═══════════════════════════════════════════════════════════════

def bool_leaf(ground=False):
    leaves = [st.just(T.top()), st.just(T.bot())]
    if not ground:
        leaves.append(st.sampled_from(VAR_NAMES).map(T.var))
    return st.one_of(*leaves)


@st.composite
def bool_term(draw, max_depth=4, ground=False):
    """Random boolean term of bounded depth."""
    if max_depth <= 0:
        return draw(bool_leaf(ground))

    choice = draw(st.integers(min_value=0, max_value=4))
    if choice == 0:
        return draw(bool_leaf(ground))
    if choice == 1:
        return T.not_(draw(bool_term(max_depth=max_depth - 1, ground=ground)))
    lhs = draw(bool_term(max_depth=max_depth - 1, ground=ground))
    rhs = draw(bool_term(max_depth=max_depth - 1, ground=ground))
    return T.or_(lhs, rhs) if choice <= 2 else T.and_(lhs, rhs)


@st.composite
def arith_term(draw, max_depth=3):
    """Random sum/product tree over small literals and variables."""
    if max_depth <= 0 or draw(st.integers(min_value=0, max_value=3)) == 0:
        if draw(st.booleans()):
            return T.num(draw(st.integers(min_value=-20, max_value=20)))
        return T.var(draw(st.sampled_from(VAR_NAMES)))
    children = draw(st.lists(arith_term(max_depth=max_depth - 1), max_size=4))
    return T.sum(*children) if draw(st.booleans()) else T.product(*children)


truth_env = st.fixed_dictionaries({name: st.booleans() for name in VAR_NAMES})
int_env = st.fixed_dictionaries(
    {name: st.integers(min_value=-50, max_value=50) for name in VAR_NAMES})


# ═══════════════════════════════════════════════════════════════
# PROPERTY 1–3: Normalization
# ═══════════════════════════════════════════════════════════════

class TestNormalizeProperties:
    @given(t=bool_term())
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_idempotent(self, t):
        once = normalize(t, TABLE)
        assert normalize(once, TABLE) == once

    @given(t=bool_term())
    @settings(max_examples=100, suppress_health_check=[HealthCheck.too_slow])
    def test_deterministic(self, t):
        assert normalize(t, TABLE) == normalize(t, TABLE)

    @given(t=bool_term(ground=True))
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_ground_terms_reach_a_constant(self, t):
        expected = T.top() if truth(t) else T.bot()
        assert normalize(t, TABLE) == expected

    @given(t=bool_term(), env=truth_env)
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_table_preserves_truth(self, t, env):
        assert truth(normalize(t, TABLE), env) == truth(t, env)

    @given(t=bool_term(), env=truth_env)
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_completed_system_preserves_truth(self, t, env):
        assert truth(normalize(t, COMPLETED), env) == truth(t, env)

    @given(t=bool_term())
    @settings(max_examples=100, suppress_health_check=[HealthCheck.too_slow])
    def test_completed_system_idempotent(self, t):
        once = normalize(t, COMPLETED)
        assert normalize(once, COMPLETED) == once


class TestCompletedSystemProperties:
    def test_orientation(self):
        for r in COMPLETED:
            assert greater(r.lhs, r.rhs)

    @given(data=st.data())
    @settings(max_examples=50)
    def test_rules_are_true_identities(self, data):
        for r in COMPLETED:
            env = {v: data.draw(st.booleans()) for v in r.lhs.variables()}
            assert truth(r.lhs, env) == truth(r.rhs, env)


# ═══════════════════════════════════════════════════════════════
# PROPERTY 4–5: Ordering & Unification
# ═══════════════════════════════════════════════════════════════

class TestOrderingProperties:
    @given(s=bool_term(max_depth=3, ground=True), t=bool_term(max_depth=3, ground=True))
    @settings(max_examples=300, suppress_health_check=[HealthCheck.too_slow])
    def test_total_on_ground_terms(self, s, t):
        order = compare(s, t)
        if s == t:
            assert order == Order.EQUAL
        else:
            assert order in (Order.GREATER, Order.LESS)

    @given(s=bool_term(max_depth=3), t=bool_term(max_depth=3))
    @settings(max_examples=300, suppress_health_check=[HealthCheck.too_slow])
    def test_antisymmetric(self, s, t):
        assert not (greater(s, t) and greater(t, s))


class TestUnifyProperties:
    @given(s=bool_term(max_depth=3), t=bool_term(max_depth=3))
    @settings(max_examples=300, suppress_health_check=[HealthCheck.too_slow])
    def test_unifier_equalizes(self, s, t):
        sigma = unify(s, t)
        if sigma is not None:
            assert resolve(s, sigma) == resolve(t, sigma)

    @given(s=bool_term(max_depth=3), t=bool_term(max_depth=3, ground=True))
    @settings(max_examples=300, suppress_health_check=[HealthCheck.too_slow])
    def test_match_implies_unify(self, s, t):
        if match(t, s, {}):
            assert unify(s, t) is not None


# ═══════════════════════════════════════════════════════════════
# PROPERTY 6: Arithmetic Simplifier
# ═══════════════════════════════════════════════════════════════

class TestArithProperties:
    @given(t=arith_term(), env=int_env)
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_preserves_value(self, t, env):
        assert value(simplify(t), env) == value(t, env)

    @given(t=arith_term())
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_idempotent(self, t):
        once = simplify(t)
        assert simplify(once) == once

    @given(data=st.data(), children=st.lists(arith_term(max_depth=2), max_size=5))
    @settings(max_examples=100, suppress_health_check=[HealthCheck.too_slow])
    def test_operand_order_irrelevant(self, data, children):
        shuffled = data.draw(st.permutations(children))
        assert simplify(T.sum(*shuffled)) == simplify(T.sum(*children))
        assert equivalent(T.product(*shuffled), T.product(*children))


# ═══════════════════════════════════════════════════════════════

if __name__ == "__main__":
    import pytest
    sys.exit(pytest.main([__file__, '-v', '--tb=short']))
