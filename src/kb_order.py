"""
KB — Term Ordering
Copyright (c) 2026 Alex P. Slaby — MIT License

Knuth-Bendix ordering over terms. Used to orient equations into rules
and to certify that every accepted rule strictly decreases its input.

  s ≻ t  iff  every variable occurs in s at least as often as in t, and
    1. weight(s) > weight(t), or
    2. equal weight, and t is a variable occurring in s, or
    3. equal weight, and head(s) beats head(t) in precedence, or
    4. same head, and s has more children, or
    5. same head and arity, and the first differing child of s is ≻
       the corresponding child of t.

All weights are positive, so the ordering is well-founded and total on
ground terms.
"""

from collections import Counter
from enum import Enum

from kb import Term, Tag, Rule

# Every symbol weighs 1: weight is term size.
DEFAULT_WEIGHTS = {tag: 1 for tag in Tag}

# Lowest first. Numbers rank among themselves by value.
DEFAULT_PRECEDENCE = (
    Tag.NUM, Tag.BOT, Tag.TOP, Tag.SUM, Tag.PRODUCT, Tag.OR, Tag.AND, Tag.NOT,
)


class Order(Enum):
    GREATER = ">"
    LESS = "<"
    EQUAL = "="
    INCOMPARABLE = "?"


class TermOrdering:
    """A Knuth-Bendix ordering with configurable weights and precedence."""

    def __init__(self, weights=None, precedence=None):
        self.weights = dict(DEFAULT_WEIGHTS)
        if weights:
            self.weights.update(weights)
        if any(w <= 0 for w in self.weights.values()):
            raise ValueError("All symbol weights must be positive")
        precedence = tuple(precedence or DEFAULT_PRECEDENCE)
        missing = [t.name for t in Tag if t != Tag.VAR and t not in precedence]
        if missing:
            raise ValueError(f"Precedence is missing: {', '.join(missing)}")
        self.rank = {tag: i for i, tag in enumerate(precedence)}

    def weight(self, t: Term) -> int:
        total = 0
        stack = [t]
        while stack:
            n = stack.pop()
            total += self.weights[n.tag]
            stack.extend(n.children)
        return total

    def _precedence(self, t: Term):
        return (self.rank[t.tag], t.data if t.tag == Tag.NUM else 0)

    @staticmethod
    def _var_counts(t: Term) -> Counter:
        counts = Counter()
        stack = [t]
        while stack:
            n = stack.pop()
            if n.tag == Tag.VAR:
                counts[n.data] += 1
            else:
                stack.extend(n.children)
        return counts

    def greater(self, s: Term, t: Term) -> bool:
        """s ≻ t"""
        # The lexicographic case descends into the first differing child
        while True:
            verdict = self._greater_at_root(s, t)
            if verdict is not None:
                return verdict
            s, t = next((a, b) for a, b in zip(s.children, t.children) if a != b)

    def _greater_at_root(self, s: Term, t: Term):
        """True or False when decided here; None to compare children."""
        if s == t or s.is_var:
            return False
        if t.is_var:
            return t.data in self._var_counts(s)

        vs, vt = self._var_counts(s), self._var_counts(t)
        if any(vs[x] < n for x, n in vt.items()):
            return False

        ws, wt = self.weight(s), self.weight(t)
        if ws != wt:
            return ws > wt

        ps, pt = self._precedence(s), self._precedence(t)
        if ps != pt:
            return ps > pt

        if s.arity != t.arity:
            return s.arity > t.arity
        return None

    def compare(self, s: Term, t: Term) -> Order:
        if s == t:
            return Order.EQUAL
        if self.greater(s, t):
            return Order.GREATER
        if self.greater(t, s):
            return Order.LESS
        return Order.INCOMPARABLE

    def orient(self, s: Term, t: Term):
        """Rule from the larger side to the smaller, or None if unorientable."""
        order = self.compare(s, t)
        if order == Order.GREATER:
            return Rule(s, t)
        if order == Order.LESS:
            return Rule(t, s)
        return None

    def decreasing(self, r: Rule) -> bool:
        return self.greater(r.lhs, r.rhs)


DEFAULT_ORDERING = TermOrdering()


def greater(s, t, ordering=None):
    return (ordering or DEFAULT_ORDERING).greater(s, t)


def compare(s, t, ordering=None):
    return (ordering or DEFAULT_ORDERING).compare(s, t)


def orient(s, t, ordering=None):
    return (ordering or DEFAULT_ORDERING).orient(s, t)
