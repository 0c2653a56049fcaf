"""
KB — Arithmetic Flatten/Fold Simplifier
Copyright (c) 2026 Alex P. Slaby — MIT License

Normal forms for n-ary sums and products:
  1. Flatten: a sum inside a sum (product inside product) is spliced in
  2. Fold: numeric literals are combined into one
  3. Neutral elements: 0 in sums and 1 in products disappear; 0 absorbs
     a product
  4. Degenerate shapes: empty sum is 0, empty product is 1, a single
     remaining operand replaces its parent
  5. Re-order: the folded literal first, then the other operands in a
     canonical order

Commutativity is handled here, explicitly, by re-ordering. Term equality
stays position-sensitive; `equivalent` compares modulo operand order.
"""

import hashlib
import operator
from functools import reduce

from kb import Term, T, Tag, KbError, render, postorder
from kb_normalize import BudgetExceeded, DEFAULT_BUDGET

# tag → (neutral element, binary fold)
_FOLDS = {
    Tag.SUM: (0, operator.add),
    Tag.PRODUCT: (1, operator.mul),
}


def _order_key(t: Term):
    return (int(t.tag), render(t))


def simplify(term: Term, budget=DEFAULT_BUDGET) -> Term:
    """
    Flatten and fold every sum and product in `term`.

    Args:
        term: Term to simplify.
        budget: Maximum number of nodes visited.

    Raises: BudgetExceeded.
    """
    visited = [0]

    def enter(t):
        visited[0] += 1
        if visited[0] > budget:
            raise BudgetExceeded(budget, term, "nodes")
        return t

    def leave(t, children):
        if t.tag in _FOLDS:
            return _fold(t.tag, children)
        return t.with_children(children) if children else t

    return postorder(term, leave, enter)


def _fold(tag: Tag, children: list) -> Term:
    neutral, combine = _FOLDS[tag]

    flat = []
    for c in children:
        if c.tag == tag:
            flat.extend(c.children)
        else:
            flat.append(c)

    literals = [c.data for c in flat if c.tag == Tag.NUM]
    rest = sorted((c for c in flat if c.tag != Tag.NUM), key=_order_key)
    value = reduce(combine, literals, neutral)

    if tag == Tag.PRODUCT and value == 0:
        return T.num(0)

    operands = ([T.num(value)] if value != neutral else []) + rest
    if not operands:
        return T.num(neutral)
    if len(operands) == 1:
        return operands[0]
    return Term(tag, tuple(operands))


# ═══════════════════════════════════════════════════════════════
# COMPARISON MODULO OPERAND ORDER
# ═══════════════════════════════════════════════════════════════

def multiset_equal(a, b, eq=operator.eq) -> bool:
    """True when `b` is a permutation of `a` under `eq`."""
    a, b = list(a), list(b)
    if len(a) != len(b):
        return False
    used = [False] * len(b)
    for item in a:
        for j, other in enumerate(b):
            if not used[j] and eq(item, other):
                used[j] = True
                break
        else:
            return False
    return True


def _canonical_digest(term: Term) -> bytes:
    # Sums and products hash their operand digests in sorted order
    def leave(n, digests):
        if n.tag in _FOLDS:
            digests = sorted(digests)
        h = hashlib.sha256()
        h.update(bytes([n.tag]))
        h.update(len(digests).to_bytes(4, "big"))
        h.update(repr(n.data).encode('utf-8'))
        for d in digests:
            h.update(d)
        return h.digest()
    return postorder(term, leave)


def equivalent(s: Term, t: Term) -> bool:
    """Structural equality, except sums and products ignore operand order."""
    return _canonical_digest(s) == _canonical_digest(t)


# ═══════════════════════════════════════════════════════════════
# EVALUATION
# ═══════════════════════════════════════════════════════════════

def evaluate(term: Term, env=None) -> int:
    """Integer value of an arithmetic term. Variables come from `env`."""
    env = env or {}

    def leave(n, values):
        if n.tag == Tag.NUM:
            return n.data
        if n.tag == Tag.VAR:
            if n.data not in env:
                raise KbError(f"No value for variable '{n.data}'")
            return env[n.data]
        if n.tag in _FOLDS:
            neutral, combine = _FOLDS[n.tag]
            return reduce(combine, values, neutral)
        raise KbError(f"Not an arithmetic term: {n.tag.name}")

    return postorder(term, leave)
