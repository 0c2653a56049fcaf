"""
KB — Unification & Critical Pairs
Copyright (c) 2026 Alex P. Slaby — MIT License

Superposition support for completion:
  - Positions: paths of child indices from the root
  - Syntactic unification with occurs check (triangular substitutions)
  - Renaming apart, so two rules never share a variable
  - Critical pairs: unify one rule's lhs with a non-variable subterm of
    another's, then rewrite the overlap both ways
"""

from kb import Term, Tag, Rule, postorder, rebuild


# ═══════════════════════════════════════════════════════════════
# POSITIONS
# ═══════════════════════════════════════════════════════════════

def positions(t: Term) -> list:
    """Non-variable positions of `t` in pre-order. The root is ()."""
    result = []
    stack = [((), t)]
    while stack:
        pos, n = stack.pop()
        if n.is_var:
            continue
        result.append(pos)
        for i in reversed(range(n.arity)):
            stack.append((pos + (i,), n.children[i]))
    return result


def subterm_at(t: Term, pos: tuple) -> Term:
    for i in pos:
        t = t.children[i]
    return t


def replace_at(t: Term, pos: tuple, new: Term) -> Term:
    path = []
    for i in pos:
        path.append((t, i))
        t = t.children[i]
    for parent, i in reversed(path):
        children = list(parent.children)
        children[i] = new
        new = parent.with_children(children)
    return new


# ═══════════════════════════════════════════════════════════════
# RENAMING
# ═══════════════════════════════════════════════════════════════

def rename(t: Term, mapping: dict) -> Term:
    """Rename variables by name. Names missing from `mapping` are kept."""
    def leave(n, children):
        if not n.is_var:
            return rebuild(n, children)
        name = mapping.get(n.data, n.data)
        return n if name == n.data else Term(Tag.VAR, data=name)
    return postorder(t, leave)


def rename_apart(r: Rule, avoid) -> Rule:
    """Copy of `r` whose variables are disjoint from the names in `avoid`."""
    avoid = set(avoid)
    mapping = {}
    for v in r.variables():
        name = v
        while name in avoid:
            name += "'"
        mapping[v] = name
        avoid.add(name)
    return Rule(rename(r.lhs, mapping), rename(r.rhs, mapping))


# ═══════════════════════════════════════════════════════════════
# UNIFICATION
# ═══════════════════════════════════════════════════════════════

def _walk(t: Term, subst: dict) -> Term:
    while t.is_var and t.data in subst:
        t = subst[t.data]
    return t


def _occurs(name: str, t: Term, subst: dict) -> bool:
    stack = [t]
    while stack:
        n = _walk(stack.pop(), subst)
        if n.is_var:
            if n.data == name:
                return True
        else:
            stack.extend(n.children)
    return False


def unify(s: Term, t: Term, subst=None):
    """
    Most general unifier of `s` and `t`, extending `subst`.

    Returns a new triangular substitution (apply with `resolve`), or None
    when the terms do not unify. The input `subst` is never modified.
    """
    subst = dict(subst or {})
    stack = [(s, t)]
    while stack:
        a, b = stack.pop()
        a, b = _walk(a, subst), _walk(b, subst)
        if a == b:
            continue
        if a.is_var:
            if _occurs(a.data, b, subst):
                return None
            subst[a.data] = b
            continue
        if b.is_var:
            if _occurs(b.data, a, subst):
                return None
            subst[b.data] = a
            continue
        if a.tag != b.tag or a.data != b.data or a.arity != b.arity:
            return None
        stack.extend(zip(a.children, b.children))
    return subst


def resolve(t: Term, subst: dict) -> Term:
    """Apply a triangular substitution until no bound variable remains."""
    return postorder(t, enter=lambda n: _walk(n, subst))


# ═══════════════════════════════════════════════════════════════
# CRITICAL PAIRS
# ═══════════════════════════════════════════════════════════════

def critical_pairs(outer: Rule, inner: Rule, same=False) -> list:
    """
    Critical pairs from superposing `inner.lhs` into `outer.lhs`.

    For every non-variable position p of outer.lhs where outer.lhs|p
    unifies with inner.lhs under σ, the overlap outer.lhs·σ rewrites to

        outer.rhs·σ                      (outer rule at the root)
        outer.lhs·σ[inner.rhs·σ]_p       (inner rule at p)

    `same` marks a rule superposed with itself; its root overlap is the
    rule itself and is skipped.

    Returns: list of (left, right, position) tuples.
    """
    inner = rename_apart(inner, outer.variables())
    pairs = []
    for pos in positions(outer.lhs):
        if same and not pos:
            continue
        sigma = unify(subterm_at(outer.lhs, pos), inner.lhs)
        if sigma is None:
            continue
        left = resolve(outer.rhs, sigma)
        right = resolve(replace_at(outer.lhs, pos, inner.rhs), sigma)
        pairs.append((left, right, pos))
    return pairs


def tidy_variables(*terms: Term) -> list:
    """Rename variables to x1, x2, ... in order of first occurrence."""
    order = []
    for t in terms:
        for v in t.variables():
            if v not in order:
                order.append(v)
    mapping = {v: f"x{i}" for i, v in enumerate(order, 1)}
    return [rename(t, mapping) for t in terms]
