"""
KB — Boolean Identities
Copyright (c) 2026 Alex P. Slaby — MIT License

Fixed rule tables and axiom sets over ⊤, ⊥, ∨, ∧, ¬, plus a reference
evaluator used to check that rewriting preserves truth values.
"""

from kb import T, Tag, Rule, RewriteSystem, KbError, postorder
from kb_complete import Equation

x, y = T.vars("x y")
TOP, BOT = T.top(), T.bot()


def or_identities() -> RewriteSystem:
    """x ∨ ⊤ → ⊤,  ⊤ ∨ x → ⊤,  x ∨ ⊥ → x,  ⊥ ∨ x → x,  x ∨ x → x"""
    return RewriteSystem([
        Rule(T.or_(x, TOP), TOP),
        Rule(T.or_(TOP, x), TOP),
        Rule(T.or_(x, BOT), x),
        Rule(T.or_(BOT, x), x),
        Rule(T.or_(x, x), x),
    ])


def and_identities() -> RewriteSystem:
    return RewriteSystem([
        Rule(T.and_(x, TOP), x),
        Rule(T.and_(TOP, x), x),
        Rule(T.and_(x, BOT), BOT),
        Rule(T.and_(BOT, x), BOT),
        Rule(T.and_(x, x), x),
    ])


def not_identities() -> RewriteSystem:
    return RewriteSystem([
        Rule(T.not_(TOP), BOT),
        Rule(T.not_(BOT), TOP),
        Rule(T.not_(T.not_(x)), x),
        Rule(T.or_(x, T.not_(x)), TOP),
        Rule(T.or_(T.not_(x), x), TOP),
        Rule(T.and_(x, T.not_(x)), BOT),
        Rule(T.and_(T.not_(x), x), BOT),
    ])


def boolean_identities() -> RewriteSystem:
    return RewriteSystem(
        list(or_identities()) + list(and_identities()) + list(not_identities()))


def as_axioms(system) -> list:
    return [Equation(r.lhs, r.rhs) for r in system]


# ═══════════════════════════════════════════════════════════════
# AXIOM SETS
# ═══════════════════════════════════════════════════════════════

OR_AXIOMS = as_axioms(or_identities())

BOOLEAN_AXIOMS = as_axioms(boolean_identities())

# Written with ⊤ on either side; completes to a system where ⊥ ∨ ⊤ and
# ⊤ ∨ ⊥ meet.
SYMMETRIC_OR_AXIOMS = [
    Equation(T.or_(x, TOP), TOP),
    Equation(T.or_(x, BOT), x),
    Equation(T.or_(TOP, x), TOP),
]

# Commutativity cannot be oriented by any simplification ordering.
COMMUTATIVE_OR_AXIOMS = [
    Equation(T.or_(x, BOT), x),
    Equation(T.or_(x, y), T.or_(y, x)),
]

AXIOM_SETS = {
    "or": OR_AXIOMS,
    "boolean": BOOLEAN_AXIOMS,
    "symmetric-or": SYMMETRIC_OR_AXIOMS,
    "commutative-or": COMMUTATIVE_OR_AXIOMS,
}


# ═══════════════════════════════════════════════════════════════
# EVALUATION
# ═══════════════════════════════════════════════════════════════

def evaluate(term, env=None) -> bool:
    """Truth value of a boolean term. Variables are looked up in `env`."""
    env = env or {}

    def leave(n, values):
        if n.tag == Tag.TOP:
            return True
        if n.tag == Tag.BOT:
            return False
        if n.tag == Tag.VAR:
            if n.data not in env:
                raise KbError(f"No truth value for variable '{n.data}'")
            return bool(env[n.data])
        if n.tag == Tag.NOT:
            return not values[0]
        if n.tag == Tag.OR:
            return values[0] or values[1]
        if n.tag == Tag.AND:
            return values[0] and values[1]
        raise KbError(f"Not a boolean term: {n.tag.name}")

    return postorder(term, leave)
