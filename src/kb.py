#!/usr/bin/env python3
"""
KB Term Rewriting Engine
Copyright (c) 2026 Alex P. Slaby — MIT License

Usage:
  python kb.py demo                 Run built-in demos
  python kb.py complete <set>       Run Knuth-Bendix completion on an axiom set
  python kb.py help                 Show this help
"""

import hashlib
import logging
import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


# ═══════════════════════════════════════════════════════════════
# CORE DEFINITIONS
# ═══════════════════════════════════════════════════════════════

class Tag(IntEnum):
    """The closed alphabet of term kinds."""
    TOP     = 0x0   # ⊤  Constant true
    BOT     = 0x1   # ⊥  Constant false
    NUM     = 0x2   # n  Integer literal
    VAR     = 0x3   # x  Pattern variable
    OR      = 0x4   # ∨  Disjunction
    AND     = 0x5   # ∧  Conjunction
    NOT     = 0x6   # ¬  Negation
    SUM     = 0x7   # +  n-ary sum
    PRODUCT = 0x8   # *  n-ary product


TAG_SYMBOL = {
    Tag.TOP: "⊤", Tag.BOT: "⊥", Tag.NUM: "#", Tag.VAR: "?",
    Tag.OR: "∨", Tag.AND: "∧", Tag.NOT: "¬", Tag.SUM: "+", Tag.PRODUCT: "*",
}

# None means variadic
TAG_ARITY = {
    Tag.TOP: 0, Tag.BOT: 0, Tag.NUM: 0, Tag.VAR: 0,
    Tag.OR: 2, Tag.AND: 2, Tag.NOT: 1,
    Tag.SUM: None, Tag.PRODUCT: None,
}

CONSTANT_TAGS = frozenset({Tag.TOP, Tag.BOT, Tag.NUM})
LEAF_TAGS = CONSTANT_TAGS | {Tag.VAR}


class KbError(Exception):
    pass


class TermError(KbError):
    pass


class MalformedRule(KbError):
    def __init__(self, lhs, rhs, unbound):
        super().__init__(
            f"Malformed rule {render(lhs)} → {render(rhs)}: "
            f"right side uses unbound variable(s) {', '.join(unbound)}")
        self.lhs = lhs
        self.rhs = rhs
        self.unbound = unbound


class InvariantViolation(KbError):
    """An engine invariant was broken. Indicates a bug, not bad input."""
    pass


# ═══════════════════════════════════════════════════════════════
# TERM
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False, repr=False)
class Term:
    """
    An immutable node of an expression tree.

    Equality is structural and hashing is cached per node, so neither
    recurses: terms thousands of levels deep compare and hash safely.
    """
    tag: Tag
    children: tuple = field(default_factory=tuple)
    data: Any = None

    def __post_init__(self):
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))
        expected = TAG_ARITY[self.tag]
        if expected is not None and len(self.children) != expected:
            raise TermError(
                f"{self.tag.name} takes {expected} children, got {len(self.children)}")
        if self.tag == Tag.VAR and not isinstance(self.data, str):
            raise TermError(f"Variable name must be a string, got {self.data!r}")
        if self.tag == Tag.NUM and (isinstance(self.data, bool) or not isinstance(self.data, int)):
            raise TermError(f"Numeric literal must be an int, got {self.data!r}")
        # Children are built first, so their hashes already exist
        object.__setattr__(self, "_hash", hash(
            (int(self.tag), self.data, tuple(c._hash for c in self.children))))

    def __hash__(self):
        return self._hash

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, Term):
            return NotImplemented
        stack = [(self, other)]
        while stack:
            a, b = stack.pop()
            if a is b:
                continue
            if (a._hash != b._hash or a.tag != b.tag or a.data != b.data
                    or len(a.children) != len(b.children)):
                return False
            stack.extend(zip(a.children, b.children))
        return True

    def __repr__(self):
        return f"Term({render(self, max_depth=REPR_DEPTH)!r})"

    @property
    def arity(self) -> int:
        return len(self.children)

    @property
    def is_var(self) -> bool:
        return self.tag == Tag.VAR

    @property
    def is_constant(self) -> bool:
        return self.tag in CONSTANT_TAGS

    @property
    def is_leaf(self) -> bool:
        return self.tag in LEAF_TAGS

    @property
    def size(self) -> int:
        count = 0
        stack = [self]
        while stack:
            n = stack.pop()
            count += 1
            stack.extend(n.children)
        return count

    @property
    def depth(self) -> int:
        best = 0
        stack = [(self, 1)]
        while stack:
            n, d = stack.pop()
            best = max(best, d)
            for c in n.children:
                stack.append((c, d + 1))
        return best

    def variables(self) -> list:
        """Variable names in order of first (left-to-right) occurrence."""
        seen = {}
        stack = [self]
        while stack:
            n = stack.pop()
            if n.tag == Tag.VAR:
                seen.setdefault(n.data, None)
            else:
                stack.extend(reversed(n.children))
        return list(seen)

    @property
    def is_ground(self) -> bool:
        return not self.variables()

    def copy(self) -> "Term":
        """Deep structural copy."""
        return postorder(self, lambda n, kids: Term(n.tag, tuple(kids), n.data))

    def with_children(self, children) -> "Term":
        return Term(self.tag, tuple(children), self.data)

    def content_hash(self) -> bytes:
        """SHA-256 content hash of this term, built leaves first."""
        def digest(n, child_digests):
            h = hashlib.sha256()
            h.update(bytes([n.tag << 4 | (n.arity & 0x0F)]))
            h.update(n.arity.to_bytes(4, 'big'))
            for d in child_digests:
                h.update(d)
            if n.tag == Tag.VAR:
                h.update(n.data.encode('utf-8'))
            elif n.tag == Tag.NUM:
                h.update(str(n.data).encode('ascii'))
            return h.digest()
        return postorder(self, digest)

    def hash_short(self) -> str:
        return self.content_hash().hex()[:16]

    def __str__(self) -> str:
        return render(self)


def postorder(term: Term, leave=None, enter=None):
    """
    Fold a term bottom-up with an explicit work stack.

    Args:
        term: Root of the walk.
        leave: leave(node, child_results) -> result for `node`. Defaults
            to rebuilding the node from its (possibly new) children.
        enter: enter(node) -> Term to descend into instead of `node`,
            applied to every node before its children are visited.

    Returns: the result for the root.
    """
    leave = leave or rebuild
    stack = [[enter(term) if enter else term, []]]
    while True:
        node, done = stack[-1]
        if len(done) < len(node.children):
            child = node.children[len(done)]
            stack.append([enter(child) if enter else child, []])
            continue
        stack.pop()
        result = leave(node, done)
        if not stack:
            return result
        stack[-1][1].append(result)


def rebuild(node: Term, children: list) -> Term:
    """`node` with `children` in place of its own; `node` itself when none changed."""
    if all(a is b for a, b in zip(children, node.children)):
        return node
    return node.with_children(children)


# ═══════════════════════════════════════════════════════════════
# BUILDER — Term construction
# ═══════════════════════════════════════════════════════════════

class T:
    """Builder for terms."""

    @staticmethod
    def top() -> Term:
        return Term(Tag.TOP)

    @staticmethod
    def bot() -> Term:
        return Term(Tag.BOT)

    @staticmethod
    def num(value: int) -> Term:
        return Term(Tag.NUM, data=value)

    @staticmethod
    def var(name: str) -> Term:
        return Term(Tag.VAR, data=name)

    @staticmethod
    def vars(names: str) -> list:
        return [T.var(n) for n in names.split()]

    @staticmethod
    def or_(left: Term, right: Term) -> Term:
        return Term(Tag.OR, (left, right))

    @staticmethod
    def and_(left: Term, right: Term) -> Term:
        return Term(Tag.AND, (left, right))

    @staticmethod
    def not_(operand: Term) -> Term:
        return Term(Tag.NOT, (operand,))

    @staticmethod
    def sum(*terms: Term) -> Term:
        return Term(Tag.SUM, tuple(terms))

    @staticmethod
    def product(*terms: Term) -> Term:
        return Term(Tag.PRODUCT, tuple(terms))


# ═══════════════════════════════════════════════════════════════
# RULES
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Rule:
    """An oriented rewrite rule lhs → rhs."""
    lhs: Term
    rhs: Term

    def __post_init__(self):
        bound = set(self.lhs.variables())
        unbound = [v for v in self.rhs.variables() if v not in bound]
        if unbound:
            raise MalformedRule(self.lhs, self.rhs, unbound)

    def variables(self) -> list:
        return self.lhs.variables()

    def __str__(self) -> str:
        return f"{render(self.lhs)} → {render(self.rhs)}"


class RewriteSystem:
    """Ordered sequence of rules. The first matching rule wins."""

    def __init__(self, rules=()):
        self.rules = list(rules)

    def add(self, rule: Rule) -> Rule:
        self.rules.append(rule)
        return rule

    def copy(self) -> "RewriteSystem":
        return RewriteSystem(self.rules)

    def __iter__(self):
        return iter(self.rules)

    def __len__(self):
        return len(self.rules)

    def __getitem__(self, index):
        return self.rules[index]

    def __eq__(self, other):
        if not isinstance(other, RewriteSystem):
            return NotImplemented
        return self.rules == other.rules

    def __repr__(self):
        return f"RewriteSystem({len(self.rules)} rules)"

    def render(self) -> str:
        width = len(str(len(self.rules)))
        return '\n'.join(f"{i:>{width}}. {rule}" for i, rule in enumerate(self.rules, 1))


# ═══════════════════════════════════════════════════════════════
# MATCHER / SUBSTITUTOR
# ═══════════════════════════════════════════════════════════════

def match(term: Term, pattern: Term, subst: dict) -> bool:
    """
    One-way match of a concrete term against a pattern.

    On success the new bindings are merged into `subst`; on failure
    `subst` is left exactly as it was.
    """
    scratch = dict(subst)
    stack = [(term, pattern)]
    while stack:
        t, p = stack.pop()
        if p.tag == Tag.VAR:
            bound = scratch.get(p.data)
            if bound is None:
                scratch[p.data] = t
            elif bound != t:
                return False
            continue
        if p.tag != t.tag or p.data != t.data or p.arity != t.arity:
            return False
        # Reverse so children are visited left to right
        for tc, pc in zip(reversed(t.children), reversed(p.children)):
            stack.append((tc, pc))
    subst.update(scratch)
    return True


def substitute(pattern: Term, subst: dict) -> Term:
    """Instantiate a pattern. Every variable in it must be bound."""
    def leave(n, children):
        if n.tag != Tag.VAR:
            return rebuild(n, children)
        try:
            return subst[n.data]
        except KeyError:
            raise InvariantViolation(
                f"Unbound pattern variable '{n.data}' during substitution") from None
    return postorder(pattern, leave)


# ═══════════════════════════════════════════════════════════════
# VISUALIZER — Infix and tree rendering
# ═══════════════════════════════════════════════════════════════

ELLIPSIS = "…"

# Nesting shown by repr() and error messages
REPR_DEPTH = 12


def node_label(n: Term) -> str:
    """Human-readable label for a single node."""
    if n.tag == Tag.VAR:
        return n.data
    if n.tag == Tag.NUM:
        return str(n.data)
    return TAG_SYMBOL.get(n.tag, f"Tag(0x{n.tag:x})")


def _needs_parens(n: Term) -> bool:
    if n.tag in (Tag.OR, Tag.AND):
        return True
    if n.tag in (Tag.SUM, Tag.PRODUCT):
        return n.arity > 1
    return n.tag == Tag.NUM and n.data < 0


def _render_node(n: Term, parts: list) -> str:
    if n.is_leaf:
        return node_label(n)
    ops = [p if p == ELLIPSIS or not _needs_parens(c) else f"({p})"
           for c, p in zip(n.children, parts)]
    if n.tag == Tag.NOT:
        return f"¬{ops[0]}"
    sym = TAG_SYMBOL[n.tag]
    if n.tag in (Tag.SUM, Tag.PRODUCT) and n.arity < 2:
        inner = f" {parts[0]}" if parts else ""
        return f"({sym}{inner})"
    return f" {sym} ".join(ops)


def render(term: Term, max_depth=None) -> str:
    """
    Render a term as an infix expression.

    Inner nodes more than `max_depth` levels down are shown as `…`.
    """
    stack = [[term, [], 1]]
    while True:
        node, parts, depth = stack[-1]
        if node.children and max_depth is not None and depth > max_depth:
            text = ELLIPSIS
        elif len(parts) < node.arity:
            stack.append([node.children[len(parts)], [], depth + 1])
            continue
        else:
            text = _render_node(node, parts)
        stack.pop()
        if not stack:
            return text
        stack[-1][1].append(text)


def render_tree(n: Term) -> str:
    """Render a term as an indented tree string, one node per line."""
    lines = []
    stack = [(n, 0, "")]
    while stack:
        node, indent, prefix = stack.pop()
        lines.append(f"{'   ' * indent}{prefix}{node_label(node)}")
        last = node.arity - 1
        for i in range(last, -1, -1):
            stack.append((node.children[i], indent + 1, "└─ " if i == last else "├─ "))
    return '\n'.join(lines)


# ═══════════════════════════════════════════════════════════════
# DEMO PROGRAMS
# ═══════════════════════════════════════════════════════════════

def make_demos():
    """Build the normalization demos: (name, term, system)."""
    from kb_boolean import or_identities, boolean_identities

    x, y = T.vars("x y")
    demos = []

    # 1. ⊤ ∨ (⊥ ∨ (⊥ ∨ ⊥))
    nested = T.or_(T.top(), T.or_(T.bot(), T.or_(T.bot(), T.bot())))
    demos.append(("Or identities", nested, or_identities()))

    # 2. x ∨ (x ∨ ⊥)
    demos.append(("Idempotent or", T.or_(x, T.or_(x, T.bot())), or_identities()))

    # 3. ¬¬(y ∧ ⊤) ∨ ⊥
    dneg = T.or_(T.not_(T.not_(T.and_(y, T.top()))), T.bot())
    demos.append(("Double negation", dneg, boolean_identities()))

    # 4. x ∧ ¬x
    demos.append(("Complement", T.and_(x, T.not_(x)), boolean_identities()))

    return demos


# ═══════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════

HEADER = """\
╔═══════════════════════════════════════════════════════════╗
║  KB Term Rewriting Engine v0.1                           ║
║  Copyright (c) 2026 Alex P. Slaby — MIT License          ║
╚═══════════════════════════════════════════════════════════╝"""


def cmd_demo():
    from kb_normalize import normalize, BudgetExceeded
    from kb_arith import simplify

    print(HEADER)
    print()

    for i, (name, term, system) in enumerate(make_demos(), 1):
        print(f"{'─' * 59}")
        print(f"  Demo {i}: {name}")
        print(f"  Input: {render(term)}  │  {term.size} nodes  │  {term.hash_short()}…")
        print(f"{'─' * 59}")
        print()
        print("  Tree:")
        for line in render_tree(term).split('\n'):
            print(f"    {line}")
        print()
        try:
            print(f"  Normal form: {render(normalize(term, system))}")
        except BudgetExceeded as e:
            print(f"  [error] {e}")
        print()

    print(f"{'─' * 59}")
    print("  Arithmetic flatten/fold")
    print(f"{'─' * 59}")
    print()
    x = T.var("x")
    for term in (T.sum(T.num(9), T.num(10), T.num(2)),
                 T.product(),
                 T.sum(x, T.sum(T.num(1), T.num(2)), T.num(0)),
                 T.product(T.num(2), T.product(x, T.num(3)))):
        print(f"  {render(term)}  ⟶  {render(simplify(term))}")
    print()


def cmd_complete(name):
    from kb_boolean import AXIOM_SETS
    from kb_complete import complete_safe, State

    print(HEADER)
    print()

    if name not in AXIOM_SETS:
        print(f"  Error: unknown axiom set '{name}'. Known: {', '.join(sorted(AXIOM_SETS))}")
        sys.exit(1)

    axioms = AXIOM_SETS[name]
    print(f"  Axioms ({name}):")
    for eq in axioms:
        print(f"    {eq}")
    print()

    result = complete_safe(axioms)
    print(f"  State: {result.state.name}")
    print(f"  Stats: {result.stats}")
    print()
    print("  Rewrite system:")
    for line in result.system.render().split('\n'):
        print(f"    {line}")
    print()
    if result.state != State.CONVERGED:
        print(f"  [error] {result.error}")
        sys.exit(2)


def cmd_help():
    print(HEADER)
    print()
    print("  Usage:")
    print("    python kb.py demo                 Run built-in demos")
    print("    python kb.py complete <set>       Run completion on an axiom set")
    print("    python kb.py help                 Show this help")
    print()
    print("  Add -v for debug logging.")
    print()


def main():
    args = [a for a in sys.argv[1:] if a not in ("-v", "--verbose")]
    if len(args) != len(sys.argv) - 1:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if not args:
        cmd_help()
        return

    cmd = args[0].lower()

    if cmd == "demo":
        cmd_demo()
    elif cmd == "complete" and len(args) >= 2:
        cmd_complete(args[1])
    elif cmd in ("help", "--help", "-h"):
        cmd_help()
    else:
        print(f"  Unknown command: {cmd}")
        cmd_help()
        sys.exit(1)


if __name__ == "__main__":
    # Run as the importable module so kb_* share its Term and Tag classes
    import kb
    kb.main()
