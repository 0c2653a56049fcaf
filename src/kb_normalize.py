"""
KB — Normalizer
Copyright (c) 2026 Alex P. Slaby — MIT License

Drives a term to normal form under an ordered rewrite system:
  - Innermost-first: children are normalized before their parent
  - First matching rule in sequence order wins
  - A rewritten result is re-normalized from scratch
  - Step budget (max rule applications) and depth budget (max work-stack
    height), so a non-terminating system fails loudly instead of looping
"""

import logging

from kb import Term, match, substitute, render, rebuild, KbError, REPR_DEPTH

logger = logging.getLogger(__name__)


class BudgetExceeded(KbError):
    def __init__(self, limit, term, resource="steps"):
        super().__init__(
            f"Budget exceeded: more than {limit} {resource} while normalizing "
            f"{render(term, max_depth=REPR_DEPTH)}")
        self.limit = limit
        self.term = term
        self.resource = resource


class NormalizeConfig:
    """Resource limits for one normalization call."""

    def __init__(self, steps=10_000, max_depth=100_000):
        self.steps = steps
        self.max_depth = max_depth

    @classmethod
    def strict(cls):
        """Low limits, for untrusted or freshly completed systems."""
        return cls(steps=1_000, max_depth=5_000)

    @classmethod
    def default(cls):
        return cls(steps=10_000, max_depth=100_000)

    @classmethod
    def permissive(cls):
        return cls(steps=1_000_000, max_depth=1_000_000)

    def to_dict(self):
        return {"steps": self.steps, "max_depth": self.max_depth}


DEFAULT_BUDGET = NormalizeConfig.default().steps


class Normalizer:
    """Innermost-first rewriting engine with resource limits."""

    def __init__(self, rules, config=None):
        self.rules = list(rules)
        self.config = config or NormalizeConfig.default()
        self.stats = {"steps": 0, "max_depth": 0, "fired": {}}

    def run(self, term: Term) -> Term:
        """Normalize `term`. Raises BudgetExceeded when a limit is hit."""
        self.stats = {"steps": 0, "max_depth": 0, "fired": {}}
        return self._normalize(term)

    def _normalize(self, term: Term) -> Term:
        # Each frame is [term, normalized children so far]. A frame whose
        # children are all done is rebuilt and tried against the rules; a
        # successful rewrite replaces the frame with a fresh one.
        stack = [[term, []]]
        result = None
        while stack:
            if len(stack) > self.stats["max_depth"]:
                self.stats["max_depth"] = len(stack)
                if len(stack) > self.config.max_depth:
                    logger.warning("depth budget of %d exhausted", self.config.max_depth)
                    raise BudgetExceeded(self.config.max_depth, term, "stack frames")

            frame = stack[-1]
            node, done = frame
            if len(done) < node.arity:
                stack.append([node.children[len(done)], []])
                continue

            stack.pop()
            rebuilt = rebuild(node, done)
            rewritten = self._rewrite(rebuilt) if not rebuilt.is_var else None

            if rewritten is not None:
                stack.append([rewritten, []])
                continue

            if stack:
                stack[-1][1].append(rebuilt)
            else:
                result = rebuilt
        return result

    def _rewrite(self, node: Term):
        for index, r in enumerate(self.rules):
            subst = {}
            if match(node, r.lhs, subst):
                self.stats["steps"] += 1
                if self.stats["steps"] > self.config.steps:
                    logger.warning("step budget of %d exhausted at %s",
                                   self.config.steps, render(node, max_depth=REPR_DEPTH))
                    raise BudgetExceeded(self.config.steps, node)
                fired = self.stats["fired"]
                fired[index] = fired.get(index, 0) + 1
                return substitute(r.rhs, subst)
        return None


def normalize(term, rules, budget=DEFAULT_BUDGET, config=None):
    """
    Normalize `term` under `rules`.

    Every non-variable subterm is tried against the rules, constant leaves
    included, so a rule such as ⊤ → ⊥ fires. Leaves are not treated as
    already normal.

    Args:
        term: Term to normalize.
        rules: Any iterable of Rule, scanned in order.
        budget: Maximum number of rule applications.
        config: Full NormalizeConfig; overrides `budget` when given.

    Returns: the normal form.
    Raises: BudgetExceeded.
    """
    if config is None:
        config = NormalizeConfig(steps=budget)
    return Normalizer(rules, config).run(term)


def is_normal(term, rules) -> bool:
    """True when no rule applies anywhere in `term`."""
    stack = [term]
    while stack:
        n = stack.pop()
        if not n.is_var:
            for r in rules:
                if match(n, r.lhs, {}):
                    return False
        stack.extend(n.children)
    return True
