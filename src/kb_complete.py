"""
KB — Knuth-Bendix Completion
Copyright (c) 2026 Alex P. Slaby — MIT License

Turns unoriented axioms into a confluent, terminating rewrite system:

  1. Pop a pending equation, normalize both sides
  2. Drop it if both sides agree
  3. Orient it with the term ordering (or fail)
  4. Append the rule
  5. Superpose the new rule with every rule (itself included), in both
     directions, and queue the critical pairs
  6. Repeat until nothing is pending

Critical pairs of one round can be computed on a worker pool. All pairs
of a round are collected, in submission order, before any is queued, so
the result does not depend on the number of workers.
"""

import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from kb import Term, Rule, RewriteSystem, KbError, render
from kb_normalize import normalize, NormalizeConfig
from kb_order import DEFAULT_ORDERING
from kb_unify import critical_pairs, tidy_variables

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
# DATA
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Equation:
    """An unoriented axiom lhs = rhs."""
    lhs: Term
    rhs: Term

    @classmethod
    def of(cls, item):
        if isinstance(item, Equation):
            return item
        lhs, rhs = item
        return cls(lhs, rhs)

    def key(self):
        return frozenset((self.lhs, self.rhs))

    def __str__(self):
        return f"{render(self.lhs)} = {render(self.rhs)}"


class State(Enum):
    PENDING = "pending"
    ORIENTED = "oriented"
    FAILED = "failed"
    CONVERGED = "converged"
    DIVERGED = "diverged"


TERMINAL_STATES = frozenset({State.FAILED, State.CONVERGED, State.DIVERGED})


class CompletionError(KbError):
    """Base class for completion failures. Carries the partial system."""
    pass


class NonOrientableEquation(CompletionError):
    def __init__(self, equation, normalized, partial):
        super().__init__(
            f"Cannot orient {normalized} (from axiom {equation}): "
            f"neither side is greater")
        self.equation = equation
        self.normalized = normalized
        self.partial = partial


class CompletionDiverged(CompletionError):
    def __init__(self, reason, limit, partial):
        super().__init__(f"Completion gave up: more than {limit} {reason}")
        self.reason = reason
        self.limit = limit
        self.partial = partial


class CompletionConfig:
    """Resource limits for one completion run."""

    def __init__(self,
                 max_rules=200,
                 max_equations=20_000,
                 normalize=None,
                 workers=1):
        self.max_rules = max_rules
        self.max_equations = max_equations
        self.normalize = normalize or NormalizeConfig.default()
        self.workers = workers

    @classmethod
    def strict(cls):
        return cls(max_rules=50, max_equations=2_000,
                   normalize=NormalizeConfig.strict(), workers=1)

    @classmethod
    def default(cls):
        return cls(max_rules=200, max_equations=20_000,
                   normalize=NormalizeConfig.default(), workers=1)

    @classmethod
    def permissive(cls):
        return cls(max_rules=2_000, max_equations=500_000,
                   normalize=NormalizeConfig.permissive(), workers=4)

    def to_dict(self):
        return {
            "max_rules": self.max_rules,
            "max_equations": self.max_equations,
            "normalize": self.normalize.to_dict(),
            "workers": self.workers,
        }


@dataclass
class CompletionResult:
    state: State
    system: RewriteSystem
    failing: Optional[Equation] = None
    stats: dict = field(default_factory=dict)
    error: Optional[KbError] = None

    @property
    def ok(self):
        return self.state == State.CONVERGED


# ═══════════════════════════════════════════════════════════════
# ENGINE
# ═══════════════════════════════════════════════════════════════

class KnuthBendix:
    """Completion state machine over pending equations and a growing system."""

    def __init__(self, axioms, config=None, ordering=None):
        self.config = config or CompletionConfig.default()
        self.ordering = ordering or DEFAULT_ORDERING
        self.system = RewriteSystem()
        self.pending = deque()
        self._seen = set()
        self.state = State.PENDING
        self.failing = None
        self.error = None
        self.stats = {
            "processed": 0,
            "trivial": 0,
            "duplicates": 0,
            "rules": 0,
            "critical_pairs": 0,
        }
        for item in axioms:
            self._enqueue(Equation.of(item))

    def _enqueue(self, eq: Equation):
        key = eq.key()
        if key in self._seen:
            self.stats["duplicates"] += 1
            return
        self._seen.add(key)
        self.pending.append(eq)

    def _normal(self, t: Term) -> Term:
        return normalize(t, self.system, config=self.config.normalize)

    def step(self) -> State:
        """Process one pending equation and return the new state."""
        if self.state in TERMINAL_STATES:
            return self.state
        if not self.pending:
            self.state = State.CONVERGED
            logger.debug("converged with %d rules", len(self.system))
            return self.state

        eq = self.pending.popleft()
        self.stats["processed"] += 1
        if self.stats["processed"] > self.config.max_equations:
            return self._diverge("processed equations", self.config.max_equations)

        s, t = self._normal(eq.lhs), self._normal(eq.rhs)
        if s == t:
            self.stats["trivial"] += 1
            self.state = State.PENDING
            return self.state

        new_rule = self.ordering.orient(s, t)
        if new_rule is None:
            normalized = Equation(s, t)
            logger.warning("cannot orient %s", normalized)
            self.state = State.FAILED
            self.failing = eq
            self.error = NonOrientableEquation(eq, normalized, self.system.copy())
            return self.state

        self.system.add(new_rule)
        self.stats["rules"] += 1
        logger.debug("rule %d: %s", len(self.system), new_rule)
        if len(self.system) > self.config.max_rules:
            return self._diverge("rules", self.config.max_rules)

        self._superpose(new_rule)
        self.state = State.ORIENTED
        return self.state

    def _superpose(self, new_rule: Rule):
        jobs = []
        for old in list(self.system):
            if old is new_rule:
                jobs.append((new_rule, new_rule, True))
            else:
                jobs.append((old, new_rule, False))
                jobs.append((new_rule, old, False))

        if self.config.workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
                rounds = list(pool.map(lambda job: critical_pairs(*job), jobs))
        else:
            rounds = [critical_pairs(*job) for job in jobs]

        found = 0
        for pairs in rounds:
            for left, right, _pos in pairs:
                left, right = tidy_variables(left, right)
                self._enqueue(Equation(left, right))
                found += 1
        self.stats["critical_pairs"] += found
        logger.debug("%d critical pairs for %s", found, new_rule)

    def _diverge(self, reason, limit) -> State:
        logger.warning("completion stopped: more than %d %s", limit, reason)
        self.state = State.DIVERGED
        self.error = CompletionDiverged(reason, limit, self.system.copy())
        return self.state

    def run(self) -> CompletionResult:
        while self.state not in TERMINAL_STATES:
            self.step()
        return CompletionResult(
            state=self.state,
            system=self.system,
            failing=self.failing,
            stats=dict(self.stats),
            error=self.error,
        )


def complete(axioms, config=None, ordering=None) -> RewriteSystem:
    """
    Knuth-Bendix completion.

    Args:
        axioms: Iterable of Equation or (lhs, rhs) pairs.
        config: CompletionConfig limits.
        ordering: TermOrdering used to orient equations.

    Returns: the completed RewriteSystem.
    Raises: NonOrientableEquation, CompletionDiverged, BudgetExceeded.
    """
    result = KnuthBendix(axioms, config, ordering).run()
    if result.error is not None:
        raise result.error
    return result.system


def complete_safe(axioms, config=None, ordering=None) -> CompletionResult:
    """Like complete() but returns a CompletionResult instead of raising
    on completion or normalization failures."""
    engine = KnuthBendix(axioms, config, ordering)
    try:
        return engine.run()
    except KbError as e:
        engine.state = State.DIVERGED
        return CompletionResult(
            state=State.DIVERGED,
            system=engine.system,
            stats=dict(engine.stats),
            error=e,
        )
