"""
Operator review decisions and the resulting apply plan.

Sits on top of the engine output; the engine never imports this module.
Decisions are keyed by position in DeduplicationSummary.merge_candidates:
- merge: update the existing record with the precomputed merge plan
- skip: leave the directory untouched
- create_new: insert the candidate as a separate record

Undecided merge candidates are treated as skip when the plan is built.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from .errors import ValidationError
from .models.contact import ContactFields
from .pipeline.aggregator import DeduplicationSummary
from .pipeline.merge_planner import MergePlan

logger = structlog.get_logger(__name__)


class ReviewDecision(str, Enum):
    """Operator decision for one merge candidate."""

    MERGE = 'merge'
    SKIP = 'skip'
    CREATE_NEW = 'create_new'


class ReviewState:
    """
    Decisions for the merge candidates of one summary.

    Usage:
        state = ReviewState(len(summary.merge_candidates))
        state = state.decide(0, ReviewDecision.CREATE_NEW).accept_all_merges()
        plan = build_apply_plan(summary, state)
    """

    def __init__(self, size: int, decisions: dict[int, ReviewDecision] | None = None):
        self.size = size
        self.decisions: dict[int, ReviewDecision] = dict(decisions or {})

    @classmethod
    def for_summary(cls, summary: DeduplicationSummary) -> 'ReviewState':
        return cls(len(summary.merge_candidates))

    def decide(self, index: int, decision: ReviewDecision | str) -> 'ReviewState':
        """Return a new state with ``decision`` recorded for ``index``."""
        if not 0 <= index < self.size:
            raise ValidationError(
                'Review index out of range',
                context={'index': index, 'size': self.size},
            )
        decisions = dict(self.decisions)
        decisions[index] = ReviewDecision(decision)
        return ReviewState(self.size, decisions)

    def accept_all_merges(self) -> 'ReviewState':
        """Mark every undecided merge candidate as merge."""
        decisions = dict(self.decisions)
        for index in range(self.size):
            decisions.setdefault(index, ReviewDecision.MERGE)
        return ReviewState(self.size, decisions)

    def decision_for(self, index: int) -> ReviewDecision:
        return self.decisions.get(index, ReviewDecision.SKIP)

    def undecided_count(self) -> int:
        return self.size - len(self.decisions)

    def counts(self) -> dict[str, int]:
        counts = {decision.value: 0 for decision in ReviewDecision}
        for decision in self.decisions.values():
            counts[decision.value] += 1
        return counts


@dataclass
class ApplyPlan:
    """Directory writes produced by a reviewed import run."""

    inserts: list[ContactFields] = field(default_factory=list)
    updates: list[MergePlan] = field(default_factory=list)
    skipped: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            'inserts': [c.model_dump(mode='json') for c in self.inserts],
            'updates': [u.to_dict() for u in self.updates],
            'skipped': self.skipped,
        }


def build_apply_plan(summary: DeduplicationSummary, state: ReviewState) -> ApplyPlan:
    """
    Turn a summary and the operator's decisions into directory writes.

    New and related contacts are inserted as-is. Exact duplicates and
    unscorable candidates are never written.
    """
    if state.size != len(summary.merge_candidates):
        raise ValidationError(
            'Review state does not belong to this summary',
            context={'state_size': state.size, 'merge_candidates': len(summary.merge_candidates)},
        )

    plan = ApplyPlan()
    plan.inserts.extend(r.candidate for r in summary.new_contacts)
    plan.inserts.extend(r.candidate for r in summary.related_contacts)

    for index, result in enumerate(summary.merge_candidates):
        decision = state.decision_for(index)
        if decision is ReviewDecision.MERGE and result.merge_plan is not None:
            plan.updates.append(result.merge_plan)
        elif decision is ReviewDecision.CREATE_NEW:
            plan.inserts.append(result.candidate)
        else:
            plan.skipped += 1

    plan.skipped += len(summary.exact_duplicates) + len(summary.unscorable)

    logger.info(
        'apply_plan_built',
        inserts=len(plan.inserts),
        updates=len(plan.updates),
        skipped=plan.skipped,
    )
    return plan
