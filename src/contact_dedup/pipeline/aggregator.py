"""
Deduplication entry point for a contact import run.

Orchestrates normalization, blocking, scoring, classification and merge
planning for a whole candidate batch against a directory snapshot, and
groups the results into a DeduplicationSummary for review and apply.

The computation is pure: no I/O, no randomness, no clock in the output.
Existing records are visited in identifier order and each bucket is sorted
by a content key of its candidates, so identical inputs (in any batch order)
give identical summaries.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Sequence

import structlog

from ..config import config
from ..errors import MatchingError
from ..logging import PipelineTimer
from ..models.contact import CandidateContact, ContactFields, ExistingRecord
from .blocking import BlockingIndex, BlockingStrategy
from .classifier import ContactClassifier, MatchCategory, Thresholds
from .merge_planner import MergePlan, MergePlanner
from .normalizer import NormalizedRecord, normalize
from .scorer import SignalScores, score_normalized

logger = structlog.get_logger(__name__)


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class MatchResult:
    """
    Outcome for one candidate.

    existing_match is the single best directory record (None for clear-cut
    new and unscorable candidates). merge_plan is only set for merge
    candidates.
    """

    candidate: CandidateContact
    category: MatchCategory
    existing_match: ExistingRecord | None = None
    confidence: float | None = None
    reasons: list[str] = field(default_factory=list)
    merge_plan: MergePlan | None = None
    signals: SignalScores | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            'candidate': self.candidate.model_dump(mode='json'),
            'category': self.category.value,
            'existing_match': (
                self.existing_match.model_dump(mode='json') if self.existing_match else None
            ),
            'confidence': self.confidence,
            'reasons': list(self.reasons),
            'merge_plan': self.merge_plan.to_dict() if self.merge_plan else None,
            'signals': self.signals.to_dict() if self.signals else None,
        }


@dataclass
class DeduplicationSummary:
    """
    Disjoint buckets of match results for one import run.

    Every input candidate lands in exactly one bucket. Computed fresh per
    run, never persisted.
    """

    new_contacts: list[MatchResult] = field(default_factory=list)
    related_contacts: list[MatchResult] = field(default_factory=list)
    merge_candidates: list[MatchResult] = field(default_factory=list)
    exact_duplicates: list[MatchResult] = field(default_factory=list)
    unscorable: list[MatchResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(len(bucket) for bucket in self.buckets().values())

    def buckets(self) -> dict[MatchCategory, list[MatchResult]]:
        return {
            MatchCategory.NEW: self.new_contacts,
            MatchCategory.RELATED: self.related_contacts,
            MatchCategory.MERGE_CANDIDATE: self.merge_candidates,
            MatchCategory.EXACT_DUPLICATE: self.exact_duplicates,
            MatchCategory.UNSCORABLE: self.unscorable,
        }

    def results(self) -> list[MatchResult]:
        """All results, bucket by bucket."""
        return [r for bucket in self.buckets().values() for r in bucket]

    def counts(self) -> dict[str, int]:
        return {category.value: len(bucket) for category, bucket in self.buckets().items()}

    def describe(self) -> str:
        """One-line human summary, e.g. '3 new, 1 to merge, 2 duplicates'."""
        parts = []
        if self.new_contacts:
            parts.append(f'{len(self.new_contacts)} new')
        if self.merge_candidates:
            parts.append(f'{len(self.merge_candidates)} to merge')
        if self.exact_duplicates:
            parts.append(f'{len(self.exact_duplicates)} duplicates')
        if self.related_contacts:
            parts.append(f'{len(self.related_contacts)} team members')
        if self.unscorable:
            parts.append(f'{len(self.unscorable)} unscorable')
        return ', '.join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            'new_contacts': [r.to_dict() for r in self.new_contacts],
            'related_contacts': [r.to_dict() for r in self.related_contacts],
            'merge_candidates': [r.to_dict() for r in self.merge_candidates],
            'exact_duplicates': [r.to_dict() for r in self.exact_duplicates],
            'unscorable': [r.to_dict() for r in self.unscorable],
            'total': self.total,
        }


class DirectorySnapshot:
    """Read-only, identifier-ordered view of the directory with its blocking index."""

    def __init__(
        self,
        records: Sequence[ExistingRecord],
        blocking: BlockingStrategy | None = None,
    ):
        self.records: list[ExistingRecord] = sorted(records, key=lambda r: r.id)
        duplicate_ids = sorted({
            a.id for a, b in zip(self.records, self.records[1:]) if a.id == b.id
        })
        if duplicate_ids:
            raise MatchingError(
                'Directory snapshot has duplicate record identifiers',
                context={'duplicate_ids': duplicate_ids[:10]},
            )
        self.normalized: list[NormalizedRecord] = [normalize(r) for r in self.records]
        self.index = BlockingIndex(self.normalized, blocking)

    def __len__(self) -> int:
        return len(self.records)


def candidate_sort_key(candidate: ContactFields) -> tuple[str, str, str]:
    """Content-derived ordering key, independent of batch position."""
    norm = normalize(candidate)
    return (
        norm.organization or '',
        norm.name or '',
        candidate.model_dump_json(),
    )


# =============================================================================
# ContactDeduplicator
# =============================================================================


class ContactDeduplicator:
    """
    Classifies an import batch against the existing directory.

    Pipeline:
    1. Normalize and index the directory snapshot
    2. For each candidate, score only blocked directory records
    3. Classify against the best-scoring record
    4. Plan field-level merges for merge candidates
    5. Bucket and order results
    """

    def __init__(
        self,
        thresholds: Thresholds | None = None,
        blocking: BlockingStrategy | None = None,
        max_workers: int | None = None,
    ):
        """
        Initialize the deduplicator.

        Args:
            thresholds: Classifier thresholds (default: Thresholds.from_config())
            blocking: Blocking strategy (default: DefaultBlocking)
            max_workers: Threads to shard candidates across (default: config.MAX_WORKERS)
        """
        self.classifier = ContactClassifier(thresholds)
        self.planner = MergePlanner()
        self.blocking = blocking
        self.max_workers = max_workers if max_workers is not None else config.MAX_WORKERS

    @property
    def thresholds(self) -> Thresholds:
        return self.classifier.thresholds

    def match_candidate(
        self,
        candidate: CandidateContact,
        directory: DirectorySnapshot,
    ) -> MatchResult:
        """Classify one candidate against a prepared directory snapshot."""
        result, _ = self._match(candidate, directory)
        return result

    def _match(
        self,
        candidate: CandidateContact,
        directory: DirectorySnapshot,
    ) -> tuple[MatchResult, int]:
        norm = normalize(candidate)
        positions = directory.index.candidates_for(norm)
        pairs = [
            self.classifier.scored_pair(
                directory.records[p],
                directory.normalized[p],
                score_normalized(norm, directory.normalized[p]),
            )
            for p in positions
        ]
        verdict = self.classifier.classify(norm, pairs)

        best = verdict.best
        merge_plan = None
        if verdict.category is MatchCategory.MERGE_CANDIDATE and best is not None:
            merge_plan = self.planner.plan(candidate, best.existing)

        return MatchResult(
            candidate=candidate,
            category=verdict.category,
            existing_match=best.existing if best else None,
            confidence=verdict.confidence,
            reasons=verdict.reasons,
            merge_plan=merge_plan,
            signals=best.signals if best else None,
        ), len(positions)

    def run(
        self,
        candidates: Sequence[CandidateContact],
        existing_directory: Sequence[ExistingRecord],
    ) -> DeduplicationSummary:
        """
        Deduplicate an import batch.

        Args:
            candidates: Parsed contacts from the import file
            existing_directory: Snapshot of the directory records

        Returns:
            DeduplicationSummary with every candidate in exactly one bucket
        """
        timer = PipelineTimer()
        log = logger.bind(candidates=len(candidates), directory=len(existing_directory))
        log.info('deduplication_started')

        with timer.stage('index'):
            directory = DirectorySnapshot(existing_directory, self.blocking)

        with timer.stage('classify'):
            if self.max_workers > 1 and len(candidates) > 1:
                with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                    outcomes = list(pool.map(lambda c: self._match(c, directory), candidates))
            else:
                outcomes = [self._match(c, directory) for c in candidates]

        with timer.stage('aggregate'):
            summary = DeduplicationSummary()
            buckets = summary.buckets()
            for result, _ in outcomes:
                buckets[result.category].append(result)
            for bucket in buckets.values():
                bucket.sort(key=lambda r: candidate_sort_key(r.candidate))

        log.info(
            'deduplication_completed',
            comparisons=sum(compared for _, compared in outcomes),
            counts=summary.counts(),
            **timer.summary(),
        )
        return summary


def aggregate(
    candidates: Sequence[CandidateContact],
    existing_directory: Sequence[ExistingRecord],
    thresholds: Thresholds | None = None,
    blocking: BlockingStrategy | None = None,
    max_workers: int | None = None,
) -> DeduplicationSummary:
    """
    Convenience function to deduplicate an import batch.

    Args:
        candidates: Parsed contacts from the import file
        existing_directory: Snapshot of the directory records
        thresholds: Classifier thresholds override
        blocking: Blocking strategy override
        max_workers: Thread count for sharding candidates

    Returns:
        DeduplicationSummary
    """
    deduplicator = ContactDeduplicator(
        thresholds=thresholds,
        blocking=blocking,
        max_workers=max_workers,
    )
    return deduplicator.run(candidates, existing_directory)
