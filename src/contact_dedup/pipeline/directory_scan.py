"""
Duplicate scan over the existing directory.

Finds groups of directory records that describe the same entity, using the
same blocking, scoring and classification as an import run. Records are
paired only within blocks; pairs classified as exact duplicate or merge
candidate are grouped transitively.
"""

from dataclasses import dataclass, field
from typing import Any, Sequence

import structlog

from ..models.contact import ContactFields, ExistingRecord
from .aggregator import DirectorySnapshot
from .blocking import BlockingStrategy
from .classifier import ContactClassifier, MatchCategory, Thresholds
from .merge_planner import MergePlanner
from .scorer import score_normalized

logger = structlog.get_logger(__name__)

_DUPLICATE_CATEGORIES = (MatchCategory.EXACT_DUPLICATE, MatchCategory.MERGE_CANDIDATE)


@dataclass
class DuplicateGroup:
    """
    Directory records judged to be the same entity.

    records are in identifier order; the first is the primary that the
    others fold into.
    """

    records: list[ExistingRecord]
    suggested_merge: ContactFields
    contributor_count: int
    confidence: float
    reasons: list[str] = field(default_factory=list)

    @property
    def primary_id(self) -> str:
        return self.records[0].id

    @property
    def duplicate_ids(self) -> list[str]:
        return [r.id for r in self.records[1:]]

    def to_dict(self) -> dict[str, Any]:
        return {
            'primary_id': self.primary_id,
            'duplicate_ids': self.duplicate_ids,
            'suggested_merge': self.suggested_merge.model_dump(mode='json'),
            'contributor_count': self.contributor_count,
            'confidence': self.confidence,
            'reasons': list(self.reasons),
        }


class _DisjointSet:
    def __init__(self, size: int):
        self.parent = list(range(size))

    def find(self, item: int) -> int:
        while self.parent[item] != item:
            self.parent[item] = self.parent[self.parent[item]]
            item = self.parent[item]
        return item

    def union(self, a: int, b: int) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a != root_b:
            # Lower position stays root so the primary is the lowest id
            self.parent[max(root_a, root_b)] = min(root_a, root_b)


def find_directory_duplicates(
    existing_directory: Sequence[ExistingRecord],
    thresholds: Thresholds | None = None,
    blocking: BlockingStrategy | None = None,
) -> list[DuplicateGroup]:
    """
    Scan the directory for duplicate groups.

    Args:
        existing_directory: Snapshot of directory records
        thresholds: Classifier thresholds override
        blocking: Blocking strategy override

    Returns:
        DuplicateGroups ordered by primary identifier
    """
    classifier = ContactClassifier(thresholds)
    planner = MergePlanner()
    directory = DirectorySnapshot(existing_directory, blocking)
    groups = _DisjointSet(len(directory))
    edges: list[tuple[int, int, float, list[str]]] = []

    for i, norm in enumerate(directory.normalized):
        for j in directory.index.candidates_for(norm):
            if j <= i:
                continue
            other = directory.normalized[j]
            pair = classifier.scored_pair(
                directory.records[j], other, score_normalized(norm, other)
            )
            verdict = classifier.classify(norm, [pair])
            if verdict.category in _DUPLICATE_CATEGORIES:
                groups.union(i, j)
                edges.append((i, j, pair.confidence, verdict.reasons))

    members: dict[int, list[int]] = {}
    for i in range(len(directory)):
        members.setdefault(groups.find(i), []).append(i)

    result = []
    for root, positions in sorted(members.items()):
        if len(positions) < 2:
            continue
        records = [directory.records[p] for p in positions]
        group_edges = [e for e in edges if groups.find(e[0]) == root]

        merged = records[0]
        for duplicate in records[1:]:
            plan = planner.plan(duplicate, merged)
            merged = ExistingRecord(
                **plan.merged.contact_fields(),
                id=merged.id,
                contributor_count=merged.contributor_count,
            )

        reasons: list[str] = []
        for _, _, _, edge_reasons in group_edges:
            for reason in edge_reasons:
                if reason not in reasons:
                    reasons.append(reason)

        result.append(DuplicateGroup(
            records=records,
            suggested_merge=ContactFields(**merged.contact_fields()),
            contributor_count=sum(r.contributor_count for r in records),
            confidence=min(e[2] for e in group_edges),
            reasons=reasons,
        ))

    logger.info(
        'directory_scan_completed',
        records=len(directory),
        duplicate_groups=len(result),
        duplicate_records=sum(len(g.records) - 1 for g in result),
    )
    return result
