"""
Pipeline components for contact normalization, scoring, classification,
merge planning and aggregation.
"""

from .aggregator import (
    ContactDeduplicator,
    DeduplicationSummary,
    DirectorySnapshot,
    MatchResult,
    aggregate,
)
from .blocking import BlockingIndex, BlockingStrategy, DefaultBlocking
from .classifier import Classification, ContactClassifier, MatchCategory, Thresholds
from .directory_scan import DuplicateGroup, find_directory_duplicates
from .merge_planner import FieldChange, MergePlan, MergePlanner, plan_merge
from .normalizer import NormalizedRecord, normalize
from .scorer import SignalScores, score

__all__ = [
    # Entry point
    'ContactDeduplicator',
    'DeduplicationSummary',
    'DirectorySnapshot',
    'MatchResult',
    'aggregate',
    # Normalization
    'NormalizedRecord',
    'normalize',
    # Scoring
    'SignalScores',
    'score',
    # Blocking
    'BlockingIndex',
    'BlockingStrategy',
    'DefaultBlocking',
    # Classification
    'Classification',
    'ContactClassifier',
    'MatchCategory',
    'Thresholds',
    # Merging
    'FieldChange',
    'MergePlan',
    'MergePlanner',
    'plan_merge',
    # Directory scan
    'DuplicateGroup',
    'find_directory_duplicates',
]
