"""
Contact Deduplication Engine

Record linkage for investor/fund directory imports: classifies parsed
contacts as new, related, mergeable or duplicate against the existing
directory and plans field-level merges for review.
"""

__version__ = '0.1.0'

# Re-export key classes for convenience
from .pipeline import (
    ContactDeduplicator,
    DeduplicationSummary,
    MatchResult,
    MatchCategory,
    Thresholds,
    MergePlan,
    DuplicateGroup,
    aggregate,
    find_directory_duplicates,
)
from .models import CandidateContact, ContactFields, EntityKind, ExistingRecord
from .review import ApplyPlan, ReviewDecision, ReviewState, build_apply_plan
from .logging import (
    configure_logging,
    get_logger,
    logging_context,
    PipelineTimer,
)
from .errors import (
    ContactDedupError,
    ConfigurationError,
    PipelineError,
    ValidationError,
    MatchingError,
    MergeError,
)

__all__ = [
    # Version
    '__version__',
    # Entry point
    'ContactDeduplicator',
    'DeduplicationSummary',
    'MatchResult',
    'MatchCategory',
    'Thresholds',
    'MergePlan',
    'aggregate',
    # Directory scan
    'DuplicateGroup',
    'find_directory_duplicates',
    # Models
    'CandidateContact',
    'ContactFields',
    'EntityKind',
    'ExistingRecord',
    # Review
    'ApplyPlan',
    'ReviewDecision',
    'ReviewState',
    'build_apply_plan',
    # Logging
    'configure_logging',
    'get_logger',
    'logging_context',
    'PipelineTimer',
    # Errors
    'ContactDedupError',
    'ConfigurationError',
    'PipelineError',
    'ValidationError',
    'MatchingError',
    'MergeError',
]
