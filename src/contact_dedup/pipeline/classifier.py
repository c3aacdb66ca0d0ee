"""
Match classification for imported contacts.

Combines similarity signals into a 0-100 confidence and buckets each
candidate against its single best existing record:

1. Nothing clears min_confidence                        -> new
2. Email/profile match and organizations agree          -> exact_duplicate
   (email/profile match with organizations disagreeing  -> merge_candidate)
3. Organization matches (or shares its stem) but the
   person differs                                       -> related
4. Confidence >= merge_floor                            -> merge_candidate
   (modifiers count toward the floor only on top of
   organization similarity)
5. Anything else                                        -> new

A candidate with neither name nor organization is unscorable unless its
email or profile identifies an existing record.

Confidence is 100 on an identity match. Otherwise it is a weighted sum of
organization and name similarity. Geography, investment overlap and a shared
company email domain only add to a non-zero base (the domain only when the
organizations are similar), so they can raise a match but never create one.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from ..config import Config, config
from ..errors import ConfigurationError
from ..models.contact import ExistingRecord
from .normalizer import NormalizedRecord
from .scorer import SignalScores

# Signal weights (confidence points at full similarity)
ORGANIZATION_WEIGHT = 50.0
NAME_WEIGHT = 35.0
GEOGRAPHY_WEIGHT = 10.0
INVESTMENT_WEIGHT = 5.0
DOMAIN_WEIGHT = 10.0

# Default thresholds
MIN_CONFIDENCE = 20.0
MERGE_FLOOR = 40.0
MAX_FUZZY_CONFIDENCE = 95.0
EXACT_CONFIDENCE = 100.0
ORG_MATCH = 1.0
ORG_HIGH_SIMILARITY = 0.85
RELATED_NAME_CEILING = 0.5


class MatchCategory(str, Enum):
    """Outcome of classifying one candidate."""

    NEW = 'new'
    EXACT_DUPLICATE = 'exact_duplicate'
    MERGE_CANDIDATE = 'merge_candidate'
    RELATED = 'related'
    UNSCORABLE = 'unscorable'


@dataclass(frozen=True)
class Thresholds:
    """
    Decision thresholds for the classifier.

    Confidences are on the 0-100 scale, similarities on 0-1.
    """

    min_confidence: float = MIN_CONFIDENCE
    merge_floor: float = MERGE_FLOOR
    max_fuzzy_confidence: float = MAX_FUZZY_CONFIDENCE
    org_high_similarity: float = ORG_HIGH_SIMILARITY
    related_name_ceiling: float = RELATED_NAME_CEILING

    def __post_init__(self):
        problems = []
        if not 0 <= self.min_confidence <= self.merge_floor:
            problems.append('min_confidence must be within [0, merge_floor]')
        if not self.merge_floor <= self.max_fuzzy_confidence < EXACT_CONFIDENCE:
            problems.append('merge_floor <= max_fuzzy_confidence < 100 must hold')
        if not 0 < self.org_high_similarity <= ORG_MATCH:
            problems.append('org_high_similarity must be within (0, 1]')
        if not 0 <= self.related_name_ceiling <= 1:
            problems.append('related_name_ceiling must be within [0, 1]')
        if problems:
            raise ConfigurationError(
                'Invalid classifier thresholds',
                context={'problems': problems},
            )

    @classmethod
    def from_config(cls, cfg: Config = config) -> 'Thresholds':
        """Defaults with any environment overrides applied."""
        overrides = {
            'min_confidence': cfg.MIN_CONFIDENCE,
            'merge_floor': cfg.MERGE_FLOOR,
            'org_high_similarity': cfg.ORG_HIGH_SIMILARITY,
            'related_name_ceiling': cfg.RELATED_NAME_CEILING,
        }
        return cls(**{k: v for k, v in overrides.items() if v is not None})


@dataclass(frozen=True)
class ScoredPair:
    """One existing record scored against a candidate."""

    existing: ExistingRecord
    normalized: NormalizedRecord
    signals: SignalScores
    confidence: float


@dataclass
class Classification:
    """Classifier verdict for one candidate."""

    category: MatchCategory
    best: ScoredPair | None = None
    confidence: float | None = None
    reasons: list[str] = field(default_factory=list)


def _percent(value: float) -> int:
    return int(round(value * 100))


def _kinds_differ(a: NormalizedRecord, b: NormalizedRecord) -> bool:
    return a.entity_kind is not None and b.entity_kind is not None and a.entity_kind != b.entity_kind


class ContactClassifier:
    """
    Buckets candidates using explicit thresholds.

    Usage:
        classifier = ContactClassifier(Thresholds())
        pair = classifier.scored_pair(existing, normalized_existing, signals)
        verdict = classifier.classify(normalized_candidate, [pair, ...])
    """

    def __init__(self, thresholds: Thresholds | None = None):
        self.thresholds = thresholds or Thresholds.from_config()

    def confidence(self, signals: SignalScores) -> float:
        """Combine signals into a 0-100 confidence, monotonic in every signal."""
        if signals.exact_identity:
            return EXACT_CONFIDENCE

        base = self.base_confidence(signals)
        if base <= 0:
            return 0.0

        modifiers = GEOGRAPHY_WEIGHT * (signals.geography or 0.0)
        modifiers += INVESTMENT_WEIGHT * (signals.investment_overlap or 0.0)
        if signals.shared_domain and signals.organization > 0:
            modifiers += DOMAIN_WEIGHT
        return round(min(self.thresholds.max_fuzzy_confidence, base + modifiers), 1)

    @staticmethod
    def base_confidence(signals: SignalScores) -> float:
        """Organization and name contribution, before modifiers."""
        return ORGANIZATION_WEIGHT * signals.organization + NAME_WEIGHT * signals.name

    def clears_merge_floor(self, pair: ScoredPair) -> bool:
        """
        Whether a non-identity pair is strong enough to merge.

        Modifiers may carry a pair over the floor only when the organizations
        are at least partly similar; a name match at an unrelated (or unknown)
        organization has to clear the floor on its own.
        """
        floor = self.thresholds.merge_floor
        if pair.confidence < floor:
            return False
        return pair.signals.organization > 0 or self.base_confidence(pair.signals) >= floor

    def scored_pair(
        self,
        existing: ExistingRecord,
        normalized: NormalizedRecord,
        signals: SignalScores,
    ) -> ScoredPair:
        return ScoredPair(
            existing=existing,
            normalized=normalized,
            signals=signals,
            confidence=self.confidence(signals),
        )

    @staticmethod
    def select_best(pairs: Sequence[ScoredPair]) -> ScoredPair | None:
        """Highest confidence wins; ties go to the lowest existing identifier."""
        if not pairs:
            return None
        return min(pairs, key=lambda p: (-p.confidence, p.existing.id))

    def classify(
        self,
        candidate: NormalizedRecord,
        pairs: Sequence[ScoredPair],
    ) -> Classification:
        """
        Classify a candidate against its scored existing records.

        Args:
            candidate: Normalized candidate
            pairs: Scored existing records (any order)

        Returns:
            Classification with the chosen record, confidence and reasons
        """
        best = self.select_best(pairs)
        t = self.thresholds

        if not candidate.is_scorable and (best is None or not best.signals.exact_identity):
            return Classification(
                category=MatchCategory.UNSCORABLE,
                reasons=['missing both name and organization'],
            )
        if best is None or best.confidence < t.min_confidence:
            return Classification(category=MatchCategory.NEW)

        signals = best.signals
        existing = best.normalized
        org_match = signals.organization >= ORG_MATCH
        same_org = signals.organization >= t.org_high_similarity or (
            candidate.organization_stem is not None
            and candidate.organization_stem == existing.organization_stem
        )
        neither_has_org = candidate.organization is None and existing.organization is None
        kinds_differ = _kinds_differ(candidate, existing)
        names_differ = (
            candidate.name is not None
            and existing.name is not None
            and signals.name < t.related_name_ceiling
        )

        if signals.exact_identity:
            if org_match or neither_has_org:
                category = MatchCategory.EXACT_DUPLICATE
            else:
                category = MatchCategory.MERGE_CANDIDATE
        elif same_org and (kinds_differ or names_differ):
            category = MatchCategory.RELATED
        elif not kinds_differ and self.clears_merge_floor(best):
            category = MatchCategory.MERGE_CANDIDATE
        else:
            category = MatchCategory.NEW

        return Classification(
            category=category,
            best=best,
            confidence=best.confidence,
            reasons=self.reasons(candidate, best, category),
        )

    def reasons(
        self,
        candidate: NormalizedRecord,
        pair: ScoredPair,
        category: MatchCategory,
    ) -> list[str]:
        """Human-readable list of the signals that fired."""
        s = pair.signals
        reasons = []

        if s.email_match:
            reasons.append('email matches')
        if s.profile_match:
            reasons.append('LinkedIn profile matches')

        if s.organization >= ORG_MATCH:
            reasons.append('organization name matches')
        elif s.organization > 0:
            reasons.append(f'organization name similar ({_percent(s.organization)}%)')
        elif s.exact_identity and candidate.organization and pair.normalized.organization:
            reasons.append('organization differs')
        elif s.exact_identity and (candidate.organization or pair.normalized.organization):
            reasons.append('organization missing on one side')

        if s.name >= 1.0:
            reasons.append('name matches')
        elif s.name > 0:
            reasons.append(f'name similar ({_percent(s.name)}%)')

        if s.shared_domain and s.organization > 0 and not s.email_match:
            reasons.append(f'same email domain ({s.shared_domain}), similar organization name')

        if category is MatchCategory.RELATED:
            if _kinds_differ(candidate, pair.normalized):
                reasons.append(
                    f'different entity kind ({candidate.entity_kind} vs '
                    f'{pair.normalized.entity_kind})'
                )
            else:
                reasons.append('different person at same organization')

        if s.geography == 1.0:
            reasons.append('same city')
        elif s.geography == 0.5:
            reasons.append('same country')

        if s.investment_overlap:
            reasons.append(f'{_percent(s.investment_overlap)}% stage/sector overlap')

        return reasons
