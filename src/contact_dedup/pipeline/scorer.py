"""
Pairwise similarity signals between a candidate and an existing record.

Each signal is an independent value in [0, 1]:
- exact_identity: 1.0 when email or LinkedIn profile token match
- name: Jaccard overlap of name tokens, boosted on whole-word containment
- organization: overlap of normalized organization names and stems
- geography: city/country agreement, None (neutral) when either side lacks it
- investment_overlap: Jaccard over stages + sectors, None when either is empty
- shared_domain: the email domain both sides use, unless it is a free-mail
  provider

Combining signals into a confidence is the classifier's job.
"""

from dataclasses import asdict, dataclass
from typing import Any

from rapidfuzz import fuzz

from ..models.contact import ContactFields
from .normalizer import NormalizedRecord, normalize

# Name similarity when one name is a whole-word substring of the other
NAME_CONTAINMENT_BOOST = 0.9

# Character-level fallback for typos ("Sequia" vs "Sequoia", "Jon" vs "John")
FUZZY_MIN_RATIO = 88.0
FUZZY_CAP = 0.8

# Personal mailbox providers say nothing about the employer
FREE_EMAIL_DOMAINS = frozenset({
    'gmail.com', 'googlemail.com', 'yahoo.com', 'hotmail.com', 'outlook.com',
    'live.com', 'msn.com', 'aol.com', 'icloud.com', 'me.com', 'mail.com',
    'gmx.com', 'gmx.de', 'web.de', 'protonmail.com', 'proton.me', 'yandex.com',
    'zoho.com',
})


@dataclass(frozen=True)
class SignalScores:
    """Independent similarity signals for one candidate/existing pair."""

    exact_identity: float
    email_match: bool
    profile_match: bool
    name: float
    organization: float
    geography: float | None
    investment_overlap: float | None
    shared_domain: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def jaccard(a: frozenset[str] | set[str], b: frozenset[str] | set[str]) -> float:
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def name_similarity(a: NormalizedRecord, b: NormalizedRecord) -> float:
    """
    Token-set Jaccard of normalized names.

    Containment on word boundaries ("jane doe" inside "jane doe cfa") is
    boosted to NAME_CONTAINMENT_BOOST; near-identical spellings score up to
    FUZZY_CAP.
    """
    if a.name is None or b.name is None:
        return 0.0
    if a.name == b.name:
        return 1.0
    score = jaccard(frozenset(a.name_tokens), frozenset(b.name_tokens))
    shorter, longer = sorted((a.name, b.name), key=len)
    if f' {shorter} ' in f' {longer} ':
        score = max(score, NAME_CONTAINMENT_BOOST)
    ratio = fuzz.token_sort_ratio(a.name, b.name)
    if ratio >= FUZZY_MIN_RATIO:
        score = max(score, FUZZY_CAP * ratio / 100)
    return score


def organization_similarity(a: NormalizedRecord, b: NormalizedRecord) -> float:
    """
    Organization similarity.

    - same comparable name (legal forms ignored): 1.0
    - same stem, different descriptors: 0.5 + 0.5 * token Jaccard
    - otherwise stem token Jaccard, or a capped character ratio for typos
    """
    if a.organization is None or b.organization is None:
        return 0.0
    if a.organization == b.organization:
        return 1.0
    if a.organization_stem == b.organization_stem:
        return 0.5 + 0.5 * jaccard(a.organization_tokens, b.organization_tokens)

    score = jaccard(a.stem_tokens, b.stem_tokens)
    ratio = fuzz.ratio(a.organization_stem, b.organization_stem)
    if ratio >= FUZZY_MIN_RATIO:
        score = max(score, FUZZY_CAP * ratio / 100)
    return score


def geography_similarity(a: NormalizedRecord, b: NormalizedRecord) -> float | None:
    """
    1.0 for same city unless the countries conflict (a country on one side
    only is no conflict), 0.5 for same country only, 0.0 otherwise. None
    when either side has no location at all.
    """
    if not a.has_location or not b.has_location:
        return None

    both_countries = a.country is not None and b.country is not None
    if both_countries and a.country != b.country:
        return 0.0
    if a.city is not None and a.city == b.city:
        return 1.0
    if both_countries:
        return 0.5
    return 0.0


def shared_email_domain(a: NormalizedRecord, b: NormalizedRecord) -> str | None:
    if a.email_domain is None or a.email_domain != b.email_domain:
        return None
    if a.email_domain in FREE_EMAIL_DOMAINS:
        return None
    return a.email_domain


def investment_overlap(a: NormalizedRecord, b: NormalizedRecord) -> float | None:
    left = {('stage', s) for s in a.stages} | {('sector', s) for s in a.sectors}
    right = {('stage', s) for s in b.stages} | {('sector', s) for s in b.sectors}
    if not left or not right:
        return None
    return len(left & right) / len(left | right)


def score_normalized(candidate: NormalizedRecord, existing: NormalizedRecord) -> SignalScores:
    """Compute all signals for an already-normalized pair."""
    email_match = candidate.email_key is not None and candidate.email_key == existing.email_key
    profile_match = (
        candidate.profile_token is not None
        and candidate.profile_token == existing.profile_token
    )

    return SignalScores(
        exact_identity=1.0 if email_match or profile_match else 0.0,
        email_match=email_match,
        profile_match=profile_match,
        name=name_similarity(candidate, existing),
        organization=organization_similarity(candidate, existing),
        geography=geography_similarity(candidate, existing),
        investment_overlap=investment_overlap(candidate, existing),
        shared_domain=shared_email_domain(candidate, existing),
    )


def score(
    candidate: ContactFields | NormalizedRecord,
    existing: ContactFields | NormalizedRecord,
) -> SignalScores:
    """Compute the signal breakdown for a candidate/existing pair."""
    if not isinstance(candidate, NormalizedRecord):
        candidate = normalize(candidate)
    if not isinstance(existing, NormalizedRecord):
        existing = normalize(existing)
    return score_normalized(candidate, existing)
