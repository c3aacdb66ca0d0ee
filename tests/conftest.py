"""
Pytest configuration and shared fixtures for the deduplication engine tests.

Key fixtures:
- thresholds: default classifier thresholds, independent of environment
- classifier: ContactClassifier using those thresholds
- classify: scores a candidate against existing records and classifies it
- directory: small existing directory snapshot
- import_batch: candidates covering every bucket against ``directory``

No network, database or API keys are needed.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from contact_dedup.models import CandidateContact, ExistingRecord
from contact_dedup.pipeline import ContactClassifier, Thresholds, normalize, score


@pytest.fixture
def thresholds() -> Thresholds:
    """Built-in thresholds (ignores DEDUP_* environment overrides)."""
    return Thresholds()


@pytest.fixture
def classifier(thresholds) -> ContactClassifier:
    return ContactClassifier(thresholds)


@pytest.fixture
def classify(classifier):
    """Score a candidate against existing records and classify it."""

    def _classify(candidate, *existing):
        cand = normalize(candidate)
        pairs = []
        for record in existing:
            norm = normalize(record)
            pairs.append(classifier.scored_pair(record, norm, score(cand, norm)))
        return classifier.classify(cand, pairs)

    return _classify


@pytest.fixture
def directory() -> list[ExistingRecord]:
    """Existing directory records, deliberately not in identifier order."""
    return [
        ExistingRecord(
            id='c-002',
            name='Bob Stone',
            organization_name='Globex Capital',
            entity_kind='investor',
            email='bob@globex.com',
            city='London',
            country='UK',
            stages=['Seed'],
        ),
        ExistingRecord(
            id='c-001',
            name='Jane Doe',
            organization_name='Acme Ventures LLC',
            entity_kind='investor',
            email='jane@acme.vc',
            city='Berlin',
            country='Germany',
            stages=['Seed', 'Series A'],
            investment_focus=['Fintech'],
            contributor_count=3,
        ),
        ExistingRecord(
            id='c-004',
            name='Maria Garcia',
            email='maria@gmail.com',
            city='Madrid',
            country='Spain',
        ),
    ]


@pytest.fixture
def import_batch() -> list[CandidateContact]:
    """One candidate per bucket against ``directory``."""
    return [
        # exact duplicate of c-001
        CandidateContact(name='Jane Doe', organization_name='Acme Ventures', email='jane@acme.vc'),
        # colleague of c-001
        CandidateContact(name='John Smith', organization_name='Acme Ventures'),
        # same person as c-002, different org spelling
        CandidateContact(
            name='Bob Stone',
            organization_name='Globex',
            city='London',
            country='United Kingdom',
            stages=['Series A'],
            linkedin_url='https://www.linkedin.com/in/bobstone/',
        ),
        # nobody like this in the directory
        CandidateContact(name='Ada Lovelace', organization_name='Analytical Engines'),
        # no name and no organization
        CandidateContact(city='Paris', country='France'),
    ]
