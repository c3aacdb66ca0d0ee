"""
Tests for pairwise similarity signals.

Tests cover:
- Identity signals (email key, LinkedIn profile token)
- Name similarity: exact, containment, token overlap, typos
- Organization similarity: legal forms, shared stem, typos
- Geography and investment overlap, including neutral None
- Absence never matching absence

Run with: pytest tests/test_scorer.py -v
"""

import pytest

from contact_dedup.models import CandidateContact, ExistingRecord
from contact_dedup.pipeline.scorer import jaccard, score


def existing(**fields) -> ExistingRecord:
    return ExistingRecord(id=fields.pop('id', 'x-1'), **fields)


# =============================================================================
# Identity
# =============================================================================


class TestIdentity:
    """Email and profile identity signals."""

    def test_email_match_is_case_insensitive(self):
        """Same address in different case → email identity fires."""
        signals = score(
            CandidateContact(email='JANE@acme.vc'),
            existing(email='jane@ACME.VC'),
        )
        assert signals.email_match
        assert signals.exact_identity == 1.0

    def test_profile_match_ignores_url_decoration(self):
        """Same LinkedIn slug behind different URLs → profile identity fires."""
        signals = score(
            CandidateContact(linkedin_url='https://www.linkedin.com/in/janedoe/'),
            existing(linkedin_url='linkedin.com/in/JaneDoe?trk=x'),
        )
        assert signals.profile_match
        assert not signals.email_match
        assert signals.exact_identity == 1.0

    def test_company_domain_is_shared(self):
        """Different mailboxes at one company domain report that domain."""
        signals = score(
            CandidateContact(email='j.doe@Acme.VC'),
            existing(email='jane@acme.vc'),
        )
        assert not signals.email_match
        assert signals.shared_domain == 'acme.vc'

    def test_free_mail_domain_is_not_shared(self):
        """Two gmail.com mailboxes say nothing about a shared employer."""
        signals = score(
            CandidateContact(email='jdoe@gmail.com'),
            existing(email='jane.doe@gmail.com'),
        )
        assert signals.shared_domain is None

    def test_missing_emails_do_not_match(self):
        """Two records without email or profile never match on identity."""
        signals = score(CandidateContact(name='A'), existing(name='B'))
        assert not signals.email_match
        assert not signals.profile_match
        assert signals.exact_identity == 0.0


# =============================================================================
# Name
# =============================================================================


class TestName:
    """Name similarity."""

    def test_identical_after_normalization(self):
        """Case and spacing differences still score 1.0."""
        signals = score(CandidateContact(name='  JANE doe'), existing(name='Jane Doe'))
        assert signals.name == 1.0

    def test_containment_on_word_boundary(self):
        """'Jane Doe' inside 'Jane Doe CFA' → boosted to 0.9."""
        signals = score(CandidateContact(name='Jane Doe'), existing(name='Jane Doe CFA'))
        assert signals.name == pytest.approx(0.9)

    def test_different_people(self):
        """'John Smith' vs 'Jane Doe' → 0."""
        signals = score(CandidateContact(name='John Smith'), existing(name='Jane Doe'))
        assert signals.name == 0.0

    def test_shared_first_name_only(self):
        """'Jane Smith' vs 'Jane Doe' → one shared token of three."""
        signals = score(CandidateContact(name='Jane Smith'), existing(name='Jane Doe'))
        assert signals.name == pytest.approx(1 / 3)

    def test_typo_scores_below_exact(self):
        """'Jon Smith' vs 'John Smith' scores high but below an exact match."""
        signals = score(CandidateContact(name='Jon Smith'), existing(name='John Smith'))
        assert 0.7 < signals.name < 0.8

    def test_absent_name(self):
        """Test that a missing name scores zero."""
        signals = score(CandidateContact(organization_name='Acme'), existing(name='Jane Doe'))
        assert signals.name == 0.0


# =============================================================================
# Organization
# =============================================================================


class TestOrganization:
    """Organization similarity."""

    def test_legal_form_ignored(self):
        """'Acme Ventures' vs 'Acme Ventures LLC' → 1.0."""
        signals = score(
            CandidateContact(organization_name='Acme Ventures'),
            existing(organization_name='Acme Ventures LLC'),
        )
        assert signals.organization == 1.0

    def test_shared_stem_different_descriptor(self):
        """'Acme Ventures' vs 'Acme Capital' → 0.5 plus half the token overlap."""
        signals = score(
            CandidateContact(organization_name='Acme Ventures'),
            existing(organization_name='Acme Capital'),
        )
        # 0.5 + 0.5 * |{acme}| / |{acme, ventures, capital}|
        assert signals.organization == pytest.approx(0.5 + 0.5 / 3)

    def test_bare_stem(self):
        """Test a bare stem against stem plus descriptor."""
        signals = score(
            CandidateContact(organization_name='Globex'),
            existing(organization_name='Globex Capital'),
        )
        assert signals.organization == pytest.approx(0.75)

    def test_typo_is_capped(self):
        """'Sequia' vs 'Sequoia' scores through the character ratio, capped at 0.8."""
        signals = score(
            CandidateContact(organization_name='Sequia Capital'),
            existing(organization_name='Sequoia Capital'),
        )
        assert 0.7 < signals.organization <= 0.8

    def test_unrelated(self):
        """'Acme' vs 'Globex' → 0."""
        signals = score(
            CandidateContact(organization_name='Acme'),
            existing(organization_name='Globex'),
        )
        assert signals.organization == 0.0

    def test_missing_on_both_sides(self):
        """No organization on either side → 0, not a match."""
        signals = score(CandidateContact(name='Jane'), existing(name='Jane'))
        assert signals.organization == 0.0


# =============================================================================
# Geography and investment overlap
# =============================================================================


class TestGeography:
    """City/country agreement."""

    def test_same_city(self):
        """Same city without countries → 1.0."""
        signals = score(CandidateContact(city='Berlin'), existing(city='berlin'))
        assert signals.geography == 1.0

    def test_same_city_with_country_alias(self):
        """'United Kingdom' and 'UK' in London → 1.0."""
        signals = score(
            CandidateContact(city='London', country='United Kingdom'),
            existing(city='London', country='UK'),
        )
        assert signals.geography == 1.0

    def test_same_city_with_country_on_one_side(self):
        """A country on only one side does not conflict with a city match."""
        signals = score(
            CandidateContact(city='Berlin', country='Germany'),
            existing(city='Berlin'),
        )
        assert signals.geography == 1.0

    def test_same_country_only(self):
        """Munich vs Berlin in Germany → 0.5."""
        signals = score(
            CandidateContact(city='Munich', country='Germany'),
            existing(city='Berlin', country='Germany'),
        )
        assert signals.geography == 0.5

    def test_country_conflict(self):
        """Paris, France vs Paris, United States → 0."""
        signals = score(
            CandidateContact(city='Paris', country='France'),
            existing(city='Paris', country='United States'),
        )
        assert signals.geography == 0.0

    def test_missing_location_is_neutral(self):
        """Location on one side only → None, not a penalty."""
        signals = score(CandidateContact(city='Berlin'), existing(name='Jane'))
        assert signals.geography is None


class TestInvestmentOverlap:
    """Stage and sector Jaccard."""

    def test_partial_overlap(self):
        """One shared stage out of three distinct terms → 1/3."""
        signals = score(
            CandidateContact(stages=['Seed'], investment_focus=['Fintech']),
            existing(stages=['seed'], investment_focus=['Health']),
        )
        # {seed, fintech} vs {seed, health}
        assert signals.investment_overlap == pytest.approx(1 / 3)

    def test_stage_and_sector_namespaces_are_separate(self):
        """'Growth' as a stage never matches 'Growth' as a sector."""
        signals = score(
            CandidateContact(stages=['Growth']),
            existing(investment_focus=['Growth']),
        )
        assert signals.investment_overlap == 0.0

    def test_empty_side_is_neutral(self):
        """No stages or sectors on one side → None."""
        signals = score(CandidateContact(stages=['Seed']), existing(stages=[]))
        assert signals.investment_overlap is None


class TestHelpers:
    """Small helpers and serialization."""

    def test_jaccard(self):
        """Test Jaccard overlap of token sets."""
        assert jaccard(frozenset({'a', 'b'}), frozenset({'b', 'c'})) == pytest.approx(1 / 3)
        assert jaccard(frozenset(), frozenset({'a'})) == 0.0

    def test_signals_to_dict(self):
        """Test signal serialization."""
        data = score(CandidateContact(name='Jane'), existing(name='Jane')).to_dict()
        assert data['name'] == 1.0
        assert data['geography'] is None
        assert set(data) == {
            'exact_identity', 'email_match', 'profile_match', 'name',
            'organization', 'geography', 'investment_overlap', 'shared_domain',
        }
