"""
Tests for candidate blocking.

Tests cover:
- Default blocking keys per field
- Inverted index lookups and ordering
- Pluggable strategies

Run with: pytest tests/test_blocking.py -v
"""

from contact_dedup.models import CandidateContact, ExistingRecord
from contact_dedup.pipeline import BlockingIndex, DefaultBlocking, normalize


class TestDefaultBlocking:
    """Keys produced by DefaultBlocking."""

    def test_full_record_keys(self):
        """Fully populated record → org, stem, domain, email, profile and first-name keys."""
        keys = DefaultBlocking().keys(normalize(CandidateContact(
            name='Jane Doe',
            organization_name='Acme Ventures LLC',
            email='jane@acme.vc',
            linkedin_url='https://linkedin.com/in/janedoe',
        )))

        assert keys == frozenset({
            'org:acme',
            'stem:acme',
            'domain:acme.vc',
            'email:jane@acme.vc',
            'profile:in/janedoe',
            'first:jane',
        })

    def test_short_stem_tokens_not_used_alone(self):
        """'AB Capital' keys on the whole stem but not on the two-letter token."""
        keys = DefaultBlocking().keys(normalize(CandidateContact(organization_name='AB Capital')))
        assert 'org:ab' not in keys
        assert 'stem:ab' in keys

    def test_empty_record_has_no_keys(self):
        """Location-only record produces no blocking keys."""
        assert DefaultBlocking().keys(normalize(CandidateContact(city='Paris'))) == frozenset()


class TestBlockingIndex:
    """Inverted index behavior."""

    def records(self):
        return [
            normalize(ExistingRecord(id='a', name='Jane Doe', organization_name='Acme')),
            normalize(ExistingRecord(id='b', name='Bob Stone', email='bob@acme.vc')),
            normalize(ExistingRecord(id='c', name='Jane Roe', organization_name='Globex')),
        ]

    def test_candidates_share_a_key(self):
        """First name links a and c, email domain links b."""
        index = BlockingIndex(self.records())
        candidate = normalize(CandidateContact(name='Jane Smith', email='js@acme.vc'))

        # first name links a and c, email domain links b
        assert index.candidates_for(candidate) == [0, 1, 2]

    def test_unrelated_candidate_has_no_candidates(self):
        """Candidate sharing no key with any record gets no positions."""
        index = BlockingIndex(self.records())
        candidate = normalize(CandidateContact(name='Ada Lovelace', organization_name='Engines'))
        assert index.candidates_for(candidate) == []

    def test_lookup_is_sorted_and_deduplicated(self):
        """Overlapping keys return each position once, in ascending order."""
        index = BlockingIndex(self.records())
        assert index.lookup(['first:jane', 'org:acme', 'org:globex']) == [0, 2]

    def test_len_counts_keys(self):
        """Test that len() counts distinct keys."""
        index = BlockingIndex([normalize(ExistingRecord(id='a', name='Jane'))])
        assert len(index) == 1


class TestCustomStrategy:
    """Pluggable blocking strategy."""

    def test_strategy_replaces_default_keys(self):
        """Country-only strategy pairs 'Deutschland' with the German record only."""
        class CountryBlocking:
            def keys(self, record):
                return frozenset({f'country:{record.country}'} if record.country else ())

        records = [
            normalize(ExistingRecord(id='a', name='Jane Doe', country='Germany')),
            normalize(ExistingRecord(id='b', name='Jane Doe', country='France')),
        ]
        index = BlockingIndex(records, CountryBlocking())
        candidate = normalize(CandidateContact(name='Jane Doe', country='Deutschland'))

        assert index.candidates_for(candidate) == [0]
