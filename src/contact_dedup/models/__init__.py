"""
Data models for the contact deduplication engine.
"""

from .contact import CandidateContact, ContactFields, EntityKind, ExistingRecord

__all__ = [
    'CandidateContact',
    'ContactFields',
    'EntityKind',
    'ExistingRecord',
]
