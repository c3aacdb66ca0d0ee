"""
Candidate blocking for the deduplication engine.

Scoring every candidate against every directory record is a full cross
product. Instead the directory is indexed by cheap blocking keys and each
candidate is only scored against records sharing at least one key.

The strategy is pluggable: anything implementing BlockingStrategy can
replace the default keys.
"""

from typing import Iterable, Protocol, Sequence

from .normalizer import NormalizedRecord

# Organization stem tokens shorter than this are too common to block on
MIN_STEM_TOKEN_LENGTH = 3


class BlockingStrategy(Protocol):
    """Produces the blocking keys of a normalized record."""

    def keys(self, record: NormalizedRecord) -> frozenset[str]:
        ...


class DefaultBlocking:
    """
    Blocks on organization stem tokens, email domain, full email,
    profile token and first name token.

    Two records are compared whenever they share any of these. Pairs whose
    only link is a misspelled organization are not compared.
    """

    def keys(self, record: NormalizedRecord) -> frozenset[str]:
        keys = set()
        for token in record.stem_tokens:
            if len(token) >= MIN_STEM_TOKEN_LENGTH:
                keys.add(f'org:{token}')
        if record.organization_stem is not None:
            keys.add(f'stem:{record.organization_stem}')
        if record.email_domain is not None:
            keys.add(f'domain:{record.email_domain}')
        if record.email_key is not None:
            keys.add(f'email:{record.email_key}')
        if record.profile_token is not None:
            keys.add(f'profile:{record.profile_token}')
        if record.first_name_token is not None:
            keys.add(f'first:{record.first_name_token}')
        return frozenset(keys)


class BlockingIndex:
    """
    Inverted index from blocking key to directory positions.

    Positions refer to the sequence passed in, which the caller keeps in
    stable identifier order; lookups return positions sorted ascending.
    """

    def __init__(
        self,
        records: Sequence[NormalizedRecord],
        strategy: BlockingStrategy | None = None,
    ):
        self.strategy = strategy or DefaultBlocking()
        self._index: dict[str, list[int]] = {}
        for position, record in enumerate(records):
            for key in self.strategy.keys(record):
                self._index.setdefault(key, []).append(position)

    def __len__(self) -> int:
        return len(self._index)

    def lookup(self, keys: Iterable[str]) -> list[int]:
        positions: set[int] = set()
        for key in keys:
            positions.update(self._index.get(key, ()))
        return sorted(positions)

    def candidates_for(self, record: NormalizedRecord) -> list[int]:
        """Directory positions worth scoring against ``record``."""
        return self.lookup(self.strategy.keys(record))
