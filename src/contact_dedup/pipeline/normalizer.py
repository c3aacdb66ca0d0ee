"""
Field canonicalization for contact matching.

Turns free-text contact attributes into comparable forms:
- lower-cased, trimmed, whitespace-collapsed text with diacritics folded
- organization names split into a comparable form (legal forms removed)
  and a bare stem (descriptors like "Ventures" or "Capital" also removed)
- emails with a lower-cased domain and a case-insensitive comparison key
- LinkedIn URLs reduced to a ``<kind>/<slug>`` profile token

Missing or blank values normalize to None, and every comparison in the
scorer requires both sides to be present, so absence never matches absence.
Normalization never raises.
"""

import re
import unicodedata
from dataclasses import dataclass
from urllib.parse import unquote

from ..models.contact import ContactFields, EntityKind

# Legal forms: dropped from the comparable organization name
LEGAL_SUFFIXES = frozenset({
    'the', 'llc', 'inc', 'ltd', 'limited', 'gmbh', 'lp', 'llp', 'ag', 'sa',
    'bv', 'co', 'corp', 'corporation', 'plc', 'sarl', 'srl',
})

# Descriptor words: additionally dropped from the organization stem
ORG_DESCRIPTORS = frozenset({
    'vc', 'ventures', 'venture', 'capital', 'partners', 'partner', 'fund',
    'funds', 'investments', 'investment', 'management', 'advisors', 'advisor',
    'group', 'holdings',
})

COUNTRY_ALIASES = {
    'us': 'united states',
    'usa': 'united states',
    'u s': 'united states',
    'u s a': 'united states',
    'united states of america': 'united states',
    'uk': 'united kingdom',
    'u k': 'united kingdom',
    'gb': 'united kingdom',
    'great britain': 'united kingdom',
    'england': 'united kingdom',
    'uae': 'united arab emirates',
    'deutschland': 'germany',
}

_PUNCTUATION = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')
_TERM_SEPARATORS = re.compile(r'[-_/]+')
_LINKEDIN = re.compile(r'(?:^|[./])linkedin\.com/(in|company|pub|school)/([^/?#\s]+)')
_PROTOCOL = re.compile(r'^[a-z][a-z0-9+.-]*://')


@dataclass(frozen=True)
class NormalizedRecord:
    """Comparable view of a contact. None marks an absent field."""

    name: str | None
    name_tokens: tuple[str, ...]
    organization: str | None
    organization_tokens: frozenset[str]
    organization_stem: str | None
    stem_tokens: frozenset[str]
    email: str | None
    email_key: str | None
    email_domain: str | None
    profile_token: str | None
    city: str | None
    country: str | None
    entity_kind: str | None
    stages: frozenset[str]
    sectors: frozenset[str]

    @property
    def first_name_token(self) -> str | None:
        return self.name_tokens[0] if self.name_tokens else None

    @property
    def has_location(self) -> bool:
        return self.city is not None or self.country is not None

    @property
    def is_scorable(self) -> bool:
        """A record with neither a name nor an organization cannot be matched."""
        return self.name is not None or self.organization is not None


def normalize_text(value: str | None) -> str | None:
    """Lower-case, trim and collapse whitespace. Blank input is absent."""
    if value is None:
        return None
    text = _WHITESPACE.sub(' ', str(value)).strip().lower()
    return text or None


def fold_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize('NFKD', value)
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def tokenize(value: str | None) -> tuple[str, ...]:
    """Split text into punctuation-free, diacritic-folded lower-case tokens."""
    text = normalize_text(value)
    if text is None:
        return ()
    text = _PUNCTUATION.sub(' ', fold_diacritics(text)).replace('_', ' ')
    return tuple(text.split())


def normalize_name(value: str | None) -> tuple[str | None, tuple[str, ...]]:
    tokens = tokenize(value)
    if not tokens:
        return None, ()
    return ' '.join(tokens), tokens


def normalize_organization(
    value: str | None,
) -> tuple[str | None, frozenset[str], str | None, frozenset[str]]:
    """
    Normalize an organization name.

    Returns:
        (comparable name, its tokens, stem, stem tokens). The stem drops
        descriptor words; it is used only for comparison and blocking.
    """
    tokens = tokenize(value)
    if not tokens:
        return None, frozenset(), None, frozenset()

    comparable = [t for t in tokens if t not in LEGAL_SUFFIXES] or list(tokens)
    stem = [t for t in comparable if t not in ORG_DESCRIPTORS] or comparable
    return ' '.join(comparable), frozenset(comparable), ' '.join(stem), frozenset(stem)


def normalize_email(value: str | None) -> tuple[str | None, str | None, str | None]:
    """
    Normalize an email address.

    The local part keeps its case (RFC 5321) while the domain is lower-cased.
    Comparison uses a fully case-folded key.

    Returns:
        (normalized email, comparison key, domain)
    """
    if value is None:
        return None, None, None
    raw = str(value).strip()
    if raw.lower().startswith('mailto:'):
        raw = raw[len('mailto:'):]
    if not raw:
        return None, None, None
    local, sep, domain = raw.rpartition('@')
    if not sep or not local or not domain:
        return raw, raw.casefold(), None
    domain = domain.lower()
    email = f'{local}@{domain}'
    return email, email.casefold(), domain


def normalize_profile_url(value: str | None) -> str | None:
    """
    Reduce a professional-network URL to a canonical profile token.

    LinkedIn URLs become ``<kind>/<slug>`` regardless of protocol, www or
    country subdomain, query string or trailing slash. Other URLs fall back
    to host-without-www plus path.
    """
    text = normalize_text(value)
    if text is None:
        return None
    text = unquote(text)
    match = _LINKEDIN.search(text)
    if match:
        return f'{match.group(1)}/{match.group(2)}'

    text = _PROTOCOL.sub('', text).split('?', 1)[0].split('#', 1)[0].rstrip('/')
    if text.startswith('www.'):
        text = text[len('www.'):]
    return text or None


def normalize_country(value: str | None) -> str | None:
    tokens = tokenize(value)
    if not tokens:
        return None
    country = ' '.join(tokens)
    return COUNTRY_ALIASES.get(country, country)


def normalize_term(value: str | None) -> str | None:
    """Normalize a stage or sector term ("Series-A" == "series a")."""
    text = normalize_text(value)
    if text is None:
        return None
    text = _WHITESPACE.sub(' ', _TERM_SEPARATORS.sub(' ', fold_diacritics(text))).strip()
    return text or None


def normalize_terms(values: list[str] | None) -> frozenset[str]:
    terms = (normalize_term(v) for v in values or ())
    return frozenset(t for t in terms if t is not None)


def _entity_kind(value: EntityKind | str | None) -> str | None:
    if isinstance(value, EntityKind):
        return value.value
    return normalize_text(value)


def normalize(record: ContactFields) -> NormalizedRecord:
    """Build the comparable view of a candidate or existing record."""
    name, name_tokens = normalize_name(record.name)
    organization, org_tokens, stem, stem_tokens = normalize_organization(record.organization_name)
    email, email_key, email_domain = normalize_email(record.email)
    city_tokens = tokenize(record.city)

    return NormalizedRecord(
        name=name,
        name_tokens=name_tokens,
        organization=organization,
        organization_tokens=org_tokens,
        organization_stem=stem,
        stem_tokens=stem_tokens,
        email=email,
        email_key=email_key,
        email_domain=email_domain,
        profile_token=normalize_profile_url(record.linkedin_url),
        city=' '.join(city_tokens) if city_tokens else None,
        country=normalize_country(record.country),
        entity_kind=_entity_kind(record.entity_kind),
        stages=normalize_terms(record.stages),
        sectors=normalize_terms(record.investment_focus),
    )
