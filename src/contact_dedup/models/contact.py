"""
Contact models for the investor/fund directory import.

- CandidateContact: freshly parsed row from a spreadsheet or screenshot
  extraction, not yet persisted and without an identifier.
- ExistingRecord: a directory entry with a stable identifier and a count of
  how many import runs have corroborated it.

Both share ContactFields. List-valued attributes behave as sets for matching;
their order is kept only for display and merge output.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class EntityKind(str, Enum):
    """Whether a directory entry describes a person or a fund."""

    INVESTOR = 'investor'
    FUND = 'fund'


# Field groups reconciled by the merge planner
SCALAR_FIELDS = ('name', 'organization_name', 'entity_kind', 'city', 'country')
CHANNEL_FIELDS = ('email', 'linkedin_url')
SET_FIELDS = ('stages', 'investment_focus', 'thesis_keywords', 'notable_investments')


class ContactFields(BaseModel):
    """Attribute shape shared by candidates and existing directory records."""

    # Identity
    name: str | None = Field(default=None, description='Display name of the person or fund')
    organization_name: str | None = Field(default=None, description='Firm the contact belongs to')
    entity_kind: EntityKind | None = Field(default=None, description='investor or fund')

    # Location
    city: str | None = Field(default=None)
    country: str | None = Field(default=None)
    city_lat: float | None = Field(default=None)
    city_lng: float | None = Field(default=None)

    # Contact channels
    email: str | None = Field(default=None)
    linkedin_url: str | None = Field(default=None, description='Professional-network profile URL')

    # Investment attributes
    stages: list[str] = Field(default_factory=list, description='Funding stages, e.g. seed')
    investment_focus: list[str] = Field(default_factory=list, description='Focus sectors')
    ticket_size_min: float | None = Field(default=None)
    ticket_size_max: float | None = Field(default=None)
    fund_size: float | None = Field(default=None)
    thesis_keywords: list[str] = Field(default_factory=list)
    notable_investments: list[str] = Field(default_factory=list)

    model_config = {'use_enum_values': True}

    @field_validator(*SET_FIELDS, mode='before')
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def contact_fields(self) -> dict[str, Any]:
        """Dump only the shared contact attributes (no id or counters)."""
        return self.model_dump(include=set(ContactFields.model_fields))


class CandidateContact(ContactFields):
    """A contact parsed from an import file, ephemeral for one import run."""

    pass


class ExistingRecord(ContactFields):
    """A directory entry owned by the directory store."""

    id: str = Field(..., description='Stable directory identifier')
    contributor_count: int = Field(
        default=1, ge=0, description='How many import runs corroborated or enriched this record'
    )
