"""
Field-level merge planning.

Given a candidate and the existing record it matched, builds the record the
apply step should write, without mutating either input:

- scalar identity, location and contact channels: existing value wins,
  gaps are backfilled from the candidate
- coordinates: taken as a (lat, lng) pair from one side, never mixed
- set-valued fields: union, deduplicated on the normalized term, keeping the
  spelling of whichever side introduced the term first (existing first)
- ticket size: widest range (min of minimums, max of maximums)
- fund size: the larger value
- contributor_count: existing + 1, carried on the plan, not in the fields
"""

from dataclasses import dataclass, field
from typing import Any

import structlog

from ..errors import MergeError
from ..models.contact import (
    CHANNEL_FIELDS,
    SCALAR_FIELDS,
    SET_FIELDS,
    ContactFields,
    ExistingRecord,
)
from .normalizer import normalize_term

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FieldChange:
    """How one field was reconciled."""

    field: str
    existing_value: Any
    candidate_value: Any
    merged_value: Any
    rule: str  # 'backfilled' | 'kept_existing' | 'union' | 'widened' | 'larger'

    def to_dict(self) -> dict[str, Any]:
        return {
            'field': self.field,
            'existing_value': self.existing_value,
            'candidate_value': self.candidate_value,
            'merged_value': self.merged_value,
            'rule': self.rule,
        }


@dataclass
class MergePlan:
    """
    Reconciled record for one existing directory entry.

    The apply step writes ``merged`` over the record ``existing_id`` and
    persists ``contributor_count`` in the same operation.
    """

    existing_id: str
    merged: ContactFields
    contributor_count: int
    changes: list[FieldChange] = field(default_factory=list)

    @property
    def changed_fields(self) -> list[str]:
        return [c.field for c in self.changes if c.merged_value != c.existing_value]

    def to_dict(self) -> dict[str, Any]:
        return {
            'existing_id': self.existing_id,
            'merged': self.merged.model_dump(mode='json'),
            'contributor_count': self.contributor_count,
            'changes': [c.to_dict() for c in self.changes],
        }


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def union_terms(first: list[str], second: list[str]) -> list[str]:
    """Ordered union keyed on the normalized term; first spelling wins."""
    seen = set()
    merged = []
    for item in [*first, *second]:
        key = normalize_term(item)
        if key is None or key in seen:
            continue
        seen.add(key)
        merged.append(item.strip())
    return merged


class MergePlanner:
    """Builds merge plans for matched candidate/existing pairs."""

    def plan(self, candidate: ContactFields, existing: ExistingRecord) -> MergePlan:
        """
        Reconcile a candidate into an existing record.

        Args:
            candidate: Incoming contact
            existing: Directory record it matched

        Returns:
            MergePlan with the merged fields and a per-field change log
        """
        if not existing.id:
            raise MergeError(
                'Cannot plan a merge into a record without an identifier',
                context={'existing_name': existing.name},
            )

        old = existing.contact_fields()
        new = candidate.contact_fields()
        merged = dict(old)
        changes: list[FieldChange] = []

        def record(name: str, value: Any, rule: str) -> None:
            merged[name] = value
            changes.append(FieldChange(name, old[name], new[name], value, rule))

        for name in (*SCALAR_FIELDS, *CHANNEL_FIELDS):
            if not _present(new[name]) or new[name] == old[name]:
                continue
            if _present(old[name]):
                record(name, old[name], 'kept_existing')
            else:
                record(name, new[name], 'backfilled')

        self._plan_coordinates(old, new, merged, record)

        for name in SET_FIELDS:
            union = union_terms(old[name], new[name])
            if union != old[name]:
                record(name, union, 'union')

        for name, pick, rule in (
            ('ticket_size_min', min, 'widened'),
            ('ticket_size_max', max, 'widened'),
            ('fund_size', max, 'larger'),
        ):
            if new[name] is None or new[name] == old[name]:
                continue
            if old[name] is None:
                record(name, new[name], 'backfilled')
            else:
                value = pick(old[name], new[name])
                record(name, value, rule if value != old[name] else 'kept_existing')

        plan = MergePlan(
            existing_id=existing.id,
            merged=ContactFields(**merged),
            contributor_count=existing.contributor_count + 1,
            changes=changes,
        )
        logger.debug(
            'merge_planned',
            existing_id=existing.id,
            changed_fields=plan.changed_fields,
        )
        return plan

    @staticmethod
    def _plan_coordinates(
        old: dict[str, Any],
        new: dict[str, Any],
        merged: dict[str, Any],
        record,
    ) -> None:
        old_pair = (old['city_lat'], old['city_lng'])
        new_pair = (new['city_lat'], new['city_lng'])
        if None not in old_pair or None in new_pair or old_pair == new_pair:
            return
        # Coordinates belong to the candidate's city
        if _present(new['city']) and normalize_term(merged['city']) != normalize_term(new['city']):
            return
        record('city_lat', new_pair[0], 'backfilled')
        record('city_lng', new_pair[1], 'backfilled')


def plan_merge(candidate: ContactFields, existing: ExistingRecord) -> MergePlan:
    """Convenience wrapper around MergePlanner.plan()."""
    return MergePlanner().plan(candidate, existing)
