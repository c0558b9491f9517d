"""
View Filter Mapper.

Translates a dashboard / sidebar filter key into a status predicate: either
an inclusion set (status must be one of) or an exclusion set (status must be
none of). Resolution is pure; the query engine turns the predicate into SQL
and `matches()` serves post-fetch filtering.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import FrozenSet, Optional, Union

from logitrack.app.models.package_enums import PackageStatus


@dataclass(frozen=True)
class InclusionSet:
    statuses: FrozenSet[str]
    # Restrict to records updated on the current calendar day
    updated_today: bool = False

    def matches(self, status: str, updated_at: Optional[datetime] = None, now: Optional[datetime] = None) -> bool:
        if status not in self.statuses:
            return False
        if self.updated_today:
            return _same_day(updated_at, now)
        return True


@dataclass(frozen=True)
class ExclusionSet:
    statuses: FrozenSet[str]
    updated_today: bool = False

    def matches(self, status: str, updated_at: Optional[datetime] = None, now: Optional[datetime] = None) -> bool:
        if status in self.statuses:
            return False
        if self.updated_today:
            return _same_day(updated_at, now)
        return True


StatusPredicate = Union[InclusionSet, ExclusionSet]

EMPTY_PREDICATE = InclusionSet(frozenset())


def _same_day(value: Optional[datetime], now: Optional[datetime]) -> bool:
    if value is None:
        return False
    now = now or datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).date() == now.astimezone(timezone.utc).date()


# "En traitement" means everything that is neither waiting nor resolved.
# These three literals are not read from the status catalog: renaming one of
# them in the catalog silently changes what this key returns.
IN_PROCESSING_EXCLUDED = frozenset({
    PackageStatus.PENDING,
    PackageStatus.DELIVERED,
    PackageStatus.RETURNED,
})

FILTER_MAPPING = {
    # Back office
    "en_attente": InclusionSet(frozenset({PackageStatus.PENDING})),
    "en_traitement": ExclusionSet(IN_PROCESSING_EXCLUDED),
    "livres": InclusionSet(frozenset({PackageStatus.DELIVERED})),
    "retournes": InclusionSet(frozenset({PackageStatus.RETURNED})),

    # Driver
    "a_livrer_aujourdhui": InclusionSet(frozenset({PackageStatus.PENDING, PackageStatus.PICKED_UP})),
    "en_cours": InclusionSet(frozenset({PackageStatus.IN_TRANSIT})),
    "livres_aujourdhui": InclusionSet(frozenset({PackageStatus.DELIVERED}), updated_today=True),
    "retournes_livreur": InclusionSet(frozenset({PackageStatus.RETURNED})),
}

FILTER_LABELS = {
    "en_attente": "En attente",
    "en_traitement": "En traitement",
    "livres": "Livrés",
    "retournes": "Retournés",
    "a_livrer_aujourdhui": "À livrer aujourd'hui",
    "en_cours": "En cours",
    "livres_aujourdhui": "Livrés aujourd'hui",
    "retournes_livreur": "Retournés",
}


def resolve(key: Optional[str]) -> StatusPredicate:
    """
    Resolve a filter key to its status predicate.

    Unknown keys resolve to an empty inclusion set, which matches nothing.
    """
    if not key:
        return EMPTY_PREDICATE
    return FILTER_MAPPING.get(key, EMPTY_PREDICATE)


def page_title(key: Optional[str]) -> str:
    label = FILTER_LABELS.get(key or "")
    return f"Colis {label}" if label else "Colis Filtrés"
