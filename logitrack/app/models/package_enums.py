"""
Package status values observed in the delivery pipeline.

Package status is free text matched against the status catalog; these are
the values the lifecycle rules know about.
"""


class PackageStatus:
    """
    Package status constants.

    Status flow:
        en_attente → pris_en_charge → en_cours → Livré | Retourné | Annulé
        en_cours ⇄ Relancé / Relancé Autre Client (driver-only retries)
    """
    PENDING = "en_attente"
    PICKED_UP = "pris_en_charge"
    IN_TRANSIT = "en_cours"
    DELIVERED = "Livré"
    RETURNED = "Retourné"
    CANCELLED = "Annulé"
    RELAUNCHED = "Relancé"
    RELAUNCHED_OTHER_CLIENT = "Relancé Autre Client"


TERMINAL_STATUSES = frozenset({
    PackageStatus.DELIVERED,
    PackageStatus.RETURNED,
    PackageStatus.CANCELLED,
})

RELAUNCH_STATUSES = frozenset({
    PackageStatus.RELAUNCHED,
    PackageStatus.RELAUNCHED_OTHER_CLIENT,
})
