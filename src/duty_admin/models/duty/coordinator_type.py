# src/duty_admin/models/duty/coordinator_type.py
"""
Fixed coordinator taxonomy: five categories, each with ranked sub-roles.
Not user-editable; stored on MehfilCoordinator.coordinator_type as the enum value.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Tuple


class CoordinatorCategory(str, Enum):
    MEHFIL = "Mehfil"
    TARBIYAT = "Tarbiyat"
    TECHNICAL = "Technical"
    TAJWEED = "Tajweed"
    AHLE_BAIT = "Ahl-e-Bait"


class CoordinatorType(str, Enum):
    MEHFIL_MAIN = "MEHFIL_MAIN"
    MEHFIL_SUB_1 = "MEHFIL_SUB_1"
    MEHFIL_SUB_2 = "MEHFIL_SUB_2"
    TARBIYAT_MAIN = "TARBIYAT_MAIN"
    TARBIYAT_SUB_1 = "TARBIYAT_SUB_1"
    TARBIYAT_SUB_2 = "TARBIYAT_SUB_2"
    TECHNICAL_MAIN = "TECHNICAL_MAIN"
    TECHNICAL_SUB_1 = "TECHNICAL_SUB_1"
    TECHNICAL_SUB_2 = "TECHNICAL_SUB_2"
    TECHNICAL_SUB_3 = "TECHNICAL_SUB_3"
    TAJWEED_MAIN = "TAJWEED_MAIN"
    TAJWEED_SUB_1 = "TAJWEED_SUB_1"
    AHLE_BAIT_MAIN = "AHLE_BAIT_MAIN"
    AHLE_BAIT_SUB_1 = "AHLE_BAIT_SUB_1"

    @property
    def category(self) -> CoordinatorCategory:
        return _CATEGORY_OF[self]

    @property
    def rank(self) -> int:
        """1 for the main holder, 2.. for the sub roles."""
        return COORDINATOR_TAXONOMY[self.category].index(self) + 1

    @property
    def rank_name(self) -> str:
        return "Main" if self.rank == 1 else f"Sub {self.rank - 1}"

    @property
    def label(self) -> str:
        return f"{self.category.value} Coordinator {self.rank}"


COORDINATOR_TAXONOMY: Dict[CoordinatorCategory, Tuple[CoordinatorType, ...]] = {
    CoordinatorCategory.MEHFIL: (
        CoordinatorType.MEHFIL_MAIN,
        CoordinatorType.MEHFIL_SUB_1,
        CoordinatorType.MEHFIL_SUB_2,
    ),
    CoordinatorCategory.TARBIYAT: (
        CoordinatorType.TARBIYAT_MAIN,
        CoordinatorType.TARBIYAT_SUB_1,
        CoordinatorType.TARBIYAT_SUB_2,
    ),
    CoordinatorCategory.TECHNICAL: (
        CoordinatorType.TECHNICAL_MAIN,
        CoordinatorType.TECHNICAL_SUB_1,
        CoordinatorType.TECHNICAL_SUB_2,
        CoordinatorType.TECHNICAL_SUB_3,
    ),
    CoordinatorCategory.TAJWEED: (
        CoordinatorType.TAJWEED_MAIN,
        CoordinatorType.TAJWEED_SUB_1,
    ),
    CoordinatorCategory.AHLE_BAIT: (
        CoordinatorType.AHLE_BAIT_MAIN,
        CoordinatorType.AHLE_BAIT_SUB_1,
    ),
}

_CATEGORY_OF: Dict[CoordinatorType, CoordinatorCategory] = {
    t: cat for cat, types in COORDINATOR_TAXONOMY.items() for t in types
}

# display label -> type ("Mehfil Coordinator 1" -> MEHFIL_MAIN)
_BY_LABEL: Dict[str, CoordinatorType] = {t.label.lower(): t for t in CoordinatorType}

# Taxonomy order, used to sort a mehfil's coordinators
TAXONOMY_ORDER: Dict[CoordinatorType, int] = {t: i for i, t in enumerate(_CATEGORY_OF)}


def lookup_coordinator_type(raw: str) -> CoordinatorType | None:
    """Accept the enum value (any case) or its display label."""
    key = (raw or "").strip()
    if not key:
        return None
    try:
        return CoordinatorType(key.upper())
    except ValueError:
        return _BY_LABEL.get(key.lower())


def taxonomy_as_dict() -> List[dict]:
    return [
        {
            "category": cat.value,
            "roles": [
                {"value": t.value, "label": t.label, "rank": t.rank, "rank_name": t.rank_name}
                for t in types
            ],
        }
        for cat, types in COORDINATOR_TAXONOMY.items()
    ]
