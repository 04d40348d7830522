"""Static catalog of behaviors a recovery plan can target."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from recovery.core.errors import ValidationError


@dataclass(frozen=True)
class BehaviorCatalogEntry:
    key: str
    name: str
    suggested_duration_days: int
    risks: Tuple[str, ...]
    guidelines: Tuple[str, ...]


CATALOG: Tuple[BehaviorCatalogEntry, ...] = (
    BehaviorCatalogEntry(
        key="nicotine",
        name="Nicotine (Smoking/Vaping)",
        suggested_duration_days=60,
        risks=(
            "Increased risk of heart disease and stroke",
            "Lung disease and reduced respiratory capacity",
            "Addiction, anxiety and sleep disruption",
        ),
        guidelines=(
            "Set a quit date and remove triggers",
            "Use evidence-based aids (NRT, prescription meds)",
            "Replace the habit with short walks, deep breathing",
            "Track urges and practice delay/avoid/replace",
        ),
    ),
    BehaviorCatalogEntry(
        key="alcohol",
        name="Alcohol",
        suggested_duration_days=90,
        risks=(
            "Liver disease and cancer risk",
            "Depression, anxiety, and sleep issues",
            "Accidents, impaired judgment",
        ),
        guidelines=(
            "Set clear limits; remove alcohol from home",
            "Plan alcohol-free routines and social support",
            "Hydrate, improve sleep, and manage stress",
            "Seek counseling or support groups if needed",
        ),
    ),
    BehaviorCatalogEntry(
        key="sugar",
        name="Excess Sugar/Sweets",
        suggested_duration_days=30,
        risks=(
            "Weight gain and metabolic issues",
            "Energy crashes and mood swings",
            "Increased cravings and overeating",
        ),
        guidelines=(
            "Gradual reduction; swap with fruits/protein",
            "Manage stress and sleep to reduce cravings",
            "Keep tempting foods out of sight",
            "Track triggers and plan balanced meals",
        ),
    ),
    BehaviorCatalogEntry(
        key="social_media",
        name="Social Media Overuse",
        suggested_duration_days=21,
        risks=(
            "Reduced focus and productivity",
            "Anxiety and poor sleep",
            "Lower self-esteem due to comparisons",
        ),
        guidelines=(
            "Set app time limits and no-phone zones",
            "Schedule focused blocks and breaks",
            "Replace with hobbies, exercise, social time",
            "Disable non-essential notifications",
        ),
    ),
    BehaviorCatalogEntry(
        key="fast_food",
        name="Fast Food Dependency",
        suggested_duration_days=45,
        risks=(
            "High sodium, unhealthy fats; weight gain",
            "Micronutrient deficiencies",
            "Elevated blood pressure and cholesterol",
        ),
        guidelines=(
            "Prep simple home meals; batch cook staples",
            "Use healthy swaps; keep quick options ready",
            "Plan weekly menus and shopping",
            "Carry healthy snacks to avoid impulse buys",
        ),
    ),
)

_BY_KEY: Dict[str, BehaviorCatalogEntry] = {entry.key: entry for entry in CATALOG}


def list_entries() -> List[BehaviorCatalogEntry]:
    return list(CATALOG)


def get_entry(key: str) -> BehaviorCatalogEntry:
    """Return the catalog entry for ``key`` or raise ``ValidationError``."""
    entry = _BY_KEY.get((key or "").strip())
    if entry is None:
        raise ValidationError(f"Unknown addiction key {key!r}", field="addiction_key")
    return entry
