"""
Disease trend analysis over health records.

Records are grouped by their diagnosis text after trimming and lower-casing.
A group trends "up" when more than 60% of its cases fall in the last 30 days,
"down" under 30%, otherwise "stable".
"""
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from .models import AnimalRecord, DiseaseStat, HealthRecord, Trend

RECENT_WINDOW_DAYS = 30
TREND_UP_PCT = 60
TREND_DOWN_PCT = 30


def normalize_diagnosis(diagnosis: str) -> str:
    return diagnosis.strip().lower()


def display_label(key: str) -> str:
    """Capitalize the first character only ("foot rot" -> "Foot rot")."""
    return key[:1].upper() + key[1:]


def classify_trend(recent: int, count: int) -> Trend:
    recent_pct = recent / count * 100
    if recent_pct > TREND_UP_PCT:
        return Trend.UP
    if recent_pct < TREND_DOWN_PCT:
        return Trend.DOWN
    return Trend.STABLE


def compute_disease_stats(health_records: Iterable[HealthRecord], today: date,
                          animals: Optional[Iterable[AnimalRecord]] = None) -> List[DiseaseStat]:
    index = {a.id: a for a in animals or ()}
    cutoff = today - timedelta(days=RECENT_WINDOW_DAYS)
    groups: Dict[str, dict] = {}

    for record in health_records:
        if record.diagnosis is None:
            continue
        key = normalize_diagnosis(record.diagnosis)
        if not key:
            continue
        stats = groups.setdefault(key, {"count": 0, "recent": 0, "species": []})
        stats["count"] += 1
        if record.record_date >= cutoff:
            stats["recent"] += 1

        species = record.animals.species if record.animals else None
        if not species and record.animal_id in index:
            species = index[record.animal_id].species
        if species and species not in stats["species"]:
            stats["species"].append(species)

    result = [
        DiseaseStat(
            diagnosis=display_label(key),
            count=stats["count"],
            trend=classify_trend(stats["recent"], stats["count"]),
            recent_cases=stats["recent"],
            species_affected=stats["species"],
        )
        for key, stats in groups.items()
    ]
    result.sort(key=lambda s: s.count, reverse=True)
    return result
