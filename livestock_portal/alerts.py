"""
Critical alert classification.

Turns a snapshot of animals, vaccinations and health records into one list of
alerts, critical first. Pure: recompute on every fetch or change event.
"""
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional

from .models import (Alert, AlertType, AnimalRecord, HealthRecord, Priority,
                     VaccinationRecord)

CRITICAL_STATUSES = ("sick", "under_treatment", "quarantine")

_PRIORITY_ORDER = {Priority.CRITICAL.value: 0, Priority.HIGH.value: 1}


def _joined(record, index: Dict[str, AnimalRecord]):
    """Name/species for a child row: embedded join first, then the animals snapshot."""
    name = species = None
    if record.animals is not None:
        name, species = record.animals.name, record.animals.species
    animal = index.get(record.animal_id)
    if animal is not None:
        name = name or animal.name
        species = species or animal.species
    return name or "Unknown", species or "Unknown"


def compute_alerts(animals: Iterable[AnimalRecord],
                   vaccinations: Iterable[VaccinationRecord],
                   health_records: Iterable[HealthRecord],
                   today: date,
                   now: Optional[datetime] = None) -> List[Alert]:
    """
    Build the unified alert list.

    - animals in a critical status -> critical_health (critical only when sick)
    - vaccinations due strictly before today -> vaccination_due, always critical
    - health records with a checkup strictly before today -> checkup_overdue, high
    """
    now = now or datetime.now(timezone.utc)
    animals = list(animals)
    index = {a.id: a for a in animals}
    alerts: List[Alert] = []

    seen = set()
    for animal in animals:
        if animal.health_status not in CRITICAL_STATUSES or animal.id in seen:
            continue
        seen.add(animal.id)
        name = animal.name or "Unknown"
        alerts.append(Alert(
            id=f"health-{animal.id}",
            type=AlertType.CRITICAL_HEALTH,
            animal_id=animal.id,
            animal_name=name,
            species=animal.species or "Unknown",
            message=f"{name} is {animal.health_status}",
            priority=Priority.CRITICAL if animal.health_status == "sick" else Priority.HIGH,
            created_at=now.isoformat(),
        ))

    for vacc in vaccinations:
        if vacc.next_due_date is None or not vacc.next_due_date < today:
            continue
        name, species = _joined(vacc, index)
        alerts.append(Alert(
            id=f"vacc-{vacc.id}",
            type=AlertType.VACCINATION_DUE,
            animal_id=vacc.animal_id,
            animal_name=name,
            species=species,
            message=f"{vacc.vaccine_name} overdue for {name}",
            priority=Priority.CRITICAL,
            created_at=vacc.next_due_date.isoformat(),
        ))

    for record in health_records:
        if record.next_checkup_date is None or not record.next_checkup_date < today:
            continue
        name, species = _joined(record, index)
        alerts.append(Alert(
            id=f"checkup-{record.id}",
            type=AlertType.CHECKUP_OVERDUE,
            animal_id=record.animal_id,
            animal_name=name,
            species=species,
            message=f"Checkup overdue for {name}",
            priority=Priority.HIGH,
            created_at=record.next_checkup_date.isoformat(),
        ))

    # sorted() is stable: input order survives within a priority
    return sorted(alerts, key=lambda a: _PRIORITY_ORDER[a.priority])
