from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from .models import AnimalRecord, Urgency, VaccinationRecord, VaccinationReminder

DEFAULT_HORIZON_DAYS = 30
URGENT_WITHIN_DAYS = 7

URGENCY_LABELS = {
    Urgency.OVERDUE.value: "Overdue",
    Urgency.URGENT.value: "Due Soon",
    Urgency.UPCOMING.value: "Upcoming",
}


def classify_urgency(days_until_due: int) -> Urgency:
    if days_until_due < 0:
        return Urgency.OVERDUE
    if days_until_due <= URGENT_WITHIN_DAYS:
        return Urgency.URGENT
    return Urgency.UPCOMING


def describe_due(days_until_due: int) -> str:
    if days_until_due < 0:
        return f"{abs(days_until_due)} days overdue"
    if days_until_due == 0:
        return "Due today"
    if days_until_due == 1:
        return "Due tomorrow"
    return f"Due in {days_until_due} days"


def compute_reminders(vaccinations: Iterable[VaccinationRecord], today: date,
                      horizon_days: int = DEFAULT_HORIZON_DAYS,
                      animals: Optional[Iterable[AnimalRecord]] = None) -> List[VaccinationReminder]:
    """
    Reminders for every vaccination due on or before today + horizon_days,
    earliest first. Overdue doses are kept regardless of how late they are.
    """
    index: Dict[str, AnimalRecord] = {a.id: a for a in animals or ()}
    limit = today + timedelta(days=horizon_days)
    reminders = []

    for vacc in vaccinations:
        if vacc.next_due_date is None or vacc.next_due_date > limit:
            continue
        # both sides are calendar dates, so the day delta is already whole
        days = (vacc.next_due_date - today).days
        animal = index.get(vacc.animal_id)
        name = (vacc.animals.name if vacc.animals else None) or (animal.name if animal else None)
        species = (vacc.animals.species if vacc.animals else None) or (animal.species if animal else None)
        reminders.append(VaccinationReminder(
            id=vacc.id,
            animal_id=vacc.animal_id,
            animal_name=name or "Unknown",
            species=species or "Unknown",
            vaccine_name=vacc.vaccine_name,
            next_due_date=vacc.next_due_date,
            days_until_due=days,
            urgency=classify_urgency(days),
            due_text=describe_due(days),
        ))

    reminders.sort(key=lambda r: r.next_due_date)
    return reminders
