"""Pydantic models for farm records, derived views and write-path payloads.

Records arrive from PostgREST as JSON rows. Date columns may come back as a
plain ISO date or as a full timestamp; both are reduced to a calendar date.
Null dates stay None and mean "not applicable".
"""

from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_date(value):
    """Reduce an ISO date/timestamp string (or datetime) to a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    if "T" in text or " " in text:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    return date.fromisoformat(text)


# ------------------------
# Source records
# ------------------------
class AnimalRef(BaseModel):
    """The embedded ``animals(name, species)`` join on a child row."""
    name: Optional[str] = None
    species: Optional[str] = None


class AnimalRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: Optional[str] = None
    species: Optional[str] = None
    health_status: Optional[str] = None


class VaccinationRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    animal_id: str
    vaccine_name: str
    next_due_date: Optional[date] = None
    animals: Optional[AnimalRef] = None

    @field_validator("next_due_date", mode="before")
    @classmethod
    def parse_dates(cls, value):
        return to_date(value)


class HealthRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    animal_id: str
    diagnosis: Optional[str] = None
    record_date: date
    next_checkup_date: Optional[date] = None
    animals: Optional[AnimalRef] = None

    @field_validator("record_date", "next_checkup_date", mode="before")
    @classmethod
    def parse_dates(cls, value):
        return to_date(value)


# ------------------------
# Derived views
# ------------------------
class AlertType(str, Enum):
    CRITICAL_HEALTH = "critical_health"
    VACCINATION_DUE = "vaccination_due"
    CHECKUP_OVERDUE = "checkup_overdue"


class Priority(str, Enum):
    HIGH = "high"
    CRITICAL = "critical"


class Alert(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    id: str
    type: AlertType
    animal_id: str
    animal_name: str
    species: str
    message: str
    priority: Priority
    created_at: str


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class DiseaseStat(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    diagnosis: str
    count: int
    trend: Trend
    recent_cases: int
    species_affected: List[str] = Field(default_factory=list)


class Urgency(str, Enum):
    OVERDUE = "overdue"
    URGENT = "urgent"
    UPCOMING = "upcoming"


class VaccinationReminder(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    id: str
    animal_id: str
    animal_name: str
    species: str
    vaccine_name: str
    next_due_date: date
    days_until_due: int
    urgency: Urgency
    due_text: str


# ------------------------
# Nutrition reference data
# ------------------------
class QuantityRange(BaseModel):
    """Structured reading of a display range such as "30-35" (kg)."""
    min: float
    max: float
    unit: str


class NutritionRequirement(BaseModel):
    species: str
    category: str  # calf, young, adult, lactating, dry, layer, broiler
    daily_requirements: Dict[str, str]  # greenFodder/dryFodder/concentrate kg, water litres, minerals
    feed_composition: Dict[str, str]
    seasonal_adjustments: Dict[str, str]

    def quantity(self, field: str, unit: str = "kg") -> Optional[QuantityRange]:
        from .nutrition import parse_quantity_range

        return parse_quantity_range(self.daily_requirements.get(field, ""), unit)


class FeedType(BaseModel):
    name: str
    category: str
    protein: float  # per 100g
    energy: float
    fiber: float
    cost: float  # average INR per kg
    availability: str
    best_for: List[str]


# ------------------------
# Write-path payloads
# ------------------------
class FeedingLogInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    animal_id: UUID
    feed_type: str = Field(min_length=1, max_length=100)
    quantity_fed: str = Field(min_length=1, max_length=50)
    animal_response: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class ReviewInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    rating: int = Field(ge=1, le=5)
    review_text: Optional[str] = Field(default=None, max_length=1000)


def first_error_message(exc) -> str:
    """Message of the first violated constraint in a pydantic ValidationError."""
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    err = errors[0]
    field = ".".join(str(p) for p in err.get("loc", ()))
    return f"{field}: {err.get('msg')}" if field else err.get("msg", "Invalid input")
