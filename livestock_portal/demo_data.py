"""
Demo data for weather, disease surveillance and notifications.

Stands in for the real upstream feed until it is wired up. Every generator
takes an optional random.Random so a seeded run is reproducible.
"""
import random
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from . import config

WEATHER_CONDITIONS = [
    {"condition": "Sunny", "temp": (25, 35), "humidity": (40, 60)},
    {"condition": "Partly Cloudy", "temp": (22, 32), "humidity": (50, 70)},
    {"condition": "Cloudy", "temp": (20, 28), "humidity": (60, 80)},
    {"condition": "Rainy", "temp": (18, 25), "humidity": (75, 95)},
    {"condition": "Stormy", "temp": (15, 22), "humidity": (85, 98)},
]

WEATHER_ALERTS = [
    "Heavy Rain Warning - Next 48 hours",
    "Heat Wave Alert - Take precautions",
    "Strong Wind Warning - Secure shelters",
    "Thunderstorm Alert - Move animals to covered areas",
    "Cold Wave Warning - Ensure warmth for young animals",
]

LIVESTOCK_ADVISORIES = [
    "Move cattle to covered area. Ensure adequate ventilation and dry bedding.",
    "Provide extra water and shade. Monitor for heat stress symptoms.",
    "Secure all loose equipment. Ensure animals have access to sturdy shelters.",
    "Keep animals indoors. Ensure feed stocks are protected from moisture.",
    "Provide extra bedding and warmth. Monitor newborns and young animals closely.",
    "Maintain good air circulation. Check water supply hasn't frozen.",
]

DISEASES = [
    {"name": "Foot and Mouth Disease", "species": ["Cattle", "Buffalo", "Goat", "Sheep"], "severity": ["high", "critical"]},
    {"name": "Lumpy Skin Disease", "species": ["Cattle", "Buffalo"], "severity": ["medium", "high"]},
    {"name": "Brucellosis", "species": ["Cattle", "Buffalo", "Goat"], "severity": ["medium", "high"]},
    {"name": "Peste des Petits Ruminants", "species": ["Goat", "Sheep"], "severity": ["high", "critical"]},
    {"name": "Avian Influenza", "species": ["Poultry"], "severity": ["critical"]},
    {"name": "Black Quarter", "species": ["Cattle", "Buffalo"], "severity": ["high", "critical"]},
    {"name": "Mastitis", "species": ["Cattle", "Buffalo"], "severity": ["medium"]},
    {"name": "Anthrax", "species": ["Cattle", "Buffalo", "Sheep", "Goat"], "severity": ["critical"]},
]

LOCATIONS = [
    "Maharashtra - Pune District",
    "Maharashtra - Nagpur District",
    "Maharashtra - Ahmednagar District",
    "Maharashtra - Nashik District",
    "Maharashtra - Satara District",
    "Gujarat - Ahmedabad District",
    "Rajasthan - Jaipur District",
    "Punjab - Ludhiana District",
]

PREDICTIONS = [
    "High risk in your area. Vaccination recommended immediately.",
    "Moderate risk. Monitor animals closely for symptoms.",
    "Low risk currently. Continue regular health checks.",
    "Spreading pattern detected. Implement biosecurity measures.",
    "Declining trend. Maintain current preventive measures.",
    "Seasonal outbreak expected. Prepare vaccination schedule.",
]

SEVERITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}

# (offset, span) for reported cases: offset + randrange(span)
REPORTED_CASES = {"critical": (40, 50), "high": (20, 40), "medium": (10, 25), "low": (5, 15)}

NOTIFICATION_TEMPLATES = {
    "weather": [
        ("Weather Alert", "Heavy rainfall expected tomorrow. Secure your livestock shelters."),
        ("Heat Wave Warning", "Temperatures above 40°C expected. Ensure adequate water supply."),
        ("Storm Warning", "Severe thunderstorm alert for your region. Take necessary precautions."),
    ],
    "disease": [
        ("Disease Alert", "Foot and Mouth Disease cases reported in nearby district."),
        ("Health Advisory", "Lumpy Skin Disease outbreak detected. Check vaccination status."),
        ("Disease Update", "Avian Influenza cases declining in your region."),
    ],
    "vaccination": [
        ("Vaccination Due", "Your cattle 'Ganga' needs vaccination in 3 days."),
        ("Vaccination Reminder", "5 animals due for vaccination this week."),
        ("Vaccination Campaign", "Free vaccination camp in your village on Friday."),
    ],
    "marketplace": [
        ("New Inquiry", "Someone is interested in your livestock listing."),
        ("Listing Approved", "Your marketplace listing has been approved and is now live."),
        ("Price Update", "Similar listings in your area are priced 10% higher."),
    ],
    "health": [
        ("Health Check Due", "Time for routine health check-up of your animals."),
        ("Treatment Reminder", "Continue medication for 'Lakshmi' for 2 more days."),
        ("Health Report", "Lab results for your animal are now available."),
    ],
    "system": [
        ("New Feature", "AI Pashu Doctor chatbot is now available!"),
        ("System Update", "New disease surveillance features added to dashboard."),
        ("Scheme Alert", "New government scheme available for dairy farmers."),
    ],
}

PRIORITIES = ["low", "medium", "high", "critical"]


def _uniform_int(rng: random.Random, bounds) -> int:
    low, high = bounds
    return int(rng.random() * (high - low) + low)


def generate_weather_data(coords: Optional[Dict[str, float]] = None,
                          rng: Optional[random.Random] = None) -> Dict[str, Any]:
    """Random weather for a location. coords are accepted but not used yet."""
    rng = rng or random.Random()
    selected = rng.choice(WEATHER_CONDITIONS)
    has_alert = rng.random() > 0.6  # 40% chance of a weather alert
    condition = selected["condition"]

    forecast_options = [
        f"Expect {condition.lower()} conditions throughout the day.",
        f"{condition} in the morning, clearing by afternoon.",
        f"{condition} conditions expected. {'Monitor weather updates regularly.' if has_alert else ''}",
    ]
    return {
        "temperature": _uniform_int(rng, selected["temp"]),
        "condition": condition,
        "humidity": _uniform_int(rng, selected["humidity"]),
        "windSpeed": rng.randrange(25) + 5,
        "forecast": rng.choice(forecast_options),
        "alerts": [rng.choice(WEATHER_ALERTS)] if has_alert else [],
        "advisory": rng.choice(LIVESTOCK_ADVISORIES),
    }


def simulate_weather_update(weather: Dict[str, Any], rng: Optional[random.Random] = None) -> Dict[str, Any]:
    rng = rng or random.Random()

    def jitter(limit):
        return (1 if rng.random() > 0.5 else -1) * rng.randrange(limit)

    updated = dict(weather)
    updated["temperature"] = weather["temperature"] + jitter(3)
    updated["humidity"] = max(20, min(100, weather["humidity"] + jitter(5)))
    updated["windSpeed"] = max(0, weather["windSpeed"] + jitter(3))
    return updated


def generate_disease_alerts(count: int = 2, rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    """
    Draw up to `count` distinct diseases from the catalog, most severe first.
    """
    rng = rng or random.Random()
    picked = rng.sample(DISEASES, min(max(count, 0), len(DISEASES)))
    stamp = int(time.time() * 1000)
    alerts = []
    for i, disease in enumerate(picked):
        severity = rng.choice(disease["severity"])
        offset, span = REPORTED_CASES[severity]
        alerts.append({
            "id": f"disease-{stamp}-{i}",
            "disease": disease["name"],
            "species": ", ".join(disease["species"]),
            "severity": severity,
            "location": rng.choice(LOCATIONS),
            "reportedCases": rng.randrange(span) + offset,
            "date": datetime.now(timezone.utc).isoformat(),
            "prediction": rng.choice(PREDICTIONS),
        })
    alerts.sort(key=lambda a: SEVERITY_ORDER[a["severity"]])
    return alerts


def generate_notifications(count: int = 10, rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    """Random notifications from the last 72 hours, newest first."""
    rng = rng or random.Random()
    now = datetime.now(timezone.utc)
    stamp = int(time.time() * 1000)
    notifications = []
    for i in range(count):
        kind = rng.choice(list(NOTIFICATION_TEMPLATES))
        title, message = rng.choice(NOTIFICATION_TEMPLATES[kind])
        hours_ago = rng.randrange(72)
        notifications.append({
            "id": f"notification-{stamp}-{i}",
            "title": title,
            "message": message,
            "type": kind,
            "priority": rng.choice(PRIORITIES),
            "timestamp": (now - timedelta(hours=hours_ago)).isoformat(),
            "isRead": rng.random() > 0.4,  # 60% already read
        })
    notifications.sort(key=lambda n: n["timestamp"], reverse=True)
    return notifications


def emergency_contacts() -> List[Dict[str, Any]]:
    return [
        {"id": "default-1", "contact_name": "RF WhatsApp Chatbot", "contact_number": "+91-1234567890",
         "relationship": "AI Support", "is_default": True},
        {"id": "default-2", "contact_name": "RF IVRS - Content Support", "contact_number": "+91-0987654321",
         "relationship": "Content Helpline", "is_default": True},
        {"id": "default-3", "contact_name": "RF IVRS - Feedback", "contact_number": "+91-1122334455",
         "relationship": "Feedback Line", "is_default": True},
    ]


def seed_demo_notifications(user_id: str, count: int = 15, rng: Optional[random.Random] = None) -> Any:
    """Insert demo notifications for a user (testing aid). Returns inserted rows."""
    from .supabase_rest import supabase_insert

    rows = [{
        "user_id": user_id,
        "title": n["title"],
        "message": n["message"],
        "type": n["type"],
        "priority": n["priority"],
        "is_read": n["isRead"],
        "created_at": n["timestamp"],
    } for n in generate_notifications(count, rng)]
    return supabase_insert("notifications", rows)


# =====================================================================
# Data sources: demo generators or the real feed behind one interface
# =====================================================================
class DataSource(ABC):
    @abstractmethod
    def weather(self, lat: Optional[float], lon: Optional[float]) -> Dict[str, Any]:
        """Current conditions near the given coordinates."""
        pass

    @abstractmethod
    def disease_alerts(self, count: int, state: Optional[str] = None) -> List[Dict[str, Any]]:
        """Up to count active outbreak alerts, optionally for one state."""
        pass


class DemoDataSource(DataSource):
    def __init__(self, seed: Optional[int] = None):
        self.rng = random.Random(seed)

    def weather(self, lat, lon):
        return generate_weather_data({"latitude": lat, "longitude": lon}, rng=self.rng)

    def disease_alerts(self, count, state=None):
        return generate_disease_alerts(count, rng=self.rng)


class RemoteFeedDataSource(DataSource):
    """Weather and disease surveillance from the upstream feed API."""

    def __init__(self, base_url: str, token: Optional[str] = None):
        self.base_url = base_url.rstrip("/")
        self.token = token

    def _post(self, endpoint: str, payload: Dict[str, Any]) -> Any:
        headers = {"Content-Type": "application/json", "X-API-Version": "1.0"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        r = requests.post(f"{self.base_url}{endpoint}", headers=headers, json=payload,
                          timeout=config.REQUEST_TIMEOUT)
        r.raise_for_status()
        return r.json()

    def weather(self, lat, lon):
        return self._post("/weather", {"lat": lat, "lon": lon})

    def disease_alerts(self, count, state=None):
        alerts = self._post("/disease/outbreaks", {"state": state})
        return alerts[:count] if isinstance(alerts, list) else alerts


def get_data_source() -> DataSource:
    if config.DATA_SOURCE == "remote" and config.RF_API_BASE:
        return RemoteFeedDataSource(config.RF_API_BASE)
    seed = int(config.DEMO_SEED) if config.DEMO_SEED else None
    return DemoDataSource(seed)
