"""
Nutrition guidelines for Indian livestock species.

Quantities are kept as the display strings shown to farmers ("30-35" kg,
"3-5 (1 kg per 2.5 liters of milk)"). Use parse_quantity_range() for a
structured reading; estimate_daily_cost() is a rough heuristic, not costing.
"""
import math
import re
from datetime import date
from typing import Dict, List, Optional

from .models import FeedType, NutritionRequirement, QuantityRange


def _req(species, category, daily, composition, seasonal):
    keys = ("greenFodder", "dryFodder", "concentrate", "water", "minerals")
    comp_keys = ("protein", "energy", "fiber", "calcium", "phosphorus")
    return NutritionRequirement(
        species=species,
        category=category,
        daily_requirements=dict(zip(keys, daily)),
        feed_composition=dict(zip(comp_keys, composition)),
        seasonal_adjustments=dict(zip(("summer", "monsoon", "winter"), seasonal)),
    )


NUTRITION_DATABASE: List[NutritionRequirement] = [
    _req("cattle", "lactating",
         ("30-35", "6-8", "3-5 (1 kg per 2.5 liters of milk)", "50-80", "50g mineral mixture + 25g salt"),
         ("14-16%", "65-70% TDN", "18-20%", "0.6-0.8%", "0.4-0.5%"),
         ("Increase water by 20-30%. Add cooling feeds like berseem, lucerne.",
          "Ensure dry storage. Increase vitamin A supplementation.",
          "Increase energy feed by 10%. Provide lukewarm water.")),
    _req("cattle", "dry",
         ("20-25", "4-5", "1-1.5", "30-40", "30g mineral mixture + 20g salt"),
         ("10-12%", "60% TDN", "20-25%", "0.4-0.5%", "0.3%"),
         ("Provide shade and plenty of water. Green fodder in evening.",
          "Protect from rain. Check for foot rot regularly.",
          "Increase concentrate slightly. Ensure warm shelter.")),
    _req("cattle", "calf",
         ("3-5 (after 2 months)", "0.5-1", "0.5-1 (calf starter)", "5-10 + milk/colostrum", "Ad libitum mineral lick"),
         ("18-20%", "70% TDN", "12-15%", "0.8%", "0.5%"),
         ("Protect from heat stress. Frequent small meals.",
          "Keep dry and clean. Prevent pneumonia.",
          "Warm housing. Monitor for hypothermia.")),
    _req("buffalo", "lactating",
         ("35-40", "8-10", "4-6 (1 kg per 2-2.5 liters of milk)", "60-100", "60g mineral mixture + 30g salt"),
         ("15-18%", "68-72% TDN", "18-20%", "0.7%", "0.5%"),
         ("Provide wallowing facility. Increase water intake.",
          "Rich green fodder available. Monitor weight.",
          "Buffaloes handle cold well. Normal feeding.")),
    _req("goat", "adult",
         ("3-5", "0.5-1", "0.2-0.3", "3-5", "10g mineral mixture + 5g salt"),
         ("12-14%", "60% TDN", "12-16%", "0.5%", "0.3%"),
         ("Browse in early morning/evening. Plenty of shade.",
          "Watch for parasites. Deworm regularly.",
          "Increase concentrate slightly. Provide shelter.")),
    _req("goat", "lactating",
         ("4-6", "1-1.5", "0.3-0.5", "5-8", "15g mineral mixture + 5g salt"),
         ("14-16%", "65% TDN", "14-18%", "0.6%", "0.4%"),
         ("Milking goats need extra water. Leafy greens.",
          "Quality fodder. Watch for mastitis.",
          "Energy-rich feed. Warm housing.")),
    _req("sheep", "adult",
         ("3-4", "0.5-1", "0.2-0.25", "2-4", "10g mineral mixture + 5g salt"),
         ("10-12%", "58-60% TDN", "15-20%", "0.4%", "0.25%"),
         ("Grazing in cooler hours. Shade essential.",
          "Manage foot problems. Dry bedding.",
          "Good season for sheep. Normal feeding.")),
    _req("poultry", "layer",
         ("Limited greens/vegetables", "N/A", "100-120g layer feed", "200-300ml", "Provided in layer feed + shell grit"),
         ("16-18%", "2700-2800 kcal/kg", "4-5%", "3.5-4%", "0.6%"),
         ("Increase water. Add electrolytes. Reduce density.",
          "Prevent mycotoxin in feed. Dry storage.",
          "Increase energy by 5%. Prevent cold stress.")),
    _req("poultry", "broiler",
         ("Minimal", "N/A", "Starter: 50g, Grower: 80g, Finisher: 100g", "Ad libitum (150-250ml)", "Complete in broiler feed"),
         ("Starter: 22%, Grower: 20%, Finisher: 18%", "3000-3200 kcal/kg", "3-4%", "0.9-1%", "0.6-0.7%"),
         ("Heat stress management critical. Electrolytes.",
          "Prevent wet litter. Ventilation crucial.",
          "Optimal season. Maintain temperature.")),
]


COMMON_FEEDS: List[FeedType] = [
    FeedType(name="Berseem (Egyptian Clover)", category="green_fodder", protein=3.2, energy=18, fiber=4.5,
             cost=2, availability="Winter", best_for=["cattle", "buffalo", "goat", "sheep"]),
    FeedType(name="Lucerne (Alfalfa)", category="green_fodder", protein=4.5, energy=22, fiber=5,
             cost=3, availability="Year-round", best_for=["cattle", "buffalo", "goat"]),
    FeedType(name="Maize Fodder", category="green_fodder", protein=1.8, energy=20, fiber=6,
             cost=1.5, availability="Summer, Monsoon", best_for=["cattle", "buffalo"]),
    FeedType(name="Jowar Fodder", category="green_fodder", protein=2.0, energy=18, fiber=5.5,
             cost=1.5, availability="Summer", best_for=["cattle", "buffalo", "goat", "sheep"]),
    FeedType(name="Wheat Straw", category="dry_fodder", protein=2.5, energy=42, fiber=38,
             cost=1, availability="Year-round", best_for=["cattle", "buffalo"]),
    FeedType(name="Rice Straw", category="dry_fodder", protein=3.0, energy=35, fiber=40,
             cost=0.8, availability="Year-round", best_for=["cattle", "buffalo"]),
    FeedType(name="Cotton Seed Cake", category="concentrate", protein=22, energy=78, fiber=12,
             cost=35, availability="Year-round", best_for=["cattle", "buffalo"]),
    FeedType(name="Groundnut Cake", category="concentrate", protein=45, energy=80, fiber=8,
             cost=50, availability="Year-round", best_for=["cattle", "buffalo", "goat"]),
    FeedType(name="Wheat Bran", category="concentrate", protein=14, energy=65, fiber=10,
             cost=20, availability="Year-round", best_for=["cattle", "buffalo", "goat", "sheep"]),
    FeedType(name="Maize Grain", category="concentrate", protein=9, energy=85, fiber=2.5,
             cost=25, availability="Year-round", best_for=["cattle", "buffalo", "poultry"]),
    FeedType(name="Soybean Meal", category="concentrate", protein=48, energy=78, fiber=6,
             cost=55, availability="Year-round", best_for=["cattle", "buffalo", "poultry"]),
    FeedType(name="Mineral Mixture", category="supplement", protein=0, energy=0, fiber=0,
             cost=80, availability="Year-round", best_for=["cattle", "buffalo", "goat", "sheep", "poultry"]),
]

# INR per kg of the lower-bound quantity
COST_MULTIPLIERS = {"greenFodder": 2, "dryFodder": 1, "concentrate": 30}

_RANGE_RE = re.compile(r"(\d+(?:\.\d+)?)(?:\s*-\s*(\d+(?:\.\d+)?))?")
_LEADING_NUMBER_RE = re.compile(r"\s*(\d+(?:\.\d*)?|\.\d+)")


def lookup(species: str, category: str) -> Optional[NutritionRequirement]:
    """Exact (species, category) match, else the species' "adult" entry, else None."""
    species, category = species.lower(), category.lower()
    for req in NUTRITION_DATABASE:
        if req.species.lower() == species and req.category.lower() == category:
            return req
    for req in NUTRITION_DATABASE:
        if req.species.lower() == species and req.category == "adult":
            return req
    return None


def parse_quantity_range(text: str, unit: str = "kg") -> Optional[QuantityRange]:
    """First numeric range in a display string; a single number gives min == max."""
    match = _RANGE_RE.search(text or "")
    if not match:
        return None
    low = float(match.group(1))
    high = float(match.group(2)) if match.group(2) else low
    return QuantityRange(min=low, max=high, unit=unit)


def first_token_quantity(text: str, strip_non_numeric: bool = False) -> Optional[float]:
    """
    Lower bound as the cost estimate reads it: the text before the first "-",
    optionally with every non-numeric character removed, parsed as a leading
    number. Returns None when nothing numeric leads the token.
    """
    token = text.split("-")[0]
    if strip_non_numeric:
        token = re.sub(r"[^0-9.]", "", token)
    match = _LEADING_NUMBER_RE.match(token)
    if not match:
        return None
    return float(match.group(1))


def estimate_daily_cost(species: str, category: str) -> Optional[Dict[str, int]]:
    """
    Approximate feed cost per animal per day in INR as {"min", "max"}.

    min = floor(green*2 + dry*1 + concentrate*30) over lower-bound quantities,
    max = ceil(min * 1.5). None when there is no entry or a quantity has no
    leading number (e.g. poultry "N/A").
    """
    req = lookup(species, category)
    if not req:
        return None

    daily = req.daily_requirements
    total = 0.0
    for field, multiplier in COST_MULTIPLIERS.items():
        qty = first_token_quantity(daily[field], strip_non_numeric=(field == "concentrate"))
        if qty is None:
            return None
        total += qty * multiplier

    min_cost = math.floor(total)
    return {"min": min_cost, "max": math.ceil(min_cost * 1.5)}


def seasonal_advice(month: int) -> str:
    if 3 <= month <= 5:
        return "summer"
    if 6 <= month <= 9:
        return "monsoon"
    return "winter"


def current_season(today: Optional[date] = None) -> str:
    return seasonal_advice((today or date.today()).month)


def suitable_feeds(species: str) -> List[FeedType]:
    species = species.lower()
    return [feed for feed in COMMON_FEEDS if any(s.lower() == species for s in feed.best_for)]
