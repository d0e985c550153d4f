"""Daily metric snapshot used by the automation rules."""

import math
import re
from dataclasses import dataclass

from django.db.models import Sum

from lifeos.api.models import FoodLog, WaterLog, WorkoutLog

PROTEIN_KCAL_PER_GRAM = 4
WORKOUT_BLOCK_MINUTES = 30
WORKOUT_BLOCK_ML = 350
MAX_FLUID_PER_LOG_ML = 4000
DEFAULT_DRINK_ML = 250

DRINK_KEYWORDS = (
    'water', 'agua', 'juice', 'jugo', 'coffee', 'cafe', 'tea', 'smoothie',
    'shake', 'milk', 'leche', 'soda', 'coke', 'cola', 'gatorade',
    'electrolyte', 'sports drink', 'beer', 'cerveza', 'wine', 'vino',
    'cocktail', 'drink', 'bebida', 'broth', 'soup', 'caldo', 'sopa',
)

_AMOUNT = r'(\d+(?:[.,]\d+)?)\s*'
# (pattern, millilitres per unit)
FLUID_UNITS = [
    (re.compile(_AMOUNT + r'(?:ml|milliliters?|millilitres?)\b'), 1),
    (re.compile(_AMOUNT + r'(?:l|liters?|litres?)\b'), 1000),
    (re.compile(_AMOUNT + r'(?:oz|ounces?)\b'), 29.5735),
    (re.compile(_AMOUNT + r'(?:cups?|tazas?)\b'), 240),
    (re.compile(_AMOUNT + r'(?:glass|glasses|vasos?)\b'), 250),
    (re.compile(_AMOUNT + r'(?:bottles?|botellas?)\b'), 500),
]


def round_half_up(value):
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


@dataclass
class MetricSnapshot:
    protein_pct: float = 0.0
    hydration_pct: float = 0.0
    workout_minutes: int = 0

    def as_metrics(self):
        """Values keyed by the metric names automation rules refer to."""
        return {
            'proteinPct': self.protein_pct,
            'hydrationPct': self.hydration_pct,
            'workoutMinutes': self.workout_minutes,
        }

    def as_dict(self):
        return {
            'proteinPct': round_half_up(self.protein_pct),
            'hydrationPct': round_half_up(self.hydration_pct),
            'workoutMinutes': self.workout_minutes,
        }


def protein_target_grams(calorie_target, protein_pct):
    return round_half_up(calorie_target * protein_pct / 100 / PROTEIN_KCAL_PER_GRAM)


def hydration_target_ml(workout_minutes, base_ml=2500):
    blocks = round_half_up(workout_minutes / WORKOUT_BLOCK_MINUTES)
    return base_ml + blocks * WORKOUT_BLOCK_ML


def _to_number(raw):
    return float(raw.replace(',', '.'))


def estimate_fluid_ml(description, notes=None):
    """Estimate the fluid in a food log entry from its free text.

    Explicit amounts win; a drink with no amount counts as one glass.
    """
    text = f"{description or ''} {notes or ''}".strip().lower()
    if not text or not any(keyword in text for keyword in DRINK_KEYWORDS):
        return 0

    total = 0.0
    for pattern, ml_per_unit in FLUID_UNITS:
        for match in pattern.finditer(text):
            total += _to_number(match.group(1)) * ml_per_unit

    if total > 0:
        return min(round_half_up(total), MAX_FLUID_PER_LOG_ML)
    return DEFAULT_DRINK_ML


def compute_metric_snapshot(config, day_start, day_end):
    foods = FoodLog.objects.filter(loggedAt__gte=day_start, loggedAt__lte=day_end)
    protein_g = foods.aggregate(total=Sum('proteinG'))['total'] or 0
    food_fluid_ml = sum(
        estimate_fluid_ml(desc, notes) for desc, notes in foods.values_list('foodDescription', 'notes')
    )
    water_ml = (
        WaterLog.objects.filter(loggedAt__gte=day_start, loggedAt__lte=day_end)
        .aggregate(total=Sum('amountMl'))['total'] or 0
    )
    workout_minutes = (
        WorkoutLog.objects.filter(startedAt__gte=day_start, startedAt__lte=day_end)
        .aggregate(total=Sum('durationMinutes'))['total'] or 0
    )

    protein_target = protein_target_grams(config.calorie_target, config.protein_pct)
    hydration_target = hydration_target_ml(workout_minutes, config.hydration_base_ml)

    return MetricSnapshot(
        protein_pct=(protein_g / protein_target * 100) if protein_target > 0 else 0.0,
        hydration_pct=((water_ml + food_fluid_ml) / hydration_target * 100) if hydration_target > 0 else 0.0,
        workout_minutes=workout_minutes,
    )
