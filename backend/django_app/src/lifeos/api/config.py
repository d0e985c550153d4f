"""User preferences resolved once per request.

The raw preferences live in the ``UserSettings`` singleton row as a JSON
blob; ``load_config`` folds them over the defaults below so callers never
look up individual keys or repeat default values.
"""

import math
from dataclasses import dataclass, field

from django.db import transaction

from lifeos.api.automation import normalize_rules
from lifeos.api.models import UserSettings
from lifeos.api.timeutils import default_zone_name, resolve_zone

SETTINGS_ID = 'default'

DEFAULT_CALORIE_TARGET = 2000
DEFAULT_PROTEIN_PCT = 30
DEFAULT_CARBS_PCT = 40
DEFAULT_FAT_PCT = 30
DEFAULT_HYDRATION_BASE_ML = 2500


@dataclass
class AppConfig:
    calorie_target: float = DEFAULT_CALORIE_TARGET
    protein_pct: float = DEFAULT_PROTEIN_PCT
    carbs_pct: float = DEFAULT_CARBS_PCT
    fat_pct: float = DEFAULT_FAT_PCT
    hydration_base_ml: int = DEFAULT_HYDRATION_BASE_ML
    time_zone: str = field(default_factory=default_zone_name)
    automation_rules: list = field(default_factory=lambda: normalize_rules(None))

    @property
    def zone(self):
        return resolve_zone(self.time_zone)


def _number(value, default):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def load_settings_data():
    """Return the stored settings blob, or None when nothing was saved yet."""
    row = UserSettings.objects.filter(pk=SETTINGS_ID).first()
    if row is None:
        return None
    return row.data if isinstance(row.data, dict) else {}


def save_settings_data(data):
    row, _ = UserSettings.objects.update_or_create(pk=SETTINGS_ID, defaults={'data': data})
    return row.data


def merge_settings_data(**updates):
    """Overlay ``updates`` onto the stored blob, keeping unrelated keys."""
    with transaction.atomic():
        data = dict(load_settings_data() or {})
        data.update(updates)
        return save_settings_data(data)


def config_from_data(data):
    data = data or {}
    zone_name = data.get('timeZone') or data.get('timezone')
    return AppConfig(
        calorie_target=_number(data.get('calorieTarget'), DEFAULT_CALORIE_TARGET),
        protein_pct=_number(data.get('proteinPct'), DEFAULT_PROTEIN_PCT),
        carbs_pct=_number(data.get('carbsPct'), DEFAULT_CARBS_PCT),
        fat_pct=_number(data.get('fatPct'), DEFAULT_FAT_PCT),
        hydration_base_ml=int(_number(data.get('hydrationBaseMl'), DEFAULT_HYDRATION_BASE_ML)),
        time_zone=resolve_zone(zone_name).key,
        automation_rules=normalize_rules(data.get('automationRules')),
    )


def load_config():
    return config_from_data(load_settings_data())
