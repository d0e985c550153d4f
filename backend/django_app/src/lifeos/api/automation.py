"""Threshold automation rules.

A rule watches one daily metric (protein, hydration or workout minutes) and,
once the local clock reaches its trigger hour, creates a todo or a reminder
when the metric crosses the threshold. Each rule fires at most once per local
date; the firing is recorded in ``AutomationFiring`` and the created record
also carries an ``AUTO_RULE:<rule id>:<date>`` marker. An existing record with
that marker also counts as a firing.
"""

import logging
import math
from dataclasses import asdict, dataclass

from django.db import DatabaseError, transaction

from lifeos.api.firing import claim_firing
from lifeos.api.metrics import compute_metric_snapshot, round_half_up
from lifeos.api.models import AutomationFiring, Reminder, Todo
from lifeos.api.timeutils import local_datetime, local_day_bounds, resolve_zone

logger = logging.getLogger(__name__)

COMPARATORS = ('lt', 'lte', 'gt', 'gte')
ACTION_TYPES = ('todo', 'reminder')

COMPARATOR_ALIASES = {'<': 'lt', '<=': 'lte', '>': 'gt', '>=': 'gte'}

DEFAULT_THRESHOLD = 70
DEFAULT_TRIGGER_HOUR = 18
DEFAULT_ACTION_TITLE = 'Follow up on your health target'
AUTOMATION_URL = '/health/automations'


@dataclass
class AutomationRule:
    id: str
    name: str
    enabled: bool
    metric: str
    comparator: str
    threshold: float
    triggerHour: int
    actionType: str
    actionTitle: str

    def to_dict(self):
        return asdict(self)


DEFAULT_AUTOMATION_RULES = (
    AutomationRule(
        id='protein-check-7pm',
        name='Protein check-in',
        enabled=True,
        metric='proteinPct',
        comparator='lt',
        threshold=70,
        triggerHour=19,
        actionType='todo',
        actionTitle='Add a high-protein meal before bed',
    ),
    AutomationRule(
        id='hydration-check-5pm',
        name='Hydration check-in',
        enabled=True,
        metric='hydrationPct',
        comparator='lt',
        threshold=65,
        triggerHour=17,
        actionType='reminder',
        actionTitle='Finish hydration target for today',
    ),
    AutomationRule(
        id='workout-check-6pm',
        name='Workout consistency check',
        enabled=True,
        metric='workoutMinutes',
        comparator='lt',
        threshold=20,
        triggerHour=18,
        actionType='todo',
        actionTitle='Do a quick 20-minute workout session',
    ),
)


def default_rules():
    return [AutomationRule(**rule.to_dict()) for rule in DEFAULT_AUTOMATION_RULES]


def _text(value, fallback):
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def _finite(value):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _clamp_hour(value):
    number = _finite(value)
    if number is None:
        return DEFAULT_TRIGGER_HOUR
    return min(23, max(0, round_half_up(number)))


def _normalize_rule(raw, index):
    comparator = COMPARATOR_ALIASES.get(raw.get('comparator'), raw.get('comparator'))
    threshold = _finite(raw.get('threshold'))
    return AutomationRule(
        id=_text(raw.get('id'), f'rule-{index + 1}'),
        name=_text(raw.get('name'), f'Rule {index + 1}'),
        enabled=bool(raw.get('enabled')),
        # Unrecognised metric keys are kept so evaluation reports no match
        metric=_text(raw.get('metric'), 'proteinPct'),
        comparator=comparator if comparator in COMPARATORS else 'lt',
        threshold=threshold if threshold is not None else DEFAULT_THRESHOLD,
        triggerHour=_clamp_hour(raw.get('triggerHour')),
        actionType=raw.get('actionType') if raw.get('actionType') in ACTION_TYPES else 'todo',
        actionTitle=_text(raw.get('actionTitle'), DEFAULT_ACTION_TITLE),
    )


def normalize_rules(value):
    """Coerce stored or submitted rule data into ``AutomationRule`` objects.

    Anything that is not a non-empty list of objects yields the default rules.
    """
    if not isinstance(value, list):
        return default_rules()
    rules = [
        _normalize_rule(raw, index)
        for index, raw in enumerate(item for item in value if isinstance(item, dict))
    ]
    return rules or default_rules()


def compare(value, comparator, threshold):
    if value is None or threshold is None:
        return False
    if comparator == 'lt':
        return value < threshold
    if comparator == 'lte':
        return value <= threshold
    if comparator == 'gt':
        return value > threshold
    if comparator == 'gte':
        return value >= threshold
    return False


def automation_marker(rule_id, day):
    return f'AUTO_RULE:{rule_id}:{day.isoformat()}'


def _marker_exists(rule, marker):
    if rule.actionType == 'reminder':
        return Reminder.objects.filter(body__contains=marker).exists()
    return Todo.objects.filter(notes__contains=marker).exists()


def _create_action(rule, day, zone):
    """Create the rule's todo or reminder unless it already fired on ``day``.

    A record already carrying the marker counts as fired, even when the
    firing log has no entry for it.
    """
    marker = automation_marker(rule.id, day)
    if _marker_exists(rule, marker):
        return False
    due = local_datetime(day, min(23, rule.triggerHour + 1), zone)
    with transaction.atomic():
        if not claim_firing(AutomationFiring.KIND_RULE, rule.id, day):
            return False
        if rule.actionType == 'reminder':
            Reminder.objects.create(
                title=rule.actionTitle,
                body=marker,
                remindAt=due,
                url=AUTOMATION_URL,
            )
        else:
            Todo.objects.create(
                title=rule.actionTitle,
                notes=marker,
                dueDate=due,
                category='automation',
                priority='normal',
            )
    logger.info('Automation rule %s fired for %s', rule.id, day.isoformat())
    return True


def evaluate_rules(rules, metrics, local_hour, day, dry_run=False, zone=None):
    """Evaluate ``rules`` against ``metrics`` for the local date ``day``.

    Returns ``{'dryRun', 'evaluatedRules', 'triggered'}`` where ``triggered``
    lists every enabled rule whose hour has come and whose metric matched.
    """
    zone = zone or resolve_zone()
    triggered = []
    for rule in rules:
        if not rule.enabled or local_hour < rule.triggerHour:
            continue
        value = metrics.get(rule.metric)
        if not compare(value, rule.comparator, rule.threshold):
            continue

        created = False
        if not dry_run:
            try:
                created = _create_action(rule, day, zone)
            except DatabaseError:
                logger.exception('Automation rule %s failed to create its %s', rule.id, rule.actionType)

        triggered.append({
            'ruleId': rule.id,
            'ruleName': rule.name,
            'metric': rule.metric,
            'value': round_half_up(value),
            'threshold': rule.threshold,
            'actionType': rule.actionType,
            'actionTitle': rule.actionTitle,
            'created': created,
        })

    return {
        'dryRun': dry_run,
        'evaluatedRules': len(rules),
        'triggered': triggered,
    }


def run_automations(config, day, local_hour, dry_run=False):
    zone = config.zone
    day_start, day_end = local_day_bounds(day, zone)
    snapshot = compute_metric_snapshot(config, day_start, day_end)
    report = evaluate_rules(
        config.automation_rules, snapshot.as_metrics(), local_hour, day, dry_run=dry_run, zone=zone
    )
    report['metricSnapshot'] = snapshot.as_dict()
    return report
