"""Spawning of today's instances for recurring todo templates."""

import logging

from django.db import DatabaseError, transaction

from lifeos.api.firing import claim_firing
from lifeos.api.models import AutomationFiring, Todo
from lifeos.api.timeutils import local_day_bounds, local_now, resolve_zone

logger = logging.getLogger(__name__)

MONDAY = 0
FRIDAY = 4


def is_due_today(recurrence, anchor, now):
    """Whether a template with ``recurrence`` should have an instance on ``now``'s day.

    ``anchor`` is the template's own due date; it picks the weekday for
    ``weekly`` and the day of month for ``monthly``. Monthly anchors past the
    end of a short month do not fire that month.
    """
    if anchor is not None:
        anchor = anchor.astimezone(now.tzinfo)
    if recurrence == 'daily':
        return True
    if recurrence == 'weekdays':
        return MONDAY <= now.weekday() <= FRIDAY
    if recurrence == 'weekly':
        target = anchor.weekday() if anchor is not None else MONDAY
        return now.weekday() == target
    if recurrence == 'monthly':
        target = anchor.day if anchor is not None else 1
        return now.day == target
    return False


def _spawn_instance(template, now, day_start, day_end):
    if Todo.objects.filter(recurrenceParent=template, dueDate__range=(day_start, day_end)).exists():
        return None
    if not is_due_today(template.recurrence, template.dueDate, now):
        return None
    with transaction.atomic():
        # Deleted instances stay deleted for the rest of the day
        if not claim_firing(AutomationFiring.KIND_RECURRENCE, template.pk, now.date()):
            return None
        return Todo.objects.create(
            title=template.title,
            notes=template.notes,
            dueDate=now,
            priority=template.priority,
            icon=template.icon,
            category='recurring',
            isRecurring=False,
            recurrenceParent=template,
        )


def spawn_due_instances(templates, now):
    """Create today's instance for every due template that has none yet.

    ``now`` must be aware and in the user's local zone. A failure on one
    template is logged and the rest are still processed.
    """
    day_start, day_end = local_day_bounds(now.date(), now.tzinfo)
    created = []
    for template in templates:
        try:
            instance = _spawn_instance(template, now, day_start, day_end)
        except DatabaseError:
            logger.exception('Recurring spawn failed for template %s', template.pk)
            continue
        if instance is not None:
            created.append(instance)
    if created:
        logger.info('Spawned %d recurring todo(s) for %s', len(created), now.date().isoformat())
    return created


def recurring_templates():
    return Todo.objects.filter(isRecurring=True, recurrence__isnull=False)


def spawn_recurring_todos(zone=None, now=None):
    """Spawn instances for all stored templates; never raises database errors."""
    zone = zone or resolve_zone()
    now = now.astimezone(zone) if now is not None else local_now(zone)
    try:
        templates = list(recurring_templates())
    except DatabaseError:
        logger.exception('Failed to load recurring templates')
        return []
    return spawn_due_instances(templates, now)
