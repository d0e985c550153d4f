import uuid

from django.db import models


def _random_id():
    return str(uuid.uuid4())


class Todo(models.Model):
    RECURRENCE_CHOICES = [
        ('daily', 'Daily'),
        ('weekdays', 'Weekdays'),
        ('weekly', 'Weekly'),
        ('monthly', 'Monthly'),
    ]

    id = models.CharField(primary_key=True, max_length=64, default=_random_id)
    title = models.CharField(max_length=255)
    notes = models.TextField(blank=True, null=True)
    dueDate = models.DateTimeField(blank=True, null=True)
    completed = models.BooleanField(default=False)
    completedAt = models.DateTimeField(blank=True, null=True)
    priority = models.CharField(max_length=16, default='normal')
    icon = models.CharField(max_length=16, blank=True, null=True)
    category = models.CharField(max_length=32, default='manual')
    # A template is never completed itself, only its spawned instances
    isRecurring = models.BooleanField(default=False)
    recurrence = models.CharField(max_length=16, choices=RECURRENCE_CHOICES, blank=True, null=True)
    recurrenceParent = models.ForeignKey(
        'self', on_delete=models.SET_NULL, blank=True, null=True, related_name='instances'
    )
    createdAt = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['recurrenceParent', 'dueDate'], name='todo_parent_due_idx'),
        ]

    def __str__(self):
        return self.title


class Reminder(models.Model):
    id = models.CharField(primary_key=True, max_length=64, default=_random_id)
    title = models.CharField(max_length=255)
    body = models.TextField(blank=True, null=True)
    remindAt = models.DateTimeField()
    url = models.CharField(max_length=255, default='/todos')
    todo = models.ForeignKey(Todo, on_delete=models.SET_NULL, blank=True, null=True, related_name='reminders')
    fired = models.BooleanField(default=False)
    createdAt = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title


class UserSettings(models.Model):
    """Singleton JSON blob of user preferences, keyed by ``id='default'``."""

    id = models.CharField(primary_key=True, max_length=32, default='default')
    data = models.JSONField(default=dict)
    updatedAt = models.DateTimeField(auto_now=True)


class FoodLog(models.Model):
    foodDescription = models.TextField()
    notes = models.TextField(blank=True, null=True)
    calories = models.FloatField(default=0)
    proteinG = models.FloatField(default=0)
    carbsG = models.FloatField(default=0)
    fatG = models.FloatField(default=0)
    loggedAt = models.DateTimeField(db_index=True)


class WaterLog(models.Model):
    amountMl = models.IntegerField()
    loggedAt = models.DateTimeField(db_index=True)


class WorkoutLog(models.Model):
    workoutType = models.CharField(max_length=64)
    durationMinutes = models.IntegerField(default=0)
    notes = models.TextField(blank=True, null=True)
    startedAt = models.DateTimeField(db_index=True)


class BodyMeasurement(models.Model):
    MEASUREMENT_FIELDS = (
        'weightKg', 'bodyFatPct', 'waistCm', 'chestCm', 'armsCm', 'legsCm',
        'hipsCm', 'shouldersCm', 'neckCm', 'forearmsCm', 'calvesCm',
    )

    weightKg = models.FloatField(blank=True, null=True)
    bodyFatPct = models.FloatField(blank=True, null=True)
    waistCm = models.FloatField(blank=True, null=True)
    chestCm = models.FloatField(blank=True, null=True)
    armsCm = models.FloatField(blank=True, null=True)
    legsCm = models.FloatField(blank=True, null=True)
    hipsCm = models.FloatField(blank=True, null=True)
    shouldersCm = models.FloatField(blank=True, null=True)
    neckCm = models.FloatField(blank=True, null=True)
    forearmsCm = models.FloatField(blank=True, null=True)
    calvesCm = models.FloatField(blank=True, null=True)
    skinfoldData = models.JSONField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    measuredAt = models.DateTimeField(db_index=True)


class AutomationFiring(models.Model):
    """One row per (kind, key, local day) that has already fired.

    ``key`` is a rule id for ``rule`` firings, a template id for
    ``recurrence`` firings and a time zone name for ``cron`` runs.
    """

    KIND_RULE = 'rule'
    KIND_RECURRENCE = 'recurrence'
    KIND_CRON = 'cron'
    KIND_CHOICES = [
        (KIND_RULE, 'Automation rule'),
        (KIND_RECURRENCE, 'Recurring todo'),
        (KIND_CRON, 'Daily refresh'),
    ]

    kind = models.CharField(max_length=16, choices=KIND_CHOICES)
    key = models.CharField(max_length=128)
    day = models.DateField()
    createdAt = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('kind', 'key', 'day')

    def __str__(self):
        return f'{self.kind}:{self.key}:{self.day.isoformat()}'
