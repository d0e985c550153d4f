from django.contrib import admin

from lifeos.api.models import AutomationFiring, BodyMeasurement, Reminder, Todo, UserSettings


@admin.register(Todo)
class TodoAdmin(admin.ModelAdmin):
    list_display = ('title', 'dueDate', 'completed', 'category', 'isRecurring', 'recurrence')
    list_filter = ('completed', 'category', 'isRecurring')
    search_fields = ('title', 'notes')


@admin.register(Reminder)
class ReminderAdmin(admin.ModelAdmin):
    list_display = ('title', 'remindAt', 'fired')
    list_filter = ('fired',)


@admin.register(AutomationFiring)
class AutomationFiringAdmin(admin.ModelAdmin):
    list_display = ('kind', 'key', 'day', 'createdAt')
    list_filter = ('kind',)


@admin.register(BodyMeasurement)
class BodyMeasurementAdmin(admin.ModelAdmin):
    list_display = ('measuredAt', 'weightKg', 'bodyFatPct', 'waistCm')


admin.site.register(UserSettings)
