from django.contrib import admin
from django.urls import path
from lifeos.api import views as api

urlpatterns = [
    path('admin/', admin.site.urls),

    # Health and ping (accept with and without trailing slash)
    path('healthz', api.healthz),
    path('healthz/', api.healthz),
    path('api/ping', api.ping),
    path('api/ping/', api.ping),

    # PIN gate
    path('api/auth', api.auth),
    path('api/auth/', api.auth),

    # Settings blob
    path('api/settings', api.user_settings),
    path('api/settings/', api.user_settings),

    # Todos
    path('api/todos', api.todos),
    path('api/todos/', api.todos),
    path('api/todos/complete-by-title', api.complete_todo_by_title),
    path('api/todos/complete-by-title/', api.complete_todo_by_title),

    # Reminders
    path('api/reminders', api.reminders),
    path('api/reminders/', api.reminders),
    path('api/reminders/due', api.reminders_due),
    path('api/reminders/due/', api.reminders_due),
    path('api/reminders/<str:reminder_id>/fire', api.reminder_fire),
    path('api/reminders/<str:reminder_id>/fire/', api.reminder_fire),

    # Health logs and automation rules
    path('api/health/automations', api.automations),
    path('api/health/automations/', api.automations),
    path('api/health/water', api.water_logs),
    path('api/health/water/', api.water_logs),
    path('api/health/food', api.food_logs),
    path('api/health/food/', api.food_logs),
    path('api/health/workouts', api.workout_logs),
    path('api/health/workouts/', api.workout_logs),
    path('api/health/body', api.body_measurements),
    path('api/health/body/', api.body_measurements),

    # Cron tick
    path('api/cron/daily-refresh', api.cron_daily_refresh),
    path('api/cron/daily-refresh/', api.cron_daily_refresh),
]
