from datetime import timedelta

import pytest
from django.utils import timezone

from lifeos.api.models import (
    AutomationFiring,
    BodyMeasurement,
    FoodLog,
    Reminder,
    Todo,
    UserSettings,
    WaterLog,
    WorkoutLog,
)

pytestmark = pytest.mark.django_db

HYDRATION_RULE = {
    'id': 'hydration-afternoon',
    'name': 'Hydration',
    'enabled': True,
    'metric': 'hydrationPct',
    'comparator': 'lt',
    'threshold': 60,
    'triggerHour': 15,
    'actionType': 'todo',
    'actionTitle': 'Drink more water',
}


def test_ping_and_healthz(anon_client):
    assert anon_client.get('/healthz').json() == {'ok': True}
    assert anon_client.get('/api/ping/').json()['service'] == 'lifeos-backend'


class TestAuth:

    def test_api_requires_pin(self, anon_client, db):
        assert anon_client.get('/api/todos').status_code == 401
        assert anon_client.get('/api/health/automations').status_code == 401

    def test_wrong_pin_is_rejected(self, anon_client, db):
        resp = anon_client.post('/api/auth', {'pin': '0000'}, format='json')
        assert resp.status_code == 401
        assert anon_client.get('/api/auth').json() == {'authenticated': False}

    def test_status_and_logout(self, api):
        assert api.get('/api/auth').json() == {'authenticated': True}
        assert api.delete('/api/auth').status_code == 200
        assert api.get('/api/todos').status_code == 401


class TestTodos:

    def test_create_requires_title(self, api):
        resp = api.post('/api/todos', {'title': '   '}, format='json')
        assert resp.status_code == 400

    def test_create_assigns_icon_and_defaults(self, api):
        resp = api.post('/api/todos', {'title': ' Call the dentist '}, format='json')
        assert resp.status_code == 201
        body = resp.json()
        assert body['title'] == 'Call the dentist'
        assert body['icon'] == '📞'
        assert body['category'] == 'manual'
        assert body['priority'] == 'normal'
        assert body['recurrence'] is None

    def test_recurring_template_defaults_to_daily(self, api):
        body = api.post('/api/todos', {'title': 'Stretch', 'isRecurring': True}, format='json').json()
        assert body['recurrence'] == 'daily'
        assert body['category'] == 'recurring'

    def test_listing_spawns_recurring_instance_once(self, api):
        template = api.post('/api/todos', {'title': 'Take vitamins', 'isRecurring': True}, format='json').json()

        api.get('/api/todos')
        todos = api.get('/api/todos').json()['todos']

        instances = [t for t in todos if t['recurrenceParentId'] == template['id']]
        assert len(instances) == 1
        assert instances[0]['category'] == 'recurring'
        assert instances[0]['isRecurring'] is False
        assert len(todos) == 2

    def test_listing_backfills_icons_and_orders_by_due_date(self, api):
        later = timezone.now() + timedelta(days=2)
        sooner = timezone.now() + timedelta(days=1)
        Todo.objects.create(title='No due date')
        Todo.objects.create(title='Pay rent', dueDate=later)
        Todo.objects.create(title='Buy groceries', dueDate=sooner)

        todos = api.get('/api/todos').json()['todos']

        assert [t['title'] for t in todos] == ['Buy groceries', 'Pay rent', 'No due date']
        assert all(t['icon'] for t in todos)

    def test_patch_completes_and_retitles(self, api):
        todo_id = api.post('/api/todos', {'title': 'Read'}, format='json').json()['id']

        body = api.patch('/api/todos', {'id': todo_id, 'completed': True, 'title': 'Go for a run'}, format='json').json()

        assert body['completed'] is True
        assert body['completedAt'] is not None
        assert body['icon'] == '🏃'

        reopened = api.patch('/api/todos', {'id': todo_id, 'completed': False}, format='json').json()
        assert reopened['completedAt'] is None

    def test_patch_and_delete_validate_id(self, api):
        assert api.patch('/api/todos', {}, format='json').status_code == 400
        assert api.patch('/api/todos', {'id': 'missing'}, format='json').status_code == 404
        assert api.delete('/api/todos?id=missing').status_code == 404

    def test_delete(self, api):
        todo_id = api.post('/api/todos', {'title': 'Temp'}, format='json').json()['id']
        assert api.delete(f'/api/todos?id={todo_id}').json() == {'success': True}
        assert not Todo.objects.filter(pk=todo_id).exists()

    def test_complete_by_title(self, api):
        Todo.objects.create(title='Renew passport application')
        Todo.objects.create(title='Water the plants')

        exact = api.post('/api/todos/complete-by-title', {'title': 'water the'}, format='json')
        assert exact.json()['title'] == 'Water the plants'

        fuzzy = api.post('/api/todos/complete-by-title', {'title': 'my passport'}, format='json')
        assert fuzzy.json()['title'] == 'Renew passport application'
        assert fuzzy.json()['completed'] is True

        missing = api.post('/api/todos/complete-by-title', {'title': 'nothing'}, format='json')
        assert missing.status_code == 404


class TestReminders:

    def test_create_requires_title_and_time(self, api):
        assert api.post('/api/reminders', {'title': 'x'}, format='json').status_code == 400

    def test_due_and_fire(self, api):
        past = (timezone.now() - timedelta(minutes=5)).isoformat()
        future = (timezone.now() + timedelta(hours=5)).isoformat()
        due = api.post('/api/reminders', {'title': 'Stand up', 'remindAt': past}, format='json').json()
        api.post('/api/reminders', {'title': 'Later', 'remindAt': future, 'body': 'soon'}, format='json')

        listed = api.get('/api/reminders').json()['reminders']
        assert [r['title'] for r in listed] == ['Stand up', 'Later']

        due_now = api.get('/api/reminders/due').json()['reminders']
        assert due_now == [{'id': due['id'], 'title': 'Stand up', 'body': 'Stand up', 'url': '/todos'}]

        assert api.post(f"/api/reminders/{due['id']}/fire").json() == {'success': True}
        assert api.get('/api/reminders/due').json()['reminders'] == []
        assert api.post('/api/reminders/unknown/fire').status_code == 404


class TestSettings:

    def test_roundtrip(self, api):
        assert api.get('/api/settings').json() == {'data': None}
        resp = api.put('/api/settings', {'calorieTarget': 2200, 'timeZone': 'Europe/Madrid'}, format='json')
        assert resp.json()['success'] is True
        assert api.get('/api/settings').json()['data']['calorieTarget'] == 2200

    def test_non_finite_numbers_fall_back_to_defaults(self, api):
        api.put('/api/settings', {'hydrationBaseMl': 'inf', 'calorieTarget': '-inf'}, format='json')
        api.put('/api/health/automations', {'rules': [HYDRATION_RULE]}, format='json')

        assert api.get('/api/todos').status_code == 200
        resp = api.post('/api/health/automations', {'date': '2026-02-20', 'localHour': 16}, format='json')
        assert resp.status_code == 200
        assert resp.json()['metricSnapshot'] == {'proteinPct': 0, 'hydrationPct': 0, 'workoutMinutes': 0}


class TestAutomations:

    def test_defaults_when_unset(self, api):
        rules = api.get('/api/health/automations').json()['rules']
        assert [r['id'] for r in rules] == ['protein-check-7pm', 'hydration-check-5pm', 'workout-check-6pm']

    def test_put_normalises_and_keeps_other_settings(self, api):
        api.put('/api/settings', {'calorieTarget': 1800}, format='json')

        resp = api.put('/api/health/automations', {'rules': [dict(HYDRATION_RULE, comparator='<')]}, format='json')

        assert resp.json()['rules'][0]['comparator'] == 'lt'
        data = UserSettings.objects.get(pk='default').data
        assert data['calorieTarget'] == 1800
        assert data['automationRules'][0]['id'] == 'hydration-afternoon'

    def test_run_creates_todo_once(self, api):
        api.put('/api/health/automations', {'rules': [HYDRATION_RULE]}, format='json')
        payload = {'date': '2026-02-20', 'localHour': 16}

        first = api.post('/api/health/automations', payload, format='json').json()
        second = api.post('/api/health/automations', payload, format='json').json()

        assert first['dryRun'] is False
        assert first['evaluatedRules'] == 1
        assert first['metricSnapshot'] == {'proteinPct': 0, 'hydrationPct': 0, 'workoutMinutes': 0}
        assert first['triggered'][0]['created'] is True
        assert second['triggered'][0]['created'] is False
        [todo] = Todo.objects.filter(category='automation')
        assert todo.title == 'Drink more water'
        assert 'AUTO_RULE:hydration-afternoon:2026-02-20' in todo.notes

    def test_dry_run_and_trigger_hour(self, api):
        api.put('/api/health/automations', {'rules': [HYDRATION_RULE]}, format='json')

        early = api.post('/api/health/automations', {'date': '2026-02-20', 'localHour': 10}, format='json').json()
        preview = api.post(
            '/api/health/automations', {'date': '2026-02-20', 'localHour': 16, 'dryRun': True}, format='json'
        ).json()

        assert early['triggered'] == []
        assert preview['dryRun'] is True
        assert [t['ruleId'] for t in preview['triggered']] == ['hydration-afternoon']
        assert not Todo.objects.exists()


class TestHealthLogs:

    def test_water_log(self, api):
        assert api.post('/api/health/water', {'amountMl': 0}, format='json').status_code == 400
        api.post('/api/health/water', {'amountMl': 300}, format='json')
        api.post('/api/health/water', {'amountMl': 200}, format='json')
        assert api.get('/api/health/water').json()['totalMl'] == 500

    def test_food_and_workout_logs(self, api):
        assert api.post('/api/health/food', {}, format='json').status_code == 400
        api.post('/api/health/food', {'foodDescription': 'Oats', 'proteinG': 12}, format='json')
        api.post('/api/health/workouts', {'workoutType': 'swim', 'durationMinutes': 40}, format='json')

        assert api.get('/api/health/food').json()['logs'][0]['proteinG'] == 12
        assert api.get('/api/health/workouts').json()['logs'][0]['durationMinutes'] == 40


class TestDailyRefresh:

    def test_requires_secret_when_configured(self, anon_client, db, settings):
        settings.CRON_SECRET = 's3cret'
        assert anon_client.get('/api/cron/daily-refresh').status_code == 401
        resp = anon_client.get('/api/cron/daily-refresh', HTTP_AUTHORIZATION='Bearer s3cret')
        assert resp.status_code == 200

    def test_cleanup_runs_once_per_day(self, anon_client, db):
        old = Reminder.objects.create(title='Old', remindAt=timezone.now() - timedelta(days=40), fired=True)
        recent = Reminder.objects.create(title='Recent', remindAt=timezone.now() - timedelta(days=2), fired=True)
        Todo.objects.create(title='Meditate', isRecurring=True, recurrence='daily')

        first = anon_client.get('/api/cron/daily-refresh').json()
        second = anon_client.get('/api/cron/daily-refresh').json()

        assert first['cleanup'] == {'remindersDeleted': 1}
        assert first['spawned'] == 1
        assert second['cleanup'] is None
        assert second['spawned'] == 0
        assert not Reminder.objects.filter(pk=old.pk).exists()
        assert Reminder.objects.filter(pk=recent.pk).exists()
        assert AutomationFiring.objects.filter(kind=AutomationFiring.KIND_CRON).count() == 1
        last = UserSettings.objects.get(pk='default').data['cron']['lastDailyRefresh']
        assert last['timeZone'] == 'America/Bogota'
        assert last['localDate'] == first['localDate']


class TestInputValidation:

    def test_non_string_titles_are_rejected(self, api):
        remind_at = timezone.now().isoformat()
        assert api.post('/api/reminders', {'title': 123, 'remindAt': remind_at}, format='json').status_code == 400
        assert api.post('/api/health/food', {'foodDescription': ['oats']}, format='json').status_code == 400
        assert api.post('/api/health/workouts', {'workoutType': 5}, format='json').status_code == 400

    def test_patch_ignores_non_string_title(self, api):
        todo_id = api.post('/api/todos', {'title': 'Read'}, format='json').json()['id']
        body = api.patch('/api/todos', {'id': todo_id, 'title': 42}, format='json').json()
        assert body['title'] == 'Read'

    @pytest.mark.parametrize('amount', ['inf', 'nan', '-inf', 'lots', True])
    def test_water_amount_must_be_finite(self, api, amount):
        assert api.post('/api/health/water', {'amountMl': amount}, format='json').status_code == 400
        assert not WaterLog.objects.exists()

    def test_food_and_workout_numbers_must_be_finite(self, api):
        food = api.post('/api/health/food', {'foodDescription': 'Oats', 'calories': 'inf'}, format='json')
        workout = api.post('/api/health/workouts', {'workoutType': 'run', 'durationMinutes': 'nan'}, format='json')

        assert food.status_code == 400
        assert workout.status_code == 400
        assert not FoodLog.objects.exists()
        assert not WorkoutLog.objects.exists()


class TestBodyMeasurements:

    def test_create_and_list_latest_first(self, api):
        api.post('/api/health/body', {
            'weightKg': 80.5, 'waistCm': 90, 'measuredAt': '2026-02-01T08:00:00Z',
        }, format='json')
        created = api.post('/api/health/body', {
            'weightKg': 79.2,
            'bodyFatPct': 0,
            'skinfoldData': {'abdomen': 18},
            'notes': ' after holidays ',
            'measuredAt': '2026-02-15T08:00:00Z',
        }, format='json')

        assert created.status_code == 201
        entry = created.json()
        assert entry['weightKg'] == 79.2
        assert entry['bodyFatPct'] is None
        assert entry['skinfoldData'] == {'abdomen': 18}
        assert entry['notes'] == 'after holidays'

        logs = api.get('/api/health/body').json()['logs']
        assert [m['weightKg'] for m in logs] == [79.2, 80.5]
        assert logs[1]['waistCm'] == 90

    def test_list_is_capped(self, api):
        base = timezone.now()
        BodyMeasurement.objects.bulk_create(
            BodyMeasurement(weightKg=70 + i / 10, measuredAt=base - timedelta(days=i)) for i in range(105)
        )
        logs = api.get('/api/health/body').json()['logs']
        assert len(logs) == 100
        assert logs[0]['weightKg'] == 70

    def test_create_validates_numbers(self, api):
        assert api.post('/api/health/body', {}, format='json').status_code == 400
        assert api.post('/api/health/body', {'weightKg': 'inf'}, format='json').status_code == 400
        assert api.post('/api/health/body', {'weightKg': 80, 'neckCm': 'wide'}, format='json').status_code == 400
        assert not BodyMeasurement.objects.exists()

    def test_delete(self, api):
        entry_id = api.post('/api/health/body', {'weightKg': 81}, format='json').json()['id']

        assert api.delete('/api/health/body').status_code == 400
        assert api.delete('/api/health/body?id=999999').status_code == 404
        assert api.delete('/api/health/body?id=abc').status_code == 404
        assert api.delete(f'/api/health/body?id={entry_id}').json() == {'success': True}
        assert not BodyMeasurement.objects.exists()

    def test_requires_pin(self, anon_client, db):
        assert anon_client.get('/api/health/body').status_code == 401
