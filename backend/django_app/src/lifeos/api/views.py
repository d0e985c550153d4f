import json
import logging
import math
from datetime import timedelta
from functools import wraps

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import F
from django.http import JsonResponse
from django.utils import timezone
from django.utils.crypto import constant_time_compare
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from lifeos.api.automation import normalize_rules, run_automations
from lifeos.api.config import config_from_data, load_config, load_settings_data, merge_settings_data, save_settings_data
from lifeos.api.firing import claim_firing
from lifeos.api.icons import assign_todo_icon
from lifeos.api.models import AutomationFiring, BodyMeasurement, FoodLog, Reminder, Todo, WaterLog, WorkoutLog
from lifeos.api.recurrence import spawn_recurring_todos
from lifeos.api.timeutils import local_day_bounds, local_now, parse_date, parse_datetime, resolve_zone

logger = logging.getLogger(__name__)

SERVICE_NAME = 'lifeos-backend'
SESSION_FLAG = 'pin_ok'
DUE_REMINDERS_LIMIT = 10
BODY_MEASUREMENTS_LIMIT = 100
KEEP_FIRED_REMINDERS_DAYS = 30


def _body(request):
    try:
        body = json.loads(request.body or b"{}")
    except ValueError:
        body = {}
    return body if isinstance(body, dict) else {}


def _iso(value):
    return value.isoformat() if value else None


def _text(value):
    return value.strip() if isinstance(value, str) else ''


def pin_required(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.session.get(SESSION_FLAG):
            return JsonResponse({"error": "Unauthorized"}, status=401)
        return view(request, *args, **kwargs)
    return wrapper


@require_http_methods(["GET"])
def healthz(request):
    return JsonResponse({"ok": True})


@require_http_methods(["GET"])
def ping(request):
    return JsonResponse({"ok": True, "service": SERVICE_NAME})


# Auth

@csrf_exempt
@require_http_methods(["GET", "POST", "DELETE"])
def auth(request):
    if request.method == 'GET':
        if request.session.get(SESSION_FLAG):
            return JsonResponse({"authenticated": True})
        return JsonResponse({"authenticated": False}, status=401)
    if request.method == 'DELETE':
        request.session.flush()
        return JsonResponse({"success": True})
    pin = str(_body(request).get('pin') or '')
    if not pin or not constant_time_compare(pin, settings.APP_PIN):
        return JsonResponse({"error": "Invalid PIN"}, status=401)
    request.session.cycle_key()
    request.session[SESSION_FLAG] = True
    return JsonResponse({"success": True})


# Settings

@csrf_exempt
@pin_required
@require_http_methods(["GET", "PUT"])
def user_settings(request):
    if request.method == 'GET':
        try:
            return JsonResponse({"data": load_settings_data()})
        except DatabaseError:
            logger.exception("Failed to load settings")
            return JsonResponse({"data": None})
    body = _body(request)
    try:
        data = save_settings_data(body)
    except DatabaseError:
        logger.exception("Failed to save settings")
        return JsonResponse({"success": False, "error": "Failed to save settings"}, status=500)
    return JsonResponse({"success": True, "data": data})


# Todos

def _todo_json(t):
    return {
        "id": t.id,
        "title": t.title,
        "notes": t.notes,
        "dueDate": _iso(t.dueDate),
        "completed": t.completed,
        "completedAt": _iso(t.completedAt),
        "priority": t.priority,
        "icon": t.icon,
        "category": t.category,
        "isRecurring": t.isRecurring,
        "recurrence": t.recurrence,
        "recurrenceParentId": t.recurrenceParent_id,
        "createdAt": _iso(t.createdAt),
    }


def _backfill_icons():
    try:
        for t in Todo.objects.filter(icon__isnull=True):
            t.icon = assign_todo_icon(t.title)
            t.save(update_fields=['icon'])
    except DatabaseError:
        logger.exception("Backfill icons failed")


@csrf_exempt
@pin_required
@require_http_methods(["GET", "POST", "PATCH", "DELETE"])
def todos(request):
    if request.method == 'GET':
        try:
            config = load_config()
        except DatabaseError:
            logger.exception("Failed to load settings for recurring spawn")
            config = config_from_data(None)
        spawn_recurring_todos(config.zone)
        _backfill_icons()
        try:
            items = [_todo_json(t) for t in Todo.objects.order_by(
                F('dueDate').asc(nulls_last=True), 'createdAt')]
        except DatabaseError:
            logger.exception("Todos fetch failed")
            return JsonResponse({"error": "Failed to fetch todos"}, status=500)
        return JsonResponse({"todos": items})

    body = _body(request)
    if request.method == 'POST':
        title = body.get('title')
        if not isinstance(title, str) or not title.strip():
            return JsonResponse({"error": "Title is required"}, status=400)
        title = title.strip()
        is_recurring = bool(body.get('isRecurring') or False)
        t = Todo(
            title=title,
            notes=body.get('notes') or None,
            dueDate=parse_datetime(body.get('dueDate')),
            priority=body.get('priority') or 'normal',
            icon=assign_todo_icon(title),
            category=body.get('category') or ('recurring' if is_recurring else 'manual'),
            isRecurring=is_recurring,
            recurrence=(body.get('recurrence') or 'daily') if is_recurring else None,
        )
        try:
            t.save()
        except DatabaseError:
            logger.exception("Todo create failed")
            return JsonResponse({"error": "Failed to create todo"}, status=500)
        return JsonResponse(_todo_json(t), status=201)

    todo_id = body.get('id') if request.method == 'PATCH' else request.GET.get('id')
    if not todo_id:
        return JsonResponse({"error": "ID is required"}, status=400)
    try:
        t = Todo.objects.get(pk=todo_id)
    except Todo.DoesNotExist:
        return JsonResponse({"error": "Todo not found"}, status=404)

    if request.method == 'DELETE':
        t.delete()
        return JsonResponse({"success": True})

    if _text(body.get('title')):
        t.title = _text(body['title'])
        t.icon = assign_todo_icon(t.title)
    if 'notes' in body:
        t.notes = body['notes']
    if 'dueDate' in body:
        t.dueDate = parse_datetime(body['dueDate'])
    for field in ('priority', 'icon', 'category', 'recurrence'):
        if field in body:
            setattr(t, field, body[field])
    if 'isRecurring' in body:
        t.isRecurring = bool(body['isRecurring'])
    if 'completed' in body:
        t.completed = bool(body['completed'])
        t.completedAt = timezone.now() if t.completed else None
    try:
        t.save()
    except DatabaseError:
        logger.exception("Todo update failed")
        return JsonResponse({"error": "Failed to update todo"}, status=500)
    return JsonResponse(_todo_json(t))


@csrf_exempt
@pin_required
@require_http_methods(["POST"])
def complete_todo_by_title(request):
    title = str(_body(request).get('title') or '').strip()
    if not title:
        return JsonResponse({"error": "Title is required"}, status=400)
    open_todos = Todo.objects.filter(completed=False).order_by('createdAt')
    match = open_todos.filter(title__icontains=title).first()
    if match is None:
        words = [w for w in title.lower().split() if len(w) > 3]
        match = next((t for t in open_todos if any(w in t.title.lower() for w in words)), None)
    if match is None:
        return JsonResponse({"error": "No matching todo found"}, status=404)
    match.completed = True
    match.completedAt = timezone.now()
    match.save(update_fields=['completed', 'completedAt'])
    return JsonResponse(_todo_json(match))


# Reminders

def _reminder_json(r):
    return {
        "id": r.id,
        "title": r.title,
        "body": r.body,
        "remindAt": _iso(r.remindAt),
        "url": r.url,
        "todoId": r.todo_id,
        "fired": r.fired,
    }


@csrf_exempt
@pin_required
@require_http_methods(["GET", "POST"])
def reminders(request):
    if request.method == 'GET':
        try:
            items = [_reminder_json(r) for r in Reminder.objects.filter(fired=False).order_by('remindAt')]
        except DatabaseError:
            logger.exception("Failed to fetch reminders")
            items = []
        return JsonResponse({"reminders": items})

    body = _body(request)
    title = _text(body.get('title'))
    remind_at = parse_datetime(body.get('remindAt'))
    if not title or remind_at is None:
        return JsonResponse({"error": "title and remindAt required"}, status=400)
    todo_id = body.get('todoId') or None
    if todo_id and not Todo.objects.filter(pk=todo_id).exists():
        return JsonResponse({"error": "Todo not found"}, status=404)
    r = Reminder(
        title=title,
        body=body.get('body') or None,
        remindAt=remind_at,
        url=body.get('url') or '/todos',
        todo_id=todo_id,
    )
    try:
        r.save()
    except DatabaseError:
        logger.exception("Failed to create reminder")
        return JsonResponse({"error": "Failed to create"}, status=500)
    return JsonResponse(_reminder_json(r), status=201)


@pin_required
@require_http_methods(["GET"])
def reminders_due(request):
    try:
        due = Reminder.objects.filter(fired=False, remindAt__lte=timezone.now()).order_by('remindAt')[:DUE_REMINDERS_LIMIT]
        items = [{"id": r.id, "title": r.title, "body": r.body or r.title, "url": r.url} for r in due]
    except DatabaseError:
        logger.exception("Failed to fetch due reminders")
        items = []
    return JsonResponse({"reminders": items})


@csrf_exempt
@pin_required
@require_http_methods(["POST"])
def reminder_fire(request, reminder_id: str):
    updated = Reminder.objects.filter(pk=reminder_id).update(fired=True)
    if not updated:
        return JsonResponse({"error": "Not found"}, status=404)
    return JsonResponse({"success": True})


# Automations

@csrf_exempt
@pin_required
@require_http_methods(["GET", "PUT", "POST"])
def automations(request):
    if request.method == 'GET':
        try:
            rules = load_config().automation_rules
        except DatabaseError:
            logger.exception("Automation settings fetch failed")
            rules = normalize_rules(None)
        return JsonResponse({"rules": [r.to_dict() for r in rules]})

    body = _body(request)
    if request.method == 'PUT':
        rules = normalize_rules(body.get('rules'))
        try:
            merge_settings_data(automationRules=[r.to_dict() for r in rules])
        except DatabaseError:
            logger.exception("Automation settings save failed")
            return JsonResponse({"success": False, "error": "Failed to save automation rules"}, status=500)
        return JsonResponse({"success": True, "rules": [r.to_dict() for r in rules]})

    try:
        config = load_config()
        if body.get('timeZone'):
            config.time_zone = resolve_zone(body['timeZone']).key
        now = local_now(config.zone)
        day = parse_date(body.get('date')) or now.date()
        local_hour = body.get('localHour')
        if isinstance(local_hour, bool) or not isinstance(local_hour, (int, float)) or not math.isfinite(local_hour):
            local_hour = now.hour
        report = run_automations(config, day, round(local_hour), dry_run=bool(body.get('dryRun')))
    except DatabaseError:
        logger.exception("Automation run failed")
        return JsonResponse({"error": "Failed to evaluate automation rules"}, status=500)
    return JsonResponse(report)


# Daily logs

def _day_bounds_for(request):
    zone = load_config().zone
    day = parse_date(request.GET.get('date')) or local_now(zone).date()
    return local_day_bounds(day, zone)


def _logged_at(body, key):
    return parse_datetime(body.get(key)) or timezone.now()


def _number(value, default=0):
    """Parse an optional numeric field; raise ValueError unless it is finite."""
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        raise ValueError(f'not a number: {value!r}')
    try:
        number = float(value)
    except TypeError:
        raise ValueError(f'not a number: {value!r}')
    if not math.isfinite(number):
        raise ValueError(f'not a finite number: {value!r}')
    return number


@csrf_exempt
@pin_required
@require_http_methods(["GET", "POST"])
def water_logs(request):
    if request.method == 'GET':
        start, end = _day_bounds_for(request)
        logs = WaterLog.objects.filter(loggedAt__range=(start, end)).order_by('loggedAt')
        items = [{"id": w.id, "amountMl": w.amountMl, "loggedAt": _iso(w.loggedAt)} for w in logs]
        return JsonResponse({"logs": items, "totalMl": sum(i["amountMl"] for i in items)})
    body = _body(request)
    try:
        amount = int(_number(body.get('amountMl')))
    except ValueError:
        amount = 0
    if amount <= 0:
        return JsonResponse({"error": "amountMl must be positive"}, status=400)
    w = WaterLog.objects.create(amountMl=amount, loggedAt=_logged_at(body, 'loggedAt'))
    return JsonResponse({"id": w.id}, status=201)


@csrf_exempt
@pin_required
@require_http_methods(["GET", "POST"])
def food_logs(request):
    if request.method == 'GET':
        start, end = _day_bounds_for(request)
        items = [{
            "id": f.id,
            "foodDescription": f.foodDescription,
            "notes": f.notes,
            "calories": f.calories,
            "proteinG": f.proteinG,
            "carbsG": f.carbsG,
            "fatG": f.fatG,
            "loggedAt": _iso(f.loggedAt),
        } for f in FoodLog.objects.filter(loggedAt__range=(start, end)).order_by('loggedAt')]
        return JsonResponse({"logs": items})
    body = _body(request)
    description = _text(body.get('foodDescription'))
    if not description:
        return JsonResponse({"error": "foodDescription required"}, status=400)
    try:
        macros = {key: _number(body.get(key)) for key in ('calories', 'proteinG', 'carbsG', 'fatG')}
    except ValueError:
        return JsonResponse({"error": "calories, proteinG, carbsG and fatG must be numbers"}, status=400)
    f = FoodLog.objects.create(
        foodDescription=description,
        notes=body.get('notes') or None,
        loggedAt=_logged_at(body, 'loggedAt'),
        **macros,
    )
    return JsonResponse({"id": f.id}, status=201)


@csrf_exempt
@pin_required
@require_http_methods(["GET", "POST"])
def workout_logs(request):
    if request.method == 'GET':
        start, end = _day_bounds_for(request)
        items = [{
            "id": w.id,
            "workoutType": w.workoutType,
            "durationMinutes": w.durationMinutes,
            "notes": w.notes,
            "startedAt": _iso(w.startedAt),
        } for w in WorkoutLog.objects.filter(startedAt__range=(start, end)).order_by('startedAt')]
        return JsonResponse({"logs": items})
    body = _body(request)
    workout_type = _text(body.get('workoutType'))
    if not workout_type:
        return JsonResponse({"error": "workoutType required"}, status=400)
    try:
        minutes = max(0, int(_number(body.get('durationMinutes'))))
    except ValueError:
        return JsonResponse({"error": "durationMinutes must be a number"}, status=400)
    w = WorkoutLog.objects.create(
        workoutType=workout_type,
        durationMinutes=minutes,
        notes=body.get('notes') or None,
        startedAt=_logged_at(body, 'startedAt'),
    )
    return JsonResponse({"id": w.id}, status=201)


def _measurement_json(m):
    data = {key: getattr(m, key) for key in BodyMeasurement.MEASUREMENT_FIELDS}
    data.update({
        "id": m.id,
        "skinfoldData": m.skinfoldData,
        "notes": m.notes,
        "measuredAt": _iso(m.measuredAt),
    })
    return data


@csrf_exempt
@pin_required
@require_http_methods(["GET", "POST", "DELETE"])
def body_measurements(request):
    if request.method == 'GET':
        try:
            latest = BodyMeasurement.objects.order_by('-measuredAt')[:BODY_MEASUREMENTS_LIMIT]
            items = [_measurement_json(m) for m in latest]
        except DatabaseError:
            logger.exception("Failed to fetch body measurements")
            return JsonResponse({"error": "Failed to fetch body measurements"}, status=500)
        return JsonResponse({"logs": items})

    if request.method == 'DELETE':
        entry_id = request.GET.get('id')
        if not entry_id:
            return JsonResponse({"error": "ID required"}, status=400)
        try:
            deleted, _ = BodyMeasurement.objects.filter(pk=entry_id).delete()
        except ValueError:
            deleted = 0
        if not deleted:
            return JsonResponse({"error": "Not found"}, status=404)
        return JsonResponse({"success": True})

    body = _body(request)
    try:
        # zero means "not measured"
        values = {key: _number(body.get(key), None) or None for key in BodyMeasurement.MEASUREMENT_FIELDS}
    except ValueError as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    if not any(value is not None for value in values.values()):
        return JsonResponse({"error": "at least one measurement required"}, status=400)
    skinfolds = body.get('skinfoldData')
    m = BodyMeasurement(
        skinfoldData=skinfolds if isinstance(skinfolds, dict) and skinfolds else None,
        notes=_text(body.get('notes')) or None,
        measuredAt=_logged_at(body, 'measuredAt'),
        **values,
    )
    try:
        m.save()
    except DatabaseError:
        logger.exception("Failed to create body measurement")
        return JsonResponse({"error": "Failed to create body measurement"}, status=500)
    return JsonResponse(_measurement_json(m), status=201)


# Cron

def _cron_authorized(request):
    secret = settings.CRON_SECRET
    if not secret:
        return True
    return constant_time_compare(request.headers.get('Authorization', ''), f'Bearer {secret}')


@require_http_methods(["GET"])
def cron_daily_refresh(request):
    if not _cron_authorized(request):
        return JsonResponse({"error": "Unauthorized"}, status=401)
    try:
        config = load_config()
        requested_zone = request.GET.get('timeZone')
        if requested_zone:
            config.time_zone = resolve_zone(requested_zone).key
        zone = config.zone
        now = local_now(zone)
        local_date = now.date()
        local_time = now.strftime('%H:%M')

        spawned = spawn_recurring_todos(zone, now=now)
        report = run_automations(config, local_date, now.hour)

        result = {
            "success": True,
            "timeZone": config.time_zone,
            "localDate": local_date.isoformat(),
            "localTime": local_time,
            "spawned": len(spawned),
            "automations": report,
            "cleanup": None,
        }
        result["cleanup"] = _daily_cleanup(config.time_zone, local_date, local_time)
    except DatabaseError:
        logger.exception("Cron daily refresh failed")
        return JsonResponse({"error": "Failed to run daily refresh cron"}, status=500)
    return JsonResponse(result)


def _daily_cleanup(zone_name, local_date, local_time):
    """Once per local date: drop old fired reminders and stamp the run."""
    with transaction.atomic():
        if not claim_firing(AutomationFiring.KIND_CRON, zone_name, local_date):
            return None
        stale_before = timezone.now() - timedelta(days=KEEP_FIRED_REMINDERS_DAYS)
        deleted, _ = Reminder.objects.filter(fired=True, remindAt__lt=stale_before).delete()
        cron = (load_settings_data() or {}).get('cron')
        cron = dict(cron) if isinstance(cron, dict) else {}
        cron['lastDailyRefresh'] = {
            "localDate": local_date.isoformat(),
            "localTime": local_time,
            "timeZone": zone_name,
            "ranAtIso": timezone.now().isoformat(),
        }
        merge_settings_data(cron=cron)
    logger.info("Daily refresh ran for %s (%s)", local_date.isoformat(), zone_name)
    return {"remindersDeleted": deleted}
