from django.db import IntegrityError, transaction

from lifeos.api.models import AutomationFiring


def claim_firing(kind, key, day):
    """Record that ``(kind, key)`` fired on ``day``.

    Returns True only for the caller that inserted the row. The unique
    constraint on ``(kind, key, day)`` settles concurrent claims.
    """
    try:
        with transaction.atomic():
            _, created = AutomationFiring.objects.get_or_create(kind=kind, key=str(key), day=day)
    except IntegrityError:
        return False
    return created
