from zoneinfo import ZoneInfo

import pytest
from rest_framework.test import APIClient

TEST_PIN = '2468'


@pytest.fixture(autouse=True)
def _app_settings(settings):
    settings.APP_PIN = TEST_PIN
    settings.CRON_SECRET = ''
    settings.LIFEOS_TIME_ZONE = 'America/Bogota'


@pytest.fixture
def bogota():
    return ZoneInfo('America/Bogota')


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def api(db):
    client = APIClient()
    resp = client.post('/api/auth', {'pin': TEST_PIN}, format='json')
    assert resp.status_code == 200
    return client
