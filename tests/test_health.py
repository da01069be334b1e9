from fastapi.testclient import TestClient

from modbot.core.services import build_services
from modbot.main import create_app


def test_health_shape(settings):
    client = TestClient(create_app(build_services(settings)))
    r = client.get('/health')
    assert r.status_code == 200
    body = r.json()
    assert body['status'] == 'healthy'
    assert body['service'] == 'preset-moderation-bot'
    assert 'timestamp' in body


def test_security_headers_and_request_id(settings):
    client = TestClient(create_app(build_services(settings)))
    r = client.get('/health', headers={'X-Request-ID': 'req-123'})
    assert r.headers['X-Request-ID'] == 'req-123'
    assert r.headers['X-Content-Type-Options'] == 'nosniff'
    assert r.headers['X-Frame-Options'] == 'DENY'
    assert 'max-age=31536000' in r.headers['Strict-Transport-Security']


def test_request_id_generated_when_absent(settings):
    client = TestClient(create_app(build_services(settings)))
    r = client.get('/health')
    assert len(r.headers['X-Request-ID']) == 36


def test_app_factory_can_be_called_repeatedly(settings):
    first = create_app(build_services(settings))
    second = create_app(build_services(settings))
    assert first is not second
    for app in (first, second):
        assert any(getattr(route, 'path', None) == '/' for route in app.routes)
        assert TestClient(app).get('/health').status_code == 200
