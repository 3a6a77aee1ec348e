from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

import main


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main, 'services', {})
    monkeypatch.setattr(main, 'resource_usage', lambda: (12.5, 40.0))
    # No context manager: startup would try to reach the gateway.
    return TestClient(main.fastapi_app)


@pytest.fixture
def supervisor():
    supervisor = Mock()
    supervisor.is_ready = True
    supervisor.last_error = None
    supervisor.qr_code = None
    supervisor.handle_connection_update = AsyncMock()
    return supervisor


class TestStatusRoutes:
    def test_root_while_starting(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "iniciando" in response.text

    def test_root_ready(self, client, supervisor):
        main.services['supervisor'] = supervisor
        assert client.get("/").text == "Bot WhatsApp está ativo!"

    def test_root_with_error(self, client, supervisor):
        supervisor.last_error = "auth"
        main.services['supervisor'] = supervisor
        response = client.get("/")
        assert response.status_code == 500
        assert "auth" in response.text

    def test_health_ready(self, client, supervisor):
        main.services['supervisor'] = supervisor
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body['status'] == 'healthy'
        assert body['cpuUsage'] == "12.50"
        assert body['lastError'] is None

    def test_health_not_ready(self, client):
        response = client.get("/health")
        assert response.status_code == 503
        assert response.json()['status'] == 'unhealthy'


class TestQrRoute:
    def test_no_qr_yet(self, client, supervisor):
        supervisor.is_ready = False
        main.services['supervisor'] = supervisor
        assert "QR não gerado" in client.get("/qr").text

    def test_qr_svg(self, client, supervisor):
        supervisor.qr_code = "2@abc,def"
        main.services['supervisor'] = supervisor
        response = client.get("/qr")
        assert response.status_code == 200
        assert "<svg" in response.text


class TestWebhookRoute:
    def test_unavailable_before_startup(self, client):
        assert client.post("/webhook", json={'event': 'messages.upsert'}).status_code == 503

    def test_bad_body(self, client, supervisor):
        main.services.update(supervisor=supervisor, handler=Mock())
        response = client.post("/webhook", content=b"nope", headers={'content-type': 'application/json'})
        assert response.status_code == 400

    @pytest.mark.parametrize("body", [[1, 2], "texto", 42])
    def test_body_must_be_an_object(self, client, supervisor, body):
        handler = Mock()
        handler.enqueue = AsyncMock()
        main.services.update(supervisor=supervisor, handler=handler)
        assert client.post("/webhook", json=body).status_code == 400
        handler.enqueue.assert_not_awaited()

    def test_message_is_enqueued(self, client, supervisor):
        handler = Mock()
        handler.enqueue = AsyncMock()
        main.services.update(supervisor=supervisor, handler=handler)
        payload = {
            'event': 'messages.upsert',
            'data': {'key': {'remoteJid': '5511888888888@s.whatsapp.net', 'id': 'X1'}, 'message': {'conversation': 'Oi'}},
        }
        response = client.post("/webhook", json=payload)
        assert response.json() == {'status': 'ok', 'event': 'messages.upsert'}
        handler.enqueue.assert_awaited_once()

    def test_connection_event(self, client, supervisor):
        main.services.update(supervisor=supervisor, handler=Mock())
        client.post("/webhook", json={'event': 'CONNECTION_UPDATE', 'data': {'state': 'open'}})
        supervisor.handle_connection_update.assert_awaited_once_with('open', None)
