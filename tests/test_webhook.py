"""HTTP surface: the chat webhook, health and metrics endpoints."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from chatrelay.config.dependencies import get_message_responder
from chatrelay.config.settings import settings
from chatrelay.controllers.webhook import status_for
from chatrelay.main import app
from chatrelay.pipelines.audio import ReplyOutcome
from chatrelay.views import render_message
from conftest import MEDIA_URL, completion_reply


@pytest.fixture
def client_for(make_harness):
    """Return a TestClient whose responder is built from fakes."""

    def _client(**options):
        harness = make_harness(**options)
        app.dependency_overrides[get_message_responder] = lambda: harness.responder
        return TestClient(app), harness

    yield _client

    app.dependency_overrides.clear()


def test_text_message_gets_a_twiml_reply(client_for):
    client, harness = client_for(completion_handler=lambda request: completion_reply("Hi there"))

    response = client.post("/webhook", data={"From": "+15550001", "Body": "Hello", "NumMedia": "0"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert response.text == "<Response><Message>Hi there</Message></Response>"


def test_voice_note_is_routed_through_the_audio_path(client_for):
    client, harness = client_for()

    response = client.post(
        "/webhook",
        data={
            "From": "+15550001",
            "NumMedia": "1",
            "MediaUrl0": MEDIA_URL,
            "MediaContentType0": "audio/ogg",
        },
    )

    assert response.status_code == 200
    assert response.text == "<Response><Message>You asked: order a pizza</Message></Response>"
    assert harness.media_transport.calls == 1


def test_media_url_is_ignored_when_num_media_is_zero(client_for):
    client, harness = client_for(completion_handler=lambda request: completion_reply("text only"))

    response = client.post("/webhook", data={"Body": "Hello", "NumMedia": "0", "MediaUrl0": MEDIA_URL})

    assert response.text == "<Response><Message>text only</Message></Response>"
    assert harness.media_transport.calls == 0


def test_missing_api_key_uses_the_configured_status(client_for):
    client, _ = client_for(secrets={})

    response = client.post("/webhook", data={"Body": "Hello"})

    assert response.status_code == settings.webhook.key_unavailable_status_code
    assert response.text == "<Response><Message>Error: API key unavailable.</Message></Response>"


def test_audio_failure_status_follows_policy(client_for, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings.webhook, "audio_failure_status_code", 502)
    client, _ = client_for(media_handler=lambda request: httpx.Response(404))

    response = client.post("/webhook", data={"NumMedia": "1", "MediaUrl0": MEDIA_URL})

    assert response.status_code == 502
    assert "could not process your audio message" in response.text


def test_reply_text_is_xml_escaped(client_for):
    client, _ = client_for(completion_handler=lambda request: completion_reply("1 < 2 & 3 > 2"))

    response = client.post("/webhook", data={"Body": "compare"})

    assert response.text == "<Response><Message>1 &lt; 2 &amp; 3 &gt; 2</Message></Response>"


def test_status_for_successful_replies_is_always_ok():
    assert status_for(ReplyOutcome.REPLIED) == 200


def test_render_message_wraps_plain_text():
    assert render_message("hello") == "<Response><Message>hello</Message></Response>"


def test_health_and_metrics_endpoints():
    client = TestClient(app)

    health = client.get("/health")
    metrics = client.get("/metrics")

    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert metrics.status_code == 200
    assert "http_requests_total" in metrics.text
