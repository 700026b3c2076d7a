import json

import httpx
import pytest

from cling.api import deps
from cling.core.config import settings
from cling.core.exceptions import InternalError, UpstreamError, ValidationError
from cling.services.icon_suggestions import (
    DEFAULT_ICON_URL, IconSuggestionService, icon_url_for, parse_keywords,
)


def gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def service_replying(payload, status_code=200, captured=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return httpx.Response(status_code, json=payload)

    return IconSuggestionService(client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_parse_keywords():
    assert parse_keywords("Wrench, Helmet, ,Oil, Road, Extra") == ["Wrench", "Helmet", "Oil", "Road"]
    assert parse_keywords("") == []


def test_icon_url_for():
    assert icon_url_for("oil can") == "https://dummyimage.com/150x150/10b981/ffffff&text=OIL+CAN"


def test_suggest_maps_keywords_to_icon_urls():
    captured = []
    service = service_replying(gemini_reply("Wrench, Helmet, Oil, Road"), captured=captured)

    urls = service.suggest("Bike service")

    assert urls == [
        "https://dummyimage.com/150x150/10b981/ffffff&text=WRENCH",
        "https://dummyimage.com/150x150/10b981/ffffff&text=HELMET",
        "https://dummyimage.com/150x150/10b981/ffffff&text=OIL",
        "https://dummyimage.com/150x150/10b981/ffffff&text=ROAD",
    ]
    request = captured[0]
    assert request.url.path.endswith(f"/models/{settings.GEMINI_MODEL}:generateContent")
    assert request.url.params["key"] == "test-gemini-key"
    prompt = json.loads(request.content)["contents"][0]["parts"][0]["text"]
    assert '"Bike service"' in prompt


def test_suggest_without_keywords_returns_default():
    assert service_replying(gemini_reply("  ,  ")).suggest("anything") == [DEFAULT_ICON_URL]
    assert service_replying({"candidates": []}).suggest("anything") == [DEFAULT_ICON_URL]


@pytest.mark.parametrize(
    "payload",
    [
        {"candidates": ["Wrench, Helmet"]},
        {"candidates": [{"content": ["Wrench"]}]},
        {"candidates": [{"content": {"parts": "Wrench"}}]},
        {"candidates": [{"content": {"parts": [{"text": 42}]}}]},
        {"candidates": {"0": "Wrench"}},
        ["unexpected"],
    ],
)
def test_malformed_reply_falls_back_to_default(payload):
    assert service_replying(payload).suggest("Bike service") == [DEFAULT_ICON_URL]


def test_suggest_validation_and_missing_key(monkeypatch):
    service = service_replying(gemini_reply("A"))
    with pytest.raises(ValidationError):
        service.suggest("  ")
    monkeypatch.setattr(settings, "GEMINI_API_KEY", None)
    with pytest.raises(InternalError):
        service.suggest("x")


def test_gemini_failure_is_500_with_detail():
    service = service_replying({"error": {"message": "quota"}}, status_code=429)
    with pytest.raises(UpstreamError) as exc:
        service.suggest("Bike service")
    assert exc.value.status_code == 500
    assert "429" in exc.value.to_content()["detail"]


def test_icon_endpoint(app, client):
    app.dependency_overrides[deps.get_icon_suggestion_service] = lambda: service_replying(
        gemini_reply("Car, Key")
    )
    res = client.post("/api/ai/generate-images", json={"description": "Car wash"})
    assert res.status_code == 200
    assert res.json() == {
        "urls": [
            "https://dummyimage.com/150x150/10b981/ffffff&text=CAR",
            "https://dummyimage.com/150x150/10b981/ffffff&text=KEY",
        ]
    }
    assert client.post("/api/ai/generate-images", json={}).status_code == 400
