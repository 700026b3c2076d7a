import base64
import json
import os

import httpx
import pytest

from cling.api import deps
from cling.core.config import settings
from cling.core.exceptions import InternalError, UpstreamError, ValidationError
from cling.services.image_generation import (
    ArtifactsShape, BareListShape, ImageGenerationService, InlineImage,
    OutputShape, RemoteImage, UnrecognizedShape, parse_response,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
PNG_B64 = base64.b64encode(PNG_BYTES).decode()


def service_replying(payload=None, status_code=200, captured=None, downloads=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            body, content_type = (downloads or {}).get(str(request.url), (None, None))
            if body is None:
                return httpx.Response(404)
            return httpx.Response(200, content=body, headers={"content-type": content_type})
        if captured is not None:
            captured.append(request)
        return httpx.Response(status_code, json=payload)

    return ImageGenerationService(client=httpx.Client(transport=httpx.MockTransport(handler)))


class TestParseResponse:
    def test_artifacts(self):
        shape = parse_response({"artifacts": [{"base64": "AAA"}, {"url": "https://cdn/x.png"}]})
        assert isinstance(shape, ArtifactsShape)
        assert shape.images == [InlineImage(b64="AAA"), RemoteImage(url="https://cdn/x.png")]

    def test_artifacts_json_wrapped_base64(self):
        wrapped = json.dumps({"b64_json": "BBB"})
        shape = parse_response({"artifacts": [{"b64": wrapped}]})
        assert shape.images == [InlineImage(b64="BBB")]

    def test_output(self):
        shape = parse_response({"output": [{"b64_json": "CCC"}, {"uri": "https://cdn/y.png"}]})
        assert isinstance(shape, OutputShape)
        assert shape.images == [InlineImage(b64="CCC"), RemoteImage(url="https://cdn/y.png")]

    def test_empty_artifacts_fall_through_to_output(self):
        shape = parse_response({"artifacts": [{"finishReason": "ERROR"}], "output": [{"url": "https://cdn/z.png"}]})
        assert isinstance(shape, OutputShape)

    def test_bare_list(self):
        shape = parse_response([{"url": "https://cdn/a.png"}, {"base64": "DDD"}, "junk"])
        assert isinstance(shape, BareListShape)
        assert len(shape.images) == 2

    @pytest.mark.parametrize("raw", [{}, {"artifacts": []}, {"id": "abc"}, [], "text", None])
    def test_unrecognized(self, raw):
        shape = parse_response(raw)
        assert isinstance(shape, UnrecognizedShape)
        assert shape.raw == raw


def test_generate_sends_expected_payload():
    captured = []
    service = service_replying({"artifacts": [{"base64": PNG_B64}]}, captured=captured)

    result = service.generate("a red bike", width=512, height=768, samples=1, cfg_scale=9)

    assert result == {"prompt": "a red bike", "urls": [f"data:image/png;base64,{PNG_B64}"]}
    request = captured[0]
    assert request.headers["authorization"] == "Bearer test-stability-key"
    assert json.loads(request.content) == {
        "text_prompts": [{"text": "a red bike"}],
        "cfg_scale": 9,
        "height": 768,
        "width": 512,
        "samples": 1,
    }


def test_generate_truncates_to_samples():
    service = service_replying({"artifacts": [{"url": f"https://cdn/{i}.png"} for i in range(3)]})
    result = service.generate("bikes", samples=2)
    assert result["urls"] == ["https://cdn/0.png", "https://cdn/1.png"]


def test_generate_without_images_returns_raw():
    service = service_replying({"id": "job-1"})
    assert service.generate("nothing") == {"message": "No image found in response", "raw": {"id": "job-1"}}


def test_generate_validation_and_missing_key(monkeypatch):
    service = service_replying({})
    with pytest.raises(ValidationError):
        service.generate("   ")
    monkeypatch.setattr(settings, "STABILITY_API_KEY", None)
    with pytest.raises(InternalError):
        service.generate("a prompt")


def test_upstream_http_error_carries_status_and_body():
    service = service_replying({"message": "bad prompt"}, status_code=400)
    with pytest.raises(UpstreamError) as exc:
        service.generate("a prompt")
    assert exc.value.status_code == 400
    assert exc.value.to_content()["detail"] == {"message": "bad prompt"}


def test_transport_error_is_500():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    service = ImageGenerationService(client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(UpstreamError) as exc:
        service.generate("a prompt")
    assert exc.value.status_code == 500
    assert "timed out" in exc.value.to_content()["detail"]


def test_non_json_success_body_is_500_with_detail(app, client):
    def handler(request):
        return httpx.Response(200, text="<html>gateway</html>", headers={"content-type": "text/html"})

    service = ImageGenerationService(client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(UpstreamError) as exc:
        service.generate("a prompt")
    assert exc.value.status_code == 500
    assert exc.value.to_content()["detail"] == "<html>gateway</html>"

    app.dependency_overrides[deps.get_image_generation_service] = lambda: service
    res = client.post("/api/generate-image", json={"prompt": "a prompt"})
    assert res.status_code == 500
    assert res.json()["detail"] == "<html>gateway</html>"


def test_saved_images_are_rehosted(monkeypatch, client):
    monkeypatch.setattr(settings, "SAVE_GENERATED_IMAGES", True)
    downloads = {"https://cdn/remote.jpg": (b"jpeg-bytes", "image/jpeg")}
    service = service_replying(
        {"artifacts": [{"base64": PNG_B64}, {"url": "https://cdn/remote.jpg"}, {"url": "https://cdn/missing.png"}]},
        downloads=downloads,
    )

    urls = service.generate("save me", samples=3)["urls"]

    assert urls[0].startswith("/uploads/generated-images/") and urls[0].endswith(".png")
    assert urls[1].startswith("/uploads/generated-images/") and urls[1].endswith(".jpg")
    # failed download falls back to the upstream URL
    assert urls[2] == "https://cdn/missing.png"

    saved = os.path.join(settings.UPLOADS_DIR, "generated-images", urls[0].rsplit("/", 1)[1])
    with open(saved, "rb") as f:
        assert f.read() == PNG_BYTES

    served = client.get(urls[1])
    assert served.status_code == 200
    assert served.content == b"jpeg-bytes"


def test_public_base_url_prefix(monkeypatch):
    monkeypatch.setattr(settings, "SAVE_GENERATED_IMAGES", True)
    monkeypatch.setattr(settings, "PUBLIC_BASE_URL", "https://api.example.com")
    service = service_replying({"artifacts": [{"base64": PNG_B64}]})
    url = service.generate("prefixed")["urls"][0]
    assert url.startswith("https://api.example.com/uploads/generated-images/")


def test_generate_image_endpoint(app, client):
    app.dependency_overrides[deps.get_image_generation_service] = lambda: service_replying(
        {"artifacts": [{"url": "https://cdn/endpoint.png"}]}
    )
    res = client.post("/api/generate-image", json={"prompt": "endpoint", "cfgScale": 5})
    assert res.status_code == 200
    assert res.json() == {"prompt": "endpoint", "urls": ["https://cdn/endpoint.png"]}

    assert client.post("/api/generate-image", json={"prompt": ""}).status_code == 400


def test_generate_image_endpoint_upstream_error(app, client):
    app.dependency_overrides[deps.get_image_generation_service] = lambda: service_replying(
        {"message": "invalid api key"}, status_code=401
    )
    res = client.post("/api/generate-image", json={"prompt": "x"})
    assert res.status_code == 401
    body = res.json()
    assert body["error"] is True
    assert body["message"] == "Image generation failed"
    assert body["detail"] == {"message": "invalid api key"}
