"""
Stability AI text-to-image proxy.

Upstream responses come in a few shapes depending on the engine and API
version. ``parse_response`` classifies the JSON body into one of the known
shapes below (or ``UnrecognizedShape`` carrying the raw payload), and
``ImageGenerationService`` turns the extracted images into URLs the client can
render, optionally re-hosting them under ``/uploads``.
"""
import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import httpx

from cling.core.config import settings
from cling.core.exceptions import InternalError, UpstreamError, ValidationError
from cling.core.metrics import image_generation_requests_total
from cling.services import file_storage

logger = logging.getLogger(__name__)


@dataclass
class RemoteImage:
    url: str


@dataclass
class InlineImage:
    b64: str


ImageRef = Union[RemoteImage, InlineImage]


@dataclass
class ArtifactsShape:
    """``{"artifacts": [...]}``"""
    images: List[ImageRef] = field(default_factory=list)


@dataclass
class OutputShape:
    """``{"output": [...]}``"""
    images: List[ImageRef] = field(default_factory=list)


@dataclass
class BareListShape:
    """A top-level JSON array of image items"""
    images: List[ImageRef] = field(default_factory=list)


@dataclass
class UnrecognizedShape:
    raw: Any = None


ResponseShape = Union[ArtifactsShape, OutputShape, BareListShape, UnrecognizedShape]


def _unwrap_inline(value: str) -> Optional[str]:
    # Some engines return the payload as a JSON document wrapping the base64
    value = value.strip()
    if value.startswith("{") or value.startswith("["):
        try:
            parsed = json.loads(value)
        except ValueError:
            return value or None
        if isinstance(parsed, dict):
            inner = parsed.get("b64_json") or parsed.get("base64")
            if isinstance(inner, str) and inner:
                return inner
    return value or None


def _extract_item(item: Any) -> Optional[ImageRef]:
    if not isinstance(item, dict):
        return None
    url = item.get("url") or item.get("uri")
    if isinstance(url, str) and url:
        return RemoteImage(url=url)
    b64 = item.get("base64") or item.get("b64_json") or item.get("b64")
    if isinstance(b64, str):
        unwrapped = _unwrap_inline(b64)
        if unwrapped:
            return InlineImage(b64=unwrapped)
    return None


def _extract_items(items: List[Any]) -> List[ImageRef]:
    images = []
    for item in items:
        ref = _extract_item(item)
        if ref is not None:
            images.append(ref)
    return images


def parse_response(data: Any) -> ResponseShape:
    """Classify an upstream body; the first shape that yields any image wins."""
    if isinstance(data, dict):
        artifacts = data.get("artifacts")
        if isinstance(artifacts, list) and artifacts:
            images = _extract_items(artifacts)
            if images:
                return ArtifactsShape(images=images)
        output = data.get("output")
        if isinstance(output, list) and output:
            images = _extract_items(output)
            if images:
                return OutputShape(images=images)
    elif isinstance(data, list) and data:
        images = _extract_items(data)
        if images:
            return BareListShape(images=images)
    return UnrecognizedShape(raw=data)


class ImageGenerationService:
    def __init__(self, client: Optional[httpx.Client] = None):
        # Tests pass a client built on httpx.MockTransport
        self.client = client

    def generate(
        self,
        prompt: Optional[str],
        width: int = 1024,
        height: int = 1024,
        samples: int = 1,
        cfg_scale: float = 7,
    ) -> Dict[str, Any]:
        if not prompt or not prompt.strip():
            raise ValidationError("prompt is required and must be non-empty string")
        if not settings.STABILITY_API_KEY:
            raise InternalError("STABILITY_API_KEY missing in server configuration")

        payload = {
            "text_prompts": [{"text": prompt}],
            "cfg_scale": cfg_scale,
            "height": height,
            "width": width,
            "samples": samples,
        }
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {settings.STABILITY_API_KEY}",
        }

        data = self._post(payload, headers)
        shape = parse_response(data)

        if isinstance(shape, UnrecognizedShape):
            image_generation_requests_total.labels(provider="stability", outcome="empty").inc()
            logger.warning("Stability response contained no recognizable images")
            return {"message": "No image found in response", "raw": shape.raw}

        urls = [self._to_url(image) for image in shape.images][:samples]
        image_generation_requests_total.labels(provider="stability", outcome="success").inc()
        logger.info(f"Generated {len(urls)} image(s) via {type(shape).__name__}")
        return {"prompt": prompt, "urls": urls}

    def _post(self, payload: Dict[str, Any], headers: Dict[str, str]) -> Any:
        timeout = settings.IMAGE_GENERATION_TIMEOUT_SECONDS
        try:
            if self.client is not None:
                response = self.client.post(
                    settings.STABILITY_API_URL, json=payload, headers=headers, timeout=timeout
                )
            else:
                with httpx.Client(timeout=timeout) as client:
                    response = client.post(settings.STABILITY_API_URL, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            image_generation_requests_total.labels(provider="stability", outcome="upstream_error").inc()
            detail = _response_detail(e.response)
            logger.error(f"Stability returned {e.response.status_code}: {detail}")
            raise UpstreamError(
                "Image generation failed",
                status_code=e.response.status_code,
                detail=detail,
                expose_detail=True,
            )
        except httpx.RequestError as e:
            image_generation_requests_total.labels(provider="stability", outcome="transport_error").inc()
            logger.error(f"Stability request failed: {e}")
            raise UpstreamError(
                "Image generation failed",
                status_code=500,
                detail=str(e) or type(e).__name__,
                expose_detail=True,
            )
        try:
            return response.json()
        except ValueError as e:
            image_generation_requests_total.labels(provider="stability", outcome="upstream_error").inc()
            logger.error(f"Stability returned a non-JSON body: {e}")
            raise UpstreamError(
                "Image generation failed",
                status_code=500,
                detail=response.text,
                expose_detail=True,
            )

    def _to_url(self, image: ImageRef) -> str:
        if isinstance(image, RemoteImage):
            if settings.SAVE_GENERATED_IMAGES:
                return self._rehost_remote(image.url)
            return image.url
        if settings.SAVE_GENERATED_IMAGES:
            try:
                content = base64.b64decode(image.b64)
            except (binascii.Error, ValueError) as e:
                logger.warning(f"Could not decode inline image, returning data URL: {e}")
            else:
                return file_storage.save_generated_image(content, "png")
        return f"data:image/png;base64,{image.b64}"

    def _rehost_remote(self, url: str) -> str:
        timeout = settings.IMAGE_GENERATION_TIMEOUT_SECONDS
        try:
            if self.client is not None:
                response = self.client.get(url, timeout=timeout)
            else:
                with httpx.Client(timeout=timeout) as client:
                    response = client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Download of generated image {url} failed, using upstream URL: {e}")
            return url
        ext = file_storage.ext_for_content_type(response.headers.get("content-type", ""))
        return file_storage.save_generated_image(response.content, ext)


def _response_detail(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
