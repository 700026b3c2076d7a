import logging
from typing import Any, List, Optional

import httpx

from cling.core.config import settings
from cling.core.exceptions import InternalError, UpstreamError, ValidationError
from cling.core.metrics import image_generation_requests_total

logger = logging.getLogger(__name__)

ICON_URL_TEMPLATE = "https://dummyimage.com/150x150/10b981/ffffff&text={text}"
DEFAULT_ICON_URL = "https://dummyimage.com/150x150/6b7280/ffffff&text=Default"
MAX_KEYWORDS = 4

PROMPT_TEMPLATE = (
    "Generate four highly creative, simple, one-word keywords for icons that best "
    'represent the reminder description: "{description}". Separate them with commas only. '
    "The output must ONLY contain the four keywords. "
    "Example: 'Bike Service' -> 'Wrench, Helmet, Oil, Road'."
)


def parse_keywords(text: str) -> List[str]:
    keywords = [k.strip() for k in (text or "").split(",")]
    return [k for k in keywords if k][:MAX_KEYWORDS]


def icon_url_for(keyword: str) -> str:
    return ICON_URL_TEMPLATE.format(text="+".join(keyword.upper().split()))


def _response_text(data: Any) -> str:
    """Concatenate the text parts of the first candidate of a generateContent reply"""
    candidates = data.get("candidates") if isinstance(data, dict) else None
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))


class IconSuggestionService:
    def __init__(self, client: Optional[httpx.Client] = None):
        self.client = client

    def suggest(self, description: Optional[str]) -> List[str]:
        if not description or not description.strip():
            raise ValidationError("Description is required for AI generation.")
        if not settings.GEMINI_API_KEY:
            raise InternalError("GEMINI_API_KEY is not configured")

        text = self._generate_keywords(description)
        urls = [icon_url_for(k) for k in parse_keywords(text)]
        if not urls:
            urls = [DEFAULT_ICON_URL]
        image_generation_requests_total.labels(provider="gemini", outcome="success").inc()
        return urls

    def _generate_keywords(self, description: str) -> str:
        url = f"{settings.GEMINI_API_URL.rstrip('/')}/models/{settings.GEMINI_MODEL}:generateContent"
        payload = {"contents": [{"parts": [{"text": PROMPT_TEMPLATE.format(description=description)}]}]}
        params = {"key": settings.GEMINI_API_KEY}
        try:
            if self.client is not None:
                response = self.client.post(url, json=payload, params=params)
            else:
                with httpx.Client(timeout=60.0) as client:
                    response = client.post(url, json=payload, params=params)
            response.raise_for_status()
            return _response_text(response.json())
        except (httpx.HTTPError, ValueError) as e:
            image_generation_requests_total.labels(provider="gemini", outcome="upstream_error").inc()
            logger.error(f"Gemini API error: {e}")
            raise UpstreamError(
                "Failed to generate keywords using AI",
                status_code=500,
                detail=str(e),
                expose_detail=True,
            )
